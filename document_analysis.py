"""
End-to-end document analysis.

Combines:
- ingest.py: text extraction (PDF / OCR / DOCX / plain)
- text_normalizer.py: cleanup and paragraph segmentation
- document_classifier.py: contract type -> rule group
- evaluator.py: rule engine
- finding_merge.py: topic merge and post-merge passes
- offset_mapper.py: paragraph / page anchoring for the UI

Extraction and legibility failures come back as a report with a status and
a user-facing message; they are never raised to the caller.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from document_classifier import classify_contract, group_for_contract_type, runner_up_type
from errors import EXTRACTION_FAILED_MESSAGE, ILLEGIBLE_MESSAGE, DocumentIllegible, ExtractionFailure
from evaluator import rank_findings, run_for_group, selected_rule_ids_for_group
from finding_merge import adjust_deposit_evidence, bump_deposit_severity_with_guarantor, merge
from ingest import extract_text
from offset_mapper import PageLineMapper, ParagraphOffsetMapper
from rule_registry import RuleRegistry, default_registry
from schemas import AnalysisReport, Finding, NormalizedDocument, RuleGroup, SourceKind
from settings import settings
from text_normalizer import normalize

logger = logging.getLogger("contractlens.analysis")

STATUS_OK = "ok"
STATUS_ILLEGIBLE = "illegible"
STATUS_EXTRACTION_FAILED = "extraction_failed"


def anchor_findings(document: NormalizedDocument, findings: List[Finding]) -> List[Finding]:
    """Attach paragraph index, local index and page to every finding with an index."""
    paragraphs = ParagraphOffsetMapper(document.paragraph_spans)
    pages = PageLineMapper(document.text)
    out = []
    for f in findings:
        if f.index is None:
            out.append(f)
            continue
        loc = paragraphs(f.index)
        out.append(f.with_meta(
            paragraph_index=loc.paragraph_index,
            local_index=loc.local_index,
            page=pages.page_for(f.index),
        ))
    return out


def _secondary_group(classification, primary: RuleGroup) -> Optional[RuleGroup]:
    if not settings.should_run_secondary_group(classification.confidence):
        return None
    runner_up = runner_up_type(classification)
    if runner_up is None:
        return None
    group = group_for_contract_type(runner_up[0])
    return None if group == primary else group


def analyze_text(
    text: str,
    source_kind: SourceKind = SourceKind.PLAIN,
    threshold: Optional[float] = None,
    group: Optional[RuleGroup] = None,
    document_name: str = "",
    notes: Optional[List[str]] = None,
    registry: Optional[RuleRegistry] = None,
) -> AnalysisReport:
    """
    Analyze already-extracted text.

    Args:
        text: Raw extracted text
        source_kind: How the text was produced
        threshold: Confidence threshold override (None = configured default)
        group: Force a rule group instead of classifying the contract
        document_name: Name carried into the report
        notes: Upstream notes (e.g. extraction path) carried into the report
        registry: Rule registry override

    Returns:
        AnalysisReport; status is "illegible" when the text is unusable
    """
    notes = list(notes or [])
    registry = registry or default_registry()
    try:
        document = normalize(text, source_kind=source_kind)
    except DocumentIllegible as e:
        logger.info("Document %s illegible (%d chars)", document_name or "<text>", e.length)
        return AnalysisReport(
            document_name=document_name,
            status=STATUS_ILLEGIBLE,
            message=ILLEGIBLE_MESSAGE,
            notes=notes + e.notes,
        )

    classification = classify_contract(document.text)
    primary = RuleGroup(group) if group is not None else group_for_contract_type(classification.type)
    findings = run_for_group(document.text, primary, threshold, registry)
    selected = selected_rule_ids_for_group(primary, registry)

    secondary = None if group is not None else _secondary_group(classification, primary)
    secondary_findings: List[Finding] = []
    if secondary is not None:
        logger.info("Low classification confidence (%.2f); also running group '%s'",
                    classification.confidence, secondary.value)
        secondary_findings = run_for_group(document.text, secondary, threshold, registry)
        selected += [i for i in selected_rule_ids_for_group(secondary, registry) if i not in selected]
        notes.append(f"secondary-group:{secondary.value}")

    merged = merge(findings, secondary_findings)
    merged = bump_deposit_severity_with_guarantor(merged)
    merged = [adjust_deposit_evidence(document.text, f) for f in merged]
    merged = rank_findings(merged, order_of=registry.order_of)
    merged = anchor_findings(document, merged)

    if not merged:
        logger.info("No findings for %s (%d rules selected)", document_name or "<text>", len(selected))

    return AnalysisReport(
        document_name=document_name,
        status=STATUS_OK,
        findings=merged,
        classification=classification,
        group=primary,
        selected_rule_ids=selected,
        document=document,
        notes=notes + document.notes,
    )


def analyze_document(
    data: bytes,
    filename: str,
    mime: Optional[str] = None,
    threshold: Optional[float] = None,
) -> AnalysisReport:
    """Extract, normalize and analyze an uploaded document."""
    try:
        extracted = extract_text(data, filename=filename, mime=mime)
    except ExtractionFailure as e:
        logger.warning("Extraction failed for %s: %s", filename, "; ".join(e.notes))
        return AnalysisReport(
            document_name=filename,
            status=STATUS_EXTRACTION_FAILED,
            message=EXTRACTION_FAILED_MESSAGE,
            notes=e.notes,
        )
    return analyze_text(
        extracted.text,
        source_kind=extracted.source_kind,
        threshold=threshold,
        document_name=filename,
        notes=extracted.notes,
    )
