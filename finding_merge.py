"""
Cross-run merge of findings into topic-level results.

Several near-duplicate rule ids share one umbrella topic (e.g. every
deposit-related rule reports under "alquiler-deposito"). merge() picks one
representative per topic; the post-merge passes only reclassify severity
or trim evidence, they never add findings.
"""
from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Optional

from rule_utils import adjust_evidence_to_heading_range
from schemas import Finding, Severity

logger = logging.getLogger("contractlens.merge")

DEPOSIT_TOPIC = "alquiler-deposito"
GUARANTOR_RULE_ID = "alquiler-garante-solidario"
GUARANTOR_MIN_RENUNCIATIONS = 2

TOPIC_KEYS: Dict[str, str] = {
    "alquiler-deposito-un-mes": DEPOSIT_TOPIC,
    "alquiler-deposito-multiples-meses": DEPOSIT_TOPIC,
    "alquiler-fianza": DEPOSIT_TOPIC,
    "deposito-max-1": DEPOSIT_TOPIC,
    "servicios-jurisdiccion-arbitraje": "servicios-jurisdiccion",
    "bancario-intereses-punitorios": "bancario-intereses",
}

DEPOSIT_HEADING_RE = re.compile(r"dep[oó]sito|garant[ií]a", re.IGNORECASE)


def topic_key_for(rule_id: str) -> str:
    return TOPIC_KEYS.get(rule_id or "", rule_id or "")


def _months(f: Finding) -> int:
    return f.meta.total_months or 0


def _best(items: List[Finding]) -> Finding:
    # max() keeps the first of equal candidates
    return max(items, key=lambda f: (f.severity_rank, f.confidence))


def severity_for_deposit_months(months: Optional[int]) -> Severity:
    """More than one month of deposit is high; one month (or unknown) is informational."""
    if months is not None and months >= 2:
        return Severity.HIGH
    return Severity.LOW


def _as_topic(f: Finding, topic: str, **updates) -> Finding:
    meta_updates = {}
    if topic != f.id:
        meta_updates["original_id"] = f.meta.original_id or f.id
    result = f.model_copy(update={"id": topic, **updates})
    return result.with_meta(**meta_updates) if meta_updates else result


def merge(findings_a: Iterable[Finding], findings_b: Iterable[Finding] = ()) -> List[Finding]:
    """
    Merge two finding lists by topic key.

    Deposit topic: the candidate with the largest total_months wins and its
    severity is recomputed from those months. Other topics keep the best
    (severity, confidence). Output follows first appearance of each topic.
    """
    groups: Dict[str, List[Finding]] = {}
    for f in list(findings_a or []) + list(findings_b or []):
        groups.setdefault(topic_key_for(f.id), []).append(f)

    out: List[Finding] = []
    for topic, items in groups.items():
        if topic == DEPOSIT_TOPIC:
            with_months = [f for f in items if _months(f) > 0]
            if with_months:
                best = max(with_months, key=_months)
            else:
                best = _best(items)
            months = best.meta.total_months or max(_months(f) for f in items)
            severity = severity_for_deposit_months(months)
            if severity != best.severity:
                logger.debug("Deposit severity %s -> %s (months=%s)", best.severity.value, severity.value, months)
            out.append(_as_topic(best, topic, severity=severity))
            continue
        out.append(_as_topic(_best(items), topic))
    return out


def bump_deposit_severity_with_guarantor(findings: Iterable[Finding]) -> List[Finding]:
    """A guarantor clause with several renunciations makes any deposit of a month or more high."""
    findings = list(findings)
    strong_guarantor = any(
        f.id == GUARANTOR_RULE_ID and len(f.meta.renunciations) >= GUARANTOR_MIN_RENUNCIATIONS
        for f in findings
    )
    if not strong_guarantor:
        return findings

    out: List[Finding] = []
    for f in findings:
        if f.id == DEPOSIT_TOPIC and _months(f) >= 1 and f.severity != Severity.HIGH:
            logger.info("Deposit finding raised to high: strong guarantor clause present")
            f = f.model_copy(update={"severity": Severity.HIGH})
        out.append(f)
    return out


def adjust_deposit_evidence(text: str, finding: Finding) -> Finding:
    """Deposit evidence spans its whole clause (heading up to the next heading)."""
    if finding.id != DEPOSIT_TOPIC:
        return finding
    return adjust_evidence_to_heading_range(text, finding, DEPOSIT_HEADING_RE)
