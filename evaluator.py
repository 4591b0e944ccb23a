# evaluator.py
"""
Rule engine: select the rules for a group, run them in isolation, derive
evidence, filter by confidence, dedupe by id and rank.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

from errors import MalformedRuleOutput, RuleExecutionFault
from rule_registry import RuleEntry, RuleRegistry, default_registry
from rule_utils import ensure_evidence, extract_evidence, paragraph_at
from schemas import Finding, RuleGroup, RuleKind
from settings import settings

logger = logging.getLogger("contractlens.engine")


# ---- Execution ----
def _sanitize(entry: RuleEntry, item: object, text: str) -> Optional[Finding]:
    """Drop non-findings; recover out-of-range indices with paragraph evidence."""
    if not isinstance(item, Finding):
        logger.warning("%s", MalformedRuleOutput(entry.id, f"expected Finding, got {type(item).__name__}"))
        return None
    if item.index is None or 0 <= item.index <= len(text):
        return item

    fault = MalformedRuleOutput(entry.id, f"index {item.index} outside [0, {len(text)}]")
    logger.warning("%s", fault)
    clamped = max(0, min(len(text), item.index))
    update = {"index": clamped}
    if not item.evidence:
        update["evidence"] = paragraph_at(text, clamped) or extract_evidence(text, clamped)
    return item.model_copy(update=update)


def execute_rules(text: str, entries: Iterable[RuleEntry]) -> List[Finding]:
    """Run every rule with evidence filled in; a rule that raises contributes nothing."""
    out: List[Finding] = []
    for entry in entries:
        try:
            produced = entry.run(text) or []
        except Exception as e:
            logger.warning("%s", RuleExecutionFault(entry.id, e))
            continue
        for item in produced:
            finding = _sanitize(entry, item, text)
            if finding is not None:
                out.append(ensure_evidence(finding, text))
    return out


# ---- Filtering / dedupe / ranking ----
def _rank_key(finding: Finding) -> Tuple[int, float]:
    return finding.severity_rank, finding.confidence


def dedupe_findings(findings: Iterable[Finding]) -> List[Finding]:
    """One finding per id: the higher (severity, confidence); ties keep the first seen."""
    best = {}
    order: List[str] = []
    for f in findings:
        current = best.get(f.id)
        if current is None:
            best[f.id] = f
            order.append(f.id)
        elif _rank_key(f) > _rank_key(current):
            best[f.id] = f
    return [best[i] for i in order]


def rank_findings(findings: Iterable[Finding], order_of=None) -> List[Finding]:
    """
    Severity desc, confidence desc, legal before heuristic, then registry
    order (or input order when no registry is given).
    """
    indexed = list(enumerate(findings))

    def key(pair):
        pos, f = pair
        registry_pos = order_of(f.meta.original_id or f.id) if order_of else pos
        return (-f.severity_rank, -f.confidence, 0 if f.meta.type == RuleKind.LEGAL else 1, registry_pos, pos)

    return [f for _, f in sorted(indexed, key=key)]


# ---- Main API ----
def selected_rule_ids_for_group(group: RuleGroup, registry: Optional[RuleRegistry] = None) -> List[str]:
    """Ids that run_for_group would execute; explains an empty result."""
    registry = registry or default_registry()
    return [r.id for r in registry.select(group)]


def run_for_group(
    text: str,
    group: RuleGroup,
    threshold: Optional[float] = None,
    registry: Optional[RuleRegistry] = None,
) -> List[Finding]:
    """
    Evaluate a normalized text against the rules selected for a group.

    Args:
        text: Normalized document text
        group: Rule group chosen from the contract type
        threshold: Minimum confidence (inclusive). None uses the configured default.
        registry: Rule registry; defaults to the packaged rules and policy

    Returns:
        Findings ordered by severity, confidence, kind and registry order
    """
    registry = registry or default_registry()
    threshold = settings.get_threshold(threshold)
    entries = registry.select(group)
    logger.debug("Running %d rules for group '%s' (threshold=%.2f)", len(entries), RuleGroup(group).value, threshold)

    produced = execute_rules(text or "", entries)
    kept = [f for f in produced if f.confidence >= threshold]
    if len(kept) < len(produced):
        logger.debug("Dropped %d findings below threshold %.2f", len(produced) - len(kept), threshold)

    return rank_findings(dedupe_findings(kept), order_of=registry.order_of)
