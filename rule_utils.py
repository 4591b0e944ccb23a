"""
Shared helpers for rule functions: look-around windows, negation and
context checks, scoring, evidence extraction and Finding construction.

Window sizes and score bands are module constants seeded from settings so
they can be calibrated (or monkeypatched in tests) in one place.
"""
from __future__ import annotations

import re
import unicodedata
from typing import Any, Dict, Optional, Pattern, Sequence, Tuple

from schemas import Finding, FindingMeta, LegalContext, RuleKind, Severity
from settings import settings

# ---------- Windows (characters on each side of an index) ----------
NEGATION_WINDOW = settings.CL_NEGATION_WINDOW
CONTEXT_WINDOW = settings.CL_CONTEXT_WINDOW
EVIDENCE_WINDOW = settings.CL_EVIDENCE_WINDOW
SENTENCE_MIN_CHARS = settings.CL_SENTENCE_MIN_CHARS
EVIDENCE_MAX_CHARS = settings.CL_EVIDENCE_MAX_CHARS
EVIDENCE_SCAN_CHARS = 1500          # how far sentence/paragraph search may walk

# ---------- Confidence bands ----------
HIGH_BAND = 0.8
MEDIUM_BAND = 0.6

# ---------- Heading trimming ----------
HEADING_SEARCH_WINDOW = 2000
HEADING_FALLBACK_CHARS = 1200
HEADING_MIN_EVIDENCE = 20


def slice_around(text: str, index: int, window: int) -> str:
    start = max(0, index - window)
    return text[start:index + window]


# ---------- Lexical checks ----------
# Fixed list of negating markers; not syntactic negation
NEGATION_RE = re.compile(
    r"\b(no|sin|nunca|jam[aá]s|ning[uú]n[oa]?|tampoco|queda(?:n)?\s+prohibid[oa]s?|exent[oa]s?\s+de)\b",
    re.IGNORECASE,
)
PRICE_TERMS_RE = re.compile(
    r"\b(alquiler(?:es)?|canon|precio|renta|locaci[oó]n|mensualidad(?:es)?|importe|monto|pago)\b",
    re.IGNORECASE,
)
LEASE_TERMS_RE = re.compile(
    r"\b(contrato|locaci[oó]n|arrendamiento|inquilin[oa]|locador(?:a)?|locatari[oa])\b",
    re.IGNORECASE,
)
LEGAL_ANCHOR_RE = re.compile(r"\b(art(?:[ií]culo|\.)?\s*\d+|ley\s*\d|lct|ccyc|decreto|dnu)\b", re.IGNORECASE)
NUMERIC_CUE_RE = re.compile(r"\d")


def has_negation_near(text: str, index: int, window: Optional[int] = None) -> bool:
    return bool(NEGATION_RE.search(slice_around(text, index, window or NEGATION_WINDOW)))


def has_negation_outside(text: str, start: int, end: int, window: Optional[int] = None) -> bool:
    """Negation within the window around [start, end), ignoring the span itself."""
    win = window or NEGATION_WINDOW
    before = text[max(0, start - win):start]
    after = text[end:end + win]
    return bool(NEGATION_RE.search(before) or NEGATION_RE.search(after))


def has_price_terms_near(text: str, index: int, window: Optional[int] = None) -> bool:
    return bool(PRICE_TERMS_RE.search(slice_around(text, index, window or CONTEXT_WINDOW)))


def has_lease_context_near(text: str, index: int, window: Optional[int] = None) -> bool:
    win = window or CONTEXT_WINDOW
    return has_price_terms_near(text, index, win) or bool(LEASE_TERMS_RE.search(slice_around(text, index, win)))


# ---------- Scoring ----------
def score(signals: Sequence[Any], weights: Sequence[float]) -> float:
    """
    Weighted average of boolean signals, in [0, 1].

    Missing weights default to 1.0; an all-zero weight vector scores 0.
    """
    total = 0.0
    hit = 0.0
    for i, signal in enumerate(signals):
        w = weights[i] if i < len(weights) else 1.0
        total += w
        if signal:
            hit += w
    if total <= 0:
        return 0.0
    return round(hit / total, 4)


def severity_from_confidence(confidence: float) -> Severity:
    if confidence >= HIGH_BAND:
        return Severity.HIGH
    if confidence >= MEDIUM_BAND:
        return Severity.MEDIUM
    return Severity.LOW


def clamp_confidence(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def compute_score(
    text: str,
    index: int,
    matched: bool = True,
    base: float = 0.6,
    extra_boost: float = 0.0,
    window: Optional[int] = None,
) -> Tuple[float, Severity]:
    """
    Generic scorer: base confidence for a match, nudged by cues around it.

    - citation-style legal anchor nearby: +0.05
    - numeric magnitude nearby: +0.05
    - negating marker nearby: -0.2
    - caller-supplied boost is added last

    Returns (confidence, banded severity).
    """
    if not matched:
        return 0.0, Severity.LOW
    win = window or CONTEXT_WINDOW
    around = slice_around(text, index, win)
    confidence = base
    if LEGAL_ANCHOR_RE.search(around):
        confidence += 0.05
    if NUMERIC_CUE_RE.search(around):
        confidence += 0.05
    if has_negation_near(text, index):
        confidence -= 0.2
    confidence = round(clamp_confidence(confidence + extra_boost), 4)
    return confidence, severity_from_confidence(confidence)


# ---------- Numbers ----------
NUMBER_WORDS: Dict[str, int] = {
    "uno": 1, "un": 1, "una": 1, "primero": 1, "primer": 1,
    "dos": 2, "tres": 3, "cuatro": 4, "cinco": 5, "seis": 6,
    "siete": 7, "ocho": 8, "nueve": 9, "diez": 10, "once": 11, "doce": 12,
    "quince": 15, "veinte": 20, "treinta": 30, "sesenta": 60, "noventa": 90,
}


def strip_accents(word: str) -> str:
    return "".join(c for c in unicodedata.normalize("NFD", word) if unicodedata.category(c) != "Mn")


def word_to_number(word: str) -> Optional[int]:
    return NUMBER_WORDS.get(strip_accents(word).lower())


# ---------- Evidence ----------
# A dot between two digits ("2.5", "$1.000") does not end a sentence
_SENTENCE_BOUNDARY_RE = re.compile(r"[!?¡¿\n]|(?<!\d)\.|\.(?!\d)")
_PARAGRAPH_BOUNDARY_RE = re.compile(r"\n[ \t]*\n|\f")


def _clamp_index(text: str, index: int) -> int:
    return max(0, min(len(text), int(index)))


def sentence_at(text: str, index: int) -> str:
    index = _clamp_index(text, index)
    lo = max(0, index - EVIDENCE_SCAN_CHARS)
    start = lo
    for m in _SENTENCE_BOUNDARY_RE.finditer(text, lo, index):
        start = m.end()
    hi = min(len(text), index + EVIDENCE_SCAN_CHARS)
    m = _SENTENCE_BOUNDARY_RE.search(text, index, hi)
    end = m.end() if m else hi
    return text[start:end].strip()


def paragraph_at(text: str, index: int) -> str:
    index = _clamp_index(text, index)
    start = 0
    for m in _PARAGRAPH_BOUNDARY_RE.finditer(text, 0, index):
        start = m.end()
    m = _PARAGRAPH_BOUNDARY_RE.search(text, index)
    end = m.start() if m else len(text)
    return text[start:end].strip()


def window_at(text: str, index: int, window: Optional[int] = None) -> str:
    return slice_around(text, _clamp_index(text, index), window or EVIDENCE_WINDOW).strip()


def extract_evidence(text: str, index: int, window: Optional[int] = None) -> str:
    """
    Human-readable excerpt around an index.

    Preference: enclosing sentence (if long enough to be useful), then the
    enclosing paragraph (if not too long), then a fixed window.
    """
    if not text:
        return ""
    sentence = sentence_at(text, index)
    if len(sentence) >= SENTENCE_MIN_CHARS:
        return sentence
    paragraph = paragraph_at(text, index)
    if paragraph and len(paragraph) <= EVIDENCE_MAX_CHARS:
        return paragraph
    return window_at(text, index, window)


def ensure_evidence(finding: Finding, text: str) -> Finding:
    if finding.evidence or finding.index is None:
        return finding
    evidence = extract_evidence(text, finding.index, finding.window)
    return finding.model_copy(update={"evidence": evidence})


# ---------- Finding construction ----------
def context_meta(ctx: LegalContext) -> Dict[str, Any]:
    return {
        "country": ctx.country,
        "regime": ctx.regime,
        "contract_type": ctx.contract_type,
        "contract_date": ctx.contract_date,
    }


_META_FIELDS = set(FindingMeta.model_fields)


def make_finding(
    rule_id: str,
    title: str,
    severity: Severity,
    description: str,
    index: Optional[int] = None,
    window: Optional[int] = None,
    confidence: float = 0.6,
    kind: RuleKind = RuleKind.HEURISTIC,
    fragment: Optional[str] = None,
    evidence: Optional[str] = None,
    **meta: Any,
) -> Finding:
    """
    Build a Finding. Known meta fields go to FindingMeta; anything else lands
    in meta.extra. Evidence is left for the engine to derive unless given.
    """
    known = {k: v for k, v in meta.items() if k in _META_FIELDS and k != "extra"}
    extra = dict(meta.get("extra") or {})
    extra.update({k: v for k, v in meta.items() if k not in _META_FIELDS})
    return Finding(
        id=rule_id,
        title=title,
        severity=severity,
        description=description,
        evidence=evidence,
        text=fragment,
        index=index,
        window=window,
        meta=FindingMeta(type=kind, confidence=round(clamp_confidence(confidence), 4), extra=extra, **known),
    )


# ---------- Clause-heading evidence ----------
HEADING_RE = re.compile(
    r"^[ \t]*(?:cl[aá]usula\s+)?"
    r"(?:primera|segunda|tercera|cuarta|quinta|sexta|s[eé]ptima|septima|octava|novena|d[eé]cima(?:\s+\w+)?"
    r"|\d{1,2}\s*(?:[ºo°ª]\.?)?)"
    r"\s*(?:[-–—:.]\s*)?[^\n]*$",
    re.IGNORECASE | re.MULTILINE,
)


def adjust_evidence_to_heading_range(text: str, finding: Finding, keyword_re: Pattern) -> Finding:
    """
    Re-anchor evidence on the nearest clause heading at or before the finding
    index whose line matches keyword_re, up to the next heading.
    """
    if not text or finding.index is None:
        return finding
    idx = _clamp_index(text, finding.index)
    start = max(0, idx - HEADING_SEARCH_WINDOW)
    end = min(len(text), idx + HEADING_SEARCH_WINDOW)

    headings = [(m.start(), m.end(), m.group(0)) for m in HEADING_RE.finditer(text, start, end)]
    chosen = None
    for pos, (h_start, _, line) in enumerate(headings):
        if h_start <= idx and keyword_re.search(line):
            chosen = pos
    if chosen is None:
        return finding

    h_start, h_end, _ = headings[chosen]
    following = [h for h in headings[chosen + 1:] if h[0] > h_start]
    e_end = following[0][0] if following else min(len(text), h_end + HEADING_FALLBACK_CHARS)
    evidence = text[h_start:e_end].strip()
    if len(evidence) <= HEADING_MIN_EVIDENCE:
        return finding
    return finding.model_copy(update={"evidence": evidence})
