"""
Rent adjustment rules: periodicity against the applicable regime, and
index/update clause detection.
"""
from __future__ import annotations

import re
from typing import List, NamedTuple, Optional

from legal_context import resolve_cached
from rule_utils import (
    context_meta,
    has_negation_near,
    has_price_terms_near,
    make_finding,
    score,
    slice_around,
)
from schemas import Country, Finding, LegalBasis, Regime, RuleKind, Severity

PERIODICITY_WINDOW = 480

# Verb stems: "\w*" also covers future and past forms ("actualizará", "aumentó")
_ADJUST_TERMS = (
    r"ajust\w*|reajust\w*|actualiz\w*|index\w*|readecu\w*|revisi[oó]n|increment\w*|aument\w*"
)
ADJUSTMENT_TRIGGER_RE = re.compile(r"\b(" + _ADJUST_TERMS + r")(?!\w)", re.IGNORECASE)

_N = r"(\d{1,2})"
_WN = r"[^\W\d_]+\s*\((\d{1,2})\)"
_MONTHS = r"\s*mes(?:es)?\b"
_SPAN_PHRASE = (
    r"(?:a\s+partir\s+de|transcurrid(?:o|os)|cumplid(?:o|os))\s+(?:los?\s+)?"
)
_REMAINING_PHRASE = (
    r"(?:para\s+los\s+restantes|durante\s+los\s+siguientes|durante\s+los\s+pr[oó]ximos|por\s+los\s+pr[oó]ximos)\s+"
)

# Each pattern captures the number of months in group 1
_PERIOD_PATTERNS = [
    re.compile(r"cada\s+" + _N + _MONTHS, re.IGNORECASE),
    re.compile(r"cada\s+" + _WN + _MONTHS, re.IGNORECASE),
    re.compile(r"\ba\s+los?\s+" + _N + _MONTHS, re.IGNORECASE),
    re.compile(r"\ba\s+los?\s+" + _WN + _MONTHS, re.IGNORECASE),
    re.compile(r"\b" + _SPAN_PHRASE + _N + _MONTHS, re.IGNORECASE),
    re.compile(r"\b" + _SPAN_PHRASE + _WN + _MONTHS, re.IGNORECASE),
    re.compile(r"\b" + _REMAINING_PHRASE + _N + _MONTHS, re.IGNORECASE),
    re.compile(r"\b" + _REMAINING_PHRASE + _WN + _MONTHS, re.IGNORECASE),
]
_PERIOD_WORDS = [
    (re.compile(r"\bsemestral(?:es|mente)?\b", re.IGNORECASE), 6),
    (re.compile(r"\banual(?:es|mente)?\b", re.IGNORECASE), 12),
    (re.compile(r"\bmensual\b", re.IGNORECASE), 1),
    (re.compile(r"\btrimestral(?:es|mente)?\b", re.IGNORECASE), 3),
    (re.compile(r"\bbimestral(?:es|mente)?\b", re.IGNORECASE), 2),
    (re.compile(r"\b(?:primer|segundo|1(?:er)?|2(?:do)?)\s+semestre\b|\bcada\s+semestre\b", re.IGNORECASE), 6),
]
# Without a trigger: phrases that already imply a periodicity, in priority order
_FALLBACK_PATTERNS = [
    (re.compile(r"\b" + _REMAINING_PHRASE + _N + _MONTHS, re.IGNORECASE), None),
    (re.compile(r"\b" + _REMAINING_PHRASE + _WN + _MONTHS, re.IGNORECASE), None),
    (re.compile(r"\ba\s+los?\s+" + _N + _MONTHS, re.IGNORECASE), None),
    (re.compile(r"\bcada\s+" + _N + _MONTHS, re.IGNORECASE), None),
    (re.compile(r"\bsemestral(?:es|mente)?\b", re.IGNORECASE), 6),
    (re.compile(r"\banual(?:es|mente)?\b", re.IGNORECASE), 12),
    (re.compile(r"\b(?:primer|segundo|1(?:er)?|2(?:do)?|1º|2º)\s+semestre\b", re.IGNORECASE), 6),
]

PERCENT_NEAR_RE = re.compile(r"%|\bpor\s+ciento\b|\bporc\.", re.IGNORECASE)


class Periodicity(NamedTuple):
    months: int
    index: int


def detect_periodicity(text: str) -> Optional[Periodicity]:
    """Periodicity near the first adjustment trigger; evidence anchors on the trigger."""
    anchor = ADJUSTMENT_TRIGGER_RE.search(text)
    if not anchor:
        return None
    idx = anchor.start()
    around = slice_around(text, idx, PERIODICITY_WINDOW)
    for pattern in _PERIOD_PATTERNS:
        m = pattern.search(around)
        if m:
            return Periodicity(int(m.group(1)), idx)
    for pattern, months in _PERIOD_WORDS:
        if pattern.search(around):
            return Periodicity(months, idx)
    return None


def detect_periodicity_fallback(text: str) -> Optional[Periodicity]:
    for pattern, months in _FALLBACK_PATTERNS:
        m = pattern.search(text)
        if m:
            return Periodicity(months if months is not None else int(m.group(1)), m.start())
    return None


def rule_ajuste_periodicidad(text: str) -> List[Finding]:
    ctx = resolve_cached(text)
    if ctx.country != Country.AR:
        return []
    # liberalized regime: any periodicity is allowed
    if ctx.regime not in (Regime.LEY_27551, Regime.LEY_27737):
        return []

    period = detect_periodicity(text) or detect_periodicity_fallback(text)
    if period is None:
        return []

    is_27551 = ctx.regime == Regime.LEY_27551
    breaches = period.months < 12 if is_27551 else period.months != 6
    if not breaches:
        return []

    talks_lease = has_price_terms_near(text, period.index, 300)
    neg = has_negation_near(text, period.index, 180)
    has_pct = bool(PERCENT_NEAR_RE.search(slice_around(text, period.index, 420)))
    confidence = score([talks_lease, True, has_pct, not neg], [1.3, 1.0, 1.0, 0.8])
    if confidence < 0.6:
        return []

    too_short = period.months < (12 if is_27551 else 6)
    severity = Severity.HIGH if (too_short or has_pct) else Severity.MEDIUM

    return [make_finding(
        "alquiler-ajuste-periodicidad",
        "Periodicidad de ajuste no permitida",
        severity,
        "Se detecta un ajuste con periodicidad inferior a 12 meses. Bajo la Ley 27.551, el canon solo puede "
        "ajustarse una vez por año (ICL)." if is_27551
        else "Se detecta una periodicidad distinta a 6 meses. Bajo la Ley 27.737, el ajuste es semestral "
        "(Coeficiente Casa Propia).",
        index=period.index,
        window=320,
        confidence=confidence,
        kind=RuleKind.LEGAL,
        months_detected=period.months,
        legal_basis=[
            LegalBasis(law="Ley 27.551 (AR)", note="Ajuste anual (ICL).", jurisdiction="AR") if is_27551
            else LegalBasis(law="Ley 27.737 (AR)", note="Ajuste semestral (Coeficiente Casa Propia).", jurisdiction="AR")
        ],
        bullets=[
            "La periodicidad debe ser anual." if is_27551 else "La periodicidad debe ser semestral.",
            "Si hay porcentaje explícito o placeholder de %, revisá validez y tope.",
            "Indicá índice/fórmula y su fuente (BCRA/INDEC, etc.).",
        ],
        keywords=["ajuste", "actualización", "indexación", "periodicidad", "mensual", "trimestral",
                  "semestral", "anual", "porcentaje", "canon"],
        **context_meta(ctx),
    )]


INDEX_TRIGGER_RE = re.compile(r"\b(" + _ADJUST_TERMS + r"|variaci[oó]n)(?!\w)", re.IGNORECASE)
INDEX_REF_RE = re.compile(
    r"\b(ipc|uvas?|inflaci[oó]n|icl|ripte|coef(?:iciente)?|casa\s+propia|salarios?|[íi]ndice|bcra|indec)\b",
    re.IGNORECASE,
)
PLACEHOLDER_INDEX_RE = re.compile(
    r"\b(?:[íi]ndice|coef(?:iciente)?)\b.*\ba\s+(?:definir|determinar|acordar|convenir|elecci[oó]n|criterio)\b",
    re.IGNORECASE,
)
PERIOD_WORD_RE = re.compile(
    r"\b(?:mensual|bimestral|trimestral|semestral|anual)(?:es|mente)?\b|\bcada\s+\d+\s*mes(?:es)?\b",
    re.IGNORECASE,
)
INDEX_THRESHOLD = 0.65


def rule_alquiler_indexacion(text: str) -> List[Finding]:
    ctx = resolve_cached(text)
    if ctx.country not in (Country.AR, Country.UNKNOWN):
        return []
    m = INDEX_TRIGGER_RE.search(text)
    if not m:
        return []

    idx = m.start()
    around = slice_around(text, idx, 260)
    talks_lease = has_price_terms_near(text, idx, 240)
    neg = has_negation_near(text, idx, 160)             # "no se ajustará..."
    index_ref = bool(INDEX_REF_RE.search(around))
    placeholder = bool(PLACEHOLDER_INDEX_RE.search(around))
    has_period = bool(PERIOD_WORD_RE.search(around))
    has_pct = bool(PERCENT_NEAR_RE.search(around))

    confidence = score([talks_lease, index_ref or placeholder, not neg], [1.3, 1.1, 0.8])
    if confidence < INDEX_THRESHOLD:
        return []

    severity = Severity.MEDIUM if (index_ref or placeholder) and (has_period or has_pct) else Severity.LOW

    return [make_finding(
        "alquiler-indexacion",
        "Actualización / indexación del canon",
        severity,
        "Se menciona una cláusula de ajuste/indexación. Verificá el índice de referencia, la periodicidad y "
        "si existen topes.",
        index=idx,
        window=300,
        confidence=confidence,
        kind=RuleKind.LEGAL,
        legal_basis=[
            LegalBasis(law="Ley 27.551 (AR)", note="Marco sobre actualización del canon locativo.", jurisdiction="AR"),
            LegalBasis(law="DNU 70/2023 (AR)", note="Reformas: revisar validez/forma de indexaciones vigentes.",
                       jurisdiction="AR"),
        ],
        bullets=[
            "Identificá el índice aplicado (IPC/UVA/ICL/RIPTE/Casa Propia) y su fuente oficial.",
            "Controlá la periodicidad declarada (mensual/semestral/anual/cada N meses).",
            "Buscá topes o límites a subas desproporcionadas.",
            "Evitá placeholders ambiguos: \"índice a definir/a acordar\".",
        ],
        keywords=["actualización", "indexación", "IPC", "UVA", "ICL", "RIPTE", "coeficiente", "Casa Propia"],
        extra={"index_ref": index_ref, "placeholder_index": placeholder,
               "has_periodicity": has_period, "has_percent": has_pct},
        **context_meta(ctx),
    )]
