"""
Employment contract rules.
"""
from __future__ import annotations

import re
from typing import List, Optional

from legal_context import resolve_cached
from rule_utils import (
    compute_score,
    context_meta,
    has_negation_near,
    make_finding,
    score,
    slice_around,
    word_to_number,
)
from schemas import Country, Finding, LegalBasis, RuleKind, Severity

MAX_PROBATION_MONTHS = 3
DAYS_PER_MONTH = 30

EMPLOYMENT_RE = re.compile(
    r"\b(empleador|empleado|trabajador|relaci[oó]n\s+de\s+dependencia|lct|legajo|remuneraci[oó]n|salario)\b",
    re.IGNORECASE,
)
PROBATION_RE = re.compile(
    r"\b(per[ií]odo\s+de\s+prueba|per[ií]odo\s+probatorio|prueba\s+laboral)\b",
    re.IGNORECASE,
)
_UNIT = r"(mes(?:es)?|d[ií]as?)\b"
_DURATION_PATTERNS = [
    re.compile(r"\b[^\W\d_]+\s*\((\d{1,3})\)\s*" + _UNIT, re.IGNORECASE),
    re.compile(r"\b(\d{1,3})\s*" + _UNIT, re.IGNORECASE),
    re.compile(
        r"\b(uno|una|un|dos|tres|cuatro|cinco|seis|siete|ocho|nueve|diez|once|doce|treinta|sesenta|noventa)\s*"
        + _UNIT,
        re.IGNORECASE,
    ),
]


def probation_months_near(text: str, index: int) -> Optional[int]:
    """Declared probation length in months; days count as 30 per month."""
    around = slice_around(text, index, 240)
    for pattern in _DURATION_PATTERNS:
        m = pattern.search(around)
        if not m:
            continue
        raw = m.group(1)
        n = int(raw) if raw.isdigit() else word_to_number(raw)
        if n is None:
            continue
        if m.group(2).lower().startswith("mes"):
            return n
        return round(n / DAYS_PER_MONTH)
    return None


def rule_periodo_prueba(text: str) -> List[Finding]:
    if not EMPLOYMENT_RE.search(text):
        return []
    ctx = resolve_cached(text)
    if ctx.country == Country.ES:
        return []

    m = PROBATION_RE.search(text)
    if not m:
        return []

    idx = m.start()
    months = probation_months_near(text, idx)
    neg = has_negation_near(text, idx, 160)
    exceeds = months is not None and months > MAX_PROBATION_MONTHS

    heuristic = score([not neg, months is not None, exceeds], [0.8, 0.6, 0.6])
    boost = 0.0
    if months is not None:
        if exceeds:
            boost += 0.25
        elif months >= MAX_PROBATION_MONTHS:
            boost += 0.1
    confidence, banded = compute_score(text, idx, extra_boost=boost + max(0.0, heuristic - 0.6))
    if confidence < 0.6:
        return []

    meta = context_meta(ctx)
    meta["country"] = Country.AR
    return [make_finding(
        "laboral-periodo-prueba",
        "Período de prueba superior al tope legal (92 bis)" if exceeds
        else "Período de prueba (verificar límites legales, art. 92 bis)",
        Severity.HIGH if exceeds else banded,
        "El período de prueba informado supera el máximo legal usual de tres meses (art. 92 bis LCT). "
        "Revisar validez y adecuar la redacción." if exceeds
        else "Se menciona período de prueba. En Argentina (art. 92 bis LCT) suele ser de hasta tres meses para "
        "contratos por tiempo indeterminado.",
        index=idx,
        window=320,
        confidence=confidence,
        kind=RuleKind.LEGAL,
        months_detected=months,
        extra={"heuristic_confidence": heuristic},
        legal_basis=[LegalBasis(
            law="LCT 20.744 (AR)",
            article="art. 92 bis",
            note="Período de prueba: hasta tres (3) meses.",
            jurisdiction="AR",
        )],
        bullets=[
            "Verificá que no exceda tres (3) meses en contratos por tiempo indeterminado.",
            "Aclarar si hay preaviso/remuneración durante el período y cobertura de ART/seguridad social.",
            "Evitar renovaciones encubiertas del período probatorio.",
        ],
        keywords=["período de prueba", "92 bis", "LCT", "tres meses", "empleo", "contrato laboral"],
        **meta,
    )]
