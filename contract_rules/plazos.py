"""
Lease term rules: minimum duration, duration/extension guidance and the
temporary-lease inconsistency check.
"""
from __future__ import annotations

import re
from typing import List, NamedTuple, Optional

from legal_context import resolve_cached
from rule_utils import (
    context_meta,
    has_lease_context_near,
    has_negation_near,
    has_price_terms_near,
    make_finding,
    score,
    slice_around,
)
from schemas import ContractSubtype, Country, Finding, LegalBasis, Regime, RuleKind, Severity

MIN_LEASE_MONTHS = 36
TRIGGER_DISTANCE = 300

PLAZO_TRIGGER_RE = re.compile(r"\b(plazo|duraci[oó]n|vigencia)\b", re.IGNORECASE)
_MONTHS_RE = re.compile(r"\b(\d{1,3})\s*mes(?:es)?\b", re.IGNORECASE)
_YEARS_RE = re.compile(r"\b(\d{1,2})\s*a[nñ]os?\b", re.IGNORECASE)
_WORD_PAREN_YEARS_RE = re.compile(r"\b[^\W\d_]+\s*\((\d{1,2})\)\s*a[nñ]os?\b", re.IGNORECASE)


class Duration(NamedTuple):
    months: int
    index: int


def extract_duration(text: str) -> Optional[Duration]:
    m = _MONTHS_RE.search(text)
    if m:
        return Duration(int(m.group(1)), m.start())
    m = _YEARS_RE.search(text)
    if m:
        return Duration(int(m.group(1)) * 12, m.start())
    m = _WORD_PAREN_YEARS_RE.search(text)
    if m:
        return Duration(int(m.group(1)) * 12, m.start())
    return None


def rule_plazo_minimo(text: str) -> List[Finding]:
    ctx = resolve_cached(text)
    if ctx.country != Country.AR:
        return []
    if ctx.contract_type in (ContractSubtype.TEMPORARIA, ContractSubtype.COMERCIAL):
        return []
    if ctx.regime not in (Regime.LEY_27551, Regime.LEY_27737):
        return []

    trigger = PLAZO_TRIGGER_RE.search(text)
    if not trigger:
        return []
    duration = extract_duration(text)
    if duration is None or duration.months >= MIN_LEASE_MONTHS:
        return []

    near_trigger = abs(duration.index - trigger.start()) <= TRIGGER_DISTANCE
    talks_lease = has_price_terms_near(text, duration.index, 200)
    neg = has_negation_near(text, duration.index, 140)
    confidence = score([True, talks_lease, not neg, near_trigger], [1.0, 1.2, 0.8, 1.0])

    legal_basis = [LegalBasis(
        law="Ley 27.551 / CCyC (AR)",
        note="Locación de inmuebles destinados a vivienda: mínimo 36 meses.",
        jurisdiction="AR",
    )]
    if ctx.regime == Regime.LEY_27737:
        legal_basis.append(LegalBasis(
            law="Ley 27.737 (AR)",
            note="Modificaciones transitorias: validar redacción contra régimen aplicable por fecha.",
            jurisdiction="AR",
        ))

    return [make_finding(
        "alquiler-plazo-minimo",
        "Duración inferior al mínimo legal",
        Severity.HIGH,
        "La duración indicada es inferior a 36 meses. Revisá la adecuación al marco legal vigente para "
        "locaciones de vivienda.",
        index=duration.index,
        window=240,
        confidence=confidence,
        kind=RuleKind.LEGAL,
        months_detected=duration.months,
        legal_basis=legal_basis,
        bullets=[
            "La duración mínima exigida para vivienda es de 36 meses.",
            "Confirmá que la cláusula de vigencia no contradiga el régimen aplicable.",
            "Si hay prórrogas/preavisos, que queden expresos y claros.",
        ],
        keywords=["plazo", "duración", "vigencia", "meses", "años", "alquiler", "canon"],
        **context_meta(ctx),
    )]


DURACION_TRIGGER_RE = re.compile(r"\b(duraci[oó]n|vigencia|pr[oó]rroga|reconducci[oó]n)\b", re.IGNORECASE)
_TERM_NUMBER_RE = re.compile(
    r"\b\d{1,3}\s*(?:mes(?:es)?|a[nñ]os?)\b|\b[^\W\d_]+\s*\(\d{1,3}\)\s*(?:mes(?:es)?|a[nñ]os?)\b",
    re.IGNORECASE,
)


def rule_alquiler_duracion(text: str) -> List[Finding]:
    ctx = resolve_cached(text)
    if ctx.country != Country.AR:
        return []
    m = DURACION_TRIGGER_RE.search(text)
    if not m:
        return []

    idx = m.start()
    has_number = bool(_TERM_NUMBER_RE.search(slice_around(text, idx, 260)))
    lease = has_lease_context_near(text, idx, 220)
    neg = has_negation_near(text, idx, 140)
    confidence = score([lease, has_number, not neg], [1.2, 1.0, 0.8])
    if confidence < 0.6:
        return []

    return [make_finding(
        "alquiler-duracion",
        "Duración y/o prórroga",
        Severity.LOW,
        "Revisá que el plazo cumpla mínimos legales y cómo operan prórrogas (tácita/expresa) y preavisos.",
        index=idx,
        window=260,
        confidence=confidence,
        kind=RuleKind.LEGAL,
        bullets=[
            "Controlá que el plazo no sea menor al legal (si aplica).",
            "Verificá si hay prórroga automática al vencimiento.",
            "Chequeá si exigen preaviso para terminar el contrato.",
        ],
        keywords=["duración", "vigencia", "prórroga", "reconducción", "preaviso"],
        **context_meta(ctx),
    )]


TEMPORARIA_RE = re.compile(r"locaci[oó]n\s+temporaria", re.IGNORECASE)
VIVIENDA_USE_RE = re.compile(r"(destino|uso)\s+(?:de\s+)?vivienda", re.IGNORECASE)
ONE_YEAR_RE = re.compile(
    r"(plazo|duraci[oó]n)[^\n]{0,80}\b(1|un|uno)\s*(?:\(\s*1\s*\))?\s*(a[nñ]o|anio)\b|\b12\s+mes(?:es)?\b",
    re.IGNORECASE,
)


def rule_inconsistencia_temporaria(text: str) -> List[Finding]:
    """Declared temporary lease that is also for dwelling and lasts one year."""
    m = TEMPORARIA_RE.search(text)
    if not (m and VIVIENDA_USE_RE.search(text) and ONE_YEAR_RE.search(text)):
        return []

    idx = m.start()
    start = max(0, idx - 80)
    return [make_finding(
        "alquiler-inconsistencia-temporaria",
        "Inconsistencia: temporaria vs vivienda + 1 año",
        Severity.MEDIUM,
        "Se declara 'locación temporaria' pero también 'destino vivienda' y plazo de 1 año (posible "
        "contradicción legal).",
        index=idx,
        confidence=0.75,
        evidence=text[start:start + 700].strip(),
        keywords=["locación temporaria", "vivienda", "plazo 1 año"],
    )]
