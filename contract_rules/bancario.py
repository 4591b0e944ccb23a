"""
Banking / credit rules: punitive interest and foreign currency payments.
"""
from __future__ import annotations

import re
from typing import List

from legal_context import resolve_cached
from rule_utils import (
    context_meta,
    has_negation_near,
    has_price_terms_near,
    make_finding,
    score,
    slice_around,
)
from schemas import Country, Finding, LegalBasis, RuleKind, Severity

INTEREST_RE = re.compile(r"\binter[eé]s(?:es)?\b", re.IGNORECASE)
LATE_QUALIFIER_RE = re.compile(r"(punitori\w*|moratori\w*|por\s+mora)\b", re.IGNORECASE)
ACCRUAL_VERB_RE = re.compile(r"(devengar\w*|aplicar\w*|cobrar\w*|generar\w*)", re.IGNORECASE)
RATE_ABBR_RE = re.compile(r"\b(TEM|TNA|TEA)\b", re.IGNORECASE)
# no trailing \b: "%" followed by a space is not a word boundary
PERCENT_RE = re.compile(r"\b\d{1,3}(?:[.,]\d{1,2})?\s*%", re.IGNORECASE)
MONTHLY_RE = re.compile(r"\b(mensual(?:es)?|por\s+mes)\b", re.IGNORECASE)
NEGATED_INTEREST_RE = re.compile(
    r"\b(?:no\s+(?:se\s+)?(?:aplicar(?:[áa]n)?|devengar(?:[áa]n)?|cobrar(?:[áa]n)?|generar(?:[áa]n)?)"
    r"\s+(?:\w+\s+)?inter[eé]s(?:es)?|sin\s+inter[eé]s(?:es)?)\b",
    re.IGNORECASE,
)
CAP_RE = re.compile(r"\b(tope|m[aá]ximo|cap)\b", re.IGNORECASE)
NO_CAP_RE = re.compile(r"\bsin\s+(tope|m[aá]ximo|cap)\b", re.IGNORECASE)


def rule_intereses_punitorios(text: str) -> List[Finding]:
    """
    Punitive / late-payment interest.

    Requires a strong combination around the first "interés": a late-payment
    qualifier with a rate, month or accrual verb, or a percentage with a
    monthly period. Explicitly negated interest suppresses the rule.
    """
    ctx = resolve_cached(text)
    country = Country.AR if ctx.country == Country.UNKNOWN else ctx.country
    if country != Country.AR:
        return []

    m = INTEREST_RE.search(text)
    if not m:
        return []
    idx = m.start()
    around = slice_around(text, idx, 320)
    if NEGATED_INTEREST_RE.search(around):
        return []

    qualifier = bool(LATE_QUALIFIER_RE.search(around))
    verb = bool(ACCRUAL_VERB_RE.search(around))
    pct = bool(PERCENT_RE.search(around))
    monthly = bool(MONTHLY_RE.search(around))
    abbr = bool(RATE_ABBR_RE.search(around))

    strong = (qualifier and (pct or abbr or monthly or verb)) or (pct and monthly)
    if not strong:
        return []

    no_clear_cap = bool(NO_CAP_RE.search(around)) or not CAP_RE.search(around)
    high = ((pct and monthly) or abbr) and no_clear_cap

    meta = context_meta(ctx)
    meta["country"] = country
    return [make_finding(
        "bancario-intereses-punitorios",
        "Intereses punitorios/moratorios con posible exceso" if high else "Intereses punitorios/moratorios",
        Severity.HIGH if high else Severity.MEDIUM,
        "Se detectan intereses punitorios/moratorios con tasa mensual o abreviaturas (TEM/TNA/TEA) sin tope "
        "claro. Revisá base de cálculo y acumulación." if high
        else "Se mencionan intereses punitorios/moratorios. Verificá porcentaje, base de cálculo, periodicidad "
        "y topes.",
        index=idx,
        window=300,
        confidence=0.9 if high else 0.7,
        kind=RuleKind.LEGAL,
        legal_basis=[LegalBasis(
            law="CCyC (AR)",
            article="art. 771",
            note="Los jueces pueden reducir intereses que excedan sin justificación el costo medio del dinero.",
            jurisdiction="AR",
        )],
        keywords=["interés", "intereses", "punitorio", "moratorio", "%", "mensual", "por mes", "TEM", "TNA", "TEA"],
        **meta,
    )]


FOREIGN_CURRENCY_RE = re.compile(
    r"\b(d[oó]lares?|usd|u\$d|moneda\s+extranjera|tipo\s+de\s+cambio|cotizaci[oó]n)\b", re.IGNORECASE
)
DEMANDS_USD_RE = re.compile(
    r"\b(deber[aá]\s+pagar|se\s+pagar[aá]|obligatoriamente)\b.*\b(d[oó]lares|usd|u\$d)\b", re.IGNORECASE
)
EXCHANGE_RATE_RE = re.compile(
    r"\b(tipo\s+de\s+cambio|cotizaci[oó]n|bna|bcra|mep|oficial|vendedor|comprador)\b", re.IGNORECASE
)
REFERENCE_RE = re.compile(
    r"\b(referencia|seg[uú]n\s+cotizaci[oó]n|al\s+tipo\s+de\s+cambio\s+del?\s+(?:bna|bcra|mep)|equivalente\s+a)\b",
    re.IGNORECASE,
)
ALLOWS_PESOS_RE = re.compile(r"\b(pagar\s+en\s+pesos?|ars|moneda\s+de\s+curso\s+legal)\b", re.IGNORECASE)


def rule_moneda_extranjera(text: str) -> List[Finding]:
    ctx = resolve_cached(text)
    if ctx.country != Country.AR:
        return []
    m = FOREIGN_CURRENCY_RE.search(text)
    if not m:
        return []

    idx = m.start()
    around = slice_around(text, idx, 320)
    price_ctx = has_price_terms_near(text, idx, 220)
    demands_usd = bool(DEMANDS_USD_RE.search(around))
    exchange_rate = bool(EXCHANGE_RATE_RE.search(around))
    reference = bool(REFERENCE_RE.search(around))
    allows_pesos = bool(ALLOWS_PESOS_RE.search(around))
    neg = has_negation_near(text, idx, 150)     # "no será exigible en USD..."

    confidence = score([price_ctx, demands_usd or exchange_rate or allows_pesos, not neg], [1.2, 1.0, 0.8])
    if confidence < 0.6:
        return []

    high = demands_usd and (not exchange_rate or not reference) and not allows_pesos
    return [make_finding(
        "bancario-moneda-extranjera",
        "Pago en moneda extranjera / tipo de cambio",
        Severity.HIGH if high else Severity.MEDIUM,
        "Se exige pago en USD sin alternativa clara en pesos ni tipo de cambio de referencia. Revisá validez, "
        "riesgos y eventuales restricciones." if high
        else "Se pacta pago o referencia a USD. Verificá tipo de cambio aplicable, fecha de conversión, "
        "comisiones y si podés pagar en pesos.",
        index=idx,
        window=320,
        confidence=confidence,
        kind=RuleKind.LEGAL,
        bullets=[
            "Identificá cuándo y cómo se determina el tipo de cambio (BNA/BCRA/MEP).",
            "Chequeá si existe opción de pagar en pesos y con qué cotización.",
            "Controlá diferencias a tu cargo (spread/comisión) y fecha/hora de referencia.",
        ],
        keywords=["dólar", "USD", "tipo de cambio", "cotización", "BNA", "BCRA", "MEP", "ARS"],
        **context_meta(ctx),
    )]
