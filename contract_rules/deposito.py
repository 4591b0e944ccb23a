"""
Deposit / guarantee rules for leases.

collect_deposits() walks every deposit anchor (skipping bank deposits) and
sums the month amounts found next to them. A month mention is counted once
even when two anchors sit next to it (heading + body).
"""
from __future__ import annotations

import re
from functools import lru_cache
from typing import List, NamedTuple, Optional, Tuple

from legal_context import resolve_cached
from rule_utils import (
    context_meta,
    has_negation_near,
    has_price_terms_near,
    make_finding,
    score,
    slice_around,
    word_to_number,
)
from schemas import Country, Finding, LegalBasis, Regime, RuleKind, Severity

RULE_ID_UN_MES = "alquiler-deposito-un-mes"
RULE_ID_FIANZA = "alquiler-fianza"

BANK_WINDOW = 140
MONTHS_WINDOW = 240

ANCHOR_RE = re.compile(
    r"\b(dep[oó]sito(?:\s+(?:en|de)\s+garant[ií]a)?|fianza|garant[ií]a)\b(?!\s+bancari[oa])",
    re.IGNORECASE,
)
BANK_DEPOSIT_RE = re.compile(
    r"\bbancari[oa]\b|\bcuenta\s+bancaria\b|\bplazo\s+fijo\b|\bcaja\s+de\s+ahorro\b",
    re.IGNORECASE,
)
LEASE_GATE_RE = re.compile(
    r"\b(locaci[oó]n|alquiler|locador(?:a)?|locatari[oa]|inmueble|vivienda|canon|renta)\b",
    re.IGNORECASE,
)
LEASE_NEAR_RE = re.compile(r"\b(locador|locatari[oa]|inmueble|vivienda|alquiler|canon)\b", re.IGNORECASE)

# Month forms, tried in this order
_WORD_PAREN_MONTHS_RE = re.compile(r"\b([^\W\d_]+)\s*\((\d{1,2})\)\s*mes(?:es)?\b", re.IGNORECASE)
_DIGIT_MONTHS_RE = re.compile(r"\b(\d{1,2})\s*mes(?:es)?\b", re.IGNORECASE)
_WORD_MONTHS_RE = re.compile(
    r"\b(uno|una|un|dos|tres|cuatro|cinco|seis|siete|ocho|nueve|diez|once|doce)\s+mes(?:es)?\b",
    re.IGNORECASE,
)
_FIRST_MONTH_RE = re.compile(
    r"\bequivalente\s+al\s+primer\s+mes\b"
    r"|\bequivalente\s+a\s+(?:un|uno)\s*\(?(?:1|1º|1o)?\)?\s*mes(?:es)?\b"
    r"|\bprimer(?:o)?\s*(?:\((?:1|1º|1o)\))?\s*mes\b",
    re.IGNORECASE,
)
AMOUNT_MENTION_RE = re.compile(
    r"\b\d{1,2}\s*mes(?:es)?\b|\b[^\W\d_]+\s*\(\d{1,2}\)\s*mes(?:es)?\b|\bequivalente\s+al\s+primer\s+mes\b",
    re.IGNORECASE,
)


class DepositScan(NamedTuple):
    total_months: int
    first_index: int
    found_any: bool


def looks_like_bank_deposit(text: str, index: int) -> bool:
    return bool(BANK_DEPOSIT_RE.search(slice_around(text, index, BANK_WINDOW)))


def extract_months_near(text: str, index: int) -> Optional[Tuple[int, int]]:
    """(months, absolute position of the mention) near index, or None."""
    start = max(0, index - MONTHS_WINDOW)
    around = text[start:index + MONTHS_WINDOW]

    m = _WORD_PAREN_MONTHS_RE.search(around)
    if m:
        return int(m.group(2)), start + m.start()
    m = _DIGIT_MONTHS_RE.search(around)
    if m:
        return int(m.group(1)), start + m.start()
    m = _WORD_MONTHS_RE.search(around)
    if m:
        n = word_to_number(m.group(1))
        if n is not None:
            return n, start + m.start()
    m = _FIRST_MONTH_RE.search(around)
    if m:
        return 1, start + m.start()
    return None


# both deposit rules scan the same text; DepositScan is immutable
@lru_cache(maxsize=16)
def collect_deposits(text: str) -> DepositScan:
    indices: List[int] = []
    counted = set()
    total = 0
    for m in ANCHOR_RE.finditer(text):
        idx = m.start()
        if looks_like_bank_deposit(text, idx):
            continue
        indices.append(idx)
        found = extract_months_near(text, idx)
        if found is None:
            continue
        months, pos = found
        if pos not in counted:
            counted.add(pos)
            total += months
    return DepositScan(
        total_months=total,
        first_index=indices[0] if indices else -1,
        found_any=bool(indices),
    )


def rule_deposito_un_mes(text: str) -> List[Finding]:
    """Deposit cap of one month under Ley 27.551 / 27.737."""
    ctx = resolve_cached(text)
    if not LEASE_GATE_RE.search(text):
        return []
    if ctx.regime not in (Regime.LEY_27551, Regime.LEY_27737):
        return []

    scan = collect_deposits(text)
    if not scan.found_any:
        return []
    idx = max(0, scan.first_index)

    talks_lease = has_price_terms_near(text, idx, 200) or bool(LEASE_NEAR_RE.search(slice_around(text, idx, 200)))
    neg = has_negation_near(text, idx, 160)
    confidence = score([talks_lease, scan.total_months > 0, not neg], [1.3, 1.0, 0.8])
    if scan.total_months == 0 and confidence < 0.6:
        return []

    over_cap = scan.total_months > 1
    legal_basis = [
        LegalBasis(
            law="Ley 27.551 / CCyC (AR)",
            note="Depósito/garantía de locación: tope de 1 mes y devolución alineada al último mes abonado.",
            jurisdiction="AR",
        )
    ]
    if ctx.regime == Regime.LEY_27737:
        legal_basis.append(LegalBasis(
            law="Ley 27.737 (AR)",
            note="Modificaciones transitorias: validar redacción contra régimen aplicable por fecha.",
            jurisdiction="AR",
        ))

    return [make_finding(
        RULE_ID_UN_MES,
        "Depósito/garantías superiores al tope legal" if over_cap
        else "Depósito / fianza (verificar tope legal de 1 mes)",
        Severity.HIGH if over_cap else Severity.MEDIUM,
        "Se detecta un total de garantías/depósitos mayor a un (1) mes de alquiler. No deben superar el "
        "equivalente al primer mes y su devolución debe ser clara." if over_cap
        else "Se menciona depósito/fianza. Verificá que el total de garantías no supere un (1) mes y que la "
        "modalidad de devolución sea clara.",
        index=idx,
        window=260,
        confidence=confidence,
        kind=RuleKind.LEGAL,
        total_months=scan.total_months or None,
        legal_basis=legal_basis,
        bullets=[
            "Comprobá que el total de garantías/depósitos no exceda un (1) mes.",
            "La devolución debe indicar momento y valor de referencia (último mes abonado).",
            "Evitá redacciones ambiguas sobre garantías adicionales o acumulativas.",
        ],
        keywords=["depósito", "fianza", "garantía", "mes", "alquiler", "canon"],
        **context_meta(ctx),
    )]


FIANZA_ANCHOR_RE = re.compile(r"\b(fianza|dep[oó]sito|garant[ií]a)\b", re.IGNORECASE)


def rule_alquiler_fianza(text: str) -> List[Finding]:
    """Informative deposit/fianza mention; carries the deposit month total for merging."""
    ctx = resolve_cached(text)
    if ctx.country not in (Country.AR, Country.UNKNOWN):
        return []

    idx = next(
        (m.start() for m in FIANZA_ANCHOR_RE.finditer(text) if not looks_like_bank_deposit(text, m.start())),
        None,
    )
    if idx is None:
        return []

    around = slice_around(text, idx, MONTHS_WINDOW)
    lease = has_price_terms_near(text, idx, 200) or bool(LEASE_NEAR_RE.search(slice_around(text, idx, 200)))
    neg = has_negation_near(text, idx, 150)     # "sin fianza", "no se exigirá depósito"
    mentions_amount = bool(AMOUNT_MENTION_RE.search(around))

    confidence = score([lease, mentions_amount, not neg], [1.2, 1.0, 0.8])
    if confidence < 0.6:
        return []

    scan = collect_deposits(text)
    return [make_finding(
        RULE_ID_FIANZA,
        "Cláusula de fianza/depósito",
        Severity.MEDIUM if mentions_amount else Severity.LOW,
        "Se menciona fianza/depósito. Verificá que el total de garantías no supere un (1) mes y cómo se devuelve.",
        index=idx,
        window=260,
        confidence=confidence,
        kind=RuleKind.LEGAL,
        fragment=text[idx:idx + 80],
        total_months=scan.total_months or None,
        bullets=[
            "Verificá el monto frente al límite legal permitido.",
            "Chequeá plazos y condiciones de devolución.",
            "Revisá si piden garantías adicionales fuera de la fianza.",
        ],
        keywords=["fianza", "depósito", "garantía", "mes", "devolución"],
        **context_meta(ctx),
    )]
