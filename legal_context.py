"""
Legal context resolution: country, regime, contract subtype, currency and date.

Everything here is a pure function of the text. Rules call resolve()
independently; resolve_cached() memoizes the last few texts so a batch of
rules over the same document does the work once.
"""
from __future__ import annotations

import re
from datetime import date
from functools import lru_cache
from typing import List, Optional, Pattern, Tuple

from schemas import ContractSubtype, Country, Currency, LegalContext, Regime

# ---------- Argentine cutover dates ----------
LEY_27551_START = date(2020, 7, 1)      # Ley 27.551 in force
LEY_27551_END = date(2023, 10, 17)      # last day under 27.551; 27.737 applies after
DNU_70_2023_START = date(2023, 12, 21)  # DNU 70/2023 in force

# No date found -> newest regime (most permissive; periodicity rules stay quiet)
NO_DATE_REGIME = Regime.DNU_70_2023

# ---------- Dates ----------
SPANISH_MONTHS = {
    "enero": 1, "febrero": 2, "marzo": 3, "abril": 4, "mayo": 5, "junio": 6,
    "julio": 7, "agosto": 8, "septiembre": 9, "setiembre": 9, "octubre": 10,
    "noviembre": 11, "diciembre": 12,
}

_DMY_RE = re.compile(r"\b(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{4}|\d{2})\b")
_YMD_RE = re.compile(r"\b(\d{4})[/\-.](\d{1,2})[/\-.](\d{1,2})\b")
_LONG_RE = re.compile(r"\b(\d{1,2})\s+de\s+([a-záéíóú]+)\s+(?:de|del)\s+(\d{4})\b", re.IGNORECASE)


def _dmy(m: re.Match) -> Optional[date]:
    year = m.group(3)
    if len(year) == 2:
        year = "20" + year
    return _safe_date(int(year), int(m.group(2)), int(m.group(1)))


def _ymd(m: re.Match) -> Optional[date]:
    return _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))


def _long(m: re.Match) -> Optional[date]:
    month = SPANISH_MONTHS.get(m.group(2).lower())
    if month is None:
        return None
    return _safe_date(int(m.group(3)), month, int(m.group(1)))


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


DATE_PATTERNS: List[Tuple[Pattern, object]] = [
    (_DMY_RE, _dmy),
    (_YMD_RE, _ymd),
    (_LONG_RE, _long),
]


def extract_contract_date(text: str) -> Optional[date]:
    """First valid date, trying each pattern family in priority order."""
    if not text:
        return None
    for pattern, build in DATE_PATTERNS:
        for m in pattern.finditer(text):
            found = build(m)
            if found is not None:
                return found
    return None


# ---------- Currency ----------
_EUR_WORD_RE = re.compile(r"\b(eur|euros?)\b", re.IGNORECASE)
_ARS_WORD_RE = re.compile(r"(\bars\b|\bar\$|\bpesos?\b)", re.IGNORECASE)
_EUR_SYMBOL_RE = re.compile(r"€\s*\d|\d\s*€|€")
_DOLLAR_AMOUNT_RE = re.compile(r"\$\s*\d")


def detect_currency(text: str) -> Currency:
    """Explicit code/keyword beats a bare symbol; "$" alone is read as pesos."""
    if _EUR_WORD_RE.search(text):
        return Currency.EUR
    if _ARS_WORD_RE.search(text):
        return Currency.ARS
    if _EUR_SYMBOL_RE.search(text):
        return Currency.EUR
    if _DOLLAR_AMOUNT_RE.search(text):
        return Currency.ARS
    return Currency.UNKNOWN


# ---------- Country ----------
_ES_SIGNALS_RE = re.compile(
    r"€|\b(ibi|lau|ine)\b|comunidad aut[oó]noma|arrendamientos urbanos",
    re.IGNORECASE,
)
_AR_SIGNALS_RE = re.compile(
    r"\b(caba|provincia de|argentina|dni|cuit|cuil|ley\s*27\.?551|27\.?737|bcra|icl|ripte)\b",
    re.IGNORECASE,
)


def detect_country(text: str) -> Country:
    if _ES_SIGNALS_RE.search(text):
        return Country.ES
    if _AR_SIGNALS_RE.search(text) or _ARS_WORD_RE.search(text) or _DOLLAR_AMOUNT_RE.search(text):
        return Country.AR
    return Country.UNKNOWN


# ---------- Contract subtype ----------
_TEMPORARIA_RE = re.compile(
    r"\blocaci[oó]n\s+tempor[aá]ria\b|\bcontrato\s+temporari[oa]\b|\bturismo\b|\btemporada\b",
    re.IGNORECASE,
)
_COMERCIAL_RE = re.compile(
    r"\bcomercial\b|\blocal\b|\boficina\b|\bindustrial\b",
    re.IGNORECASE,
)
_PERMANENTE_RE = re.compile(r"\bvivienda\s+(habitual|permanente)\b", re.IGNORECASE)


def detect_contract_subtype(text: str) -> ContractSubtype:
    if _TEMPORARIA_RE.search(text):
        return ContractSubtype.TEMPORARIA
    if _COMERCIAL_RE.search(text):
        return ContractSubtype.COMERCIAL
    if _PERMANENTE_RE.search(text):
        return ContractSubtype.PERMANENTE
    return ContractSubtype.DESCONOCIDO


# ---------- Regime ----------
REGIME_HINTS: List[Tuple[Pattern, Regime]] = [
    (re.compile(r"\bdnu\s*(?:n[°º]?\s*)?70\s*/?\s*2023\b", re.IGNORECASE), Regime.DNU_70_2023),
    (re.compile(r"\bley\s*(?:n[°º]?\s*)?27\.?737\b", re.IGNORECASE), Regime.LEY_27737),
    (re.compile(r"\bley\s*(?:n[°º]?\s*)?27\.?551\b", re.IGNORECASE), Regime.LEY_27551),
]


def hinted_regime(text: str) -> Optional[Regime]:
    """Explicit regime citation in the text, newest first."""
    for pattern, regime in REGIME_HINTS:
        if pattern.search(text):
            return regime
    return None


def regime_for_date(contract_date: Optional[date]) -> Regime:
    """Argentine regime as a step function of the contract date."""
    if contract_date is None:
        return NO_DATE_REGIME
    if contract_date < LEY_27551_START:
        return Regime.PRE_27551
    if contract_date <= LEY_27551_END:
        return Regime.LEY_27551
    if contract_date < DNU_70_2023_START:
        return Regime.LEY_27737
    return Regime.DNU_70_2023


# ---------- Public API ----------
def resolve(text: str) -> LegalContext:
    text = text or ""
    contract_date = extract_contract_date(text)
    country = detect_country(text)

    if country == Country.ES:
        regime = Regime.ES_LAU
    elif country == Country.AR:
        regime = hinted_regime(text) or regime_for_date(contract_date)
    else:
        regime = Regime.UNKNOWN

    return LegalContext(
        country=country,
        regime=regime,
        contract_type=detect_contract_subtype(text),
        currency=detect_currency(text),
        contract_date=contract_date,
    )


@lru_cache(maxsize=16)
def resolve_cached(text: str) -> LegalContext:
    # LegalContext is frozen, so sharing the cached instance is safe
    return resolve(text)
