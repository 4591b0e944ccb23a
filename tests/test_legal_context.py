from datetime import date

import pytest

from legal_context import (
    detect_country,
    detect_currency,
    extract_contract_date,
    hinted_regime,
    regime_for_date,
    resolve,
    resolve_cached,
)
from schemas import ContractSubtype, Country, Currency, Regime


@pytest.mark.parametrize(
    "when, regime",
    [
        (date(2020, 6, 30), Regime.PRE_27551),
        (date(2020, 7, 1), Regime.LEY_27551),
        (date(2023, 10, 17), Regime.LEY_27551),
        (date(2023, 10, 18), Regime.LEY_27737),
        (date(2023, 12, 20), Regime.LEY_27737),
        (date(2023, 12, 21), Regime.DNU_70_2023),
        (date(2025, 3, 1), Regime.DNU_70_2023),
        (None, Regime.DNU_70_2023),
    ],
)
def test_regime_by_date(when, regime):
    assert regime_for_date(when) == regime


def test_resolve_argentine_lease_by_date():
    ctx = resolve("Contrato de locación en CABA celebrado el 15/03/2022 por $150000 mensuales.")
    assert ctx.country == Country.AR
    assert ctx.contract_date == date(2022, 3, 15)
    assert ctx.regime == Regime.LEY_27551
    assert ctx.currency == Currency.ARS
    assert ctx.contract_type == ContractSubtype.DESCONOCIDO


def test_explicit_citation_beats_the_date():
    ctx = resolve("Contrato sujeto a la Ley 27.551, Argentina, firmado el 10/01/2024.")
    assert ctx.regime == Regime.LEY_27551


def test_hints_are_checked_newest_first():
    assert hinted_regime("conforme Ley 27.551 y DNU 70/2023") == Regime.DNU_70_2023
    assert hinted_regime("según la ley 27737") == Regime.LEY_27737
    assert hinted_regime("sin citas") is None


def test_spanish_lease():
    ctx = resolve("Contrato de arrendamiento sujeto a la Ley de Arrendamientos Urbanos, renta de 900 € al mes.")
    assert ctx.country == Country.ES
    assert ctx.regime == Regime.ES_LAU
    assert ctx.currency == Currency.EUR


def test_unknown_country_has_unknown_regime():
    ctx = resolve("Contrato entre las partes firmado el 01/02/2022.")
    assert ctx.country == Country.UNKNOWN
    assert ctx.regime == Regime.UNKNOWN
    assert ctx.contract_date == date(2022, 2, 1)


def test_currency_precedence():
    assert detect_currency("precio de 500 euros, con $100 de anticipo") == Currency.EUR
    assert detect_currency("pagadero en pesos o en €") == Currency.ARS
    assert detect_currency("total 900 €") == Currency.EUR
    assert detect_currency("total $ 3000") == Currency.ARS
    assert detect_currency("sin importes") == Currency.UNKNOWN


def test_country_signals():
    assert detect_country("inmueble sito en la Provincia de Córdoba") == Country.AR
    assert detect_country("actualización por IPC del INE") == Country.ES
    assert detect_country("las partes acuerdan") == Country.UNKNOWN


def test_date_formats():
    assert extract_contract_date("firmado el 5 de marzo de 2021") == date(2021, 3, 5)
    assert extract_contract_date("vence el 2023-11-05") == date(2023, 11, 5)
    # invalid calendar dates are skipped
    assert extract_contract_date("el 31/02/2022 o el 01/03/2022") == date(2022, 3, 1)
    assert extract_contract_date("sin fecha") is None


def test_resolve_cached_reuses_the_context():
    text = "Contrato de locación, CABA, 01/09/2020."
    assert resolve_cached(text) is resolve_cached(text)
    assert resolve_cached(text) == resolve(text)
