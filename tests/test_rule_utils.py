import re

import pytest

import rule_utils
from rule_utils import (
    adjust_evidence_to_heading_range,
    compute_score,
    ensure_evidence,
    extract_evidence,
    has_negation_near,
    has_negation_outside,
    make_finding,
    score,
    severity_from_confidence,
)
from schemas import Severity

DEPOSIT_RE = re.compile(r"dep[oó]sito|garant[ií]a", re.IGNORECASE)


def test_score_is_a_weighted_share():
    assert score([True, False], [1.0, 1.0]) == 0.5
    assert score([True, True, False], [1.0]) == 0.6667     # missing weights count as 1.0
    assert score([True], [0.0]) == 0.0


@pytest.mark.parametrize(
    "confidence, severity",
    [(0.95, Severity.HIGH), (0.8, Severity.HIGH), (0.79, Severity.MEDIUM), (0.6, Severity.MEDIUM), (0.59, Severity.LOW)],
)
def test_confidence_bands(confidence, severity):
    assert severity_from_confidence(confidence) == severity


@pytest.mark.parametrize(
    "text, expected",
    [
        ("El locatario paga el canon.", 0.6),
        ("El locatario paga el canon conforme a la LCT.", 0.65),
        ("El locatario paga 3 cuotas.", 0.65),
        ("Según el art. 5 de la LCT.", 0.7),
        ("El locatario no paga el canon.", 0.4),
    ],
)
def test_compute_score_cues(text, expected):
    confidence, severity = compute_score(text, 0)
    assert confidence == expected
    assert severity == severity_from_confidence(expected)


def test_compute_score_clamps_and_short_circuits():
    assert compute_score("El locatario paga el canon.", 0, extra_boost=1.0) == (1.0, Severity.HIGH)
    assert compute_score("El locatario no paga el canon.", 0, base=0.1) == (0.0, Severity.LOW)
    assert compute_score("El locatario paga el canon.", 0, matched=False) == (0.0, Severity.LOW)


def test_negation_window_checks():
    text = "El locatario no abonará depósito alguno."
    assert has_negation_near(text, text.index("depósito"))
    text = "Se pacta una no restitución del inmueble con multa."
    start = text.index("no restitución")
    assert not has_negation_outside(text, start, start + len("no restitución"))


def test_evidence_prefers_the_sentence():
    text = "Primera oración corta. El locatario deberá abonar un depósito equivalente a un mes de alquiler. Otra."
    evidence = extract_evidence(text, text.index("depósito"))
    assert evidence == "El locatario deberá abonar un depósito equivalente a un mes de alquiler."


def test_evidence_falls_back_to_the_paragraph():
    text = "Plazo: 24 meses.\nPrecio: mensual.\n\nOtro párrafo aparte."
    assert extract_evidence(text, text.index("Precio")) == "Plazo: 24 meses.\nPrecio: mensual."


def test_evidence_falls_back_to_a_window(monkeypatch):
    monkeypatch.setattr(rule_utils, "EVIDENCE_MAX_CHARS", 10)
    text = "Plazo: 24 meses.\nPrecio: mensual.\n\nOtro párrafo aparte."
    assert extract_evidence(text, 17, window=5) == "ses.\nPreci"


def test_decimal_points_do_not_end_a_sentence():
    text = "El canon asciende a $1.500 por mes según lo pactado entre las partes."
    assert extract_evidence(text, text.index("canon")) == text


def test_ensure_evidence_only_fills_missing_evidence():
    text = "El locatario deberá abonar un depósito equivalente a un mes de alquiler."
    bare = make_finding("x", "t", Severity.LOW, "d", index=5)
    assert ensure_evidence(bare, text).evidence == text
    given = make_finding("x", "t", Severity.LOW, "d", index=5, evidence="propia")
    assert ensure_evidence(given, text).evidence == "propia"
    no_index = make_finding("x", "t", Severity.LOW, "d")
    assert ensure_evidence(no_index, text).evidence is None


def test_make_finding_routes_unknown_meta_to_extra():
    f = make_finding("x", "t", Severity.LOW, "d", confidence=1.5, total_months=2, foo=1, extra={"bar": 2})
    assert f.confidence == 1.0
    assert f.meta.total_months == 2
    assert f.meta.extra == {"bar": 2, "foo": 1}


HEADED = (
    "OCTAVA: Destino. El inmueble se destina a vivienda.\n"
    "NOVENA - Depósito en garantía\n"
    "El locatario entrega dos meses de depósito.\n"
    "Se devolverá al finalizar.\n"
    "DÉCIMA: Jurisdicción. Tribunales ordinarios."
)


def test_heading_range_evidence_stops_at_next_heading():
    f = make_finding("alquiler-deposito", "t", Severity.LOW, "d", index=HEADED.index("dos meses"))
    adjusted = adjust_evidence_to_heading_range(HEADED, f, DEPOSIT_RE)
    assert adjusted.evidence == (
        "NOVENA - Depósito en garantía\nEl locatario entrega dos meses de depósito.\nSe devolverá al finalizar."
    )


def test_heading_range_with_ordinal_number_heading():
    text = "9ª – Depósito\nEl locatario entrega 2 meses de garantía.\n10ª – Jurisdicción\nTribunales."
    f = make_finding("alquiler-deposito", "t", Severity.LOW, "d", index=text.index("entrega"))
    adjusted = adjust_evidence_to_heading_range(text, f, DEPOSIT_RE)
    assert adjusted.evidence == "9ª – Depósito\nEl locatario entrega 2 meses de garantía."


def test_heading_range_without_matching_heading_is_a_no_op():
    text = "El locatario entrega dos meses de depósito al firmar el contrato."
    f = make_finding("alquiler-deposito", "t", Severity.LOW, "d", index=10)
    assert adjust_evidence_to_heading_range(text, f, DEPOSIT_RE) is f
