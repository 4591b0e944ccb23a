from document_classifier import (
    CORE_CHARS,
    TAIL_CHARS,
    ContractClassifier,
    classify_contract,
    group_for_contract_type,
    runner_up_type,
)
from schemas import ContractClassification, ContractType, RuleGroup


def test_lease_is_classified_as_alquiler(lease_text):
    result = classify_contract(lease_text())
    assert result.type == ContractType.ALQUILER
    assert result.confidence >= 0.9
    assert any("Contrato de locación/alquiler" in r for r in result.reasons)
    assert result.candidates[0][0] == ContractType.ALQUILER


def test_employment_contract():
    text = (
        "CONTRATO DE TRABAJO\n"
        "El empleador y el trabajador acuerdan la jornada, el salario y las vacaciones "
        "conforme a la Ley 20.744."
    )
    result = classify_contract(text)
    assert result.type == ContractType.LABORAL
    assert group_for_contract_type(result.type) == RuleGroup.LABORAL


def test_unrelated_text_is_otro_with_minimum_confidence():
    result = classify_contract("Hola mundo, esta es una nota cualquiera.")
    assert result.type == ContractType.OTRO
    assert result.confidence == 0.2
    assert group_for_contract_type(result.type) == RuleGroup.GLOBAL


def test_uppercase_abbreviations_are_case_sensitive():
    scores = {c.type: c.score for c in ContractClassifier().score_candidates("según el art. 5 del reglamento")}
    assert scores[ContractType.LABORAL] == 0


def test_runner_up_needs_a_minimum_score():
    classifier = ContractClassifier()
    close = ContractClassification(
        type=ContractType.ALQUILER,
        candidates=[(ContractType.ALQUILER, 10.0), (ContractType.SERVICIOS, 3.0), (ContractType.LABORAL, 0.0)],
    )
    assert classifier.runner_up(close) == (ContractType.SERVICIOS, 3.0)
    far = ContractClassification(
        type=ContractType.ALQUILER,
        candidates=[(ContractType.ALQUILER, 10.0), (ContractType.SERVICIOS, 1.0)],
    )
    assert classifier.runner_up(far) is None


def test_body_scan_is_bounded_to_a_prefix():
    middle = "texto " * (CORE_CHARS // 6 + 10) + "inquilino " + "texto " * (TAIL_CHARS // 6 + 10)
    scores = {c.type: c.score for c in ContractClassifier().score_candidates(middle)}
    assert scores[ContractType.ALQUILER] == 0
    scores = {c.type: c.score for c in ContractClassifier().score_candidates("inquilino " + middle)}
    assert scores[ContractType.ALQUILER] > 0


def test_runner_up_helper_uses_the_shared_classifier(lease_text):
    classification = classify_contract(lease_text())
    assert runner_up_type(classification) == ContractClassifier().runner_up(classification)
