import pytest

from rule_registry import RuleEntry, RulePolicy, RuleRegistry
from rule_utils import make_finding
from schemas import RuleKind, Severity

LEASE_TEMPLATE = (
    "CONTRATO DE LOCACIÓN DE VIVIENDA\n"
    "En la Ciudad de Buenos Aires, a los 10/08/2021, entre el LOCADOR y el LOCATARIO "
    "se celebra el presente contrato.\n\n"
    "PRIMERA: Objeto. El locador da en locación el inmueble destinado a vivienda.\n\n"
    "TERCERA: Depósito en garantía. El locatario entrega en este acto un depósito "
    "equivalente a {deposit} de alquiler.\n\n"
    "CUARTA: Precio. El precio mensual es de $100000.\n\n"
    "{extra}"
)

GUARANTOR_CLAUSE = (
    "QUINTA: Fiador. El fiador se constituye en garante solidario y principal pagador, "
    "con renuncia a los beneficios de excusión y división.\n"
)


@pytest.fixture
def lease_text():
    """Argentine lease dated 2021 (Ley 27.551) with a configurable deposit clause."""
    def build(deposit="1 mes", extra=""):
        return LEASE_TEMPLATE.format(deposit=deposit, extra=extra)
    return build


@pytest.fixture
def guarantor_clause():
    return GUARANTOR_CLAUSE


@pytest.fixture
def finding():
    def build(rule_id="regla", severity=Severity.MEDIUM, confidence=0.7, kind=RuleKind.HEURISTIC, **kw):
        kw.setdefault("index", 0)
        return make_finding(rule_id, rule_id, severity, "descripción", confidence=confidence, kind=kind, **kw)
    return build


@pytest.fixture
def fake_registry():
    """Registry over ad-hoc rules given as (id, group, callable) triples."""
    def build(*rules, policy=None):
        entries = [RuleEntry(rule_id, group, fn) for rule_id, group, fn in rules]
        return RuleRegistry(entries, policy or RulePolicy())
    return build
