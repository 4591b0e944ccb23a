from contract_rules.alquiler import rule_garante_solidario
from contract_rules.bancario import rule_intereses_punitorios
from contract_rules.deposito import collect_deposits, extract_months_near, rule_alquiler_fianza, rule_deposito_un_mes
from contract_rules.generales import rule_debug_canary_alquiler
from contract_rules.laboral import probation_months_near, rule_periodo_prueba
from contract_rules.servicios import rule_renovacion_automatica
from schemas import Country, RuleKind, Severity


# ---------- Depósito ----------
def test_two_month_deposit_is_over_the_cap(lease_text):
    text = lease_text("2 meses")
    [f] = rule_deposito_un_mes(text)
    assert f.id == "alquiler-deposito-un-mes"
    assert f.severity == Severity.HIGH
    assert f.meta.total_months == 2
    assert f.meta.type == RuleKind.LEGAL


def test_one_month_deposit_is_only_a_reminder(lease_text):
    [f] = rule_deposito_un_mes(lease_text("1 mes"))
    assert f.severity == Severity.MEDIUM
    assert f.meta.total_months == 1


def test_deposit_cap_needs_a_27551_or_27737_regime(lease_text):
    text = lease_text("2 meses").replace("10/08/2021", "10/08/2024")
    assert rule_deposito_un_mes(text) == []


def test_heading_and_body_anchors_count_the_month_once(lease_text):
    scan = collect_deposits(lease_text("2 meses"))
    assert scan.total_months == 2
    assert scan.found_any


def test_both_deposit_rules_share_one_scan(lease_text):
    text = lease_text("2 meses")
    assert collect_deposits(text) is collect_deposits(text)


def test_bank_deposits_are_ignored():
    text = "El locatario abonará el alquiler mediante depósito en cuenta bancaria del locador."
    assert collect_deposits(text).found_any is False


def test_month_forms():
    assert extract_months_near("depósito de tres (3) meses", 0) == (3, 12)
    assert extract_months_near("depósito de dos meses", 0)[0] == 2
    assert extract_months_near("depósito equivalente al primer mes", 0)[0] == 1


def test_fianza_fires_without_a_known_country():
    text = "El locatario entrega en concepto de fianza el equivalente a 1 mes de alquiler."
    [f] = rule_alquiler_fianza(text)
    assert f.id == "alquiler-fianza"
    assert f.severity == Severity.MEDIUM
    assert f.meta.total_months == 1
    assert f.meta.country == Country.UNKNOWN


# ---------- Garante ----------
def test_guarantor_with_two_renunciations(guarantor_clause):
    [f] = rule_garante_solidario(guarantor_clause)
    assert f.severity == Severity.HIGH
    assert f.meta.renunciations == ["excusión", "división"]


def test_guarantor_without_renunciations_is_medium():
    [f] = rule_garante_solidario("El garante solidario responde por las obligaciones del locatario.")
    assert f.severity == Severity.MEDIUM
    assert f.meta.renunciations == []


# ---------- Intereses punitorios ----------
def test_monthly_punitive_rate_is_high():
    [f] = rule_intereses_punitorios(
        "En caso de mora se aplicará un interés punitorio del 2% por mes sobre el saldo adeudado."
    )
    assert f.severity == Severity.HIGH
    assert f.confidence == 0.9
    assert f.meta.country == Country.AR


def test_qualified_interest_with_a_cap_is_medium():
    [f] = rule_intereses_punitorios(
        "Los intereses moratorios se devengarán conforme a la tasa que fije el banco, "
        "con un tope del doble de la tasa activa."
    )
    assert f.severity == Severity.MEDIUM
    assert f.confidence == 0.7


def test_negated_interest_does_not_fire():
    assert rule_intereses_punitorios(
        "No se aplicarán intereses punitorios si el atraso no supera 48 horas."
    ) == []
    assert rule_intereses_punitorios("Las cuotas se abonan sin intereses.") == []


def test_plain_interest_mention_is_not_enough():
    assert rule_intereses_punitorios("El préstamo devenga el interés pactado en la solicitud.") == []


def test_interest_rule_skips_spanish_contracts():
    assert rule_intereses_punitorios("Intereses de demora del 2% mensual conforme a la LAU.") == []


# ---------- Período de prueba ----------
def test_probation_over_three_months_is_high():
    text = "CONTRATO DE TRABAJO. El empleador contrata al trabajador con un período de prueba de seis (6) meses."
    [f] = rule_periodo_prueba(text)
    assert f.severity == Severity.HIGH
    assert f.meta.months_detected == 6
    assert f.meta.country == Country.AR
    assert f.title.startswith("Período de prueba superior")


def test_probation_of_three_months_is_not_flagged_as_excessive():
    [f] = rule_periodo_prueba("El empleador fija un período de prueba de 3 meses.")
    assert f.meta.months_detected == 3
    assert not f.title.startswith("Período de prueba superior")


def test_probation_needs_an_employment_context():
    assert rule_periodo_prueba("El software tiene un período de prueba de 30 días.") == []


def test_probation_days_convert_to_months():
    text = "período de prueba de noventa días"
    assert probation_months_near(text, 0) == 3


# ---------- Servicios ----------
def test_auto_renewal_with_short_notice_is_high():
    [f] = rule_renovacion_automatica(
        "El servicio se renovará automáticamente por períodos iguales salvo preaviso de 5 días del cliente."
    )
    assert f.severity == Severity.HIGH
    assert f.meta.extra["pre_notice_days"] == 5


def test_auto_renewal_with_reasonable_notice_is_medium():
    [f] = rule_renovacion_automatica(
        "El servicio se renovará automáticamente por períodos iguales salvo preaviso de 30 días del cliente."
    )
    assert f.severity == Severity.MEDIUM


# ---------- Canary ----------
def test_canary_fires_on_any_lease_vocabulary():
    [f] = rule_debug_canary_alquiler("El locatario abona el canon.")
    assert f.severity == Severity.LOW
    assert f.confidence == 0.95
