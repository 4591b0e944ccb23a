import pytest

from contract_rules.ajustes import rule_ajuste_periodicidad, rule_alquiler_indexacion
from contract_rules.alquiler import (
    rule_alquiler_clausula_penal,
    rule_alquiler_desistimiento,
    rule_alquiler_gastos,
    rule_alquiler_jurisdiccion,
    rule_clausula_penal_desproporcionada,
    rule_inspecciones,
)
from contract_rules.plazos import rule_alquiler_duracion, rule_inconsistencia_temporaria, rule_plazo_minimo
from schemas import Country, Regime, RuleKind, Severity

SPANISH_LEASE = "Contrato de arrendamiento sujeto a la LAU. "


def lease(body, date="10/08/2021"):
    return f"Contrato de locación de vivienda celebrado en CABA el {date}. {body}"


# ---------- Ajuste: periodicidad ----------
def test_semiannual_adjustment_breaks_the_annual_rule():
    [f] = rule_ajuste_periodicidad(lease("El precio del alquiler se actualizará cada 6 meses según el índice ICL."))
    assert f.id == "alquiler-ajuste-periodicidad"
    assert f.severity == Severity.HIGH
    assert f.meta.months_detected == 6
    assert f.meta.regime == Regime.LEY_27551
    assert f.confidence == 0.7561


def test_annual_adjustment_is_allowed_under_27551():
    assert rule_ajuste_periodicidad(lease("El precio del alquiler se actualizará cada 12 meses según el índice ICL.")) == []


@pytest.mark.parametrize("months, severity", [(3, Severity.HIGH), (12, Severity.MEDIUM)])
def test_27737_expects_semiannual_adjustments(months, severity):
    text = lease(f"El precio del alquiler se actualizará cada {months} meses según el índice ICL.", "01/11/2023")
    [f] = rule_ajuste_periodicidad(text)
    assert f.severity == severity
    assert f.meta.regime == Regime.LEY_27737


def test_semiannual_adjustment_is_fine_under_27737():
    text = lease("El precio del alquiler se actualizará cada 6 meses según el índice ICL.", "01/11/2023")
    assert rule_ajuste_periodicidad(text) == []


def test_liberalized_regime_allows_any_periodicity():
    text = lease("El precio del alquiler se actualizará cada 3 meses según el índice ICL.", "15/03/2024")
    assert rule_ajuste_periodicidad(text) == []


def test_negated_adjustment_drops_below_threshold():
    assert rule_ajuste_periodicidad(lease("El precio del alquiler no se actualizará cada 3 meses.")) == []


def test_future_tense_trigger_finds_the_period_word():
    # only the trigger sees "trimestralmente"; the trigger-less fallback does not
    [f] = rule_ajuste_periodicidad(lease("El precio del alquiler se actualizará trimestralmente."))
    assert f.meta.months_detected == 3
    assert f.severity == Severity.HIGH


# ---------- Ajuste: indexación ----------
@pytest.mark.parametrize("verb", ["se actualizará", "se incrementará", "aumentará", "se ajustará"])
def test_future_tense_adjustment_verbs_are_detected(verb):
    text = lease(f"El precio del alquiler {verb} semestralmente según el índice ICL publicado por el BCRA.")
    [f] = rule_alquiler_indexacion(text)
    assert f.id == "alquiler-indexacion"
    assert f.severity == Severity.MEDIUM
    assert f.meta.extra["index_ref"] is True
    assert f.meta.extra["has_periodicity"] is True


def test_negated_update_without_an_index_is_ignored():
    assert rule_alquiler_indexacion(lease("El precio del alquiler no se actualizará durante la vigencia del contrato.")) == []


def test_indexation_needs_a_trigger():
    assert rule_alquiler_indexacion(lease("El precio del alquiler es de $100000.")) == []


# ---------- Plazo mínimo ----------
def test_lease_shorter_than_36_months_is_high():
    [f] = rule_plazo_minimo(lease("El plazo de duración es de 24 meses y el precio mensual del alquiler es de $100000."))
    assert f.severity == Severity.HIGH
    assert f.meta.months_detected == 24
    assert f.meta.type == RuleKind.LEGAL
    assert f.confidence == 1.0
    assert len(f.meta.legal_basis) == 1


def test_27737_adds_its_own_legal_basis():
    text = lease("El plazo de duración es de 24 meses y el precio mensual del alquiler es de $100000.", "01/11/2023")
    [f] = rule_plazo_minimo(text)
    assert [b.law for b in f.meta.legal_basis] == ["Ley 27.551 / CCyC (AR)", "Ley 27.737 (AR)"]


def test_36_month_lease_is_compliant():
    assert rule_plazo_minimo(lease("El plazo de duración es de 36 meses y el precio mensual es de $100000.")) == []


def test_temporary_lease_has_no_minimum_term():
    text = "Contrato de locación temporaria celebrado en CABA el 10/08/2021. El plazo de duración es de 6 meses."
    assert rule_plazo_minimo(text) == []


def test_negation_near_the_term_lowers_confidence():
    [f] = rule_plazo_minimo(
        lease("El plazo de duración no será inferior a 24 meses y el precio mensual del alquiler es de $100000.")
    )
    assert f.confidence == 0.8


# ---------- Duración / prórroga ----------
def test_duration_clause_is_a_low_reminder():
    [f] = rule_alquiler_duracion(lease("La vigencia del contrato será de 36 meses, con prórroga automática."))
    assert f.id == "alquiler-duracion"
    assert f.severity == Severity.LOW


def test_negated_extension_without_a_term_is_ignored():
    assert rule_alquiler_duracion(lease("No habrá prórroga ni renovación del contrato.")) == []


def test_duration_rule_skips_spanish_contracts():
    assert rule_alquiler_duracion(SPANISH_LEASE + "La vigencia es de 12 meses.") == []


# ---------- Temporaria vs vivienda ----------
def test_temporary_lease_for_dwelling_for_one_year_is_inconsistent():
    text = "Contrato de locación temporaria con destino vivienda. El plazo de la locación es de un (1) año."
    [f] = rule_inconsistencia_temporaria(text)
    assert f.severity == Severity.MEDIUM
    assert f.confidence == 0.75


def test_temporary_lease_without_dwelling_use_is_consistent():
    assert rule_inconsistencia_temporaria("Contrato de locación temporaria. El plazo es de un (1) año.") == []


def test_two_year_temporary_lease_is_not_flagged():
    text = "Contrato de locación temporaria con destino vivienda. El plazo de la locación es de dos (2) años."
    assert rule_inconsistencia_temporaria(text) == []


# ---------- Desistimiento ----------
def test_early_termination_penalty_is_medium():
    text = lease(
        "En caso de rescisión anticipada el locatario abonará una penalización equivalente a un mes de alquiler "
        "con preaviso de 60 días."
    )
    [f] = rule_alquiler_desistimiento(text)
    assert f.severity == Severity.MEDIUM
    assert f.meta.country == Country.AR


def test_termination_without_penalty_is_ignored():
    assert rule_alquiler_desistimiento(lease("El locatario podrá ejercer la rescisión sin penalización alguna.")) == []


def test_termination_rule_needs_an_argentine_contract():
    text = "En caso de rescisión el locatario abonará una multa de un mes de alquiler."
    assert rule_alquiler_desistimiento(text) == []


# ---------- Gastos ----------
def test_owner_charges_on_the_tenant_are_medium():
    [f] = rule_alquiler_gastos(lease("Las expensas extraordinarias y el ABL estarán a cargo del locatario."))
    assert f.severity == Severity.MEDIUM


def test_utilities_on_the_tenant_are_low():
    [f] = rule_alquiler_gastos(lease("Los servicios de agua, luz y gas estarán a cargo del locatario."))
    assert f.severity == Severity.LOW


def test_negated_expenses_are_ignored():
    assert rule_alquiler_gastos(lease("El locatario no abonará expensas ni impuestos.")) == []


# ---------- Cláusula penal ----------
def test_double_rent_penalty_is_high():
    [f] = rule_alquiler_clausula_penal(
        lease("En caso de ocupación ilegítima el locatario abonará el doble del alquiler diario.")
    )
    assert f.severity == Severity.HIGH
    assert f.confidence == 0.85


def test_plain_penal_clause_is_medium():
    [f] = rule_alquiler_clausula_penal(lease("Se pacta una cláusula penal por incumplimiento del locatario."))
    assert f.severity == Severity.MEDIUM
    assert f.confidence == 0.7


def test_waived_penal_clause_is_ignored():
    assert rule_alquiler_clausula_penal(lease("No se aplicará cláusula penal alguna.")) == []


def test_price_mention_alone_is_not_a_penalty():
    assert rule_alquiler_clausula_penal(lease("El precio del alquiler es de $100000.")) == []


def test_double_rent_with_aggravants_is_high():
    text = lease(
        "En caso de ocupación ilegítima el locatario abonará el doble del alquiler diario, "
        "más intereses punitorios, por vía ejecutiva."
    )
    [f] = rule_clausula_penal_desproporcionada(text)
    assert f.id == "alquiler-clausula-penal-desproporcionada"
    assert f.severity == Severity.HIGH


def test_non_restitution_anchor_is_not_read_as_negation():
    [f] = rule_clausula_penal_desproporcionada(
        lease("En caso de no restitución del inmueble el locatario abonará el doble del alquiler.")
    )
    assert f.severity == Severity.MEDIUM
    assert f.confidence == 1.0


def test_non_restitution_without_double_rent_is_ignored():
    text = lease("En caso de no restitución del inmueble el locatario abonará una multa.")
    assert rule_clausula_penal_desproporcionada(text) == []


# ---------- Jurisdicción ----------
def test_agreed_courts_are_a_low_reminder():
    [f] = rule_alquiler_jurisdiccion(
        "Para cualquier controversia las partes se someten a los tribunales ordinarios de la Ciudad de "
        "Buenos Aires, con renuncia a cualquier otro fuero."
    )
    assert f.id == "alquiler-jurisdiccion"
    assert f.severity == Severity.LOW
    assert f.confidence == 0.7


def test_no_forum_clause_no_finding():
    assert rule_alquiler_jurisdiccion("El locatario abona el canon.") == []


# ---------- Inspecciones ----------
def test_inspection_at_any_time_is_high():
    [f] = rule_inspecciones("El locador podrá ingresar al inmueble para inspección en cualquier momento.")
    assert f.severity == Severity.HIGH
    assert f.title.startswith("Ingresos/inspecciones sin preaviso")


def test_access_without_notice_is_not_read_as_negation():
    [f] = rule_inspecciones("El locador tendrá acceso al inmueble sin preaviso.")
    assert f.severity == Severity.HIGH


def test_short_notice_inspection_is_medium():
    [f] = rule_inspecciones("El locador podrá realizar visitas de inspección con preaviso de 24 horas.")
    assert f.severity == Severity.MEDIUM


def test_forbidden_visits_are_ignored():
    assert rule_inspecciones("El locador no podrá realizar visitas al inmueble.") == []
