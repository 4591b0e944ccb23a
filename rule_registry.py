"""
Static rule registry and the per-group allow-list policy.

RULES is built once at import and never mutated. The policy is read from
YAML (CL_RULE_POLICY_PATH) and is equally read-only after loading.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Callable, Dict, Iterable, List, NamedTuple, Optional, Tuple

import yaml
from pydantic import BaseModel, Field

from contract_rules.ajustes import rule_ajuste_periodicidad, rule_alquiler_indexacion
from contract_rules.alquiler import (
    rule_alquiler_clausula_penal,
    rule_alquiler_desistimiento,
    rule_alquiler_gastos,
    rule_alquiler_jurisdiccion,
    rule_clausula_penal_desproporcionada,
    rule_garante_solidario,
    rule_inspecciones,
)
from contract_rules.bancario import rule_intereses_punitorios, rule_moneda_extranjera
from contract_rules.deposito import rule_alquiler_fianza, rule_deposito_un_mes
from contract_rules.generales import rule_debug_canary_alquiler, rule_renuncia_derechos
from contract_rules.laboral import rule_periodo_prueba
from contract_rules.plazos import rule_alquiler_duracion, rule_inconsistencia_temporaria, rule_plazo_minimo
from contract_rules.servicios import (
    rule_datos_cesion,
    rule_jurisdiccion_arbitraje,
    rule_notificaciones,
    rule_plan_permanencia,
    rule_renovacion_automatica,
)
from schemas import Finding, RuleGroup
from settings import settings

logger = logging.getLogger("contractlens.registry")

Rule = Callable[[str], List[Finding]]


class RuleEntry(NamedTuple):
    id: str
    group: RuleGroup
    run: Rule


A, S, L, B, G = RuleGroup.ALQUILER, RuleGroup.SERVICIOS, RuleGroup.LABORAL, RuleGroup.BANCARIO, RuleGroup.GLOBAL

# Order only matters for tie-breaking when ranking.
RULES: Tuple[RuleEntry, ...] = (
    RuleEntry("alquiler-plazo-minimo", A, rule_plazo_minimo),
    RuleEntry("alquiler-deposito-un-mes", A, rule_deposito_un_mes),
    RuleEntry("alquiler-fianza", A, rule_alquiler_fianza),
    RuleEntry("alquiler-ajuste-periodicidad", A, rule_ajuste_periodicidad),
    RuleEntry("alquiler-indexacion", A, rule_alquiler_indexacion),
    RuleEntry("alquiler-duracion", A, rule_alquiler_duracion),
    RuleEntry("alquiler-desistimiento", A, rule_alquiler_desistimiento),
    RuleEntry("alquiler-gastos", A, rule_alquiler_gastos),
    RuleEntry("alquiler-clausula-penal", A, rule_alquiler_clausula_penal),
    RuleEntry("alquiler-clausula-penal-desproporcionada", A, rule_clausula_penal_desproporcionada),
    RuleEntry("alquiler-garante-solidario", A, rule_garante_solidario),
    RuleEntry("alquiler-inconsistencia-temporaria", A, rule_inconsistencia_temporaria),
    RuleEntry("alquiler-jurisdiccion", A, rule_alquiler_jurisdiccion),
    RuleEntry("alquiler-inspecciones", A, rule_inspecciones),
    RuleEntry("debug-canary-alquiler", A, rule_debug_canary_alquiler),
    RuleEntry("servicios-plan-permanencia", S, rule_plan_permanencia),
    RuleEntry("servicios-datos-cesion", S, rule_datos_cesion),
    RuleEntry("servicios-jurisdiccion-arbitraje", S, rule_jurisdiccion_arbitraje),
    RuleEntry("servicios-renovacion-automatica", S, rule_renovacion_automatica),
    RuleEntry("servicios-notificaciones", S, rule_notificaciones),
    RuleEntry("laboral-periodo-prueba", L, rule_periodo_prueba),
    RuleEntry("bancario-intereses-punitorios", B, rule_intereses_punitorios),
    RuleEntry("bancario-moneda-extranjera", B, rule_moneda_extranjera),
    RuleEntry("global-renuncia-derechos", G, rule_renuncia_derechos),
)


class RulePolicy(BaseModel):
    """Allow-list of active rule ids per group. A missing group means no allow-list."""
    model_config = {"frozen": True}

    active_rule_ids: Dict[RuleGroup, Tuple[str, ...]] = Field(default_factory=dict)


def load_rule_policy(path: Optional[str] = None) -> RulePolicy:
    """
    Load the allow-list policy from YAML.

    A missing file yields an empty policy (every group runs its full
    candidate set); malformed YAML propagates.
    """
    p = Path(path or settings.CL_RULE_POLICY_PATH)
    if not p.exists():
        logger.warning("Rule policy %s not found; running every registered rule", p)
        return RulePolicy()
    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    groups = raw.get("active_rule_ids") or {}
    return RulePolicy(active_rule_ids={g: tuple(ids or ()) for g, ids in groups.items()})


class RuleRegistry:
    """Read-only view over a rule tuple plus the policy that gates it."""

    def __init__(self, rules: Iterable[RuleEntry] = RULES, policy: Optional[RulePolicy] = None):
        self.rules: Tuple[RuleEntry, ...] = tuple(rules)
        self.policy = policy or RulePolicy()
        self._order: Dict[str, int] = {}
        for pos, entry in enumerate(self.rules):
            self._order.setdefault(entry.id, pos)
        self._warn_unknown_ids()

    def _warn_unknown_ids(self) -> None:
        for group, ids in self.policy.active_rule_ids.items():
            unknown = [i for i in ids if i not in self._order]
            if unknown:
                logger.warning("Policy for group '%s' lists unknown rule ids (ignored): %s",
                               group.value, ", ".join(unknown))

    @property
    def ids(self) -> List[str]:
        return [r.id for r in self.rules]

    def order_of(self, rule_id: str) -> int:
        return self._order.get(rule_id, len(self.rules))

    def candidates(self, group: RuleGroup) -> List[RuleEntry]:
        return [r for r in self.rules if r.group == group or r.group == RuleGroup.GLOBAL]

    def select(self, group: RuleGroup) -> List[RuleEntry]:
        """
        Rules to run for a group: the group's rules plus the global ones,
        restricted to the group's allow-list when one is configured.
        """
        group = RuleGroup(group)
        candidates = self.candidates(group)
        if group == RuleGroup.GLOBAL or group not in self.policy.active_rule_ids:
            return candidates

        allowed = set(self.policy.active_rule_ids[group])
        if not allowed:
            logger.warning("Empty allow-list for group '%s'; running all %d candidate rules",
                           group.value, len(candidates))
            return candidates
        return [r for r in candidates if r.id in allowed or r.group == RuleGroup.GLOBAL]


@lru_cache(maxsize=1)
def default_registry() -> RuleRegistry:
    return RuleRegistry(RULES, load_rule_policy())
