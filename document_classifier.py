"""
Contract type detection by weighted keyword scoring.

The resulting type only selects which rule group runs; it never changes
how a rule scores a finding.
"""
from __future__ import annotations

import logging
import re
from typing import Dict, List, NamedTuple, Optional, Pattern, Sequence, Tuple

from schemas import ContractClassification, ContractType, RuleGroup

logger = logging.getLogger("contractlens.classifier")

TITLE_CHARS = 220
HEADER_CHARS = 1200
CORE_CHARS = 20000             # body scan is a prefix; the tail section covers the end
TAIL_CHARS = 1500
MIN_TYPE_SCORE = 1.5
MIN_CONFIDENCE = 0.2
MAX_REASONS_PER_TYPE = 10
MAX_REASONS = 12

SECTION_WEIGHTS = {"title": 2.5, "header": 1.5, "core": 1.0, "tail": 0.8}


class Keyword(NamedTuple):
    pattern: Pattern
    label: str


def _kw(pattern: str, label: str, flags: int = re.IGNORECASE) -> Keyword:
    return Keyword(re.compile(pattern, flags), label)


class ContractTypeCandidate(NamedTuple):
    """A candidate contract type with its score."""
    type: ContractType
    score: float
    reasons: List[str]


KEYWORDS: Dict[ContractType, Dict[str, Sequence[Keyword]]] = {
    ContractType.ALQUILER: {
        "core": [
            _kw(r"\blocat(?:ario|or|iva|ivo)\b", "locador/locatario"),
            _kw(r"\barrend(?:amiento|ador|atario)\b", "arrendamiento"),
            _kw(r"\balquiler(?:es)?\b", "alquiler"),
            _kw(r"\bc[aá]non\b", "canon"),
            _kw(r"\bdep[oó]sito\b", "depósito"),
            _kw(r"\bexpensas\b", "expensas"),
            _kw(r"\bABL\b", "ABL", 0),
            _kw(r"\bgarant[ií]a\b", "garantía"),
            _kw(r"\brenovaci[oó]n\b", "renovación"),
            _kw(r"\bpropietario\b", "propietario"),
            _kw(r"\binquilino\b", "inquilino"),
            _kw(r"\binmueble\b", "inmueble"),
        ],
        "title": [
            _kw(r"\bcontrato\s+de\s+(?:locaci[oó]n|alquiler|arrendamiento)\b", "Contrato de locación/alquiler"),
        ],
    },
    ContractType.SERVICIOS: {
        "core": [
            _kw(r"\bservicios?\b", "servicio(s)"),
            _kw(r"\bSLA\b", "SLA"),
            _kw(r"\bnivel(?:es)?\s+de\s+servicio\b", "niveles de servicio"),
            _kw(r"\bmantenimientos?\b", "mantenimiento"),
            _kw(r"\bsoporte\b", "soporte"),
            _kw(r"\bmesa\s+de\s+ayuda\b", "mesa de ayuda"),
            _kw(r"\bprestaci[oó]n\b", "prestación"),
            _kw(r"\bsuministro\b", "suministro"),
            _kw(r"\bsoftware\s+as\s+a\s+service\b", "Software as a Service"),
            _kw(r"\bsaas\b", "SaaS"),
            _kw(r"\bsuscripci[oó]n\b", "suscripción"),
            _kw(r"\bhosting\b", "hosting"),
        ],
        "title": [
            _kw(r"\bcontrato\s+de\s+servicios?\b", "Contrato de servicios"),
            _kw(r"\bacuerdo\s+de\s+nivel\s+de\s+servicio\b", "Acuerdo de nivel de servicio"),
        ],
    },
    ContractType.LABORAL: {
        "core": [
            _kw(r"\bempleador\b", "empleador"),
            _kw(r"\bempleado\b", "empleado"),
            _kw(r"\btrabajador\b", "trabajador"),
            _kw(r"\brelaci[oó]n\s+de\s+dependencia\b", "relación de dependencia"),
            _kw(r"\bLCT\b", "LCT"),
            _kw(r"\bley\s*20\.?744\b", "Ley 20.744"),
            _kw(r"\bsalario\b", "salario"),
            _kw(r"\bremuneraci[oó]n\b", "remuneración"),
            _kw(r"\bjornada\b", "jornada"),
            _kw(r"\bvacaciones\b", "vacaciones"),
            _kw(r"\bper[ií]odo\s+de\s+prueba\b", "período de prueba"),
            _kw(r"\bteletrabajo\b", "teletrabajo"),
            _kw(r"\bART\b", "ART", 0),
            _kw(r"\bconvenio\s+colectivo\b", "convenio colectivo"),
            _kw(r"\bCCT\b", "CCT", 0),
            _kw(r"\bpreaviso\b", "preaviso"),
        ],
        "title": [
            _kw(r"\bcontrato\s+de\s+trabajo\b", "Contrato de trabajo"),
            _kw(r"\bcontrato\s+laboral\b", "Contrato laboral"),
        ],
    },
    ContractType.BANCARIO: {
        "core": [
            _kw(r"\bentidad\s+financier[ao]\b", "entidad financiera"),
            _kw(r"\bbanco\b", "banco"),
            _kw(r"\btarjeta\s+de\s+cr[eé]dito\b", "tarjeta de crédito"),
            _kw(r"\bcuenta\s+(?:corriente|sueldo|caja\s+de\s+ahorro)\b", "cuenta bancaria"),
            _kw(r"\bpr[eé]stamo\b", "préstamo"),
            _kw(r"\bmutuo\b", "mutuo"),
            _kw(r"\bCF(?:T|TEA)\b", "CFT/CFTEA"),
            _kw(r"\bTNA\b", "TNA"),
            _kw(r"\binter[eé]s\s+(?:punitorio|moratorio)\b", "interés punitorio/moratorio"),
            _kw(r"\banatocismo\b", "anatocismo"),
            _kw(r"\bhipoteca\b", "hipoteca"),
        ],
        "title": [
            _kw(r"\bcontrato\s+(?:bancario|de\s+pr[eé]stamo|de\s+tarjeta|de\s+cuenta)\b",
                "Contrato bancario/préstamo/tarjeta"),
        ],
    },
}

SECTION_LABELS = {"title": "título", "header": "inicio", "core": "cuerpo", "tail": "final"}

GROUP_FOR_TYPE = {
    ContractType.ALQUILER: RuleGroup.ALQUILER,
    ContractType.SERVICIOS: RuleGroup.SERVICIOS,
    ContractType.LABORAL: RuleGroup.LABORAL,
    ContractType.BANCARIO: RuleGroup.BANCARIO,
    ContractType.OTRO: RuleGroup.GLOBAL,
}


def group_for_contract_type(contract_type: ContractType) -> RuleGroup:
    return GROUP_FOR_TYPE.get(ContractType(contract_type), RuleGroup.GLOBAL)


def _hits(text: str, keywords: Sequence[Keyword]) -> List[str]:
    return [k.label for k in keywords if k.pattern.search(text)]


class ContractClassifier:
    """Keyword classifier: title, header, body prefix and tail sections with decreasing weight."""

    def __init__(self, keywords: Optional[Dict[ContractType, Dict[str, Sequence[Keyword]]]] = None,
                 weights: Optional[Dict[str, float]] = None):
        self.keywords = keywords or KEYWORDS
        self.weights = weights or SECTION_WEIGHTS

    def _sections(self, text: str) -> Dict[str, str]:
        return {
            "title": text[:TITLE_CHARS],
            "header": text[:HEADER_CHARS],
            "core": text[:CORE_CHARS],
            "tail": text[max(0, len(text) - TAIL_CHARS):],
        }

    def score_candidates(self, text: str) -> List[ContractTypeCandidate]:
        """Every known type with its score, best first (ties keep declaration order)."""
        sections = self._sections(text or "")
        candidates = []
        for ctype, dictionary in self.keywords.items():
            total = 0.0
            reasons: List[str] = []
            for section, body in sections.items():
                pats = dictionary.get("title", []) if section == "title" else dictionary.get("core", [])
                labels = _hits(body, pats)
                if labels:
                    total += len(labels) * self.weights[section]
                    reasons.extend(f"[{SECTION_LABELS[section]}] {label}" for label in labels)
            candidates.append(ContractTypeCandidate(ctype, round(total, 2), reasons[:MAX_REASONS_PER_TYPE]))
        candidates.sort(key=lambda c: c.score, reverse=True)
        return candidates

    def classify(self, text: str) -> ContractClassification:
        candidates = self.score_candidates(text)
        if not candidates:
            return ContractClassification()

        top = candidates[0]
        total = sum(c.score for c in candidates) or 1.0
        confidence = min(1.0, max(MIN_CONFIDENCE, top.score / total))
        ctype = ContractType.OTRO if top.score < MIN_TYPE_SCORE else top.type

        reasons: List[str] = []
        for c in candidates:
            reasons.extend(c.reasons)

        result = ContractClassification(
            type=ctype,
            confidence=round(confidence, 2),
            reasons=reasons[:MAX_REASONS],
            features={c.type.value: c.score for c in candidates},
            candidates=[(c.type, c.score) for c in candidates],
        )
        logger.debug("Classified as %s (confidence=%.2f, features=%s)", ctype.value, result.confidence, result.features)
        return result

    def runner_up(self, classification: ContractClassification) -> Optional[Tuple[ContractType, float]]:
        """Second-best type when it clears the minimum score on its own."""
        ranked = [c for c in classification.candidates if c[0] != classification.type]
        if not ranked or ranked[0][1] < MIN_TYPE_SCORE:
            return None
        return ranked[0]


_default_classifier = ContractClassifier()


def classify_contract(text: str) -> ContractClassification:
    return _default_classifier.classify(text)


def runner_up_type(classification: ContractClassification) -> Optional[Tuple[ContractType, float]]:
    return _default_classifier.runner_up(classification)
