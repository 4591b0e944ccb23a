"""
Rules that apply to any contract group, plus the lease pipeline canary.
"""
from __future__ import annotations

import re
from typing import List, Optional, Pattern

from legal_context import resolve_cached
from rule_utils import context_meta, has_negation_near, make_finding, score, slice_around
from schemas import Country, Finding, LegalBasis, RuleKind, Severity

WAIVER_TRIGGER_RE = re.compile(
    r"\b(renunci\w*\s+a|exim\w*\s+de\s+responsabilidad|exoneraci[oó]n\s+de\s+responsabilidad"
    r"|indemnidad\s+amplia)\b",
    re.IGNORECASE,
)
GUARANTOR_CTX_RE = re.compile(
    r"\b(garante|fiador|fianza|deudor\s+solidari[oa]|principal\s+pagador)\b", re.IGNORECASE
)
TYPICAL_GUARANTOR_WAIVER_RE = re.compile(r"\b(excusi[oó]n|divisi[oó]n|orden|prelaci[oó]n)\b", re.IGNORECASE)
ABUSIVE_WAIVER_RE = re.compile(
    r"\b(renunci\w*\s+a\s+(?:iniciar|interponer|promover)\s+(?:acciones?|reclamos?)"
    r"|renunci\w*\s+al?\s+derecho\s+de\s+defensa"
    r"|renunci\w*\s+a\s+recursos?"
    r"|apelaci[oó]n"
    r"|renunci\w*\s+a\s+cualquier\s+(?:reclamo|derecho|acci[oó]n)"
    r"|indemnidad\s+amplia"
    r"|exoneraci[oó]n\s+total\s+de\s+responsabilidad)\b",
    re.IGNORECASE,
)

SUBTYPE_ABUSIVE = "abusive"
SUBTYPE_GUARANTOR = "guarantor-typical"
SUBTYPE_GENERIC = "generic"

_WAIVER_COPY = {
    SUBTYPE_ABUSIVE: (
        "Renuncia/limitación amplia de derechos (potencialmente abusiva)",
        "Se observan renuncias que podrían afectar derechos irrenunciables (defensa, acciones, recursos o "
        "notificaciones). Revisá su compatibilidad con el marco legal.",
        [
            "Si limita iniciar acciones, defensa, notificación o recursos, tratá como potencialmente abusiva.",
            "Revisá si hay reciprocidad o cláusula espejo para la otra parte.",
            "Consultá validez frente a normativa de consumo aplicable.",
        ],
    ),
    SUBTYPE_GUARANTOR: (
        "Renuncia de garante a beneficios (excusión/división/orden)",
        "Renuncia típica del garante (excusión/división/orden). Es práctica habitual en garantías personales; "
        "revisá su alcance y si corresponde a la fianza pactada.",
        [
            "Renuncia típica: excusión/división/orden; confirmar que aplica solo al garante.",
            "Verificá coherencia con 'deudor solidario' / 'principal pagador'.",
            "Aclarar alcance temporal y por obligaciones garantizadas.",
        ],
    ),
    SUBTYPE_GENERIC: (
        "Renuncia/limitación de derechos (revisar alcance)",
        "Se detecta una cláusula de renuncia/exoneración. Verificá alcance, excepciones y que no limite "
        "derechos irrenunciables.",
        [
            "Identificá si la renuncia restringe reclamos o garantías básicas.",
            "Buscá cláusulas espejo de responsabilidad de la otra parte.",
            "Revisá compatibilidad con derechos irrenunciables.",
        ],
    ),
}


def _index_near(pattern: Pattern, text: str, index: int, window: int = 300) -> Optional[int]:
    m = pattern.search(slice_around(text, index, window))
    if not m:
        return None
    return max(0, index - window) + m.start()


def rule_renuncia_derechos(text: str) -> List[Finding]:
    ctx = resolve_cached(text)
    if ctx.country == Country.ES:
        return []
    m = WAIVER_TRIGGER_RE.search(text)
    if not m:
        return []

    base = m.start()
    neg = has_negation_near(text, base, 150)
    guarantor_ctx = bool(GUARANTOR_CTX_RE.search(slice_around(text, base, 220)))
    typical = bool(TYPICAL_GUARANTOR_WAIVER_RE.search(slice_around(text, base, 260)))
    abusive = bool(ABUSIVE_WAIVER_RE.search(slice_around(text, base, 260)))

    confidence = score([True, abusive, guarantor_ctx, not neg], [1.0, 1.2, 1.0, 0.8])
    if confidence < 0.6 and not abusive:
        return []

    if abusive:
        subtype, severity = SUBTYPE_ABUSIVE, Severity.HIGH
        index = _index_near(ABUSIVE_WAIVER_RE, text, base)
    elif guarantor_ctx and typical:
        subtype, severity = SUBTYPE_GUARANTOR, Severity.LOW
        index = _index_near(TYPICAL_GUARANTOR_WAIVER_RE, text, base)
    else:
        subtype, severity = SUBTYPE_GENERIC, Severity.MEDIUM
        index = None
    title, description, bullets = _WAIVER_COPY[subtype]

    return [make_finding(
        "global-renuncia-derechos",
        title,
        severity,
        description,
        index=base if index is None else index,
        window=320,
        confidence=confidence,
        kind=RuleKind.LEGAL,
        subtype=subtype,
        legal_basis=[
            LegalBasis(law="CCyC (AR) - garantías personales",
                       note="Las renuncias del fiador a excusión/división/orden son frecuentes; evaluar alcance.",
                       jurisdiction="AR"),
            LegalBasis(law="Ley 24.240 (AR)",
                       note="Cláusulas que impiden acciones, defensa o recursos pueden ser abusivas.",
                       jurisdiction="AR"),
        ],
        bullets=bullets,
        keywords=["renuncia", "responsabilidad", "exoneración", "indemnidad", "garante", "fiador", "excusión",
                  "división", "orden", "defensa", "reclamos", "recursos"],
        **context_meta(ctx),
    )]


CANARY_RE = re.compile(r"\b(alquiler|locador|locatario|inmueble|dep[oó]sito|canon)\b", re.IGNORECASE)


def rule_debug_canary_alquiler(text: str) -> List[Finding]:
    """Fires on any lease vocabulary; used to verify the pipeline end to end."""
    m = CANARY_RE.search(text)
    if not m:
        return []
    return [make_finding(
        "debug-canary-alquiler",
        "Canario de alquiler (pipeline OK)",
        Severity.LOW,
        "Confirma que el motor ejecutó reglas sobre texto con léxico de alquiler.",
        index=m.start(),
        confidence=0.95,
        fragment=text[:300],
        keywords=["debug", "canario", "alquiler", "locador", "locatario"],
    )]
