"""
Service / subscription contract rules.
"""
from __future__ import annotations

import re
from typing import List, Optional, Tuple

from legal_context import resolve_cached
from rule_utils import (
    context_meta,
    has_negation_near,
    make_finding,
    score,
    slice_around,
)
from schemas import Finding, LegalBasis, RuleKind, Severity

DATA_LEGAL_BASIS = [
    LegalBasis(law="Ley 25.326 (AR)", note="Protección de Datos Personales: consentimiento, finalidad, derechos, "
               "transferencias.", jurisdiction="AR"),
    LegalBasis(law="Decreto 1558/2001 (AR)", note="Reglamentación de la Ley 25.326.", jurisdiction="AR"),
]

# ---------- Permanencia ----------
PERMANENCIA_RE = re.compile(r"\b(permanencia|penalizaci[oó]n|multa|resarcimiento|punitori[oa]s?)\b", re.IGNORECASE)
SERVICE_DOC_RE = re.compile(
    r"\b(servicio|suscripci[oó]n|plan|prestador|proveedor|abono|baja|alta|portabilidad|cliente|consumidor"
    r"|telef(?:on[ií]a)?|internet|tv|cable|streaming|m[óo]vil|paquete)\b",
    re.IGNORECASE,
)
LEASE_DOC_RE = re.compile(
    r"\b(locaci[oó]n|alquiler|locador(?:a)?|locatari[oa]|inmueble|vivienda|departamento|garant[ií]a"
    r"|dep[oó]sito|fianza)\b",
    re.IGNORECASE,
)
TERM_MENTION_RE = re.compile(r"\b(plazo|m[ií]nimo|mes(?:es)?|a[nñ]os?)\b", re.IGNORECASE)
AMOUNT_MENTION_RE = re.compile(
    r"\$\s?\d+(?:[.,]\d+)?|\b\d+\s*%|\b(porcentaje|tarifa|cargo|coste|costo)\b", re.IGNORECASE
)
_PENALTY_MONTHS_RE = [
    re.compile(r"\b[^\W\d_]+\s*\((\d{1,2})\)\s*mes(?:es)?\b", re.IGNORECASE),
    re.compile(r"\b(\d{1,2})\s*mes(?:es)?\b", re.IGNORECASE),
]
_PENALTY_PERCENT_RE = re.compile(r"\b(\d{1,3})\s*%", re.IGNORECASE)
PERMANENCIA_THRESHOLD = 0.65


def extract_penalty_near(text: str, index: int) -> Tuple[Optional[int], Optional[int]]:
    """(months, percent) of an early-termination penalty near index."""
    around = slice_around(text, index, 260)
    for pattern in _PENALTY_MONTHS_RE:
        m = pattern.search(around)
        if m:
            return int(m.group(1)), None
    m = _PENALTY_PERCENT_RE.search(around)
    if m:
        return None, int(m.group(1))
    if re.search(r"\bpor\s+ciento\b", around, re.IGNORECASE):
        return None, 100
    return None, None


def rule_plan_permanencia(text: str) -> List[Finding]:
    ctx = resolve_cached(text)
    m = PERMANENCIA_RE.search(text)
    if not m:
        return []
    service_doc = bool(SERVICE_DOC_RE.search(text))
    if not service_doc or LEASE_DOC_RE.search(text):
        return []

    idx = m.start()
    around = slice_around(text, idx, 260)
    neg = has_negation_near(text, idx, 140)
    months, percent = extract_penalty_near(text, idx)
    mentions = bool(TERM_MENTION_RE.search(around) or AMOUNT_MENTION_RE.search(around)) or bool(months or percent)

    confidence = score([service_doc, mentions, not neg], [1.3, 1.0, 0.8])
    if confidence < PERMANENCIA_THRESHOLD:
        return []

    high = (months or 0) >= 2 or (percent or 0) >= 50
    return [make_finding(
        "servicios-plan-permanencia",
        "Posible cláusula de permanencia o penalización",
        Severity.HIGH if high else Severity.MEDIUM,
        "Se detectan términos de permanencia/penalización. Revisá importes fijos, porcentajes y plazos mínimos, "
        "y si hay baja sin costo ante cambios del proveedor.",
        index=idx,
        window=260,
        confidence=confidence,
        kind=RuleKind.HEURISTIC,
        months_detected=months,
        extra={"percent": percent},
        bullets=[
            "Confirmá si existe un plazo mínimo de permanencia.",
            "Chequeá penalidades por baja anticipada (monto/porcentaje).",
            "Revisá condiciones para terminar sin costo (cambios del servicio/incumplimiento del proveedor).",
        ],
        keywords=["permanencia", "penalización", "multa", "resarcimiento", "baja", "plan"],
        **context_meta(ctx),
    )]


# ---------- Cesión de datos ----------
PROFILING_RE = re.compile(r"\b(perfilad[oa]|profiling)\b", re.IGNORECASE)
PROFILING_SCOPE_RE = re.compile(
    r"\b(marketing|publicidad|promoci[oó]n|tercer[oa]s?(?:\s+(?:partes?|personas?))?|proveedores?)\b", re.IGNORECASE
)
LEGAL_BASE_RE = re.compile(
    r"\b(inter[eé]s\s+leg[ií]timo|leg[ií]timo\s+inter[eé]s|consentimiento|base\s+legal|opt-?in|opt-?out"
    r"|autorizo|autorizaci[oó]n)\b",
    re.IGNORECASE,
)
DATA_ACTION_RE = re.compile(
    r"\b(cesi[oó]n|transferencia|(?:ceder|transferir|compartir|comunicar)\w*)(?!\w)", re.IGNORECASE
)
DATA_WORD_RE = re.compile(r"\bdatos?\b", re.IGNORECASE)
DATA_SCOPE_RE = re.compile(
    r"\b(tercer(?:o|os)|terceras?\s+(?:partes?|personas?)|fines?\s+comerciales?|marketing|publicidad)\b",
    re.IGNORECASE,
)
DATA_ANCHOR_RE = re.compile(
    r"\b(?:(?:datos\s+personales?|informaci[oó]n\s+personal|datos\s+del\s+usuario).{0,80}"
    r"\b(?:cesi[oó]n|transferencia|(?:ceder|transferir|compartir|comunicar)\w*)(?!\w)"
    r"|cesi[oó]n\s+de\s+datos|transferencia\s+de\s+datos|compartir\s+datos|comunicar\s+datos)\b",
    re.IGNORECASE,
)
THIRD_PARTIES_RE = re.compile(
    r"\b(tercer(?:o|os)|terceras?\s+(?:partes?|personas?)|proveedores?|encargados?|grupo\s+empresarial|filiales"
    r"|afiliadas?)\b",
    re.IGNORECASE,
)
COMMERCIAL_USE_RE = re.compile(
    r"\b(fines?\s+comerciales?|comercial(?:es)?|marketing|publicidad|promoci[oó]n|perfilado|profiling)\b",
    re.IGNORECASE,
)
INTERNATIONAL_RE = re.compile(
    r"\b(transferencias?\s+internacional(?:es)?|fuera\s+del\s+pa[ií]s|extranjero|otras?\s+jurisdicci[oó]n)\b",
    re.IGNORECASE,
)
SAFEGUARDS_RE = re.compile(
    r"\b(finalidad|limitad[oa]s?|plazo\s+de\s+conservaci[oó]n|minimizaci[oó]n|pseudonimizaci[oó]n|anonimizaci[oó]n"
    r"|derechos?\s+(?:arco|acceso|rectificaci[oó]n|supresi[oó]n|oposici[oó]n|portabilidad))\b",
    re.IGNORECASE,
)

_DATA_BULLETS = [
    "¿Quiénes son los terceros y con qué finalidad usan tus datos?",
    "Si hay fines comerciales/marketing, debe haber consentimiento válido y opt-out.",
    "Pedí plazos de conservación y canal para ejercer derechos.",
]
_DATA_KEYWORDS = ["cesión de datos", "transferencia", "terceros", "fines comerciales", "marketing", "publicidad", "ARCO"]


def _data_finding(title: str, severity: Severity, description: str, idx: int, confidence: float, ctx) -> Finding:
    return make_finding(
        "servicios-datos-cesion",
        title,
        severity,
        description,
        index=idx,
        window=300,
        confidence=confidence,
        kind=RuleKind.LEGAL,
        legal_basis=DATA_LEGAL_BASIS,
        bullets=_DATA_BULLETS,
        keywords=_DATA_KEYWORDS,
        **context_meta(ctx),
    )


def rule_datos_cesion(text: str) -> List[Finding]:
    """
    Personal data transfer / profiling. May emit several candidates with the
    same id; the engine keeps the strongest.
    """
    ctx = resolve_cached(text)
    out: List[Finding] = []

    m = PROFILING_RE.search(text)
    if m:
        idx = m.start()
        around = slice_around(text, idx, 280)
        neg = has_negation_near(text, idx, 160)
        has_scope = bool(PROFILING_SCOPE_RE.search(around))
        confidence = 0.7 + (0.1 if has_scope else 0) + (0.05 if LEGAL_BASE_RE.search(around) else 0)
        if neg:
            confidence -= 0.25
        confidence = max(0.4, min(0.98, confidence))
        severity = Severity.LOW if neg else Severity.HIGH if has_scope else Severity.MEDIUM
        out.append(_data_finding(
            "Perfilado de usuarios con posibles fines comerciales" if has_scope
            else "Perfilado de usuarios (verificar base legal)",
            severity,
            "Se detecta perfilado de usuarios. Confirmá base legal (consentimiento o interés legítimo), "
            "finalidad y derechos de oposición.",
            idx,
            confidence,
            ctx,
        ))

    # action + data + scope anywhere in the document
    if DATA_ACTION_RE.search(text) and DATA_WORD_RE.search(text) and DATA_SCOPE_RE.search(text):
        idx = DATA_ACTION_RE.search(text).start()
        neg = has_negation_near(text, idx, 160)
        out.append(_data_finding(
            "Cesión/transferencia de datos a terceros (fines comerciales)",
            Severity.MEDIUM if neg else Severity.HIGH,
            "Se detecta cesión/transferencia de datos a terceros o con fines comerciales/marketing. Verificá "
            "consentimiento, finalidad, derecho de oposición y transferencias.",
            idx,
            0.85 if neg else 0.96,
            ctx,
        ))

    for m in DATA_ANCHOR_RE.finditer(text):
        idx = m.start()
        around = slice_around(text, idx, 300)
        third = bool(THIRD_PARTIES_RE.search(around))
        commercial = bool(COMMERCIAL_USE_RE.search(around))
        international = bool(INTERNATIONAL_RE.search(around))
        safeguards = bool(SAFEGUARDS_RE.search(around))
        neg = has_negation_near(text, idx, 160)

        confidence = 0.55
        confidence += 0.25 if third else 0
        confidence += 0.25 if commercial else 0
        confidence += 0.10 if international else 0
        confidence += 0.05 if LEGAL_BASE_RE.search(around) else 0
        confidence += 0.05 if safeguards else 0
        confidence -= 0.25 if neg else 0
        if confidence < 0.4:
            continue

        high = (third or commercial or international) and not safeguards
        out.append(_data_finding(
            "Cesión/transferencia de datos amplia (revisar base legal y límites)" if high
            else "Tratamiento o cesión de datos (verificar alcance)",
            Severity.LOW if neg else Severity.HIGH if high else Severity.MEDIUM,
            "El contrato menciona tratamiento/cesión de datos. Confirmá base legal, finalidad, derechos ARCO y "
            "plazos de conservación.",
            idx,
            min(1.0, confidence),
            ctx,
        ))
    return out


# ---------- Jurisdicción / arbitraje ----------
FORUM_RE = re.compile(r"\b(jurisdicci[oó]n|competencia|arbitraje|tribunal(?:es)?|fuero)\b", re.IGNORECASE)
DISTANT_FORUM_RE = re.compile(r"\b(fuera\s+de\s+(?:su\s+)?domicilio|otra\s+ciudad|otra\s+provincia)\b", re.IGNORECASE)
MANDATORY_ARBITRATION_RE = re.compile(r"\barbitraje\b.*\b(obligatorio|exclusivo|vinculante)\b", re.IGNORECASE)
FORUM_WAIVER_RE = re.compile(
    r"\b(renuncia\w*\s+(?:al?\s+)?(?:cualquier\s+otro\s+)?fuero|renuncia\w*\s+a\s+reclamar\s+ante\s+tribunales)\b",
    re.IGNORECASE,
)


def rule_jurisdiccion_arbitraje(text: str) -> List[Finding]:
    ctx = resolve_cached(text)
    m = FORUM_RE.search(text)
    if not m:
        return []

    idx = m.start()
    around = slice_around(text, idx, 260)
    distant = bool(DISTANT_FORUM_RE.search(around))
    mandatory = bool(MANDATORY_ARBITRATION_RE.search(around))
    waiver = bool(FORUM_WAIVER_RE.search(around))
    neg = has_negation_near(text, idx, 150)

    confidence = score([True, distant or mandatory or waiver, not neg], [1.0, 1.0, 0.8])
    if confidence < 0.6:
        return []

    severity = Severity.LOW
    if distant or mandatory:
        severity = Severity.MEDIUM
    if mandatory and waiver:
        severity = Severity.HIGH

    return [make_finding(
        "servicios-jurisdiccion-arbitraje",
        "Jurisdicción / arbitraje",
        severity,
        "Se impone arbitraje obligatorio con renuncia a fuero. Puede limitar opciones procesales."
        if severity == Severity.HIGH
        else "Revisá si la cláusula impone tribunales lejanos o arbitraje obligatorio que pueda dificultar el acceso.",
        index=idx,
        window=260,
        confidence=confidence,
        kind=RuleKind.HEURISTIC,
        bullets=[
            "Chequeá si el contrato impone un tribunal fuera de tu localidad.",
            "Verificá si el arbitraje es obligatorio o voluntario.",
            "Revisá quién cubre los costos del arbitraje.",
            "Prestá atención a renuncias a fuero/tribunales.",
        ],
        keywords=["jurisdicción", "competencia", "arbitraje", "tribunal", "fuero", "renuncia"],
        **context_meta(ctx),
    )]


# ---------- Renovación automática ----------
AUTO_RENEWAL_RE = re.compile(
    r"\b(renovaci[oó]n\s+autom[aá]tica|pr[oó]rroga\s+autom[aá]tica|t[aá]cita\s+reconducci[oó]n|reconducci[oó]n"
    r"|se\s+renovar[aá]\s+autom[aá]ticamente)\b",
    re.IGNORECASE,
)
NOTICE_RE = re.compile(r"\b(preaviso|aviso\s+previo|con\s+\d+\s*d[ií]as)\b", re.IGNORECASE)
CANCEL_RE = re.compile(r"\b(baja|resoluci[oó]n|rescisi[oó]n|desistimiento)\b", re.IGNORECASE)
SILENCE_RE = re.compile(
    r"\b(silencio\s+del\s+usuario|si\s+el\s+usuario\s+no\s+manifiesta|en\s+caso\s+de\s+no\s+oposici[oó]n)\b",
    re.IGNORECASE,
)
DAYS_RE = re.compile(r"\b(\d{1,3})\s*d[ií]as?\b", re.IGNORECASE)
MIN_NOTICE_DAYS = 10


def rule_renovacion_automatica(text: str) -> List[Finding]:
    ctx = resolve_cached(text)
    m = AUTO_RENEWAL_RE.search(text)
    if not m:
        return []

    idx = m.start()
    around = slice_around(text, idx, 280)
    notice = bool(NOTICE_RE.search(around))
    days_m = DAYS_RE.search(slice_around(text, idx, 260))
    notice_days = int(days_m.group(1)) if days_m else None
    cancel = bool(CANCEL_RE.search(around))
    silence = bool(SILENCE_RE.search(around))
    # silence clauses read "no manifiesta"/"no oposición"; that is the risk, not a negation
    neg = has_negation_near(text, idx, 150) and not silence

    confidence = score([True, notice or cancel or silence, not neg], [1.0, 1.0, 0.8])
    if confidence < 0.6:
        return []

    high = (notice_days is not None and notice_days < MIN_NOTICE_DAYS) or (silence and not notice)
    return [make_finding(
        "servicios-renovacion-automatica",
        "Renovación automática",
        Severity.HIGH if high else Severity.MEDIUM,
        "Prevé renovación automática con preaviso muy corto o basado en silencio del usuario. Revisá plazos y "
        "canales para oponerse." if high
        else "Puede renovarse sin acción del usuario. Revisá plazos de preaviso, forma de baja y cambios de precio "
        "en la renovación.",
        index=idx,
        window=280,
        confidence=confidence,
        kind=RuleKind.HEURISTIC,
        extra={"pre_notice_days": notice_days},
        bullets=[
            "Confirmá si se renueva automáticamente sin aviso.",
            "Chequeá el plazo y canal de preaviso para solicitar la baja.",
            "Verificá si el precio puede cambiar en la renovación.",
        ],
        keywords=["renovación automática", "prórroga", "reconducción", "preaviso", "baja", "silencio"],
        **context_meta(ctx),
    )]


# ---------- Notificaciones ----------
NOTIFICATION_RE = re.compile(
    r"\b(notificaci[oó]n(?:es)?|domicilio\s+especial|correo\s+electr[oó]nico|e-?mail|whatsapp|carta\s+documento"
    r"|plataforma|telegram|sms|tel[eé]fono)\b",
    re.IGNORECASE,
)
CHANNEL_RE = re.compile(
    r"correo\s+electr[oó]nico|e-?mail|whatsapp|carta\s+documento|plataforma|domicilio\s+especial|telegram|sms"
    r"|tel[eé]fono",
    re.IGNORECASE,
)
MULTI_CHANNEL_RE = re.compile(
    r"\b(cualquier\s+medio\s+fehaciente|cualquier\s+medio|cualquiera\s+de\s+los\s+siguientes)\b|y/o",
    re.IGNORECASE,
)
ONLY_RE = re.compile(r"\b(exclusiv(?:a|amente)|s[oó]lo|[úu]nicamente)\b", re.IGNORECASE)
VIA_RE = re.compile(r"\b(por|v[ií]a)\b", re.IGNORECASE)
VALID_ONLY_RE = re.compile(r"\bser[aá]\s+v[aá]lida\s+s[oó]lo\b", re.IGNORECASE)
DOMICILE_CHANGE_RE = re.compile(
    r"\b(podr[aá]\s+(?:modificar|cambiar)\s+el\s+domicilio|el\s+domicilio\s+(?:podr[aá]\s+ser|ser[aá])\s+modificad[oa])\b",
    re.IGNORECASE,
)
RIGID_DOMICILE_RE = re.compile(
    r"\b(domicilio\s+constituid[oa]\s+(?:irrevocable|inmodificable)"
    r"|s[oó]lo\s+ser[aá]\s+v[aá]lid[oa]\s+en\s+el\s+domicilio\s+indicado)\b",
    re.IGNORECASE,
)
SHORT_DEADLINE_RE = re.compile(
    r"\b(24|48)\s*h(?:s|oras)?\b.{0,40}\b(?:respond|impugn|present|contest|notific|opon)(?:ar|er)\w*",
    re.IGNORECASE,
)


def rule_notificaciones(text: str) -> List[Finding]:
    """Single-channel notices, rigid domicile or impractical deadlines."""
    ctx = resolve_cached(text)
    m = NOTIFICATION_RE.search(text)
    if not m:
        return []

    idx = m.start()
    around = slice_around(text, idx, 360)
    channels = len(CHANNEL_RE.findall(around))
    multi = channels >= 2 or bool(MULTI_CHANNEL_RE.search(around))
    one_way = bool(ONLY_RE.search(around) and VIA_RE.search(around)) or bool(VALID_ONLY_RE.search(around))
    domicile_change = bool(DOMICILE_CHANGE_RE.search(around))
    rigid = bool(RIGID_DOMICILE_RE.search(around)) and not domicile_change
    short_deadline = bool(SHORT_DEADLINE_RE.search(around))
    neg = has_negation_near(text, idx, 160)

    if multi and not (short_deadline or rigid or one_way):
        return []

    confidence = score(
        [one_way or short_deadline or rigid, not multi, not domicile_change, not neg],
        [1.0, 0.6, 0.6, 0.8],
    )
    if confidence < 0.6:
        return []

    high = one_way and short_deadline and not multi
    return [make_finding(
        "servicios-notificaciones",
        "Notificaciones restrictivas con plazo exiguo" if high
        else "Notificaciones / domicilios potencialmente restrictivos",
        Severity.HIGH if high else Severity.MEDIUM,
        "Se limita el canal de notificación a uno solo y se fijan plazos muy cortos para responder." if high
        else "La cláusula de notificaciones podría ser restrictiva (canal único, domicilio rígido o plazos breves). "
        "Revisá si hay vías alternativas y plazos razonables.",
        index=idx,
        window=360,
        confidence=confidence,
        kind=RuleKind.HEURISTIC,
        bullets=[
            "Verificá si admite múltiples vías (email, CD, plataforma, teléfono).",
            "Chequeá plazos de respuesta y su razonabilidad (evitá 24-48 h).",
            "Confirmá si el domicilio especial es modificable y cómo notificar cambios.",
        ],
        keywords=["notificación", "exclusiva", "únicamente", "24h", "48h", "domicilio especial", "fehaciente"],
        **context_meta(ctx),
    )]
