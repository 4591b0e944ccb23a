"""
Lease clause rules: termination, expenses, penal clauses, guarantor,
agreed courts and inspections.
"""
from __future__ import annotations

import re
from typing import List

from legal_context import resolve_cached
from rule_utils import (
    context_meta,
    has_lease_context_near,
    has_negation_near,
    has_negation_outside,
    make_finding,
    score,
    slice_around,
)
from schemas import Country, Finding, RuleKind, Severity

# ---------- Desistimiento ----------
DESISTIMIENTO_RE = re.compile(
    r"\b(desistim\w*|resoluci[oó]n|rescisi[oó]n|preaviso|penalizaci[oó]n|multa|indemnizaci[oó]n)\b",
    re.IGNORECASE,
)
TERMINATION_TERMS_RE = re.compile(
    r"\b(terminaci[oó]n|finalizaci[oó]n|baja|preaviso\s+de\s+\d+|d[ií]as)\b", re.IGNORECASE
)
AMOUNT_TERMS_RE = re.compile(
    r"\$\s?\d+|\b\d+\s*%|\bporcentaje\b|\bmes(?:es)?\s+de\s+alquiler\b", re.IGNORECASE
)


def rule_alquiler_desistimiento(text: str) -> List[Finding]:
    ctx = resolve_cached(text)
    if ctx.country != Country.AR:
        return []
    m = DESISTIMIENTO_RE.search(text)
    if not m:
        return []

    idx = m.start()
    around = slice_around(text, idx, 280)
    lease = has_lease_context_near(text, idx, 220)
    neg = has_negation_near(text, idx, 150)             # "sin penalidad", "no habrá multa"
    terms = bool(TERMINATION_TERMS_RE.search(around)) or bool(AMOUNT_TERMS_RE.search(around))
    confidence = score([lease, terms, not neg], [1.2, 1.0, 0.8])
    if confidence < 0.6:
        return []

    return [make_finding(
        "alquiler-desistimiento",
        "Desistimiento / resolución / penalidad",
        Severity.MEDIUM,
        "Puede haber preavisos o penalidades por terminar antes. Revisá proporcionalidad, importes y si están "
        "permitidos.",
        index=idx,
        window=280,
        confidence=confidence,
        kind=RuleKind.LEGAL,
        bullets=[
            "Verificá si hay obligación de preaviso y de cuántos días.",
            "Chequeá penalidades por romper antes del plazo.",
            "Compará los importes con lo permitido en la ley.",
        ],
        keywords=["desistimiento", "resolución", "penalidad", "multa", "preaviso"],
        **context_meta(ctx),
    )]


# ---------- Gastos ----------
GASTOS_RE = re.compile(
    r"\b(expensas?|extraordinari\w*|suministros?|agua|luz|gas|comunidad|consorcio|impuestos?|abl"
    r"|municipal(?:es)?)\b",
    re.IGNORECASE,
)
TO_TENANT_RE = re.compile(
    r"\b(a\s*cargo\s+del?\s+(?:inquilin[oa]|locatari[oa])|pagar[áa]\s+el?\s+locatari[oa]"
    r"|ser[áa]\s+responsable\s+el?\s+locatari[oa])\b",
    re.IGNORECASE,
)
TO_LANDLORD_RE = re.compile(
    r"\b(a\s*cargo\s+del?\s+(?:propietari[oa]|locador(?:a)?)|pagar[áa]\s+el?\s+locador(?:a)?"
    r"|ser[áa]\s+responsable\s+el?\s+locador(?:a)?)\b",
    re.IGNORECASE,
)
EXTRAORDINARY_RE = re.compile(r"\bextraordinari[ao]s?\b", re.IGNORECASE)
OWNER_TAXES_RE = re.compile(r"\b(abl|impuestos?\s+(?:municipales?|inmobiliarios?))\b", re.IGNORECASE)


def rule_alquiler_gastos(text: str) -> List[Finding]:
    ctx = resolve_cached(text)
    if ctx.country != Country.AR:
        return []
    m = GASTOS_RE.search(text)
    if not m:
        return []

    idx = m.start()
    around = slice_around(text, idx, 300)
    lease = has_lease_context_near(text, idx, 220)
    neg = has_negation_near(text, idx, 150)
    to_tenant = bool(TO_TENANT_RE.search(around))
    to_landlord = bool(TO_LANDLORD_RE.search(around))

    confidence = score([lease, to_tenant or to_landlord, not neg], [1.2, 1.0, 0.8])
    if confidence < 0.6:
        return []

    owner_charges = bool(EXTRAORDINARY_RE.search(around) or OWNER_TAXES_RE.search(around))
    severity = Severity.MEDIUM if to_tenant and owner_charges else Severity.LOW

    return [make_finding(
        "alquiler-gastos",
        "Gastos, expensas y suministros",
        severity,
        "Se asignan al inquilino gastos que suelen corresponder al propietario (expensas extraordinarias o "
        "impuestos). Revisá si la distribución es válida." if severity == Severity.MEDIUM
        else "Revisá qué paga cada parte (expensas, servicios, comunidad/consorcio) y que quede claro en el contrato.",
        index=idx,
        window=300,
        confidence=confidence,
        kind=RuleKind.LEGAL,
        bullets=[
            "Chequeá si te cargan expensas extraordinarias (normalmente corresponden al dueño).",
            "Verificá qué servicios están incluidos (agua, luz, gas).",
            "Aclarar si comunidad o consorcio están a cargo del inquilino o propietario.",
        ],
        keywords=["expensas", "extraordinario", "suministros", "agua", "luz", "gas", "impuestos", "ABL"],
        **context_meta(ctx),
    )]


# ---------- Cláusula penal ----------
PENAL_ANCHOR_RE = re.compile(
    r"cl[áa]usula\s+penal|ocupaci[óo]n\s+ileg[íi]tima|indemnizaci[óo]n\s+por\s+ocupaci[óo]n\s+ileg[íi]tima",
    re.IGNORECASE,
)
RENT_MULTIPLIER_RE = re.compile(r"dos\s+veces|el\s+doble|\b\d{1,2}\s*veces\b|\b[23]x\b", re.IGNORECASE)
RENT_RE = re.compile(r"alquiler|canon|renta|precio", re.IGNORECASE)
DOUBLE_RENT_RE = re.compile(r"\bel\s+doble\s+del\s+(alquiler|canon)", re.IGNORECASE)
DAILY_PERCENT_RE = re.compile(r"\b\d{1,3}(?:[.,]\d{1,2})?\s*%.*\b(por\s+d[ií]a|diari[oa])\b", re.IGNORECASE)
NOT_APPLIED_RE = re.compile(r"\bno\s+(se\s+)?aplicar[áa]", re.IGNORECASE)


def rule_alquiler_clausula_penal(text: str) -> List[Finding]:
    ctx = resolve_cached(text)
    if ctx.country not in (Country.AR, Country.UNKNOWN):
        return []

    m = PENAL_ANCHOR_RE.search(text) or RENT_RE.search(text)
    if not m:
        return []
    idx = m.start()
    around = slice_around(text, idx, 320)

    if has_negation_near(text, idx, 160) or NOT_APPLIED_RE.search(around):
        return []

    mult_rent = bool(RENT_MULTIPLIER_RE.search(around) and RENT_RE.search(around)) or bool(DOUBLE_RENT_RE.search(around))
    daily_pct = bool(DAILY_PERCENT_RE.search(around))
    explicit = bool(PENAL_ANCHOR_RE.search(around))
    if not (explicit or mult_rent or daily_pct):
        return []

    high = mult_rent or daily_pct
    return [make_finding(
        "alquiler-clausula-penal",
        "Cláusula penal / ocupación ilegítima (alto impacto)" if high else "Cláusula penal",
        Severity.HIGH if high else Severity.MEDIUM,
        "Se detecta una penalidad elevada (p. ej., doble del alquiler o % diario). Revisá proporcionalidad y "
        "acumulación con otros cargos." if high
        else "Se menciona cláusula penal. Verificá condiciones, proporcionalidad y compatibilidad legal.",
        index=idx,
        window=300,
        confidence=0.85 if high else 0.7,
        kind=RuleKind.LEGAL,
        keywords=["cláusula penal", "ocupación ilegítima", "doble del alquiler", "% diario"],
        **context_meta(ctx),
    )]


NON_RESTITUTION_RE = re.compile(
    r"\b(ocupaci[oó]n\s+ileg[ií]tima|no\s+restituci[oó]n|falta\s+de\s+devoluci[oó]n|retenci[oó]n\s+del\s+inmueble"
    r"|no\s+entrega)\b",
    re.IGNORECASE,
)
DOUBLE_MULT_RE = re.compile(
    r"\b(dos\s+veces|el\s+doble|2x)\b.*\b(alquiler|canon|renta|precio)\b"
    r"|\b(alquiler|canon|renta|precio)\b.*\b(dos\s+veces|el\s+doble|2x)\b",
    re.IGNORECASE,
)
AGGRAVANTS_RE = re.compile(r"\bv[ií]a\s+ejecutiva\b|\b(punitori[oa]s?|moratori[oa]s?)\b", re.IGNORECASE)


def rule_clausula_penal_desproporcionada(text: str) -> List[Finding]:
    ctx = resolve_cached(text)
    if ctx.country != Country.AR:
        return []
    m = NON_RESTITUTION_RE.search(text)
    if not m:
        return []

    idx = m.start()
    around = slice_around(text, idx, 300)
    if not DOUBLE_MULT_RE.search(around):
        return []

    # the anchor itself may read "no restitución", so it is excluded from the negation check
    neg = has_negation_outside(text, idx, m.end(), 150)
    confidence = score([True, True, not neg], [1.0, 1.0, 0.8])
    aggravated = bool(AGGRAVANTS_RE.search(around))

    return [make_finding(
        "alquiler-clausula-penal-desproporcionada",
        "Cláusula penal elevada (doble del alquiler + agravantes)" if aggravated
        else "Cláusula penal elevada (doble del alquiler)",
        Severity.HIGH if aggravated else Severity.MEDIUM,
        "Se prevé una penalidad equivalente al doble del alquiler ante falta de restitución/ocupación "
        "ilegítima. Revisá proporcionalidad, acumulación con intereses y vías procesales.",
        index=idx,
        window=300,
        confidence=confidence,
        kind=RuleKind.HEURISTIC,
        bullets=[
            "Evaluá si la penalidad (2×) es proporcional al daño real.",
            "Verificá si se acumula con intereses moratorios/punitorios u otros cargos.",
            "Revisá si impone ejecución \"vía ejecutiva\" y qué defensas admite.",
        ],
        keywords=["cláusula penal", "ocupación ilegítima", "doble del alquiler", "2x", "vía ejecutiva"],
        **context_meta(ctx),
    )]


# ---------- Garante solidario ----------
GUARANTOR_RE = re.compile(r"garante\s+solidario|fiador|codeudor\s+solidario", re.IGNORECASE)
RENUNCIATION_PATTERNS = [
    ("excusión", re.compile(r"renuncia\w*[^\n]{0,40}(excusi[oó]n|exclusi[oó]n)", re.IGNORECASE)),
    ("división", re.compile(r"renuncia\w*[^\n]{0,40}divisi[oó]n", re.IGNORECASE)),
    ("notificación", re.compile(r"renuncia\w*[^\n]{0,40}(notificaci[oó]n|aviso)", re.IGNORECASE)),
]
STRONG_GUARANTEE_RE = re.compile(r"incondicional|irrevocable|principal\s+pagador", re.IGNORECASE)


def rule_garante_solidario(text: str) -> List[Finding]:
    """Guarantor clause with waived benefits; the renunciation list feeds the deposit bump."""
    m = GUARANTOR_RE.search(text)
    if not m:
        return []

    renunciations = [label for label, pattern in RENUNCIATION_PATTERNS if pattern.search(text)]
    strong = bool(STRONG_GUARANTEE_RE.search(text))
    severity = Severity.HIGH if len(renunciations) >= 2 or strong else Severity.MEDIUM

    idx = m.start()
    start = max(0, idx - 60)
    return [make_finding(
        "alquiler-garante-solidario",
        "Garante solidario (renuncia a beneficios)",
        severity,
        "Se detecta garante/fiador/codeudor solidario y renuncia a beneficios (excusión, división, notificación).",
        index=idx,
        confidence=0.75,
        evidence=text[start:start + 600].strip(),
        renunciations=renunciations,
        keywords=["garante", "fiador", "codeudor", "solidario", *renunciations],
    )]


# ---------- Jurisdicción ----------
JURISDICTION_PATTERNS = [
    re.compile(r"jurisdicci[oó]n", re.IGNORECASE),
    re.compile(r"competencia\s+(?:judicial|territorial)", re.IGNORECASE),
    re.compile(r"(?:tribunales|juzgados)\s+(?:ordinarios\s+)?de\s+\w", re.IGNORECASE),
    re.compile(r"renuncia\w*\s+a\s+(?:cualquier\s+otro\s+)?(?:fuero|jurisdicci[oó]n)", re.IGNORECASE),
    re.compile(r"domicilio\s+constituid[oa]", re.IGNORECASE),
]


def rule_alquiler_jurisdiccion(text: str) -> List[Finding]:
    hits = [m.start() for m in (p.search(text) for p in JURISDICTION_PATTERNS) if m]
    if not hits:
        return []

    idx = min(hits)
    start = max(0, idx - 80)
    return [make_finding(
        "alquiler-jurisdiccion",
        "Jurisdicción/competencia pactada",
        Severity.LOW,
        "El contrato fija tribunales/competencia y renuncia a otros fueros.",
        index=idx,
        confidence=0.7,
        evidence=text[start:start + 600].strip(),
        keywords=["jurisdicción", "competencia", "tribunales", "fuero", "renuncia"],
    )]


# ---------- Inspecciones ----------
INSPECTION_RE = re.compile(r"\b(inspecci[oó]n(?:es)?|visitas?|ingreso|acceso)\b", re.IGNORECASE)
ANYTIME_RE = re.compile(
    r"\b(en\s+cualquier\s+momento|libre\s+acceso|sin\s+preaviso|sin\s+aviso|permanente)\b", re.IGNORECASE
)
SHORT_NOTICE_RE = re.compile(r"\b(24|48)\s*h(?:s|oras)?\b", re.IGNORECASE)


def rule_inspecciones(text: str) -> List[Finding]:
    ctx = resolve_cached(text)
    m = INSPECTION_RE.search(text)
    if not m:
        return []

    idx = m.start()
    around = slice_around(text, idx, 320)
    anytime = bool(ANYTIME_RE.search(around))
    short_notice = bool(SHORT_NOTICE_RE.search(around))
    # "sin preaviso" is itself the risk signal, so it must not count as negation
    neg = has_negation_near(text, idx, 160) and not anytime

    confidence = score([True, anytime or short_notice, not neg], [1.0, 1.0, 0.8])
    if confidence < 0.6:
        return []

    return [make_finding(
        "alquiler-inspecciones",
        "Ingresos/inspecciones sin preaviso o en cualquier momento" if anytime
        else "Ingresos/inspecciones con preaviso exiguo",
        Severity.HIGH if anytime else Severity.MEDIUM,
        "Se prevé acceso \"en cualquier momento\" o sin preaviso. Revisá límites, horarios y motivos." if anytime
        else "Se prevé acceso con preavisos muy cortos. Ajustá plazos razonables y condiciones.",
        index=idx,
        window=320,
        confidence=confidence,
        kind=RuleKind.HEURISTIC,
        bullets=[
            "Exigí preaviso en días y horarios acotados.",
            "Limitá motivos (reparaciones, venta) y personas autorizadas.",
            "Preferí visitas en presencia del inquilino o autorizado.",
        ],
        keywords=["inspección", "visita", "ingreso", "acceso", "sin preaviso", "permanente", "24h", "48h"],
        **context_meta(ctx),
    )]
