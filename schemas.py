# schemas.py
from __future__ import annotations
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel, Field


# ---------- Enums ----------
class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


SEVERITY_RANK: Dict[Severity, int] = {Severity.LOW: 0, Severity.MEDIUM: 1, Severity.HIGH: 2}


class RuleKind(str, Enum):
    LEGAL = "legal"
    HEURISTIC = "heuristic"


class RuleGroup(str, Enum):
    ALQUILER = "alquiler"
    SERVICIOS = "servicios"
    LABORAL = "laboral"
    BANCARIO = "bancario"
    GLOBAL = "global"  # always runs


class Country(str, Enum):
    AR = "AR"
    ES = "ES"
    UNKNOWN = "UNKNOWN"


class Regime(str, Enum):
    PRE_27551 = "PRE_27551"
    LEY_27551 = "LEY_27551"
    LEY_27737 = "LEY_27737"
    DNU_70_2023 = "DNU_70_2023"
    ES_LAU = "ES_LAU"
    UNKNOWN = "UNKNOWN"


class ContractSubtype(str, Enum):
    PERMANENTE = "permanente"
    TEMPORARIA = "temporaria"
    COMERCIAL = "comercial"
    DESCONOCIDO = "desconocido"


class Currency(str, Enum):
    ARS = "ARS"
    EUR = "EUR"
    UNKNOWN = "UNKNOWN"


class SourceKind(str, Enum):
    DIGITAL_TEXT = "digital-text"
    SCANNED_OCR = "scanned-ocr"
    WORD_PROCESSOR = "word-processor"
    PLAIN = "plain"


class ContractType(str, Enum):
    ALQUILER = "alquiler"
    SERVICIOS = "servicios"
    LABORAL = "laboral"
    BANCARIO = "bancario"
    OTRO = "otro"


# ---------- Legal context ----------
class LegalContext(BaseModel):
    model_config = {"frozen": True}

    country: Country = Country.UNKNOWN
    regime: Regime = Regime.UNKNOWN
    contract_type: ContractSubtype = ContractSubtype.DESCONOCIDO
    currency: Currency = Currency.UNKNOWN
    contract_date: Optional[date] = None


# ---------- Findings ----------
class LegalBasis(BaseModel):
    model_config = {"frozen": True}

    law: str                        # e.g. "Ley 27.551" / "DNU 70/2023"
    article: Optional[str] = None   # e.g. "art. 13"
    note: Optional[str] = None
    link: Optional[str] = None
    jurisdiction: Optional[str] = None


class FindingMeta(BaseModel):
    model_config = {"frozen": True}

    type: RuleKind = RuleKind.HEURISTIC
    confidence: float = Field(0.6, ge=0.0, le=1.0)
    legal_basis: List[LegalBasis] = Field(default_factory=list)
    bullets: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)

    # Context snapshot at evaluation time
    country: Optional[Country] = None
    regime: Optional[Regime] = None
    contract_type: Optional[ContractSubtype] = None
    contract_date: Optional[date] = None

    # Numeric extraction results
    total_months: Optional[int] = None
    months_detected: Optional[int] = None
    renunciations: List[str] = Field(default_factory=list)
    subtype: Optional[str] = None

    # Merge / UI anchoring
    original_id: Optional[str] = None
    paragraph_index: Optional[int] = None
    local_index: Optional[int] = None
    page: Optional[int] = None

    # Genuinely rule-specific data
    extra: Dict[str, Any] = Field(default_factory=dict)


class Finding(BaseModel):
    model_config = {"frozen": True}

    id: str
    title: str
    severity: Severity
    description: str
    evidence: Optional[str] = None
    text: Optional[str] = None      # matched fragment, for debugging
    index: Optional[int] = None     # absolute index of the match in the evaluated text
    window: Optional[int] = None    # default window when evidence must be derived
    meta: FindingMeta = Field(default_factory=FindingMeta)

    @property
    def confidence(self) -> float:
        return self.meta.confidence

    @property
    def severity_rank(self) -> int:
        return SEVERITY_RANK[self.severity]

    def with_meta(self, **updates) -> "Finding":
        """New finding with updated meta fields; the original is untouched."""
        return self.model_copy(update={"meta": self.meta.model_copy(update=updates)})


# ---------- Normalized document ----------
class ParagraphLocation(BaseModel):
    model_config = {"frozen": True}

    paragraph_index: int
    local_index: int


class NormalizedDocument(BaseModel):
    model_config = {"frozen": True}

    text: str
    paragraphs: List[str] = Field(default_factory=list)
    paragraph_spans: List[Tuple[int, int]] = Field(default_factory=list)
    source_kind: SourceKind = SourceKind.PLAIN
    notes: List[str] = Field(default_factory=list)

    def map_offset(self, abs_index: int) -> ParagraphLocation:
        from offset_mapper import ParagraphOffsetMapper
        return ParagraphOffsetMapper(self.paragraph_spans)(abs_index)


# ---------- Classification ----------
class ContractClassification(BaseModel):
    type: ContractType = ContractType.OTRO
    confidence: float = 0.2
    reasons: List[str] = Field(default_factory=list)
    features: Dict[str, float] = Field(default_factory=dict)
    candidates: List[Tuple[ContractType, float]] = Field(default_factory=list)   # ranked by score


# ---------- Extraction / analysis I/O ----------
class ExtractionResult(BaseModel):
    text: str
    source_kind: SourceKind
    filename_hint: Optional[str] = None
    mime_hint: Optional[str] = None
    notes: List[str] = Field(default_factory=list)


class AnalysisReport(BaseModel):
    document_name: str = ""
    status: str = "ok"              # ok | illegible | extraction_failed
    message: Optional[str] = None
    findings: List[Finding] = Field(default_factory=list)
    classification: Optional[ContractClassification] = None
    group: Optional[RuleGroup] = None
    selected_rule_ids: List[str] = Field(default_factory=list)
    document: Optional[NormalizedDocument] = None
    notes: List[str] = Field(default_factory=list)
