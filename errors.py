"""
Error taxonomy for the ContractLens pipeline.

Only ExtractionFailure and DocumentIllegible ever leave a module; the rule
engine builds RuleExecutionFault / MalformedRuleOutput for logging and
recovers locally.
"""
from __future__ import annotations
from typing import List, Optional


class ContractLensError(Exception):
    """Base class for every pipeline error."""

    def __init__(self, message: str, notes: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.notes: List[str] = list(notes or [])


class ExtractionFailure(ContractLensError):
    """The extraction collaborator could not produce any text."""


class DocumentIllegible(ContractLensError):
    """Text was produced but is empty or below the legibility threshold."""

    def __init__(self, message: str, length: int = 0, notes: Optional[List[str]] = None):
        super().__init__(message, notes)
        self.length = length


class RuleExecutionFault(ContractLensError):
    """A single rule raised while evaluating a document."""

    def __init__(self, rule_id: str, cause: BaseException):
        super().__init__(f"rule '{rule_id}' failed: {cause!r}")
        self.rule_id = rule_id
        self.cause = cause


class MalformedRuleOutput(ContractLensError):
    """A rule returned data the engine cannot use as-is."""

    def __init__(self, rule_id: str, detail: str):
        super().__init__(f"rule '{rule_id}' returned malformed output: {detail}")
        self.rule_id = rule_id
        self.detail = detail


# User-facing guidance (Spanish UI)
ILLEGIBLE_MESSAGE = (
    "Documento vacío o ilegible. Si es un escaneo, probá con OCR o subí una versión con texto seleccionable."
)
EXTRACTION_FAILED_MESSAGE = (
    "No se pudo extraer texto del documento (PDF texto y OCR fallaron). Probá con OCR o con otro formato."
)
