"""
Centralized settings module for ContractLens.
Single source of truth for all configuration values.
"""

import os
from pathlib import Path
from typing import Optional


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


class ContractLensSettings:
    """Centralized configuration for the ContractLens pipeline."""

    # Rule Engine Configuration
    CL_CONFIDENCE_THRESHOLD: float = float(os.getenv("CL_CONFIDENCE_THRESHOLD", "0.6"))
    CL_DEBUG_MODE: bool = _env_bool("CL_DEBUG_MODE", "false")
    CL_DEBUG_THRESHOLD: float = float(os.getenv("CL_DEBUG_THRESHOLD", "0.3"))
    CL_RULE_POLICY_PATH: str = os.getenv(
        "CL_RULE_POLICY_PATH",
        str(Path(__file__).resolve().parent / "contract_rules" / "policy.yml"),
    )

    # Heuristic windows (characters on each side of a match)
    CL_NEGATION_WINDOW: int = int(os.getenv("CL_NEGATION_WINDOW", "160"))
    CL_CONTEXT_WINDOW: int = int(os.getenv("CL_CONTEXT_WINDOW", "220"))

    # Evidence Configuration
    CL_SENTENCE_MIN_CHARS: int = int(os.getenv("CL_SENTENCE_MIN_CHARS", "40"))
    CL_EVIDENCE_WINDOW: int = int(os.getenv("CL_EVIDENCE_WINDOW", "300"))
    CL_EVIDENCE_MAX_CHARS: int = int(os.getenv("CL_EVIDENCE_MAX_CHARS", "1200"))

    # Document Processing Configuration
    CL_MAX_CHARS: int = int(os.getenv("CL_MAX_CHARS", "2000000"))
    CL_MIN_LEGIBLE_CHARS: int = int(os.getenv("CL_MIN_LEGIBLE_CHARS", "20"))
    CL_EXTRACT_TIMEOUT_SECONDS: int = int(os.getenv("CL_EXTRACT_TIMEOUT_SECONDS", "45"))
    CL_OCR_LANG: str = os.getenv("CL_OCR_LANG", "spa")

    # Contract Type Detection Configuration
    CL_SECONDARY_GROUP_CONFIDENCE: float = float(os.getenv("CL_SECONDARY_GROUP_CONFIDENCE", "0.6"))

    # Batch runner
    CL_DATA_DIR: str = os.getenv("CL_DATA_DIR", "data")
    CL_OUTPUT_DIR: str = os.getenv("CL_OUTPUT_DIR", "outputs")

    @classmethod
    def get_threshold(cls, override: Optional[float] = None) -> float:
        """
        Get the confidence threshold with optional per-request override.

        Args:
            override: Per-request threshold. If None, debug mode or the default applies.

        Returns:
            float: Threshold in [0, 1]
        """
        if override is not None:
            return max(0.0, min(1.0, float(override)))
        if cls.CL_DEBUG_MODE:
            return cls.CL_DEBUG_THRESHOLD
        return cls.CL_CONFIDENCE_THRESHOLD

    @classmethod
    def should_run_secondary_group(cls, confidence: float) -> bool:
        """
        Determine if the runner-up contract type should also be evaluated.

        Args:
            confidence: Classification confidence (0.0-1.0)

        Returns:
            bool: Whether to evaluate and merge the runner-up rule group
        """
        return confidence < cls.CL_SECONDARY_GROUP_CONFIDENCE


# Create singleton instance
settings = ContractLensSettings()
