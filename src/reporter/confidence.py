"""
Scan Confidence Assessment

Rule-based trust rating on a run's score. Not a statistical interval:
confidence starts high and each data-quality problem can only lower it.
Every downgrade records its reason so the UI can explain the level.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging

from src.database.models import ConfidenceLevel

logger = logging.getLogger(__name__)

DEFAULT_REASON = "Full scan completed successfully"

# Error counts above this are low confidence; 1..this is medium
MEDIUM_ERROR_LIMIT = 5
MIN_RESULTS = 10

_RANK = {
    ConfidenceLevel.HIGH: 0,
    ConfidenceLevel.MEDIUM: 1,
    ConfidenceLevel.LOW: 2,
}


@dataclass
class ConfidenceAssessment:
    """
    Confidence level plus the reasons behind it.

    The reasons list is never empty once ``finalize`` has run.
    """
    level: ConfidenceLevel = ConfidenceLevel.HIGH
    reasons: List[str] = field(default_factory=list)

    def downgrade(self, level: ConfidenceLevel, reason: str) -> None:
        """Lower the level (never raise it) and record why."""
        if _RANK[level] > _RANK[self.level]:
            self.level = level
        self.reasons.append(reason)
        logger.warning(f"Scan confidence {self.level.value}: {reason}")

    def finalize(self) -> "ConfidenceAssessment":
        if not self.reasons:
            self.reasons.append(DEFAULT_REASON)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {"level": self.level.value, "reasons": list(self.reasons)}


def assess_confidence(
    error_count: int,
    result_count: int,
    quality_flags: Optional[Dict[str, Any]] = None,
) -> ConfidenceAssessment:
    """
    Assess confidence for a run.

    Rules:
        1-5 model call errors           -> medium
        more than 5 errors              -> low
        fewer than 10 results collected -> low
        quality flags mark partial data -> low

    Args:
        error_count: Failed prompt x model calls
        result_count: Results collected
        quality_flags: Run quality flags (``partial_results`` is read)
    """
    assessment = ConfidenceAssessment()
    flags = quality_flags or {}

    if error_count > MEDIUM_ERROR_LIMIT:
        assessment.downgrade(
            ConfidenceLevel.LOW,
            f"{error_count} model call errors occurred during the scan",
        )
    elif error_count > 0:
        assessment.downgrade(
            ConfidenceLevel.MEDIUM,
            f"{error_count} model call error{'s' if error_count != 1 else ''} occurred during the scan",
        )

    if result_count < MIN_RESULTS:
        assessment.downgrade(
            ConfidenceLevel.LOW,
            f"Only {result_count} results collected (at least {MIN_RESULTS} needed for a reliable score)",
        )

    if flags.get("partial_results"):
        assessment.downgrade(
            ConfidenceLevel.LOW,
            "Scan returned partial results",
        )

    return assessment.finalize()
