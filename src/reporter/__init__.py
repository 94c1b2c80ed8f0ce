"""
Local Authority - Result Reporting

Builds what the results page shows for a run:
- Confidence level with the reasons behind it
- Score labels, highlights, competitor rates and sample answers
"""

from .confidence import ConfidenceAssessment, assess_confidence
from .run_report import build_run_report, score_label

__all__ = [
    "ConfidenceAssessment",
    "assess_confidence",
    "build_run_report",
    "score_label",
]
