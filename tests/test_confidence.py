"""
Tests for Scan Confidence Assessment
"""

from src.database.models import ConfidenceLevel
from src.reporter.confidence import assess_confidence, ConfidenceAssessment, DEFAULT_REASON


class TestAssessConfidence:
    """Tests for confidence rules."""

    def test_clean_run_is_high(self):
        """Test that a clean run keeps the default reason."""
        result = assess_confidence(error_count=0, result_count=20)
        assert result.level == ConfidenceLevel.HIGH
        assert result.reasons == [DEFAULT_REASON]

    def test_few_errors_are_medium(self):
        result = assess_confidence(error_count=2, result_count=20)
        assert result.level == ConfidenceLevel.MEDIUM
        assert result.reasons == ["2 model call errors occurred during the scan"]

    def test_single_error_wording(self):
        result = assess_confidence(error_count=1, result_count=20)
        assert result.reasons == ["1 model call error occurred during the scan"]

    def test_five_errors_still_medium(self):
        assert assess_confidence(error_count=5, result_count=20).level == ConfidenceLevel.MEDIUM

    def test_many_errors_are_low(self):
        result = assess_confidence(error_count=7, result_count=15)
        assert result.level == ConfidenceLevel.LOW
        assert DEFAULT_REASON not in result.reasons

    def test_few_results_are_low(self):
        result = assess_confidence(error_count=0, result_count=5)
        assert result.level == ConfidenceLevel.LOW
        assert "Only 5 results collected" in result.reasons[0]

    def test_partial_results_flag(self):
        result = assess_confidence(0, 20, quality_flags={"partial_results": True})
        assert result.level == ConfidenceLevel.LOW
        assert result.reasons == ["Scan returned partial results"]

    def test_reasons_accumulate(self):
        """Test that every problem is reported, not just the worst."""
        result = assess_confidence(3, 4, quality_flags={"partial_results": True})
        assert result.level == ConfidenceLevel.LOW
        assert len(result.reasons) == 3

    def test_to_dict(self):
        data = assess_confidence(0, 20).to_dict()
        assert data == {"level": "high", "reasons": [DEFAULT_REASON]}


class TestConfidenceAssessment:
    """Tests for the assessment accumulator."""

    def test_downgrade_never_raises_level(self):
        assessment = ConfidenceAssessment()
        assessment.downgrade(ConfidenceLevel.LOW, "bad")
        assessment.downgrade(ConfidenceLevel.MEDIUM, "less bad")
        assert assessment.level == ConfidenceLevel.LOW
        assert assessment.reasons == ["bad", "less bad"]
