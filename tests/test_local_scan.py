"""
Tests for the Local Visibility Scan Service
"""

import pytest
from datetime import datetime, timedelta

from src.services.errors import ValidationFailedError
from src.services.local_scan import (
    LocalScanInput,
    SCAN_MODELS,
    generate_scan_prompts,
    run_local_visibility_scan,
)


@pytest.fixture
def scan_input():
    return LocalScanInput(
        business_name="Acme Plumbing",
        city="Austin",
        category="Plumber",
        website="https://www.acmeplumbing.com",
    )


class TestScanPrompts:
    """Tests for the fixed prompt set."""

    def test_six_prompts(self):
        prompts = generate_scan_prompts("plumber", "Austin")
        assert len(prompts) == 6
        assert prompts[0] == "Best plumber near me in Austin"
        assert all("Austin" in p for p in prompts)


class TestLocalVisibilityScan:
    """Tests for running and caching flat scans."""

    def test_new_scan(self, db, scan_input):
        result = run_local_visibility_scan(db, scan_input)

        assert result["cached"] is False
        assert len(result["prompt_results"]) == 6 * len(SCAN_MODELS)
        assert result["max_possible_score"] == 54
        assert 0 <= result["normalized_score"] <= 100
        assert 40 <= result["google_maps_estimate"] <= 80
        assert len(result["top_competitors"]) <= 5

    def test_second_call_is_cached(self, db, scan_input):
        first = run_local_visibility_scan(db, scan_input)
        second = run_local_visibility_scan(db, LocalScanInput(
            business_name="  acme plumbing ",
            city="AUSTIN",
            category="plumber",
            website="acmeplumbing.com/",
        ))

        assert second["cached"] is True
        assert second["scan_id"] == first["scan_id"]
        assert second["normalized_score"] == first["normalized_score"]

    def test_force_runs_new_scan(self, db, scan_input):
        first = run_local_visibility_scan(db, scan_input)
        forced = run_local_visibility_scan(db, scan_input, force=True)

        assert forced["cached"] is False
        assert forced["scan_id"] != first["scan_id"]
        assert forced["normalized_score"] == first["normalized_score"]

    def test_expired_cache_rescans(self, db, scan_input):
        now = datetime.utcnow()
        first = run_local_visibility_scan(db, scan_input, now=now - timedelta(hours=25))
        second = run_local_visibility_scan(db, scan_input, now=now)

        assert second["cached"] is False
        assert second["scan_id"] != first["scan_id"]

    def test_validation(self, db):
        with pytest.raises(ValidationFailedError) as exc_info:
            run_local_visibility_scan(db, LocalScanInput(business_name=" ", city="", category="Plumber"))
        assert exc_info.value.details == ["business_name is required", "city is required"]
