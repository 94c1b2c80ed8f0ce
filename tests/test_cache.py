"""
Tests for Scan Caching

Tests fingerprints, run cache keys and the database-backed cache lookups.
"""

import pytest
from datetime import date, datetime, timedelta

from src.cache import fingerprint, run_cache_key, ScanCache, CacheTTL
from src.database import repository
from src.database.models import RunStatus, LocalScan


# =============================================================================
# FINGERPRINT TESTS
# =============================================================================

class TestFingerprint:
    """Tests for input fingerprints."""

    def test_identical_inputs_match(self):
        """Test that the same inputs always give the same token."""
        a = fingerprint("Acme Plumbing", "acmeplumbing.com", "Austin", "Plumber")
        b = fingerprint("Acme Plumbing", "acmeplumbing.com", "Austin", "Plumber")
        assert a == b

    def test_is_sha256_hex(self):
        """Test that the token is a 64-char lowercase hex digest."""
        token = fingerprint("Acme Plumbing", None, "Austin", "Plumber")
        assert len(token) == 64
        assert token == token.lower()
        int(token, 16)

    def test_normalization_variants_match(self):
        """Test that casing, whitespace, punctuation and URL noise are ignored."""
        base = fingerprint("Acme Plumbing", "acmeplumbing.com", "Austin", "Plumber")
        variants = [
            fingerprint("  ACME plumbing ", "https://www.acmeplumbing.com/", "austin", "plumber"),
            fingerprint("Acme Plumbing!", "http://acmeplumbing.com", " Austin ", "Plumber."),
            fingerprint("acme   plumbing", "www.acmeplumbing.com/", "AUSTIN", "PLUMBER"),
        ]
        for variant in variants:
            assert variant == base

    def test_different_city_differs(self):
        """Test that a different city produces a different token."""
        a = fingerprint("Acme Plumbing", "acmeplumbing.com", "Austin", "Plumber")
        b = fingerprint("Acme Plumbing", "acmeplumbing.com", "Dallas", "Plumber")
        assert a != b

    def test_missing_website(self):
        """Test that a missing website fingerprints like an empty one."""
        assert fingerprint("Acme", None, "Austin", "Plumber") == fingerprint("Acme", "", "Austin", "Plumber")


class TestRunCacheKey:
    """Tests for authority run cache keys."""

    def test_format(self):
        """Test the key layout."""
        key = run_cache_key("profile-1", ["openai", "gemini"], 25, day=date(2025, 3, 14))
        assert key == "profile-1:gemini,openai:25:2025-03-14"

    def test_model_order_does_not_matter(self):
        """Test that model order is normalized."""
        day = date(2025, 3, 14)
        assert run_cache_key("p", ["a", "b"], 10, day) == run_cache_key("p", ["b", "a"], 10, day)

    def test_prompt_count_and_day_change_key(self):
        """Test that prompt count and calendar day are part of the key."""
        day = date(2025, 3, 14)
        base = run_cache_key("p", ["openai"], 10, day)
        assert run_cache_key("p", ["openai"], 11, day) != base
        assert run_cache_key("p", ["openai"], 10, day + timedelta(days=1)) != base

    def test_defaults_to_today_utc(self):
        """Test that the day defaults to the current UTC date."""
        key = run_cache_key("p", ["openai"], 10)
        assert key.endswith(datetime.utcnow().date().isoformat())


# =============================================================================
# CACHE LOOKUP TESTS
# =============================================================================

@pytest.fixture
def profile(db, user, profile_input):
    created = repository.upsert_profile(db, user.id, profile_input)
    return repository.get_owned_profile(db, user.id, created.profile_id)


def _finished_run(db, profile, user, key, finished_at, status=RunStatus.COMPLETE):
    run = repository.create_run(db, profile.id, user.id, ["openai"], 10, key)
    run.status = status
    run.finished_at = finished_at
    db.commit()
    return run


class TestScanCache:
    """Tests for database-backed cache lookups."""

    def test_fresh_complete_run_hits(self, db, profile, user):
        """Test that a complete run inside the TTL is returned."""
        now = datetime.utcnow()
        run = _finished_run(db, profile, user, "key-1", now - timedelta(hours=1))

        cache = ScanCache(db)
        assert cache.find_cached_run("key-1", now=now).id == run.id
        assert cache.stats == {"hits": 1, "misses": 0}

    def test_expired_run_misses(self, db, profile, user):
        """Test that a run older than 24 hours is not reused."""
        now = datetime.utcnow()
        _finished_run(db, profile, user, "key-1", now - timedelta(hours=25))

        cache = ScanCache(db)
        assert cache.find_cached_run("key-1", now=now) is None
        assert cache.stats["misses"] == 1

    def test_errored_run_misses(self, db, profile, user):
        """Test that only complete runs are reused."""
        now = datetime.utcnow()
        _finished_run(db, profile, user, "key-1", now - timedelta(minutes=5), status=RunStatus.ERROR)

        assert ScanCache(db).find_cached_run("key-1", now=now) is None

    def test_newest_run_wins(self, db, profile, user):
        """Test that the most recently finished run is returned."""
        now = datetime.utcnow()
        _finished_run(db, profile, user, "key-1", now - timedelta(hours=3))
        newest = _finished_run(db, profile, user, "key-1", now - timedelta(hours=1))

        assert ScanCache(db).find_cached_run("key-1", now=now).id == newest.id

    def test_local_scan_expiry(self, db):
        """Test fingerprint lookups respect cache_expires_at."""
        now = datetime.utcnow()
        db.add(LocalScan(
            business_name="Acme", city="Austin", category="Plumber",
            input_fingerprint="f" * 64,
            cache_expires_at=ScanCache.local_scan_expiry(now - timedelta(hours=30)),
        ))
        db.commit()

        assert ScanCache(db).find_cached_scan("f" * 64, now=now) is None

    def test_local_scan_ttl_is_24_hours(self):
        """Test the local scan TTL constant."""
        now = datetime(2025, 1, 1, 12, 0)
        assert ScanCache.local_scan_expiry(now) - now == CacheTTL.LOCAL_SCAN == timedelta(hours=24)
