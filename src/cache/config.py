"""
Cache Configuration

Centralized TTLs for the scan caching layer.

Note: both caches live in PostgreSQL (scan_runs and local_scans tables).
No Redis required.
"""

from dataclasses import dataclass
from datetime import timedelta

from src.utils.config import get_settings


@dataclass(frozen=True)
class CacheTTL:
    """
    Cache TTL configuration by scan type.

    An identical scan repeated inside its window is served from the
    stored result instead of being executed again.
    """

    # Authority runs keyed by run cache key
    SCAN_RUN: timedelta = timedelta(hours=24)

    # Flat local visibility scans keyed by input fingerprint
    LOCAL_SCAN: timedelta = timedelta(hours=24)

    # Run status polling
    RUN_STATUS: timedelta = timedelta(seconds=5)


def get_scan_run_ttl() -> timedelta:
    """TTL for authority runs, overridable via SCAN_CACHE_TTL_HOURS."""
    hours = get_settings().SCAN_CACHE_TTL_HOURS
    if hours <= 0:
        return CacheTTL.SCAN_RUN
    return timedelta(hours=hours)
