"""
Scan Caching Layer

Deterministic fingerprints and cache keys, plus database-backed lookups
that short-circuit repeated scans inside their TTL window.
"""

from src.cache.config import CacheTTL, get_scan_run_ttl
from src.cache.fingerprint import fingerprint, run_cache_key
from src.cache.run_cache import ScanCache

__all__ = [
    "CacheTTL",
    "get_scan_run_ttl",
    "fingerprint",
    "run_cache_key",
    "ScanCache",
]
