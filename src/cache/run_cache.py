"""
Scan Result Cache

PostgreSQL-backed lookups that let an identical scan be served from a
stored result instead of executing again:
- Authority runs: same cache key, complete, finished inside the TTL
- Local scans: same input fingerprint, cache_expires_at still ahead

No Redis required - uses the same database as the application.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from src.database.models import ScanRun, RunStatus, LocalScan
from src.cache.config import CacheTTL, get_scan_run_ttl

logger = logging.getLogger(__name__)


class ScanCache:
    """Cache lookups over the scan tables."""

    def __init__(self, db: Session):
        self.db = db
        self._stats = {
            "hits": 0,
            "misses": 0,
        }

    def find_cached_run(
        self,
        cache_key: str,
        ttl: Optional[timedelta] = None,
        now: Optional[datetime] = None,
    ) -> Optional[ScanRun]:
        """
        Newest complete run with this key that finished inside the TTL.

        Args:
            cache_key: Run cache key
            ttl: Window (defaults to the configured scan run TTL)
            now: Reference time (UTC)
        """
        ttl = ttl or get_scan_run_ttl()
        cutoff = (now or datetime.utcnow()) - ttl

        run = (
            self.db.query(ScanRun)
            .filter(
                ScanRun.cache_key == cache_key,
                ScanRun.status == RunStatus.COMPLETE,
                ScanRun.finished_at >= cutoff,
            )
            .order_by(desc(ScanRun.finished_at))
            .first()
        )
        self._record(run is not None, f"run {cache_key}")
        return run

    def find_cached_scan(
        self,
        fingerprint: str,
        now: Optional[datetime] = None,
    ) -> Optional[LocalScan]:
        """Newest local scan with this fingerprint whose cache has not expired."""
        scan = (
            self.db.query(LocalScan)
            .filter(
                LocalScan.input_fingerprint == fingerprint,
                LocalScan.cache_expires_at > (now or datetime.utcnow()),
            )
            .order_by(desc(LocalScan.created_at))
            .first()
        )
        self._record(scan is not None, f"local scan {fingerprint[:12]}")
        return scan

    @staticmethod
    def local_scan_expiry(now: Optional[datetime] = None) -> datetime:
        return (now or datetime.utcnow()) + CacheTTL.LOCAL_SCAN

    def _record(self, hit: bool, label: str) -> None:
        if hit:
            self._stats["hits"] += 1
            logger.info(f"Cache hit for {label}")
        else:
            self._stats["misses"] += 1
            logger.debug(f"Cache miss for {label}")

    @property
    def stats(self) -> Dict[str, int]:
        return dict(self._stats)
