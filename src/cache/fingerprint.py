"""
Scan Fingerprinting

Deterministic cache keys for scans:
- ``fingerprint``: SHA-256 over normalized business inputs, used to
  deduplicate flat local visibility scans.
- ``run_cache_key``: human-readable key for authority runs, scoped to
  a profile, model roster, prompt count and UTC calendar day.

Both are pure functions.
"""

import hashlib
from datetime import date, datetime
from typing import Iterable, Optional

from src.utils.normalize import normalize_text, extract_hostname

FINGERPRINT_DELIMITER = "|"


def fingerprint(
    name: Optional[str],
    website: Optional[str],
    city: Optional[str],
    category: Optional[str],
) -> str:
    """
    Compute the input fingerprint for a business scan.

    Inputs that differ only in casing, surrounding whitespace,
    punctuation, URL scheme, ``www.`` or trailing slash produce the
    same token.

    Returns:
        64-character lowercase hex digest
    """
    parts = [
        normalize_text(name),
        extract_hostname(website),
        normalize_text(city),
        normalize_text(category),
    ]
    payload = FINGERPRINT_DELIMITER.join(parts)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def run_cache_key(
    profile_id,
    models: Iterable[str],
    prompt_count: int,
    day: Optional[date] = None,
) -> str:
    """
    Build the cache key for an authority run.

    Format: ``{profile_id}:{sorted,models}:{prompt_count}:{YYYY-MM-DD}``
    """
    if day is None:
        day = datetime.utcnow().date()
    model_part = ",".join(sorted(models))
    return f"{profile_id}:{model_part}:{prompt_count}:{day.isoformat()}"
