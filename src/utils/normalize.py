"""
Text and Domain Normalization

Shared normalization used by fingerprinting, profile upserts and
brand matching in AI responses:
- Free text (business names, cities, categories)
- Hostnames extracted from user-supplied websites
- Stored profile domains
"""

import re
from typing import Optional
from urllib.parse import urlsplit
import logging

logger = logging.getLogger(__name__)


_PUNCTUATION = re.compile(r"[^\w\s]")
_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")
_SCHEME = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)

# Common TLDs stripped when deriving a brand stem from a domain
_BRAND_TLDS = re.compile(r"\.(com|net|org|io|co|biz|info|us|uk|ca|au).*$")


def normalize_text(value: Optional[str]) -> str:
    """
    Normalize free text for hashing.

    Lower-cases, trims, strips punctuation and collapses whitespace.
    """
    if not value:
        return ""
    text = _PUNCTUATION.sub("", value.lower().strip())
    return _WHITESPACE.sub(" ", text).strip()


def normalize_name(value: Optional[str]) -> str:
    """Normalize a business name for matching (ASCII alphanumerics only)."""
    if not value:
        return ""
    text = _NON_ALNUM.sub("", value.lower())
    return _WHITESPACE.sub(" ", text).strip()


def extract_hostname(website: Optional[str]) -> str:
    """
    Extract the bare hostname from a website string.

    Handles values with or without scheme, paths, ports and a leading
    ``www.``. Returns an empty string when nothing usable remains.

    Examples:
        "https://www.Acme.com/contact" -> "acme.com"
        "acme.com" -> "acme.com"
    """
    if not website:
        return ""

    candidate = website.strip()
    if not candidate:
        return ""

    # urlsplit only finds the host when a scheme (or //) is present
    if not _SCHEME.match(candidate):
        candidate = "//" + candidate.lstrip("/")

    try:
        hostname = urlsplit(candidate).hostname or ""
    except ValueError as e:
        logger.debug(f"Could not parse website '{website}': {e}")
        return ""

    hostname = hostname.lower().strip(".")
    if hostname.startswith("www."):
        hostname = hostname[4:]
    return hostname


def normalize_domain(domain: str) -> str:
    """
    Normalize a profile domain for storage.

    Lower-cases and strips scheme, ``www.`` and trailing slashes.
    Unlike ``extract_hostname`` the path is kept.
    """
    value = domain.strip().lower()
    value = re.sub(r"^https?://", "", value)
    if value.startswith("www."):
        value = value[4:]
    return value.rstrip("/")


def domain_stem(domain: Optional[str]) -> str:
    """
    Derive the brand-like stem of a domain.

    "https://www.acmeplumbing.com/" -> "acmeplumbing"
    """
    if not domain:
        return ""
    value = re.sub(r"^(https?://)?(www\.)?", "", domain.strip().lower())
    return _BRAND_TLDS.sub("", value)
