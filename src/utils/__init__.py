"""Utility modules for the Local Authority engine."""

from .config import Settings, get_settings
from .normalize import (
    normalize_text,
    normalize_name,
    extract_hostname,
    normalize_domain,
    domain_stem,
)

__all__ = [
    "Settings",
    "get_settings",
    # Normalization
    "normalize_text",
    "normalize_name",
    "extract_hostname",
    "normalize_domain",
    "domain_stem",
]
