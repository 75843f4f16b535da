"""Utility modules for the SERP competitor analyzer."""

from .config import Settings, get_settings
from .domains import extract_domain, normalize_domain, normalize_domains

__all__ = [
    "Settings",
    "get_settings",
    # Domains
    "extract_domain",
    "normalize_domain",
    "normalize_domains",
]
