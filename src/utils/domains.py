"""
Domain Utilities

Shared domain handling used by every path that touches a domain name:
- SERP result URLs (resolver)
- Submitted target domains (API, CLI)
- Caller-supplied competitor domains (aggregator)

All paths must agree on one canonical form, otherwise the target domain is
never matched against its own SERP entries.
"""

import logging
from typing import Iterable, List, Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


def extract_domain(url: Optional[str]) -> str:
    """
    Extract the registrable host from a result URL.

    Strips scheme, port, path and a leading "www." prefix. Falls back to the
    raw string when the URL cannot be parsed.

    Args:
        url: Result URL (e.g., "https://www.example.com/page?q=1")

    Returns:
        Lowercase host without "www." (e.g., "example.com")
    """
    if not url:
        return ""

    try:
        host = urlparse(url).hostname
    except ValueError:
        host = None

    if not host:
        return url.strip().lower()

    host = host.lower()
    if host.startswith("www."):
        host = host[4:]
    return host


def normalize_domain(domain: Optional[str]) -> str:
    """
    Normalize a user-supplied domain into canonical form.

    Accepts bare domains as well as full URLs:
        "https://www.Shop.Example/path" -> "shop.example"
        "www.rival.com/"                -> "rival.com"
    """
    if not domain:
        return ""

    value = domain.strip().lower()
    if "://" not in value:
        value = f"http://{value}"

    return extract_domain(value)


def normalize_domains(domains: Optional[Iterable[str]], exclude: Optional[str] = None) -> List[str]:
    """
    Normalize and deduplicate a list of domains, preserving first-seen order.

    Args:
        domains: Raw domain strings
        exclude: Domain to drop from the result (typically the target domain)

    Returns:
        List of unique canonical domains
    """
    seen = set()
    result = []
    excluded = normalize_domain(exclude) if exclude else None

    for raw in domains or []:
        domain = normalize_domain(raw)
        if not domain or domain == excluded or domain in seen:
            continue
        seen.add(domain)
        result.append(domain)

    return result
