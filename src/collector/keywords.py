"""
Keyword Normalization

Cleans a raw keyword list before any SERP request is spent on it:
- Drops empty, too short / too long and punctuation-heavy keywords
- Lowercases and strips diacritics
- Deduplicates (first occurrence wins)
- Orders simplest keywords first
- Caps the list to bound API spend per analysis

Every filter runs on the cleaned form, so normalizing an already normalized
list returns it unchanged.
"""

import logging
import re
import unicodedata
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)

MIN_KEYWORD_LENGTH = 3
MAX_KEYWORD_LENGTH = 50
MAX_NON_WORD_CHARS = 2
MAX_WORDS = 5
MAX_KEYWORDS = 15

_WHITESPACE = re.compile(r"\s+")
_NON_WORD = re.compile(r"[^\w\s]")


def strip_diacritics(text: str) -> str:
    """Remove combining accents ("café" -> "cafe")."""
    return "".join(
        c for c in unicodedata.normalize("NFD", text)
        if unicodedata.category(c) != "Mn"  # Mn = Nonspacing Mark (accents)
    )


def clean_keyword(keyword: Optional[str]) -> str:
    """Lowercase, strip accents and collapse whitespace."""
    if not keyword:
        return ""
    cleaned = strip_diacritics(keyword.lower())
    return _WHITESPACE.sub(" ", cleaned).strip()


def keyword_complexity(keyword: str) -> float:
    """Word count plus length/10. Lower values are cheaper, more reliable queries."""
    return len(keyword.split()) + len(keyword) / 10


def is_valid_keyword(keyword: str) -> bool:
    """Check a cleaned keyword against the length, punctuation and word limits."""
    if not MIN_KEYWORD_LENGTH <= len(keyword) <= MAX_KEYWORD_LENGTH:
        return False
    if len(_NON_WORD.findall(keyword)) > MAX_NON_WORD_CHARS:
        return False
    if len(keyword.split()) > MAX_WORDS:
        return False
    return True


def normalize_keywords(
    keywords: Optional[Iterable[str]],
    max_keywords: int = MAX_KEYWORDS,
) -> List[str]:
    """
    Normalize a raw keyword list into the set that will be resolved.

    Args:
        keywords: Raw keyword strings (may contain empties and duplicates)
        max_keywords: Cap on the returned list

    Returns:
        Deterministic list of at most ``max_keywords`` keywords, sorted
        ascending by complexity. Empty if nothing survives.
    """
    raw = list(keywords or [])

    normalized = []
    seen = set()

    for keyword in raw:
        if not isinstance(keyword, str):
            continue

        cleaned = clean_keyword(keyword)
        if not cleaned or not is_valid_keyword(cleaned):
            continue
        if cleaned in seen:
            continue

        seen.add(cleaned)
        normalized.append(cleaned)

    # sorted() is stable, ties keep first-seen order
    normalized = sorted(normalized, key=keyword_complexity)[:max_keywords]

    logger.info(f"Keyword normalization: {len(raw)} -> {len(normalized)} keywords")
    logger.debug(f"Selected keywords: {normalized}")

    return normalized
