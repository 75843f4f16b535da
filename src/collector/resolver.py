"""
SERP Position Resolver

Maps one keyword to ranked domain positions with a single search request.

For each result:
- The domain is extracted from the URL (scheme and "www." stripped)
- The 1-based rank is the result's index on the page
- A domain keeps only its best (first) slot

Stateless: no retry, no persistence. Failures surface as SearchAPIError.
"""

import logging
from typing import List, Optional, Sequence

from src.models import CompetitionLevel, CompetitorPosition, KeywordAnalysis
from src.utils.domains import extract_domain, normalize_domain
from .client import SearchResult

logger = logging.getLogger(__name__)

DEFAULT_RESULTS = 10

# Distinct-domain thresholds for the competition heuristic
HIGH_COMPETITION_MAX_DOMAINS = 3
MEDIUM_COMPETITION_MAX_DOMAINS = 6


def classify_competition_level(distinct_domains: int) -> CompetitionLevel:
    """
    Heuristic: fewer distinct domains on the page means a more concentrated,
    harder SERP.

    <=3 domains -> HIGH, <=6 -> MEDIUM, otherwise LOW.
    """
    if distinct_domains <= HIGH_COMPETITION_MAX_DOMAINS:
        return CompetitionLevel.HIGH
    if distinct_domains <= MEDIUM_COMPETITION_MAX_DOMAINS:
        return CompetitionLevel.MEDIUM
    return CompetitionLevel.LOW


def build_keyword_analysis(
    keyword: str,
    target_domain: str,
    results: Sequence[SearchResult],
) -> KeywordAnalysis:
    """
    Turn an ordered result page into a KeywordAnalysis.

    Args:
        keyword: The query that produced ``results``
        target_domain: Canonical target domain
        results: Results in rank order

    Returns:
        KeywordAnalysis with unique-per-domain positions
    """
    target = normalize_domain(target_domain)
    positions: List[CompetitorPosition] = []
    seen_domains = set()
    target_position: Optional[int] = None

    for index, result in enumerate(results):
        domain = extract_domain(result.url)
        if not domain or domain in seen_domains:
            continue

        position = index + 1
        seen_domains.add(domain)
        positions.append(CompetitorPosition(
            domain=domain,
            position=position,
            url=result.url,
            title=result.title,
        ))

        if domain == target:
            target_position = position

    return KeywordAnalysis(
        keyword=keyword,
        target_domain_position=target_position,
        competitor_positions=positions,
        competition_level=classify_competition_level(len(seen_domains)),
    )


async def resolve_keyword_positions(
    client,
    keyword: str,
    target_domain: str,
    num_results: int = DEFAULT_RESULTS,
) -> KeywordAnalysis:
    """
    Resolve SERP positions for one keyword.

    Args:
        client: Search client exposing ``async search(query, num)``
        keyword: Normalized keyword
        target_domain: Target domain
        num_results: Results to request (top N)

    Returns:
        KeywordAnalysis for the keyword

    Raises:
        SearchAPIError: Propagated from the client
    """
    results = await client.search(keyword, num=num_results)
    analysis = build_keyword_analysis(keyword, target_domain, results)

    logger.debug(
        f"Resolved '{keyword}': target={analysis.target_domain_position}, "
        f"{len(analysis.competitor_positions)} domains, "
        f"competition={analysis.competition_level.value}"
    )
    return analysis
