"""
Competitor Aggregation

Reduces per-keyword SERP positions into per-domain statistics:

1. Appearances - keywords in which the domain holds a slot
2. Average Position - mean rank over those appearances
3. Share of Voice - appearances / resolved keywords (fraction 0..1)
4. Relevance Score - appearances x 10 + (100 - average position), floored at 0

Caller-supplied competitors are always reported, even with zero appearances
(cold-start seeding). For those the average position counts as 100 when
scoring, but is stored as None because there is nothing to average.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from src.models import CompetitorDomainStats, KeywordAnalysis
from src.utils.domains import normalize_domain, normalize_domains

from .competitiveness import round_half_up

logger = logging.getLogger(__name__)

UNRANKED_POSITION = 100
APPEARANCE_WEIGHT = 10


def calculate_relevance_score(appearances: int, average_position: Optional[float]) -> int:
    """
    Relevance of a competitor domain.

    Non-decreasing in appearances, non-increasing in average position.
    Rounded half up, from the unrounded mean.
    """
    position = UNRANKED_POSITION if average_position is None else average_position
    return max(0, round_half_up(appearances * APPEARANCE_WEIGHT + (UNRANKED_POSITION - position)))


def aggregate_competitors(
    keyword_analyses: Sequence[KeywordAnalysis],
    observed_domains: Iterable[str] = (),
    known_competitors: Optional[Iterable[str]] = None,
    target_domain: Optional[str] = None,
) -> List[CompetitorDomainStats]:
    """
    Build competitor statistics for an analysis.

    Args:
        keyword_analyses: All resolved keywords
        observed_domains: Domains discovered by the scheduler
        known_competitors: Caller-supplied competitor domains
        target_domain: Target domain, never reported as a competitor

    Returns:
        CompetitorDomainStats sorted by relevance score (descending), ties by
        domain name
    """
    target = normalize_domain(target_domain) if target_domain else None
    supplied = normalize_domains(known_competitors, exclude=target)
    supplied_set = set(supplied)

    domains: List[str] = []
    for domain in list(observed_domains) + supplied:
        if domain and domain != target and domain not in domains:
            domains.append(domain)

    positions: Dict[str, List[int]] = {domain: [] for domain in domains}
    for analysis in keyword_analyses:
        for position in analysis.competitor_positions:
            if position.domain in positions:
                positions[position.domain].append(position.position)

    total_keywords = len(keyword_analyses)
    stats = []

    for domain in domains:
        ranks = positions[domain]
        appearances = len(ranks)
        mean_position = sum(ranks) / appearances if appearances else None
        share_of_voice = round(appearances / total_keywords, 4) if total_keywords else 0.0

        stats.append(CompetitorDomainStats(
            domain=domain,
            total_keywords_found=appearances,
            average_position=round(mean_position, 2) if mean_position is not None else None,
            share_of_voice=share_of_voice,
            relevance_score=calculate_relevance_score(appearances, mean_position),
            detected_automatically=domain not in supplied_set,
        ))

    stats.sort(key=lambda s: (-s.relevance_score, s.domain))

    logger.info(
        f"Aggregated {len(stats)} competitor domains over {total_keywords} keywords "
        f"({len(supplied)} supplied)"
    )
    return stats
