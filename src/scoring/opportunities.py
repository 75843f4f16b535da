"""
Opportunity Identification

Finds keywords where the target domain could gain ground on a competitor.

Per keyword, against the best-ranked competitor (lowest position):

1. **Missing keyword** - target absent from the results
   priority = 100 - best position, gap = 100 (sentinel)
2. **Low position** - target behind the best competitor AND outside the top 3
   priority = max(0, 50 - best position), gap = target - best position

Keywords with no competitor on the page, or where the target already leads
or sits in the top 3, produce nothing.
"""

import logging
from typing import List, Optional, Sequence

from src.models import KeywordAnalysis, Opportunity, OpportunityType
from src.utils.domains import normalize_domain

logger = logging.getLogger(__name__)

MISSING_GAP_SIZE = 100
MISSING_PRIORITY_BASE = 100
LOW_POSITION_PRIORITY_BASE = 50
STRONG_POSITION_CUTOFF = 3  # Top-3 placements are left alone


def identify_keyword_opportunity(
    analysis: KeywordAnalysis,
    target_domain: str,
) -> Optional[Opportunity]:
    """
    Evaluate one keyword.

    Returns:
        Opportunity, or None when there is no actionable gap
    """
    target = normalize_domain(target_domain)
    competitors = analysis.competitors_excluding(target)
    if not competitors:
        return None

    best = min(competitors, key=lambda p: p.position)
    target_position = analysis.target_domain_position

    if target_position is None:
        return Opportunity(
            keyword=analysis.keyword,
            opportunity_type=OpportunityType.MISSING_KEYWORD,
            target_position=None,
            best_competitor_position=best.position,
            best_competitor_domain=best.domain,
            priority_score=MISSING_PRIORITY_BASE - best.position,
            gap_size=MISSING_GAP_SIZE,
            recommended_action=(
                f'Create content targeting "{analysis.keyword}" to compete with {best.domain}'
            ),
        )

    if target_position > best.position and target_position > STRONG_POSITION_CUTOFF:
        return Opportunity(
            keyword=analysis.keyword,
            opportunity_type=OpportunityType.LOW_POSITION,
            target_position=target_position,
            best_competitor_position=best.position,
            best_competitor_domain=best.domain,
            priority_score=max(0, LOW_POSITION_PRIORITY_BASE - best.position),
            gap_size=target_position - best.position,
            recommended_action=(
                f'Improve content for "{analysis.keyword}" to move from position '
                f"{target_position} to compete with {best.domain} at position {best.position}"
            ),
        )

    return None


def identify_opportunities(
    keyword_analyses: Sequence[KeywordAnalysis],
    target_domain: str,
) -> List[Opportunity]:
    """
    Identify ranking opportunities across all resolved keywords.

    Returns:
        Opportunities sorted by priority score (descending). Equal priorities
        keep the order of ``keyword_analyses``.
    """
    opportunities = []
    for analysis in keyword_analyses:
        opportunity = identify_keyword_opportunity(analysis, target_domain)
        if opportunity is not None:
            opportunities.append(opportunity)

    # sorted() is stable, so insertion order breaks ties
    opportunities = sorted(opportunities, key=lambda o: -o.priority_score)

    logger.info(
        f"Identified {len(opportunities)} opportunities from {len(keyword_analyses)} keywords"
    )
    return opportunities
