"""
Scoring Module for the SERP Competitor Analyzer

Pure functions over resolved keyword analyses. None of them raise on empty
input.

1. **Competitor Aggregation**
   Appearances, average position, share of voice and relevance per domain.

2. **Opportunity Identification**
   Missing keywords and low positions, prioritized.

3. **Competitiveness Score** (0-100)
   Mean of a position step function over the keywords the target ranks for.

Example Usage:
    from src.scoring import (
        aggregate_competitors,
        identify_opportunities,
        calculate_competitiveness_score,
    )

    competitors = aggregate_competitors(analyses, observed, ["rival.com"], "shop.example")
    opportunities = identify_opportunities(analyses, "shop.example")
    score = calculate_competitiveness_score(analyses)
"""

from .competitors import (
    aggregate_competitors,
    calculate_relevance_score,
)
from .opportunities import (
    identify_keyword_opportunity,
    identify_opportunities,
)
from .competitiveness import (
    POSITION_SCORE_BANDS,
    calculate_competitiveness_score,
    get_position_score,
    score_positions,
)

__all__ = [
    # Competitors
    "aggregate_competitors",
    "calculate_relevance_score",

    # Opportunities
    "identify_keyword_opportunity",
    "identify_opportunities",

    # Competitiveness
    "POSITION_SCORE_BANDS",
    "calculate_competitiveness_score",
    "get_position_score",
    "score_positions",
]
