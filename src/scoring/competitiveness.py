"""
Competitiveness Score Calculator

Reduces the target's positions across all keywords to one 0-100 score.

Position score (step function):
    1      -> 100
    2-3    -> 80
    4-5    -> 60
    6-10   -> 40
    >10    -> 20

Overall = mean over keywords where the target ranks, rounded half up.
Keywords where the target is absent are unscored, not zero.
"""

import math
from typing import List, Optional, Sequence

from src.models import KeywordAnalysis

POSITION_SCORE_BANDS = [
    (1, 100),
    (3, 80),
    (5, 60),
    (10, 40),
]
BEYOND_FIRST_PAGE_SCORE = 20


def get_position_score(position: int) -> int:
    """Score a single ranking position."""
    for max_position, score in POSITION_SCORE_BANDS:
        if position <= max_position:
            return score
    return BEYOND_FIRST_PAGE_SCORE


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_competitiveness_score(keyword_analyses: Sequence[KeywordAnalysis]) -> int:
    """
    Overall competitiveness score for the target domain.

    Returns:
        Integer 0-100; 0 when the target ranks for none of the keywords
    """
    positions = [
        a.target_domain_position for a in keyword_analyses
        if a.target_domain_position is not None
    ]
    return score_positions(positions)


def score_positions(positions: Sequence[Optional[int]]) -> int:
    """Mean position score over the non-null positions."""
    scores: List[int] = [get_position_score(p) for p in positions if p is not None]
    if not scores:
        return 0
    return round_half_up(sum(scores) / len(scores))
