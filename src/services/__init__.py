"""
SERP Competitor Analyzer - Services Layer

Business logic services that orchestrate repository operations,
external API calls, and data processing.
"""

from .competitive_analysis import (
    AnalysisOrchestrator,
    NoKeywordsResolvedError,
    Stage,
    run_competitive_analysis,
)
from .reverification import (
    KeywordNotInAnalysisError,
    ReverificationError,
    ReverificationResult,
    ReverificationService,
)

__all__ = [
    "AnalysisOrchestrator",
    "NoKeywordsResolvedError",
    "Stage",
    "run_competitive_analysis",
    "KeywordNotInAnalysisError",
    "ReverificationError",
    "ReverificationResult",
    "ReverificationService",
]
