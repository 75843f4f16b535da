"""
SERP Competitor Analyzer - Data Collection Package

This package turns a keyword list into resolved SERP positions:
- Keyword normalization (clean, filter, dedupe, cap)
- Google Custom Search client
- Position resolver (one request per keyword)
- Retry with exponential backoff
- Batch scheduler (bounded concurrency, fixed pacing)
"""

from .client import (
    GoogleSearchClient,
    SearchAPIError,
    SearchConfigurationError,
    SearchResult,
    create_client_from_settings,
)
from .keywords import normalize_keywords
from .resolver import (
    build_keyword_analysis,
    classify_competition_level,
    resolve_keyword_positions,
)
from .retry import RetryConfig, retry_async
from .scheduler import BatchScheduler, SchedulerConfig, resolve_with_retry

__all__ = [
    # Client
    "GoogleSearchClient",
    "SearchAPIError",
    "SearchConfigurationError",
    "SearchResult",
    "create_client_from_settings",

    # Keywords
    "normalize_keywords",

    # Resolver
    "build_keyword_analysis",
    "classify_competition_level",
    "resolve_keyword_positions",

    # Retry
    "RetryConfig",
    "retry_async",

    # Scheduler
    "BatchScheduler",
    "SchedulerConfig",
    "resolve_with_retry",
]
