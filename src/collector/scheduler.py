"""
Batch Scheduler

Runs the resolver over a keyword list without overwhelming the search API:
- Fixed-size batches, lookups inside a batch run concurrently
- A batch fully settles before the next one starts
- Fixed pause between batches
- Per-keyword retry with exponential backoff
- Progress reported to the caller after every batch

A keyword that fails every attempt is dropped and recorded as unresolved.
Configuration errors (missing credentials) abort the whole run.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence

from src.models import BatchRunResult, KeywordAnalysis, UnresolvedKeyword
from src.utils.domains import normalize_domain
from .client import SearchConfigurationError
from .resolver import DEFAULT_RESULTS, resolve_keyword_positions
from .retry import RetryConfig, retry_async

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], Awaitable[None]]


@dataclass
class SchedulerConfig:
    """Batching and pacing configuration."""
    batch_size: int = 5
    batch_delay: float = 0.5  # Seconds between batches
    num_results: int = DEFAULT_RESULTS
    retry: Optional[RetryConfig] = None

    def __post_init__(self):
        if self.retry is None:
            self.retry = RetryConfig()
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")

    @classmethod
    def from_settings(cls, settings) -> "SchedulerConfig":
        return cls(
            batch_size=settings.KEYWORD_BATCH_SIZE,
            batch_delay=settings.BATCH_DELAY_SECONDS,
            num_results=settings.SERP_RESULTS_PER_QUERY,
            retry=RetryConfig.from_settings(settings),
        )


def chunk(items: Sequence[str], size: int) -> List[List[str]]:
    """Split items into consecutive batches of at most ``size``."""
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


async def resolve_with_retry(
    client,
    keyword: str,
    target_domain: str,
    retry_config: Optional[RetryConfig] = None,
    num_results: int = DEFAULT_RESULTS,
) -> KeywordAnalysis:
    """
    Resolve one keyword under the retry policy.

    Raises:
        SearchConfigurationError: Immediately, without retrying
        Exception: The last failure once attempts are exhausted
    """
    return await retry_async(
        lambda: resolve_keyword_positions(client, keyword, target_domain, num_results=num_results),
        config=retry_config,
        retry_on=(Exception,),
        give_up_on=(SearchConfigurationError,),
        label=f"SERP lookup '{keyword}'",
    )


class BatchScheduler:
    """
    Resolves keywords in paced, bounded-concurrency batches.

    Usage:
        scheduler = BatchScheduler(client, SchedulerConfig(batch_size=5))
        result = await scheduler.run(keywords, "example.com", on_progress=callback)
    """

    def __init__(self, client, config: Optional[SchedulerConfig] = None):
        self.client = client
        self.config = config or SchedulerConfig()

    async def run(
        self,
        keywords: Sequence[str],
        target_domain: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> BatchRunResult:
        """
        Resolve all keywords.

        Args:
            keywords: Normalized keywords
            target_domain: Target domain
            on_progress: Awaited with (processed, total) after each batch

        Returns:
            BatchRunResult with resolved analyses (completion order, not input
            order), distinct competitor domains and unresolved keywords
        """
        target = normalize_domain(target_domain)
        batches = chunk(list(keywords), self.config.batch_size)
        total = len(keywords)
        processed = 0

        result = BatchRunResult()
        seen_domains = set()

        logger.info(
            f"Resolving {total} keywords for {target} in {len(batches)} batches "
            f"(size {self.config.batch_size})"
        )

        for batch_index, batch in enumerate(batches):
            outcomes = await asyncio.gather(
                *(self._resolve(keyword, target) for keyword in batch),
                return_exceptions=True,
            )

            for keyword, outcome in zip(batch, outcomes):
                if isinstance(outcome, SearchConfigurationError):
                    raise outcome

                if isinstance(outcome, BaseException):
                    if not isinstance(outcome, Exception):
                        raise outcome
                    logger.warning(f"Dropping keyword '{keyword}' after retries: {outcome}")
                    result.unresolved.append(UnresolvedKeyword(keyword=keyword, error=str(outcome)))
                    continue

                result.keyword_analyses.append(outcome)
                for position in outcome.competitor_positions:
                    if position.domain != target and position.domain not in seen_domains:
                        seen_domains.add(position.domain)
                        result.competitor_domains.append(position.domain)

            processed += len(batch)
            logger.info(
                f"Batch {batch_index + 1}/{len(batches)} settled: "
                f"{processed}/{total} processed, {result.resolved_count} resolved"
            )

            if on_progress is not None:
                await on_progress(processed, total)

            is_last = batch_index == len(batches) - 1
            if not is_last and self.config.batch_delay > 0:
                await asyncio.sleep(self.config.batch_delay)

        if result.unresolved:
            logger.warning(f"{len(result.unresolved)} keywords could not be resolved")

        return result

    async def _resolve(self, keyword: str, target: str) -> KeywordAnalysis:
        return await resolve_with_retry(
            self.client,
            keyword,
            target,
            retry_config=self.config.retry,
            num_results=self.config.num_results,
        )
