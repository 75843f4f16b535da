"""
Competitive Analysis Service

Drives one analysis from submission to a terminal status:
1. Submission - persist a pending analysis, return its id
2. Keyword normalization
3. Batch SERP resolution (progress persisted after every batch)
4. Competitor aggregation, opportunity identification, scoring
5. Persistence of competitors, keywords and opportunities
6. Final score and counts, status completed

Any exception moves the analysis to failed with the error in its metadata.
Rows persisted before the failure are kept.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Union
from uuid import UUID

from src.collector import (
    BatchScheduler,
    SchedulerConfig,
    create_client_from_settings,
    normalize_keywords,
)
from src.database import repository
from src.database.models import AnalysisStatus
from src.models import AnalysisProgress, BatchRunResult
from src.scoring import (
    aggregate_competitors,
    calculate_competitiveness_score,
    identify_opportunities,
)
from src.utils.config import get_settings
from src.utils.domains import normalize_domain, normalize_domains

logger = logging.getLogger(__name__)


class Stage:
    """Stage names written to the progress document."""
    NORMALIZING = "normalizing_keywords"
    RESOLVING = "resolving_keywords"
    AGGREGATING = "aggregating_results"
    PERSISTING = "persisting_results"


class NoKeywordsResolvedError(RuntimeError):
    """Nothing to analyze: no keyword survived normalization or resolution."""


class AnalysisOrchestrator:
    """
    Runs competitive SERP analyses.

    The search client is opened per run, so missing credentials fail the
    analysis instead of the process.

    Usage:
        orchestrator = AnalysisOrchestrator()
        analysis_id = orchestrator.submit("shop.example", ["buy shoes", "running shoes"])
        await orchestrator.run(analysis_id, "shop.example", ["buy shoes", "running shoes"])
    """

    def __init__(
        self,
        client=None,
        client_factory: Optional[Callable[[], Any]] = None,
        scheduler_config: Optional[SchedulerConfig] = None,
        max_keywords: Optional[int] = None,
        settings=None,
    ):
        """
        Initialize orchestrator.

        Args:
            client: Search client to use for every run (caller owns it)
            client_factory: Builds a fresh client per run (closed after the run)
            scheduler_config: Batching/retry configuration
            max_keywords: Cap applied by keyword normalization
            settings: Application settings (defaults to get_settings())
        """
        self.settings = settings or get_settings()
        self.client = client
        self.client_factory = client_factory or (lambda: create_client_from_settings(self.settings))
        self.scheduler_config = scheduler_config or SchedulerConfig.from_settings(self.settings)
        self.max_keywords = max_keywords or self.settings.MAX_KEYWORDS

    # =========================================================================
    # SUBMISSION
    # =========================================================================

    def submit(
        self,
        target_domain: str,
        keywords: Sequence[str],
        user_id: Optional[str] = None,
    ) -> UUID:
        """
        Persist a new pending analysis.

        Returns:
            The analysis id, immediately usable for polling
        """
        target = normalize_domain(target_domain)
        if not target:
            raise ValueError("target_domain is required")

        return repository.create_analysis(
            target_domain=target,
            user_id=user_id,
            total_keywords=len(keywords),
        )

    # =========================================================================
    # EXECUTION
    # =========================================================================

    async def run(
        self,
        analysis_id: Union[UUID, str],
        target_domain: str,
        keywords: Sequence[str],
        additional_competitors: Optional[Sequence[str]] = None,
    ) -> Dict[str, Any]:
        """
        Run a submitted analysis to completion or failure.

        Pipeline failures are recorded on the analysis, not raised.

        Returns:
            Final status document

        Raises:
            AnalysisNotFoundError: Unknown analysis
            InvalidStatusTransition: The analysis is not pending
        """
        target = normalize_domain(target_domain)
        progress = AnalysisProgress(stage=Stage.NORMALIZING)

        repository.transition_status(analysis_id, AnalysisStatus.ANALYZING, stage=Stage.NORMALIZING)
        logger.info(f"[{analysis_id}] Analysis started for {target}")

        try:
            normalized = normalize_keywords(keywords, max_keywords=self.max_keywords)
            if not normalized:
                raise NoKeywordsResolvedError("No valid keywords after normalization")

            progress = AnalysisProgress(stage=Stage.RESOLVING, total_keywords=len(normalized))
            repository.update_progress(analysis_id, progress)

            result = await self._resolve(analysis_id, normalized, target, progress)

            progress.stage = Stage.AGGREGATING
            progress.unresolved_keywords = [u.to_dict() for u in result.unresolved]
            repository.update_progress(analysis_id, progress)

            if not result.keyword_analyses:
                raise NoKeywordsResolvedError(
                    f"None of the {len(normalized)} keywords could be resolved"
                )

            competitors = aggregate_competitors(
                result.keyword_analyses,
                observed_domains=result.competitor_domains,
                known_competitors=normalize_domains(additional_competitors, exclude=target),
                target_domain=target,
            )
            opportunities = identify_opportunities(result.keyword_analyses, target)
            score = calculate_competitiveness_score(result.keyword_analyses)

            progress.stage = Stage.PERSISTING
            repository.update_progress(analysis_id, progress)

            repository.store_competitor_domains(analysis_id, competitors)
            repository.store_keyword_analyses(analysis_id, result.keyword_analyses)
            repository.store_opportunities(analysis_id, opportunities)

            repository.complete_analysis(
                analysis_id,
                total_keywords=result.resolved_count,
                total_competitors=len(competitors),
                overall_score=score,
                summary={
                    "keywords_analyzed": result.resolved_count,
                    "competitors_found": len(competitors),
                    "opportunities_identified": len(opportunities),
                },
            )

        except Exception as e:
            logger.exception(f"[{analysis_id}] Analysis failed: {e}")
            self._record_failure(analysis_id, str(e), progress.stage)

        return repository.get_analysis_status(analysis_id)

    async def _resolve(
        self,
        analysis_id: Union[UUID, str],
        keywords: List[str],
        target: str,
        progress: AnalysisProgress,
    ) -> BatchRunResult:
        async def on_progress(processed: int, total: int) -> None:
            progress.processed_keywords = processed
            progress.total_keywords = total
            repository.update_progress(analysis_id, progress)

        owns_client = self.client is None
        client = self.client if not owns_client else self.client_factory()

        try:
            scheduler = BatchScheduler(client, self.scheduler_config)
            return await scheduler.run(keywords, target, on_progress=on_progress)
        finally:
            if owns_client:
                await client.close()

    def _record_failure(self, analysis_id: Union[UUID, str], error_message: str, stage: str) -> None:
        try:
            repository.fail_analysis(analysis_id, error_message, failed_stage=stage)
        except repository.InvalidStatusTransition as e:
            logger.error(f"[{analysis_id}] Could not record failure: {e}")


# ============================================================================
# CONVENIENCE FUNCTIONS
# ============================================================================

async def run_competitive_analysis(
    target_domain: str,
    keywords: Sequence[str],
    additional_competitors: Optional[Sequence[str]] = None,
    user_id: Optional[str] = None,
    orchestrator: Optional[AnalysisOrchestrator] = None,
) -> Dict[str, Any]:
    """
    Submit and run one analysis in the current task.

    Returns:
        Final status document
    """
    orchestrator = orchestrator or AnalysisOrchestrator()
    analysis_id = orchestrator.submit(target_domain, keywords, user_id=user_id)
    return await orchestrator.run(analysis_id, target_domain, keywords, additional_competitors)
