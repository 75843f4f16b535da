"""
Reverification Service

Refreshes a single keyword of a finished analysis without re-running the
pipeline. The keyword row is replaced in place; competitor and opportunity
rows are left as they were and may be stale until a new analysis is run.
"""

import logging
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Union
from uuid import UUID

from src.collector import RetryConfig, create_client_from_settings, normalize_keywords, resolve_with_retry
from src.database import repository
from src.database.models import AnalysisStatus
from src.utils.config import get_settings
from src.utils.domains import normalize_domain

logger = logging.getLogger(__name__)


class ReverificationError(ValueError):
    """The analysis cannot be reverified as requested."""


class KeywordNotInAnalysisError(ReverificationError):
    """The keyword has no stored row in the analysis."""


@dataclass
class ReverificationResult:
    """Target position before and after the refresh."""
    keyword: str
    previous_position: Optional[int]
    new_position: Optional[int]

    @property
    def position_change(self) -> Optional[int]:
        """Positive when the target moved up."""
        if self.previous_position is None or self.new_position is None:
            return None
        return self.previous_position - self.new_position

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ReverificationService:
    """
    Re-resolves one keyword of an existing analysis.

    Usage:
        service = ReverificationService()
        result = await service.reverify(analysis_id, "running shoes", "shop.example")
        print(result.previous_position, result.new_position)
    """

    def __init__(
        self,
        client=None,
        client_factory: Optional[Callable[[], Any]] = None,
        retry_config: Optional[RetryConfig] = None,
        settings=None,
    ):
        self.settings = settings or get_settings()
        self.client = client
        self.client_factory = client_factory or (lambda: create_client_from_settings(self.settings))
        self.retry_config = retry_config or RetryConfig.from_settings(self.settings)

    async def reverify(
        self,
        analysis_id: Union[UUID, str],
        keyword: str,
        target_domain: str,
    ) -> ReverificationResult:
        """
        Re-resolve ``keyword`` and overwrite its row in the analysis.

        Args:
            analysis_id: Existing analysis
            keyword: Keyword to refresh (normalized the same way as submission)
            target_domain: Must match the analysis's target domain

        Returns:
            ReverificationResult with previous and new target positions

        Raises:
            AnalysisNotFoundError: Unknown analysis
            ReverificationError: Analysis still running, domain mismatch or
                invalid keyword
            KeywordNotInAnalysisError: The keyword has no stored row
            SearchAPIError: Lookup failed after all retries
        """
        analysis = repository.get_analysis(analysis_id)
        if analysis is None:
            raise repository.AnalysisNotFoundError(analysis_id)

        if not AnalysisStatus(analysis["status"]).is_terminal:
            raise ReverificationError(
                f"Analysis {analysis_id} is still {analysis['status']}; "
                f"wait for it to finish before reverifying"
            )

        target = normalize_domain(target_domain)
        if target != analysis["target_domain"]:
            raise ReverificationError(
                f"Target domain {target} does not match analysis target {analysis['target_domain']}"
            )

        normalized = normalize_keywords([keyword], max_keywords=1)
        if not normalized:
            raise ReverificationError(f"Invalid keyword: {keyword!r}")
        keyword = normalized[0]

        existing = repository.get_keyword_analysis(analysis_id, keyword)
        if existing is None:
            raise KeywordNotInAnalysisError(
                f"Keyword '{keyword}' was not resolved in analysis {analysis_id}"
            )
        previous_position = existing["target_domain_position"]

        logger.info(f"[{analysis_id}] Reverifying '{keyword}' for {target}")

        owns_client = self.client is None
        client = self.client if not owns_client else self.client_factory()
        try:
            fresh = await resolve_with_retry(
                client,
                keyword,
                target,
                retry_config=self.retry_config,
                num_results=self.settings.SERP_RESULTS_PER_QUERY,
            )
        finally:
            if owns_client:
                await client.close()

        repository.upsert_keyword_analysis(
            analysis_id,
            fresh,
            metadata={
                "reverified_at": datetime.utcnow().isoformat(),
                "previous_position": previous_position,
            },
        )

        result = ReverificationResult(
            keyword=keyword,
            previous_position=previous_position,
            new_position=fresh.target_domain_position,
        )
        logger.info(
            f"[{analysis_id}] Reverified '{keyword}': "
            f"{result.previous_position} -> {result.new_position}"
        )
        return result
