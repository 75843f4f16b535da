"""
Repository Layer - Clean Interface for Data Operations

Provides simple functions to store and retrieve analysis data.
Handles all SQLAlchemy complexity internally.

Every function opens its own session and commits before returning, so each
call is one durable write that a polling reader can observe.
"""

import logging
from datetime import datetime
from typing import List, Dict, Any, Optional, Sequence, Union
from uuid import UUID

from sqlalchemy.orm import Session

from src.models import (
    AnalysisProgress,
    CompetitorDomainStats,
    KeywordAnalysis,
    Opportunity,
)
from .models import (
    ALLOWED_TRANSITIONS,
    AnalysisStatus,
    CompetitorAnalysis,
    CompetitorDomain,
    CompetitorKeyword,
    KeywordOpportunity,
)
from .session import get_db_context

logger = logging.getLogger(__name__)

AnalysisId = Union[UUID, str]


# =============================================================================
# ERRORS
# =============================================================================

class AnalysisNotFoundError(LookupError):
    """No analysis with the given identifier."""

    def __init__(self, analysis_id: AnalysisId):
        self.analysis_id = analysis_id
        super().__init__(f"Analysis not found: {analysis_id}")


class InvalidStatusTransition(ValueError):
    """Attempt to move an analysis backwards or out of a terminal state."""

    def __init__(self, analysis_id: AnalysisId, current: AnalysisStatus, requested: AnalysisStatus):
        self.analysis_id = analysis_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Analysis {analysis_id} cannot move from {current.value} to {requested.value}"
        )


# =============================================================================
# HELPERS
# =============================================================================

def _as_uuid(analysis_id: AnalysisId) -> UUID:
    if isinstance(analysis_id, UUID):
        return analysis_id
    try:
        return UUID(str(analysis_id))
    except ValueError:
        raise AnalysisNotFoundError(analysis_id) from None


def _load_analysis(db: Session, analysis_id: AnalysisId) -> CompetitorAnalysis:
    analysis = db.get(CompetitorAnalysis, _as_uuid(analysis_id))
    if analysis is None:
        raise AnalysisNotFoundError(analysis_id)
    return analysis


def _apply_transition(analysis: CompetitorAnalysis, status: AnalysisStatus) -> None:
    if status not in ALLOWED_TRANSITIONS[analysis.status]:
        raise InvalidStatusTransition(analysis.id, analysis.status, status)
    analysis.status = status


def _merge_metadata(analysis: CompetitorAnalysis, updates: Dict[str, Any]) -> None:
    # Reassign so SQLAlchemy sees the JSON column change
    merged = dict(analysis.progress_metadata or {})
    merged.update(updates)
    merged["last_updated"] = datetime.utcnow().isoformat()
    analysis.progress_metadata = merged


def _require_analysis(db: Session, analysis_id: UUID) -> None:
    if db.get(CompetitorAnalysis, analysis_id) is None:
        raise AnalysisNotFoundError(analysis_id)


# =============================================================================
# ANALYSIS LIFECYCLE
# =============================================================================

def create_analysis(
    target_domain: str,
    user_id: Optional[str] = None,
    total_keywords: int = 0,
) -> UUID:
    """
    Create a new analysis in ``pending``.

    Args:
        target_domain: Canonical target domain
        user_id: Owning user, if any
        total_keywords: Keywords submitted (progress denominator until
            normalization narrows it)

    Returns:
        UUID of the created analysis
    """
    with get_db_context() as db:
        analysis = CompetitorAnalysis(
            user_id=user_id,
            target_domain=target_domain,
            status=AnalysisStatus.PENDING,
            progress_metadata=AnalysisProgress(
                stage=AnalysisStatus.PENDING.value,
                total_keywords=total_keywords,
            ).to_dict(),
        )
        db.add(analysis)
        db.flush()

        analysis_id = analysis.id
        logger.info(f"Created analysis {analysis_id} for {target_domain}")

        return analysis_id


def transition_status(
    analysis_id: AnalysisId,
    status: AnalysisStatus,
    stage: Optional[str] = None,
) -> None:
    """
    Move an analysis forward in its lifecycle.

    Raises:
        AnalysisNotFoundError: Unknown analysis
        InvalidStatusTransition: Backwards or out of a terminal state
    """
    with get_db_context() as db:
        analysis = _load_analysis(db, analysis_id)
        previous = analysis.status
        _apply_transition(analysis, status)
        _merge_metadata(analysis, {"stage": stage or status.value})

        logger.info(f"[{analysis_id}] Status {previous.value} -> {status.value}")


def update_progress(analysis_id: AnalysisId, progress: AnalysisProgress) -> None:
    """Overwrite the progress fields of the metadata document."""
    with get_db_context() as db:
        analysis = _load_analysis(db, analysis_id)
        _merge_metadata(analysis, progress.to_dict())

        logger.debug(
            f"[{analysis_id}] Progress {progress.stage}: "
            f"{progress.processed_keywords}/{progress.total_keywords}"
        )


def complete_analysis(
    analysis_id: AnalysisId,
    total_keywords: int,
    total_competitors: int,
    overall_score: int,
    summary: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Set the final score and counts and mark the analysis completed.

    Score and counts are written here and nowhere else.
    """
    with get_db_context() as db:
        analysis = _load_analysis(db, analysis_id)
        _apply_transition(analysis, AnalysisStatus.COMPLETED)

        analysis.total_keywords = total_keywords
        analysis.total_competitors = total_competitors
        analysis.overall_competitiveness_score = overall_score
        analysis.completed_at = datetime.utcnow()

        _merge_metadata(analysis, {"stage": AnalysisStatus.COMPLETED.value, **(summary or {})})

        logger.info(
            f"[{analysis_id}] Completed: score={overall_score}, "
            f"{total_keywords} keywords, {total_competitors} competitors"
        )


def fail_analysis(
    analysis_id: AnalysisId,
    error_message: str,
    failed_stage: Optional[str] = None,
) -> None:
    """Mark an analysis failed and record the error (and the stage it hit) in its metadata."""
    with get_db_context() as db:
        analysis = _load_analysis(db, analysis_id)
        _apply_transition(analysis, AnalysisStatus.FAILED)

        analysis.completed_at = datetime.utcnow()
        _merge_metadata(analysis, {
            "stage": AnalysisStatus.FAILED.value,
            "last_error": error_message,
            "failed_stage": failed_stage,
        })

        logger.error(f"[{analysis_id}] Failed: {error_message}")


# =============================================================================
# DATA STORAGE
# =============================================================================

def store_competitor_domains(analysis_id: AnalysisId, competitors: Sequence[CompetitorDomainStats]) -> int:
    """Store aggregated competitor statistics."""
    with get_db_context() as db:
        analysis_uuid = _as_uuid(analysis_id)
        _require_analysis(db, analysis_uuid)

        for stats in competitors:
            db.add(CompetitorDomain(
                analysis_id=analysis_uuid,
                domain=stats.domain,
                relevance_score=stats.relevance_score,
                total_keywords_found=stats.total_keywords_found,
                average_position=stats.average_position,
                share_of_voice=stats.share_of_voice,
                detected_automatically=stats.detected_automatically,
            ))

        logger.info(f"[{analysis_id}] Stored {len(competitors)} competitor domains")
        return len(competitors)


def store_keyword_analyses(analysis_id: AnalysisId, analyses: Sequence[KeywordAnalysis]) -> int:
    """Store resolved keywords. Keywords are unique per analysis."""
    with get_db_context() as db:
        analysis_uuid = _as_uuid(analysis_id)
        _require_analysis(db, analysis_uuid)

        for analysis in analyses:
            db.add(CompetitorKeyword(
                analysis_id=analysis_uuid,
                keyword=analysis.keyword,
                target_domain_position=analysis.target_domain_position,
                competitor_positions=[p.to_dict() for p in analysis.competitor_positions],
                search_volume=analysis.search_volume,
                competition_level=analysis.competition_level,
                keyword_metadata={},
            ))

        logger.info(f"[{analysis_id}] Stored {len(analyses)} keyword analyses")
        return len(analyses)


def store_opportunities(analysis_id: AnalysisId, opportunities: Sequence[Opportunity]) -> int:
    """Store opportunities, keeping their order as ``rank``."""
    with get_db_context() as db:
        analysis_uuid = _as_uuid(analysis_id)
        _require_analysis(db, analysis_uuid)

        for rank, opportunity in enumerate(opportunities):
            db.add(KeywordOpportunity(
                analysis_id=analysis_uuid,
                keyword=opportunity.keyword,
                opportunity_type=opportunity.opportunity_type,
                target_position=opportunity.target_position,
                best_competitor_position=opportunity.best_competitor_position,
                best_competitor_domain=opportunity.best_competitor_domain,
                priority_score=opportunity.priority_score,
                gap_size=opportunity.gap_size,
                recommended_action=opportunity.recommended_action,
                rank=rank,
            ))

        logger.info(f"[{analysis_id}] Stored {len(opportunities)} opportunities")
        return len(opportunities)


def upsert_keyword_analysis(
    analysis_id: AnalysisId,
    analysis: KeywordAnalysis,
    metadata: Optional[Dict[str, Any]] = None,
) -> Optional[int]:
    """
    Replace the stored row for ``analysis.keyword`` in place, or insert it.

    Args:
        analysis_id: Owning analysis
        analysis: Fresh resolution of the keyword
        metadata: Merged into the row's metadata

    Returns:
        The target position stored before the update (None if absent or new)
    """
    with get_db_context() as db:
        analysis_uuid = _as_uuid(analysis_id)
        _require_analysis(db, analysis_uuid)

        row = db.query(CompetitorKeyword).filter(
            CompetitorKeyword.analysis_id == analysis_uuid,
            CompetitorKeyword.keyword == analysis.keyword,
        ).first()

        previous_position = None
        if row is None:
            row = CompetitorKeyword(analysis_id=analysis_uuid, keyword=analysis.keyword)
            db.add(row)
            row_metadata = {}
        else:
            previous_position = row.target_domain_position
            row_metadata = dict(row.keyword_metadata or {})

        row.target_domain_position = analysis.target_domain_position
        row.competitor_positions = [p.to_dict() for p in analysis.competitor_positions]
        row.competition_level = analysis.competition_level
        if analysis.search_volume is not None:
            row.search_volume = analysis.search_volume

        row_metadata.update(metadata or {})
        row.keyword_metadata = row_metadata
        row.updated_at = datetime.utcnow()

        logger.info(
            f"[{analysis_id}] Upserted keyword '{analysis.keyword}': "
            f"{previous_position} -> {analysis.target_domain_position}"
        )
        return previous_position


# =============================================================================
# RETRIEVAL
# =============================================================================

def _analysis_to_dict(a: CompetitorAnalysis) -> Dict[str, Any]:
    metadata = dict(a.progress_metadata or {})
    return {
        "analysis_id": str(a.id),
        "user_id": a.user_id,
        "target_domain": a.target_domain,
        "status": a.status.value,
        "total_keywords": a.total_keywords,
        "total_competitors": a.total_competitors,
        "overall_score": a.overall_competitiveness_score,
        "progress": {
            "stage": metadata.get("stage", a.status.value),
            "processed": metadata.get("processed_keywords", 0),
            "total": metadata.get("total_keywords", 0),
        },
        "error": metadata.get("last_error") if a.status == AnalysisStatus.FAILED else None,
        "metadata": metadata,
        "created_at": a.created_at.isoformat() if a.created_at else None,
        "completed_at": a.completed_at.isoformat() if a.completed_at else None,
    }


def _keyword_to_dict(k: CompetitorKeyword) -> Dict[str, Any]:
    return {
        "keyword": k.keyword,
        "target_domain_position": k.target_domain_position,
        "competitor_positions": list(k.competitor_positions or []),
        "competition_level": k.competition_level.value if k.competition_level else None,
        "search_volume": k.search_volume,
        "metadata": dict(k.keyword_metadata or {}),
        "updated_at": k.updated_at.isoformat() if k.updated_at else None,
    }


def _domain_to_dict(d: CompetitorDomain) -> Dict[str, Any]:
    return {
        "domain": d.domain,
        "relevance_score": d.relevance_score,
        "total_keywords_found": d.total_keywords_found,
        "average_position": d.average_position,
        "share_of_voice": d.share_of_voice,
        "detected_automatically": d.detected_automatically,
    }


def _opportunity_to_dict(o: KeywordOpportunity) -> Dict[str, Any]:
    return {
        "keyword": o.keyword,
        "opportunity_type": o.opportunity_type.value,
        "target_position": o.target_position,
        "best_competitor_position": o.best_competitor_position,
        "best_competitor_domain": o.best_competitor_domain,
        "priority_score": o.priority_score,
        "gap_size": o.gap_size,
        "recommended_action": o.recommended_action,
    }


def get_analysis(analysis_id: AnalysisId) -> Optional[Dict[str, Any]]:
    """Get an analysis as a dict, or None if it does not exist."""
    try:
        with get_db_context() as db:
            return _analysis_to_dict(_load_analysis(db, analysis_id))
    except AnalysisNotFoundError:
        return None


def get_analysis_status(analysis_id: AnalysisId) -> Dict[str, Any]:
    """
    Status document for a polling caller.

    Raises:
        AnalysisNotFoundError: Unknown analysis
    """
    with get_db_context() as db:
        return _analysis_to_dict(_load_analysis(db, analysis_id))


def get_analysis_results(analysis_id: AnalysisId) -> Dict[str, Any]:
    """
    Full results of an analysis.

    Competitors by relevance, keywords alphabetically, opportunities in their
    stored priority order.

    Raises:
        AnalysisNotFoundError: Unknown analysis
    """
    with get_db_context() as db:
        analysis = _load_analysis(db, analysis_id)

        competitors = db.query(CompetitorDomain).filter(
            CompetitorDomain.analysis_id == analysis.id
        ).order_by(CompetitorDomain.relevance_score.desc(), CompetitorDomain.domain).all()

        keywords = db.query(CompetitorKeyword).filter(
            CompetitorKeyword.analysis_id == analysis.id
        ).order_by(CompetitorKeyword.keyword).all()

        opportunities = db.query(KeywordOpportunity).filter(
            KeywordOpportunity.analysis_id == analysis.id
        ).order_by(KeywordOpportunity.rank).all()

        return {
            "analysis_id": str(analysis.id),
            "target_domain": analysis.target_domain,
            "status": analysis.status.value,
            "overall_score": analysis.overall_competitiveness_score,
            "competitors": [_domain_to_dict(d) for d in competitors],
            "keywords": [_keyword_to_dict(k) for k in keywords],
            "opportunities": [_opportunity_to_dict(o) for o in opportunities],
        }


def get_keyword_analysis(analysis_id: AnalysisId, keyword: str) -> Optional[Dict[str, Any]]:
    """Stored row for one keyword of an analysis, or None."""
    with get_db_context() as db:
        row = db.query(CompetitorKeyword).filter(
            CompetitorKeyword.analysis_id == _as_uuid(analysis_id),
            CompetitorKeyword.keyword == keyword,
        ).first()
        return _keyword_to_dict(row) if row else None


def list_user_analyses(user_id: str, limit: int = 10) -> List[Dict[str, Any]]:
    """A user's analyses, newest first."""
    with get_db_context() as db:
        analyses = db.query(CompetitorAnalysis).filter(
            CompetitorAnalysis.user_id == user_id
        ).order_by(CompetitorAnalysis.created_at.desc()).limit(limit).all()

        return [_analysis_to_dict(a) for a in analyses]
