"""
API Endpoints for Competitive SERP Analysis

FastAPI application that:
1. Accepts analysis submissions and runs them in the background
2. Serves status (with progress) for polling callers
3. Serves full results (competitors, keywords, opportunities)
4. Reverifies a single keyword of a finished analysis
5. Lists a user's analyses
"""

import logging
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from src.collector import SearchAPIError, SearchConfigurationError
from src.database import (
    AnalysisNotFoundError,
    check_db_connection,
    get_analysis_results,
    get_analysis_status,
    get_db_info,
    init_db,
    list_user_analyses,
)
from src.services import (
    AnalysisOrchestrator,
    KeywordNotInAnalysisError,
    ReverificationError,
    ReverificationService,
)
from src.utils.config import get_settings
from src.utils.domains import normalize_domain

VERSION = "1.0.0"

# Configure logging to stdout
logging.basicConfig(
    level=getattr(logging, get_settings().LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
    force=True,  # Override any existing config
)
logger = logging.getLogger(__name__)

# Quiet down chatty loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class AnalysisRequest(BaseModel):
    """Request to start a competitive analysis."""
    target_domain: str = Field(..., min_length=1, description="Domain to evaluate (e.g., 'shop.example')")
    keywords: List[str] = Field(..., min_length=1, description="Keywords to resolve (normalized and capped server-side)")
    additional_competitors: Optional[List[str]] = Field(
        default=None,
        description="Known competitor domains, reported even when they never appear in results"
    )
    user_id: Optional[str] = Field(default=None, description="Owning user")


class AnalysisSubmitted(BaseModel):
    analysis_id: str
    status: str


class ProgressInfo(BaseModel):
    stage: str
    processed: int = 0
    total: int = 0


class AnalysisStatusResponse(BaseModel):
    """Status document returned to polling callers."""
    analysis_id: str
    target_domain: str
    status: str
    total_keywords: Optional[int] = None
    total_competitors: Optional[int] = None
    overall_score: Optional[int] = None
    progress: ProgressInfo
    error: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[str] = None
    completed_at: Optional[str] = None


class CompetitorOut(BaseModel):
    domain: str
    relevance_score: int
    total_keywords_found: int
    average_position: Optional[float] = None
    share_of_voice: float
    detected_automatically: bool


class CompetitorPositionOut(BaseModel):
    domain: str
    position: int
    url: str = ""
    title: str = ""


class KeywordOut(BaseModel):
    keyword: str
    target_domain_position: Optional[int] = None
    competitor_positions: List[CompetitorPositionOut] = Field(default_factory=list)
    competition_level: Optional[str] = None
    search_volume: Optional[int] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class OpportunityOut(BaseModel):
    keyword: str
    opportunity_type: str
    target_position: Optional[int] = None
    best_competitor_position: int
    best_competitor_domain: str
    priority_score: int
    gap_size: int
    recommended_action: str


class AnalysisResultsResponse(BaseModel):
    analysis_id: str
    target_domain: str
    status: str
    overall_score: Optional[int] = None
    competitors: List[CompetitorOut]
    keywords: List[KeywordOut]
    opportunities: List[OpportunityOut]


class ReverifyRequest(BaseModel):
    keyword: str = Field(..., min_length=1)
    target_domain: str = Field(..., min_length=1)


class ReverifyResponse(BaseModel):
    keyword: str
    previous_position: Optional[int] = None
    new_position: Optional[int] = None


# ============================================================================
# DEPENDENCIES
# ============================================================================

def get_orchestrator() -> AnalysisOrchestrator:
    return AnalysisOrchestrator()


def get_reverification_service() -> ReverificationService:
    return ReverificationService()


# ============================================================================
# ROUTER
# ============================================================================

router = APIRouter(
    prefix="/api/competitor-analyses",
    tags=["competitor-analysis"],
)


@router.post("", response_model=AnalysisSubmitted, status_code=202)
async def submit_analysis(
    request: AnalysisRequest,
    background_tasks: BackgroundTasks,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """
    Start a competitive analysis.

    Persists a pending analysis, schedules the pipeline in the background and
    returns immediately with the analysis id.
    """
    target = normalize_domain(request.target_domain)
    if not target:
        raise HTTPException(status_code=422, detail="Invalid target_domain")

    analysis_id = orchestrator.submit(target, request.keywords, user_id=request.user_id)

    logger.info(
        f"Analysis requested: {target} with {len(request.keywords)} keywords "
        f"(analysis: {analysis_id})"
    )

    background_tasks.add_task(
        orchestrator.run,
        analysis_id,
        target,
        request.keywords,
        request.additional_competitors,
    )

    return AnalysisSubmitted(analysis_id=str(analysis_id), status="pending")


@router.get("", response_model=List[AnalysisStatusResponse])
async def list_analyses(
    user_id: str = Query(..., min_length=1),
    limit: int = Query(10, ge=1, le=100),
):
    """List a user's analyses, newest first."""
    return list_user_analyses(user_id, limit=limit)


@router.get("/{analysis_id}", response_model=AnalysisStatusResponse)
async def get_status(analysis_id: str):
    """Get status and progress of an analysis."""
    try:
        return get_analysis_status(analysis_id)
    except AnalysisNotFoundError:
        raise HTTPException(status_code=404, detail="Analysis not found")


@router.get("/{analysis_id}/results", response_model=AnalysisResultsResponse)
async def get_results(analysis_id: str):
    """Get competitors, keywords and opportunities of an analysis."""
    try:
        return get_analysis_results(analysis_id)
    except AnalysisNotFoundError:
        raise HTTPException(status_code=404, detail="Analysis not found")


@router.post("/{analysis_id}/reverify", response_model=ReverifyResponse)
async def reverify_keyword(
    analysis_id: str,
    request: ReverifyRequest,
    service: ReverificationService = Depends(get_reverification_service),
):
    """
    Refresh one keyword of a finished analysis.

    Competitor statistics and opportunities are not recomputed.
    """
    try:
        result = await service.reverify(analysis_id, request.keyword, request.target_domain)
    except AnalysisNotFoundError:
        raise HTTPException(status_code=404, detail="Analysis not found")
    except KeywordNotInAnalysisError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ReverificationError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SearchConfigurationError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except SearchAPIError as e:
        raise HTTPException(status_code=502, detail=f"Search lookup failed: {e}")

    return ReverifyResponse(**result.to_dict())


# ============================================================================
# APPLICATION
# ============================================================================

app = FastAPI(
    title="SERP Competitor Analyzer",
    description="Competitive SERP analysis: positions, competitors, opportunities",
    version=VERSION,
)
app.include_router(router)


@app.on_event("startup")
async def startup_event():
    """Initialize database on startup."""
    logger.info("Initializing database...")
    init_db()
    if check_db_connection():
        logger.info("Database connection verified")
    else:
        logger.warning("Database connection check failed - continuing anyway")


@app.get("/api/health")
async def health():
    """Health check including database status."""
    db_info = get_db_info()
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": VERSION,
        "database": "connected" if db_info["connected"] else "disconnected",
        "database_info": db_info,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.competitors:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
