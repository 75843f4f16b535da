"""
SERP Competitor Analyzer - Database Layer

Usage:
    from src.database import (
        # Session management
        init_db, get_db_context,

        # Models
        CompetitorAnalysis, CompetitorKeyword, CompetitorDomain, KeywordOpportunity,

        # Enums
        AnalysisStatus,

        # Repository (high-level operations)
        create_analysis, store_keyword_analyses, complete_analysis,
    )

    # Initialize database
    init_db()

    # Create an analysis
    analysis_id = create_analysis("example.com", user_id="user-1")
"""

# Models
from .models import (
    Base,
    CompetitorAnalysis,
    CompetitorKeyword,
    CompetitorDomain,
    KeywordOpportunity,
    # Enums
    AnalysisStatus,
    ALLOWED_TRANSITIONS,
)

# Session management
from .session import (
    get_db_context,
    init_db,
    check_db_connection,
    get_engine,
    get_db_info,
    reset_engine,
)

# Repository (high-level data operations)
from .repository import (
    # Errors
    AnalysisNotFoundError,
    InvalidStatusTransition,
    # Lifecycle
    create_analysis,
    transition_status,
    update_progress,
    complete_analysis,
    fail_analysis,
    # Data storage
    store_competitor_domains,
    store_keyword_analyses,
    store_opportunities,
    upsert_keyword_analysis,
    # Retrieval
    get_analysis,
    get_analysis_status,
    get_analysis_results,
    get_keyword_analysis,
    list_user_analyses,
)

__all__ = [
    # Models
    "Base",
    "CompetitorAnalysis",
    "CompetitorKeyword",
    "CompetitorDomain",
    "KeywordOpportunity",
    # Enums
    "AnalysisStatus",
    "ALLOWED_TRANSITIONS",
    # Session
    "get_db_context",
    "init_db",
    "check_db_connection",
    "get_engine",
    "get_db_info",
    "reset_engine",
    # Repository - Errors
    "AnalysisNotFoundError",
    "InvalidStatusTransition",
    # Repository - Lifecycle
    "create_analysis",
    "transition_status",
    "update_progress",
    "complete_analysis",
    "fail_analysis",
    # Repository - Storage
    "store_competitor_domains",
    "store_keyword_analyses",
    "store_opportunities",
    "upsert_keyword_analysis",
    # Repository - Retrieval
    "get_analysis",
    "get_analysis_status",
    "get_analysis_results",
    "get_keyword_analysis",
    "list_user_analyses",
]
