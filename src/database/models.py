"""
SQLAlchemy Models for the SERP Competitor Analyzer

Four tables, all written by the analysis pipeline:
1. competitor_analyses - one row per analysis run (status + progress)
2. competitor_keywords - resolved SERP positions per keyword
3. competitor_domains - aggregated competitor statistics
4. keyword_opportunities - prioritized ranking gaps

Column types are portable (Uuid, JSON with a JSONB variant) so the same
models run on PostgreSQL in production and SQLite locally and in tests.
"""

import enum
from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Column, String, Integer, Float, Boolean, DateTime, Text,
    ForeignKey, Enum, Index, UniqueConstraint, JSON, Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base, relationship

from src.models import CompetitionLevel, OpportunityType

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


# =============================================================================
# ENUMS
# =============================================================================

class AnalysisStatus(enum.Enum):
    """Lifecycle of an analysis. Transitions only move forward."""
    PENDING = "pending"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (AnalysisStatus.COMPLETED, AnalysisStatus.FAILED)


ALLOWED_TRANSITIONS = {
    AnalysisStatus.PENDING: {AnalysisStatus.ANALYZING, AnalysisStatus.FAILED},
    AnalysisStatus.ANALYZING: {AnalysisStatus.COMPLETED, AnalysisStatus.FAILED},
    AnalysisStatus.COMPLETED: set(),
    AnalysisStatus.FAILED: set(),
}


# =============================================================================
# TABLES
# =============================================================================

class CompetitorAnalysis(Base):
    """One execution of the pipeline for a target domain"""
    __tablename__ = "competitor_analyses"

    id = Column(Uuid, primary_key=True, default=uuid4)
    user_id = Column(String(255), nullable=True, index=True)
    target_domain = Column(String(255), nullable=False)

    # Status tracking
    status = Column(Enum(AnalysisStatus), nullable=False, default=AnalysisStatus.PENDING)

    # Results (set once, at completion)
    total_keywords = Column(Integer, nullable=True)
    total_competitors = Column(Integer, nullable=True)
    overall_competitiveness_score = Column(Integer, nullable=True)  # 0-100

    # Progress document, see AnalysisProgress
    progress_metadata = Column("metadata", JSONType, default=dict)
    """
    {
        "stage": "resolving_keywords",
        "processed_keywords": 10,
        "total_keywords": 15,
        "last_error": null,
        "unresolved_keywords": [{"keyword": "...", "error": "..."}],
        "last_updated": "2026-01-15T10:30:00"
    }
    """

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    completed_at = Column(DateTime)

    # Relationships
    keywords = relationship("CompetitorKeyword", back_populates="analysis", cascade="all, delete-orphan")
    domains = relationship("CompetitorDomain", back_populates="analysis", cascade="all, delete-orphan")
    opportunities = relationship("KeywordOpportunity", back_populates="analysis", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_competitor_analyses_user_created", "user_id", "created_at"),
    )


class CompetitorKeyword(Base):
    """Resolved SERP positions for one keyword of an analysis"""
    __tablename__ = "competitor_keywords"

    id = Column(Uuid, primary_key=True, default=uuid4)
    analysis_id = Column(Uuid, ForeignKey("competitor_analyses.id", ondelete="CASCADE"), nullable=False)

    keyword = Column(String(500), nullable=False)
    target_domain_position = Column(Integer, nullable=True)  # None = not in results
    competitor_positions = Column(JSONType, default=list)    # [{domain, position, url, title}]
    search_volume = Column(Integer, nullable=True)
    competition_level = Column(Enum(CompetitionLevel))

    # Reverification audit (reverified_at, previous_position)
    keyword_metadata = Column("metadata", JSONType, default=dict)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    analysis = relationship("CompetitorAnalysis", back_populates="keywords")

    __table_args__ = (
        UniqueConstraint("analysis_id", "keyword", name="uq_competitor_keywords_analysis_keyword"),
    )


class CompetitorDomain(Base):
    """Aggregated statistics for one competitor domain"""
    __tablename__ = "competitor_domains"

    id = Column(Uuid, primary_key=True, default=uuid4)
    analysis_id = Column(Uuid, ForeignKey("competitor_analyses.id", ondelete="CASCADE"), nullable=False)

    domain = Column(String(255), nullable=False)
    relevance_score = Column(Integer, default=0)
    total_keywords_found = Column(Integer, default=0)
    average_position = Column(Float, nullable=True)  # None for zero appearances
    share_of_voice = Column(Float, default=0.0)      # Fraction 0..1
    detected_automatically = Column(Boolean, default=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)

    analysis = relationship("CompetitorAnalysis", back_populates="domains")

    __table_args__ = (
        Index("idx_competitor_domains_analysis", "analysis_id"),
    )


class KeywordOpportunity(Base):
    """A prioritized ranking gap"""
    __tablename__ = "keyword_opportunities"

    id = Column(Uuid, primary_key=True, default=uuid4)
    analysis_id = Column(Uuid, ForeignKey("competitor_analyses.id", ondelete="CASCADE"), nullable=False)

    keyword = Column(String(500), nullable=False)
    opportunity_type = Column(Enum(OpportunityType), nullable=False)
    target_position = Column(Integer, nullable=True)
    best_competitor_position = Column(Integer, nullable=False)
    best_competitor_domain = Column(String(255), nullable=False)
    priority_score = Column(Integer, default=0)
    gap_size = Column(Integer, default=0)
    recommended_action = Column(Text)

    # Position in the priority ordering, preserved on read
    rank = Column(Integer, nullable=False, default=0)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)

    analysis = relationship("CompetitorAnalysis", back_populates="opportunities")

    __table_args__ = (
        Index("idx_keyword_opportunities_analysis_rank", "analysis_id", "rank"),
    )
