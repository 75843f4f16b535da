"""
SERP Competitor Analyzer - Data Models

Shared data models passed between the collector, scoring and service layers.
Database rows live in src.database.models; these are plain values.
"""

import enum
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Dict, Any, List, Optional


class CompetitionLevel(enum.Enum):
    """
    Heuristic SERP concentration label.

    Derived from the number of distinct domains on the results page only.
    A concentrated page (few domains) is treated as harder to break into.
    It is not a verified difficulty signal.
    """
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class OpportunityType(enum.Enum):
    """Kind of ranking gap"""
    MISSING_KEYWORD = "missing_keyword"  # Target not in results at all
    LOW_POSITION = "low_position"        # Target outranked and outside top 3


@dataclass
class CompetitorPosition:
    """One ranked slot on a results page."""
    domain: str
    position: int
    url: str
    title: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompetitorPosition":
        return cls(
            domain=data["domain"],
            position=int(data["position"]),
            url=data.get("url", ""),
            title=data.get("title") or "",
        )


@dataclass
class KeywordAnalysis:
    """Resolved positions for one keyword."""
    keyword: str
    target_domain_position: Optional[int]
    competitor_positions: List[CompetitorPosition]
    competition_level: CompetitionLevel
    search_volume: Optional[int] = None

    def competitors_excluding(self, domain: str) -> List[CompetitorPosition]:
        """Positions held by anyone other than ``domain``."""
        return [p for p in self.competitor_positions if p.domain != domain]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keyword": self.keyword,
            "target_domain_position": self.target_domain_position,
            "competitor_positions": [p.to_dict() for p in self.competitor_positions],
            "competition_level": self.competition_level.value,
            "search_volume": self.search_volume,
        }


@dataclass
class CompetitorDomainStats:
    """Aggregated statistics for one domain across an analysis."""
    domain: str
    total_keywords_found: int
    average_position: Optional[float]  # None when the domain never appeared
    share_of_voice: float              # Fraction 0..1 of analyzed keywords
    relevance_score: int
    detected_automatically: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Opportunity:
    """An actionable ranking gap for one keyword."""
    keyword: str
    opportunity_type: OpportunityType
    target_position: Optional[int]
    best_competitor_position: int
    best_competitor_domain: str
    priority_score: int
    gap_size: int
    recommended_action: str

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["opportunity_type"] = self.opportunity_type.value
        return data


@dataclass
class UnresolvedKeyword:
    """A keyword dropped after exhausting its retries."""
    keyword: str
    error: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BatchRunResult:
    """Output of the batch scheduler."""
    keyword_analyses: List[KeywordAnalysis] = field(default_factory=list)
    competitor_domains: List[str] = field(default_factory=list)  # Distinct, first-seen order
    unresolved: List[UnresolvedKeyword] = field(default_factory=list)

    @property
    def resolved_count(self) -> int:
        return len(self.keyword_analyses)


@dataclass
class AnalysisProgress:
    """
    Progress document stored on the analysis row.

    Written only by the orchestrator run that owns the analysis.
    """
    stage: str
    processed_keywords: int = 0
    total_keywords: int = 0
    last_error: Optional[str] = None
    unresolved_keywords: List[Dict[str, str]] = field(default_factory=list)
    last_updated: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stage": self.stage,
            "processed_keywords": self.processed_keywords,
            "total_keywords": self.total_keywords,
            "last_error": self.last_error,
            "unresolved_keywords": list(self.unresolved_keywords),
            "last_updated": (self.last_updated or datetime.utcnow()).isoformat(),
        }
