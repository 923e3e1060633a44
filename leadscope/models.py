"""Core models - records in, analytics out."""

from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class OpportunityStatus(str, Enum):
    """Pipeline status, in funnel order."""
    NEW = "new"
    VIEWED = "viewed"
    CONTACTED = "contacted"
    APPLIED = "applied"
    REJECTED = "rejected"
    WON = "won"
    LOST = "lost"


class DateRange(str, Enum):
    ALL = "all"
    TODAY = "today"
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"


class Opportunity(BaseModel):
    """A lead discovered by the collection backend. Read-only to us."""

    model_config = ConfigDict(extra="ignore")

    id: str
    title: Optional[str] = None
    content: str = ""
    author: str = ""
    source: str = ""
    status: OpportunityStatus = OpportunityStatus.NEW
    matched_keywords: list[str] = Field(default_factory=list)
    total_score: float = 0.0
    created_at: datetime
    keyword_search_id: Optional[str] = None

    # Passthrough from the API, not used by the core
    url: Optional[str] = None
    source_type: Optional[str] = None
    relevance_score: Optional[float] = None
    urgency_score: Optional[float] = None
    notes: Optional[str] = None
    updated_at: Optional[datetime] = None

    @field_validator("content", "author", "source", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return "" if v is None else v

    @field_validator("matched_keywords", mode="before")
    @classmethod
    def _none_to_list(cls, v):
        return [] if v is None else v

    @field_validator("total_score", mode="before")
    @classmethod
    def _none_to_zero(cls, v):
        return 0.0 if v is None else v


class KeywordSearch(BaseModel):
    """A saved keyword search configuration."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: Optional[str] = None
    keywords: list[str] = Field(default_factory=list)
    enabled: bool = True

    patterns: list[str] = Field(default_factory=list)
    subreddits: list[str] = Field(default_factory=list)
    platforms: list[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("keywords", "patterns", "subreddits", "platforms", mode="before")
    @classmethod
    def _none_to_list(cls, v):
        return [] if v is None else v


class FilterSpec(BaseModel):
    """
    Filter criteria for the opportunity list.

    Unknown status or date range values fall back to "all" so a bad
    query string never breaks the list view.
    """

    query: str = ""
    status: Union[OpportunityStatus, Literal["all"]] = "all"
    source: str = "all"
    min_score: int = 0
    date_range: DateRange = DateRange.ALL
    has_keywords: list[str] = Field(default_factory=list)

    @field_validator("status", mode="before")
    @classmethod
    def _unknown_status_is_all(cls, v):
        if isinstance(v, OpportunityStatus):
            return v
        try:
            return OpportunityStatus(v)
        except ValueError:
            return "all"

    @field_validator("date_range", mode="before")
    @classmethod
    def _unknown_range_is_all(cls, v):
        if isinstance(v, DateRange):
            return v
        try:
            return DateRange(v)
        except ValueError:
            return DateRange.ALL

    @field_validator("min_score", mode="before")
    @classmethod
    def _clamp_score(cls, v):
        try:
            return max(0, min(100, int(float(v))))
        except (TypeError, ValueError, OverflowError):
            return 0

    @field_validator("source", mode="before")
    @classmethod
    def _blank_source_is_all(cls, v):
        return v or "all"

    @field_validator("has_keywords", mode="before")
    @classmethod
    def _none_to_list(cls, v):
        return [] if v is None else v


class FilterOptions(BaseModel):
    """Distinct facet values for building filter pickers."""
    sources: list[str]
    keywords: list[str]


class CamelModel(BaseModel):
    """Serializes with camelCase keys, accepts either form."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SearchResult(CamelModel):
    type: Literal["opportunity", "keyword_search"]
    id: str
    title: str
    subtitle: Optional[str] = None
    url: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class SearchResults(CamelModel):
    opportunities: list[SearchResult] = Field(default_factory=list)
    keyword_searches: list[SearchResult] = Field(default_factory=list)
    total: int = 0


class DailySnapshot(CamelModel):
    """Counts for one local calendar day."""
    date: datetime
    total_opportunities: int = 0
    new_opportunities: int = 0
    contacted_opportunities: int = 0
    applied_opportunities: int = 0
    won_opportunities: int = 0
    average_score: float = 0.0
    total_score: float = 0.0


class TrendData(CamelModel):
    dates: list[str] = Field(default_factory=list)
    values: list[float] = Field(default_factory=list)
    average: float = 0.0
    trend: Literal["up", "down", "stable"] = "stable"
    change_percent: float = 0.0


class PeriodComparison(CamelModel):
    current: int
    previous: int
    change: int
    change_percent: float


class FunnelStage(CamelModel):
    name: str
    count: int
    percentage: float
    dropoff_rate: Optional[float] = None


class FunnelSummary(CamelModel):
    total: int
    conversion_rate: float
    average_dropoff: float
    won: int


class SourcePerformance(CamelModel):
    source: str
    total: int
    new: int
    contacted: int
    won: int
    lost: int
    avg_score: float
    conversion_rate: float
    response_rate: float


class KeywordSearchPerformance(CamelModel):
    search_id: str
    name: str
    total: int
    new_count: int
    contacted_count: int
    won_count: int
    response_rate: float
    win_rate: float
    is_active: bool
