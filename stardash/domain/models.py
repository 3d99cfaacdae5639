from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, List, Optional
from pydantic import BaseModel, Field, ConfigDict

UNKNOWN_LANGUAGE = "Unknown"
OTHERS_TOPIC = "others"


class RepositoryEntity(BaseModel):
    """
    Immutable domain model representing a starred GitHub repository.
    This is the core entity used throughout the application.
    """
    # Enforces immutability: once created, fields cannot be modified.
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="The unique numeric repository ID from GitHub")
    owner: str = Field(..., description="Login name of the repository owner")
    name: str = Field(..., description="Name of the repository")
    full_name: str = Field(..., description="owner/name")
    description: str = Field("No description", description="Repository description")
    html_url: str = Field("", description="Web URL of the repository")
    homepage: Optional[str] = Field(None, description="Project homepage, if any")
    stars: int = Field(0, ge=0, description="Total number of stargazers")
    forks: int = Field(0, ge=0, description="Total number of forks")
    watchers: int = Field(0, ge=0, description="Total number of watchers")
    open_issues: int = Field(0, ge=0, description="Open issue count")
    language: str = Field(UNKNOWN_LANGUAGE, description="Primary language")
    topics: List[str] = Field(default_factory=list, description="Raw topic strings, in API order")
    license: str = Field("No license", description="License display name")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Timestamp of the last update")
    pushed_at: Optional[datetime] = Field(None, description="Timestamp of the last push")


class Contributor(BaseModel):
    model_config = ConfigDict(frozen=True)

    login: str
    contributions: int = 0
    avatar_url: str = ""
    html_url: str = ""


class LanguageCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    language: str
    count: int


class CanonicalTopic(BaseModel):
    """A canonical topic key, the raw strings observed for it and its repo-level count."""
    model_config = ConfigDict(frozen=True)

    topic: str
    count: int
    variations: List[str] = Field(default_factory=list)


class Summary(BaseModel):
    """
    Derived statistics over one repository collection.
    Rebuilt whenever the collection changes, never mutated.
    """
    model_config = ConfigDict(frozen=True)

    total_repos: int
    total_stars: int
    avg_stars: int
    top_languages: List[LanguageCount]
    top_topics: List[CanonicalTopic]
    most_starred: List[RepositoryEntity]
    languages: List[str]
    filter_topics: List[CanonicalTopic]

    @property
    def filter_topic_keys(self) -> FrozenSet[str]:
        return frozenset(topic.topic for topic in self.filter_topics)


class TrendLabel(str, Enum):
    QUIET = "Quiet"
    STEADY = "Steady"
    RISING = "Rising"
    HOT = "Hot"


class MomentumLabel(str, Enum):
    ACCELERATING = "Accelerating"
    STABLE = "Stable"
    SLOWING = "Slowing"


class WindowGrowth(BaseModel):
    model_config = ConfigDict(frozen=True)

    days: int
    count: int = Field(..., ge=0)
    monthly_rate: int = Field(..., ge=0)


class TrendRecord(BaseModel):
    """Star growth of one repository over the fixed look-back windows."""
    model_config = ConfigDict(frozen=True)

    windows: Dict[int, WindowGrowth]
    trend: TrendLabel
    momentum: Optional[MomentumLabel] = None
    momentum_percent: Optional[int] = None
    estimated: bool = False

    def count(self, days: int) -> int:
        window = self.windows.get(days)
        return window.count if window else 0


class ViewMode(str, Enum):
    ALL = "all"
    TOP_STARRED = "top-starred"
    TOP_FORKED = "top-forked"
    TOP_WATCHERS = "top-watchers"
    RECENT = "recent"


class SortKey(str, Enum):
    STARS = "stars"
    FORKS = "forks"
    WATCHERS = "watchers"
    UPDATED = "last-updated"
    NAME = "name"
    OPEN_ISSUES = "open-issues"
    GROWTH_30 = "30-day-growth"
    GROWTH_90 = "90-day-growth"
    MOMENTUM = "momentum-percent"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class QueryState(BaseModel):
    """User-chosen filter and sort state for the repository view."""
    model_config = ConfigDict(frozen=True)

    view_mode: ViewMode = ViewMode.ALL
    language: Optional[str] = Field(None, description="Exact language to keep; None keeps all")
    topics: FrozenSet[str] = Field(default_factory=frozenset, description="Canonical keys, OR semantics")
    sort_key: SortKey = SortKey.STARS
    sort_direction: SortDirection = SortDirection.DESC


class RankBadge(str, Enum):
    GOLD = "gold"
    SILVER = "silver"
    BRONZE = "bronze"


class RankedRepository(BaseModel):
    model_config = ConfigDict(frozen=True)

    rank: int
    badge: Optional[RankBadge] = None
    repository: RepositoryEntity

    @property
    def label(self) -> str:
        return f"#{self.rank}"


class TrendStrategy(str, Enum):
    """Where star history comes from when trends are fetched."""
    RECENT = "recent"   # GraphQL, last 30 days only
    FULL = "full"       # GraphQL, last 365 days
    REST = "rest"       # REST stargazer listing with timestamps


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"
