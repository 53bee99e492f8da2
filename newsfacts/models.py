from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


@dataclass(frozen=True)
class Source:
    feed_url: str
    name: str  # Display name, stored as the article's publication
    id: str
    enabled: bool = True
    item_limit: Optional[int] = None  # None = Settings.rss_item_limit


@dataclass
class CandidateItem:
    source: Source
    link: Optional[str]
    title: str
    raw_content: Optional[str] = None  # Resolved content (encoded or scraped)
    encoded_content: Optional[str] = None  # content:encoded from the feed
    summary: Optional[str] = None  # Feed description, may contain HTML
    snippet: Optional[str] = None  # Plain-text version of summary
    creator: Optional[str] = None
    published_at: Optional[datetime] = None


@dataclass(frozen=True)
class Analysis:
    headline: str
    source: str
    summary: str


class AnalysisStatus(str, Enum):
    ANALYZED = "analyzed"
    NOT_FACTUAL = "not_factual"
    FAILED = "failed"


@dataclass(frozen=True)
class AnalysisOutcome:
    status: AnalysisStatus
    analysis: Optional[Analysis] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is AnalysisStatus.ANALYZED


@dataclass
class Article:
    """Row ready for the articles table (id and timestamps are set on insert)"""
    url: Optional[str]
    title: str
    publication: str
    authors: List[str]
    date_published: Optional[str]
    content: str
    source: str
    headline: str
    summary: str


class ItemStatus(str, Enum):
    STORED = "stored"
    NOT_FACTUAL = "not_factual"
    ANALYSIS_FAILED = "analysis_failed"
    INCOMPLETE = "incomplete"


@dataclass
class ItemResult:
    url: Optional[str]
    title: str
    status: ItemStatus
    article: Optional[Article] = None
    content_error: Optional[str] = None
    error: Optional[str] = None


@dataclass
class PipelineReport:
    fetched: int = 0
    feed_errors: Dict[str, str] = field(default_factory=dict)
    duplicates: int = 0
    candidates: int = 0
    results: List[ItemResult] = field(default_factory=list)
    persisted: int = 0

    def count(self, status: ItemStatus) -> int:
        return sum(1 for r in self.results if r.status is status)

    @property
    def content_errors(self) -> int:
        return sum(1 for r in self.results if r.content_error)

    def summary_line(self) -> str:
        return (
            f"fetched={self.fetched} feed_errors={len(self.feed_errors)} "
            f"duplicates={self.duplicates} candidates={self.candidates} "
            f"content_errors={self.content_errors} "
            f"not_factual={self.count(ItemStatus.NOT_FACTUAL)} "
            f"analysis_failed={self.count(ItemStatus.ANALYSIS_FAILED)} "
            f"incomplete={self.count(ItemStatus.INCOMPLETE)} "
            f"persisted={self.persisted}"
        )
