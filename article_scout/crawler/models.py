"""
Data models for the ArticleScout crawler.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

Difficulty = Literal["easy", "medium", "hard"]


@dataclass(slots=True, frozen=True)
class QueueItem:
    """A normalized URL waiting in the frontier.

    ``source_url`` keeps the link as it was found, before normalisation.
    """

    url: str
    depth: int
    parent_url: Optional[str] = None
    source_url: Optional[str] = None


@dataclass(slots=True)
class ArticleData:
    """Structured article fields derived from a single page."""

    title: str
    content: str
    author: Optional[str] = None
    publish_date: Optional[str] = None
    summary: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    reading_time: Optional[int] = None
    language: Optional[str] = None
    difficulty: Optional[Difficulty] = None


@dataclass(slots=True)
class CrawlResult:
    """Everything extracted from one crawled page."""

    url: str
    title: str
    content: str
    links: List[str]
    metadata: Dict[str, Any]
    depth: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    article: Optional[ArticleData] = None
    keywords: Optional[List[str]] = None
    language: Optional[str] = None
    difficulty: Optional[Difficulty] = None

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready representation (timestamp as ISO-8601)."""
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


@dataclass(slots=True)
class FetchedPage:
    """Raw HTML of a successfully fetched page."""

    url: str
    content: str
