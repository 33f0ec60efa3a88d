"""article_scout.aggregator: summary report over a list of crawl results."""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, TypedDict

from article_scout.crawler.models import CrawlResult


class PageInfo(TypedDict, total=False):
    """One crawled page as shown in reports."""

    url: str
    title: str
    depth: int
    timestamp: str
    language: Optional[str]
    difficulty: Optional[str]
    keywords: List[str]
    links: int
    author: Optional[str]
    publish_date: Optional[str]
    summary: Optional[str]
    reading_time: Optional[int]
    content: str


@dataclass(slots=True)
class CrawlReport:
    """Crawl results plus language/difficulty distribution and overall keywords."""

    seed_url: str = ""
    pages: List[PageInfo] = field(default_factory=list)
    languages: Dict[str, int] = field(default_factory=dict)
    difficulties: Dict[str, int] = field(default_factory=dict)
    top_keywords: List[str] = field(default_factory=list)
    stats: Dict[str, int] = field(default_factory=dict)

    def json(self, *, pretty: bool = False) -> str:
        return json.dumps(asdict(self), ensure_ascii=False, indent=2 if pretty else None)


def _page_info(result: CrawlResult, content_limit: int) -> PageInfo:
    article = result.article
    return {
        "url": result.url,
        "title": (article.title if article and article.title else result.title),
        "depth": result.depth,
        "timestamp": result.timestamp.isoformat(),
        "language": result.language,
        "difficulty": result.difficulty,
        "keywords": list(result.keywords or []),
        "links": len(result.links),
        "author": article.author if article else None,
        "publish_date": article.publish_date if article else None,
        "summary": article.summary if article else None,
        "reading_time": article.reading_time if article else None,
        "content": result.content[:content_limit],
    }


def aggregate_results(
    results: List[CrawlResult],
    *,
    seed_url: str = "",
    stats: Optional[Dict[str, int]] = None,
    content_limit: int = 500,
    keyword_limit: int = 20,
) -> CrawlReport:
    """Build a :class:`CrawlReport`; page content is shortened to *content_limit* chars."""
    languages: Counter[str] = Counter(r.language for r in results if r.language)
    difficulties: Counter[str] = Counter(r.difficulty for r in results if r.difficulty)
    keywords: Counter[str] = Counter()
    for r in results:
        keywords.update(r.keywords or [])
    return CrawlReport(
        seed_url=seed_url,
        pages=[_page_info(r, content_limit) for r in results],
        languages=dict(languages),
        difficulties=dict(difficulties),
        top_keywords=[k for k, _ in keywords.most_common(keyword_limit)],
        stats=dict(stats or {"results": len(results)}),
    )


def report_to_dict(report: CrawlReport) -> Dict[str, Any]:
    return asdict(report)
