"""article_scout.parser.article: article fields (author, date, summary, tags…) from a parsed page.

Each field is taken from a cascade of candidates in priority order; the first
non-empty value wins.
"""
from __future__ import annotations

import math
from typing import Callable, Iterable, List, Optional

from bs4 import BeautifulSoup

from article_scout.crawler.models import ArticleData
from article_scout.parser.html_parser import clean_text, extract_content
from article_scout.parser.text_stats import count_words, detect_language, estimate_difficulty

WORDS_PER_MINUTE = 200

Candidate = Callable[[BeautifulSoup], Optional[str]]


def _text(selector: str) -> Candidate:
    def pick(soup: BeautifulSoup) -> Optional[str]:
        for element in soup.select(selector):
            value = clean_text(element.get_text(" "))
            if value:
                return value
        return None
    return pick


def _attr(selector: str, attr: str) -> Candidate:
    def pick(soup: BeautifulSoup) -> Optional[str]:
        for element in soup.select(selector):
            value = element.get(attr)
            if isinstance(value, list):
                value = " ".join(value)
            if value and value.strip():
                return value.strip()
        return None
    return pick


def _meta(key: str, value: str) -> Candidate:
    return _attr(f'meta[{key}="{value}"]', "content")


def _first(soup: BeautifulSoup, candidates: Iterable[Candidate]) -> Optional[str]:
    for candidate in candidates:
        value = candidate(soup)
        if value:
            return value
    return None


TITLE_CANDIDATES: List[Candidate] = [
    _text("h1"),
    _text("title"),
    _meta("property", "og:title"),
    _meta("name", "twitter:title"),
]

AUTHOR_CANDIDATES: List[Candidate] = [
    _text('[rel="author"]'),
    _meta("name", "author"),
    _text(".author, .byline, .writer"),
    _meta("property", "article:author"),
    _meta("name", "twitter:creator"),
]

DATE_CANDIDATES: List[Candidate] = [
    _attr("time[datetime]", "datetime"),
    _meta("property", "article:published_time"),
    _meta("name", "date"),
    _attr(".date[datetime], .published[datetime]", "datetime"),
]

SUMMARY_CANDIDATES: List[Candidate] = [
    _meta("name", "description"),
    _meta("property", "og:description"),
    _meta("name", "twitter:description"),
    _text(".summary, .excerpt, .lead"),
]

LANGUAGE_CANDIDATES: List[Candidate] = [
    _attr("html[lang]", "lang"),
    _meta("name", "language"),
    _meta("property", "og:locale"),
]

TAG_SELECTOR = ".tags a, .tag, .category, .label"


def extract_tags(soup: BeautifulSoup) -> List[str]:
    tags: List[str] = []
    for element in soup.select(TAG_SELECTOR):
        tag = clean_text(element.get_text(" "))
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def reading_time(content: str) -> int:
    """Minutes needed at :data:`WORDS_PER_MINUTE`."""
    return math.ceil(count_words(content) / WORDS_PER_MINUTE)


def page_language(soup: BeautifulSoup) -> Optional[str]:
    """Language declared by the markup itself, if any."""
    return _first(soup, LANGUAGE_CANDIDATES)


def extract_article(
    soup: BeautifulSoup,
    selector: Optional[str] = None,
    content: Optional[str] = None,
) -> ArticleData:
    """Build :class:`ArticleData` from *soup*.

    *content* may be passed in when the caller already extracted it with the
    same *selector*.
    """
    if content is None:
        content = extract_content(soup, selector)
    return ArticleData(
        title=_first(soup, TITLE_CANDIDATES) or "",
        content=content,
        author=_first(soup, AUTHOR_CANDIDATES),
        publish_date=_first(soup, DATE_CANDIDATES),
        summary=_first(soup, SUMMARY_CANDIDATES),
        tags=extract_tags(soup),
        reading_time=reading_time(content),
        language=page_language(soup) or detect_language(content),
        difficulty=estimate_difficulty(content),
    )
