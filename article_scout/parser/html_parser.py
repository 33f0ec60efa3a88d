"""HTML parsing utilities for ArticleScout.

:func:`parse_html` turns raw markup into a :class:`ParsedPage`:

* title   : document ``<title>`` text or ``""`` if absent.
* content : cleaned main text (at most :data:`MAX_CONTENT_LENGTH` chars).
* links   : absolute, de-duplicated http(s) URLs from ``<a href>``.
* metadata: ``<meta>`` name/property pairs, canonical URL and ``<h1>`` texts.

The parsed tree is kept on the result for further extraction
(:mod:`article_scout.parser.article`). Nothing here mutates that tree: noise
removal always happens on a copy.
"""
from __future__ import annotations

import copy
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag
from soupsieve import SelectorSyntaxError

from article_scout.utils import is_valid_url, remove_duplicates

logger = logging.getLogger("ArticleScout")

__all__: Sequence[str] = (
    "ParsedPage",
    "parse_document",
    "parse_html",
    "extract_content",
    "extract_links",
    "extract_metadata",
    "clean_text",
)

MAX_CONTENT_LENGTH = 10_000
#: minimum text length for a semantic container to count as the main content
MIN_CONTENT_LENGTH = 100

NOISE_SELECTOR = (
    "script, style, noscript, template, nav, footer, aside, "
    ".sidebar, .ads, .advertisement, .social-share, .comments, .related-posts"
)

ARTICLE_SELECTORS: tuple[str, ...] = (
    "article",
    '[role="main"]',
    ".post-content",
    ".entry-content",
    ".article-content",
    ".story-body",
    ".content-body",
    ".article-body",
    ".post-body",
    "main",
    ".content",
    ".post",
    ".entry",
)


@dataclass(slots=True)
class ParsedPage:
    """Base fields of a crawled page plus the tree they came from."""

    url: str
    title: str
    content: str
    links: list[str]
    metadata: dict[str, Any]
    soup: BeautifulSoup = field(repr=False)


def parse_document(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def clean_text(text: str) -> str:
    """Collapse every run of whitespace into a single space."""
    return " ".join(text.split())


def _without_noise(soup: BeautifulSoup) -> BeautifulSoup:
    view = copy.copy(soup)
    for element in view.select(NOISE_SELECTOR):
        element.decompose()
    return view


def extract_content(soup: BeautifulSoup, selector: Optional[str] = None) -> str:
    """Main text of the page.

    Order: *selector* (if it matches anything), the first semantic container
    from :data:`ARTICLE_SELECTORS` whose text is longer than
    :data:`MIN_CONTENT_LENGTH`, then the whole ``<body>``.
    """
    view = _without_noise(soup)

    if selector:
        try:
            selected = view.select(selector)
        except SelectorSyntaxError as exc:
            logger.warning("Invalid content selector %r: %s", selector, exc)
            selected = []
        if selected:
            text = clean_text(" ".join(el.get_text(" ") for el in selected))
            return text[:MAX_CONTENT_LENGTH]
        logger.warning("No elements found with selector: %s", selector)

    for candidate in ARTICLE_SELECTORS:
        element = view.select_one(candidate)
        if element is None:
            continue
        text = clean_text(element.get_text(" "))
        if len(text) > MIN_CONTENT_LENGTH:
            return text[:MAX_CONTENT_LENGTH]

    body = view.body or view
    return clean_text(body.get_text(" "))[:MAX_CONTENT_LENGTH]


def extract_links(soup: BeautifulSoup, base_url: str) -> list[str]:
    """Absolute http(s) links of the page, de-duplicated in document order."""
    links: list[str] = []
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if not isinstance(href_val, str):
            continue
        raw = href_val.strip()
        if not raw or raw.startswith(("mailto:", "javascript:", "tel:")):
            continue
        try:
            absolute = urljoin(base_url, raw)
        except ValueError:
            continue
        if is_valid_url(absolute):
            links.append(absolute)
    return remove_duplicates(links)


def extract_metadata(soup: BeautifulSoup) -> dict[str, Any]:
    metadata: dict[str, Any] = {}
    for meta in soup.find_all("meta"):
        name = meta.get("name") or meta.get("property")
        content = meta.get("content")
        if name and content:
            metadata[str(name)] = str(content)

    canonical = soup.select_one('link[rel="canonical"]')
    if canonical is not None and canonical.get("href"):
        metadata["canonical"] = str(canonical["href"])

    headings = [h.get_text(strip=True) for h in soup.find_all("h1")]
    if headings:
        metadata["headings"] = headings
    return metadata


def parse_html(html: str, url: str, selector: Optional[str] = None) -> ParsedPage:
    """Parse *html* fetched from *url* into a :class:`ParsedPage`."""
    soup = parse_document(html)
    title_tag = soup.find("title")
    title = title_tag.get_text(strip=True) if title_tag else ""
    return ParsedPage(
        url=url,
        title=title,
        content=extract_content(soup, selector),
        links=extract_links(soup, url),
        metadata=extract_metadata(soup),
        soup=soup,
    )
