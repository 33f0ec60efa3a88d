"""
Sitemap discovery: expands /sitemap.xml (and nested sitemap indexes) into
depth-0 frontier items.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Set
from urllib.parse import urlsplit, urlunsplit

from article_scout.crawler.fetcher import Fetcher
from article_scout.crawler.frontier import Frontier
from article_scout.parser.sitemap_parser import parse_sitemap
from article_scout.utils import is_valid_url

logger = logging.getLogger("ArticleScout")


class SitemapLoader:
    """Loads sitemaps for one run. Every failure is logged and swallowed."""

    def __init__(self, fetcher: Fetcher, frontier: Frontier) -> None:
        self.fetcher = fetcher
        self.frontier = frontier
        self._seen: Set[str] = set()

    async def load(self, seed_url: str) -> int:
        """Admit the URLs of ``{scheme}://{host}/sitemap.xml``; returns how many were admitted."""
        parsed = urlsplit(seed_url)
        sitemap_url = urlunsplit((parsed.scheme, parsed.netloc, "/sitemap.xml", "", ""))
        return await self._load_one(sitemap_url)

    async def _load_one(self, sitemap_url: str) -> int:
        if sitemap_url in self._seen:
            logger.debug("Sitemap already loaded: %s", sitemap_url)
            return 0
        self._seen.add(sitemap_url)

        text = await self.fetcher.fetch_text(sitemap_url)
        if text is None:
            logger.warning("Could not load sitemap: %s", sitemap_url)
            return 0

        doc = parse_sitemap(text)
        if doc.kind == "index":
            nested = [loc for loc in doc.locs if is_valid_url(loc)]
            counts = await asyncio.gather(*(self._load_one(loc) for loc in nested))
            admitted = sum(counts)
        elif doc.kind == "urlset":
            admitted = 0
            for loc in doc.locs:
                if is_valid_url(loc) and await self.frontier.admit(loc, 0):
                    admitted += 1
        else:
            logger.warning("Not a sitemap document: %s", sitemap_url)
            return 0

        logger.info("Loaded sitemap %s (%d URLs queued)", sitemap_url, admitted)
        return admitted

    def reset(self) -> None:
        self._seen.clear()
