"""
Service-level wrappers around :class:`AsyncCrawler` for one-off crawls.
"""
from typing import List, Optional

from article_scout.config import CrawlOptions
from article_scout.crawler.crawler import AsyncCrawler
from article_scout.crawler.models import CrawlResult
from article_scout.crawler.results import ResultCache


async def crawl_url(url: str, options: Optional[CrawlOptions] = None) -> List[CrawlResult]:
    """
    Crawl *url* with a fresh crawler and return its results.

    Parameters
    ----------
    url : str
        Seed URL.
    options : CrawlOptions, optional
        Crawl options; defaults apply when omitted.
    """
    async with AsyncCrawler(options) as crawler:
        return await crawler.crawl(url)


async def crawl_url_with_cache(
    url: str,
    options: Optional[CrawlOptions] = None,
    max_age_ms: int = 5 * 60 * 1000,
    cache: Optional[ResultCache] = None,
) -> List[CrawlResult]:
    """
    Like :func:`crawl_url`, but replays a recent result for the same seed.

    Returns a single-element list when the cache hit is younger than
    *max_age_ms*. Pass the same *cache* to successive calls to share
    results between them; without one the call gets a fresh, empty cache.
    """
    async with AsyncCrawler(options, cache=cache if cache is not None else ResultCache()) as crawler:
        return await crawler.crawl_with_cache(url, max_age_ms)


__all__ = ["crawl_url", "crawl_url_with_cache"]
