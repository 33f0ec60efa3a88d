# === FILE: article_scout/crawler/crawler.py ===
from __future__ import annotations

import asyncio
import logging
import time
from typing import Dict, List, Optional

from article_scout.config import CrawlOptions
from article_scout.crawler.fetcher import AiohttpTransport, Fetcher, HttpTransport, SleepFunc
from article_scout.crawler.frontier import Frontier
from article_scout.crawler.models import CrawlResult, FetchedPage, QueueItem
from article_scout.crawler.results import ResultCache, ResultStore
from article_scout.crawler.robots import PolicyStore
from article_scout.crawler.sitemap import SitemapLoader
from article_scout.exceptions import CrawlerBusyError, FetchError
from article_scout.parser.article import extract_article, page_language
from article_scout.parser.html_parser import parse_html
from article_scout.parser.text_stats import detect_language, estimate_difficulty, extract_keywords
from article_scout.utils import normalize_url

__all__ = ("AsyncCrawler",)


class AsyncCrawler:
    """Asynchronous crawler honouring robots.txt, crawl-delay and retries.

    One instance runs one crawl at a time. Per-run state (frontier, results,
    robots cache) is reset at the start of every :meth:`crawl`; the
    :class:`ResultCache` used by :meth:`crawl_with_cache` survives across runs.

    Without an injected *transport* the crawler opens its own aiohttp session,
    either for the lifetime of ``async with`` or for a single ``crawl()``.
    """

    def __init__(
        self,
        options: Optional[CrawlOptions] = None,
        *,
        transport: Optional[HttpTransport] = None,
        cache: Optional[ResultCache] = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.options = options or CrawlOptions()
        self.logger = logging.getLogger("ArticleScout")
        self.cache = cache if cache is not None else ResultCache()
        self.frontier = Frontier(self.options)
        self.results = ResultStore(self.options.max_pages)
        self.disallowed_pages: List[str] = []
        self.failed_pages: List[str] = []
        self._sleep = sleep
        self._transport: Optional[HttpTransport] = None
        self._owned_transport: Optional[AiohttpTransport] = None
        self._busy = False
        self._stop_requested = False
        self._workers: List[asyncio.Task[None]] = []
        if transport is not None:
            self._bind(transport)

    def _bind(self, transport: HttpTransport) -> None:
        self._transport = transport
        self.fetcher = Fetcher(transport, self.options, sleep=self._sleep)
        self.policy = PolicyStore(self.fetcher, self.options)
        self.sitemap = SitemapLoader(self.fetcher, self.frontier)

    async def _open(self) -> bool:
        if self._transport is not None:
            return False
        self._owned_transport = AiohttpTransport.from_options(self.options)
        self._bind(self._owned_transport)
        return True

    async def _close(self) -> None:
        if self._owned_transport is not None:
            await self._owned_transport.close()
            self._owned_transport = None
            self._transport = None

    async def __aenter__(self) -> AsyncCrawler:
        await self._open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self._close()

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    @property
    def is_running(self) -> bool:
        return self._busy and not self._stop_requested

    async def crawl(self, seed_url: str) -> List[CrawlResult]:
        """Crawl from *seed_url*; results come back in completion order.

        Only a concurrent call on the same instance raises
        (:class:`CrawlerBusyError`); every per-page problem just means that
        page yields no result.
        """
        if self._busy:
            raise CrawlerBusyError("Crawler is already running")
        self._busy = True
        self._reset()
        opened = await self._open()
        try:
            self.logger.info("Crawl started: %s", seed_url)
            start = time.monotonic()
            if not await self.frontier.admit(seed_url, 0):
                self.logger.warning("Seed URL rejected: %s", seed_url)
                return []
            if self.options.respect_robots:
                await self.policy.ensure_loaded(seed_url)
            if self.options.follow_sitemap:
                await self.sitemap.load(seed_url)
            await self._run_pool()
            results = self.results.values()
            duration = time.monotonic() - start
            self.logger.info(
                "Finished: %d pages in %.2f s (%d failed, %d blocked by robots.txt)",
                len(results), duration, len(self.failed_pages), len(self.disallowed_pages),
            )
            return results
        finally:
            self._busy = False
            self._workers = []
            if opened:
                await self._close()

    def stop(self, hard: bool = False) -> None:
        """Stop taking new work. With *hard* also cancel in-flight requests."""
        self._stop_requested = True
        dropped = self.frontier.clear()
        self.logger.info("Stop requested, %d queued URLs dropped", dropped)
        if hard:
            for worker in self._workers:
                worker.cancel()

    def stats(self) -> Dict[str, int]:
        return {
            "visited": self.frontier.visited_count,
            "queued": self.frontier.size,
            "results": len(self.results),
        }

    async def crawl_with_cache(self, seed_url: str, max_age_ms: Optional[int] = None) -> List[CrawlResult]:
        """Replay the cached result for *seed_url* if it is fresh, otherwise crawl and cache."""
        max_age = self.options.cache_max_age_ms if max_age_ms is None else max_age_ms
        key = normalize_url(seed_url)
        cached = self.cache.get(key, max_age)
        if cached is not None:
            self.logger.info("Using cached result for: %s", seed_url)
            return [cached]
        results = await self.crawl(seed_url)
        if results:
            first = next((r for r in results if r.url == key), results[0])
            self.cache.put(key, first)
        return results

    # ------------------------------------------------------------------ #
    # Worker pool
    # ------------------------------------------------------------------ #

    def _reset(self) -> None:
        self._stop_requested = False
        self.frontier.reset()
        self.results.clear()
        self.disallowed_pages.clear()
        self.failed_pages.clear()
        if self._transport is not None:
            self.policy.clear()
            self.sitemap.reset()

    async def _run_pool(self) -> None:
        self._workers = [
            asyncio.create_task(self._worker(), name=f"crawl-worker-{i}")
            for i in range(self.options.concurrency)
        ]
        try:
            await self.frontier.join()
        finally:
            for w in self._workers:
                w.cancel()
            await asyncio.gather(*self._workers, return_exceptions=True)

    async def _worker(self) -> None:
        while True:
            item = await self.frontier.get()
            delay_ms = 0
            try:
                if self._stop_requested or self.results.is_full:
                    continue
                if self.frontier.is_visited(item.url):
                    continue
                if await self._fetch_and_extract(item):
                    delay_ms = self.policy.crawl_delay_ms(item.url)
            except FetchError as exc:
                self.failed_pages.append(item.url)
                self.logger.error("Error crawling %s: %s", item.url, exc)
                delay_ms = self.policy.crawl_delay_ms(item.url)
            except Exception:
                self.logger.exception("Unexpected error crawling %s", item.url)
            finally:
                self.frontier.task_done()
            if delay_ms > 0 and not self._stop_requested:
                await self._sleep(delay_ms / 1000)

    async def _fetch_and_extract(self, item: QueueItem) -> bool:
        """Process one item. Returns True when a request was sent to the host."""
        url = item.url
        if self.options.respect_robots:
            await self.policy.ensure_loaded(url)
            if not self.policy.is_allowed(url, item.source_url):
                self.logger.info("robots.txt disallows crawling: %s", url)
                self.disallowed_pages.append(url)
                return False

        if not await self.frontier.mark_visited(url):
            return False

        page = await self.fetcher.fetch(url)
        if page is None:
            return True

        result = self._build_result(page, item)
        if not await self.results.add(result):
            self.logger.debug("Result store full, dropping %s", url)
            return True
        self.logger.info("Crawled [%d]: %s", item.depth, url)

        if item.depth < self.options.max_depth and not self._stop_requested and not self.results.is_full:
            for link in result.links:
                await self.frontier.admit(link, item.depth + 1, url)
        return True

    def _build_result(self, page: FetchedPage, item: QueueItem) -> CrawlResult:
        opts = self.options
        parsed = parse_html(page.content, page.url, opts.selector)
        result = CrawlResult(
            url=item.url,
            title=parsed.title,
            content=parsed.content,
            links=parsed.links,
            metadata=parsed.metadata,
            depth=item.depth,
        )
        if opts.extract_article_data:
            result.article = extract_article(parsed.soup, opts.selector, content=parsed.content)

        title = result.article.title if result.article else result.title
        if opts.extract_keywords:
            result.keywords = extract_keywords(result.content, title)
        if opts.detect_language:
            result.language = (
                (result.article.language if result.article else None)
                or page_language(parsed.soup)
                or detect_language(result.content)
            )
        result.difficulty = (
            result.article.difficulty if result.article else None
        ) or estimate_difficulty(result.content)
        return result
