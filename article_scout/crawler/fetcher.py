# article_scout/crawler/fetcher.py
"""
Fetcher module: HTTP GET with retry/backoff on top of a pluggable transport.

The crawler never talks to aiohttp directly; it goes through
:class:`HttpTransport`, so tests can substitute a fake transport.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional, Protocol

from aiohttp import ClientError, ClientSession, ClientTimeout

from article_scout.config import CrawlOptions
from article_scout.crawler.models import FetchedPage
from article_scout.exceptions import FetchError

logger = logging.getLogger("ArticleScout")

SleepFunc = Callable[[float], Awaitable[None]]

BASE_HEADERS: Dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}


@dataclass(slots=True)
class HttpResponse:
    """Minimal response view the crawler needs."""

    status: int
    content_type: str
    text: str


class HttpTransport(Protocol):
    """Anything able to perform a GET. Errors surface as aiohttp ClientError or TimeoutError."""

    async def get(self, url: str) -> HttpResponse: ...


def _is_textual(content_type: str) -> bool:
    return content_type.startswith("text/") or "xml" in content_type


class AiohttpTransport:
    """:class:`HttpTransport` backed by an aiohttp ``ClientSession``."""

    def __init__(self, session: ClientSession) -> None:
        self.session = session

    @classmethod
    def from_options(cls, options: CrawlOptions) -> AiohttpTransport:
        session = ClientSession(
            timeout=ClientTimeout(total=options.timeout),
            headers={"User-Agent": options.user_agent, **BASE_HEADERS},
            raise_for_status=False,
        )
        return cls(session)

    async def get(self, url: str) -> HttpResponse:
        async with self.session.get(url) as resp:
            ctype = resp.headers.get("Content-Type", "").lower()
            text = ""
            if resp.status == 200 and _is_textual(ctype):
                text = await resp.text(errors="replace")
            return HttpResponse(resp.status, ctype, text)

    async def close(self) -> None:
        if not self.session.closed:
            await self.session.close()


class Fetcher:
    """Fetches pages with linear retry backoff and content-type filtering."""

    def __init__(
        self,
        transport: HttpTransport,
        options: CrawlOptions,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.transport = transport
        self.options = options
        self._sleep = sleep

    async def fetch(self, url: str) -> Optional[FetchedPage]:
        """
        Fetch an HTML page.

        Returns FetchedPage on success and None for a non-HTML body.
        Transport errors, timeouts and every non-200 status are retried;
        running out of attempts raises FetchError.
        """
        attempts = self.options.retry_attempts
        attempt = 0
        while True:
            attempt += 1
            try:
                resp = await self.transport.get(url)
                if resp.status != 200:
                    raise ClientError(f"HTTP {resp.status}")
                if "text/html" not in resp.content_type:
                    logger.info("Skipping non-HTML content: %s (%s)", url, resp.content_type or "unknown")
                    return None
                return FetchedPage(url, resp.text)
            except (ClientError, asyncio.TimeoutError) as exc:
                logger.warning("Attempt %d/%d failed for %s: %s", attempt, attempts, url, str(exc) or type(exc).__name__)
                if attempt >= attempts:
                    raise FetchError(url, attempt, exc) from exc
                backoff = self.options.retry_delay_ms * attempt / 1000
                await self._sleep(backoff)

    async def fetch_text(self, url: str) -> Optional[str]:
        """Single GET for auxiliary files (robots.txt, sitemaps). None on any failure."""
        try:
            resp = await self.transport.get(url)
        except (ClientError, asyncio.TimeoutError) as exc:
            logger.debug("GET %s failed: %s", url, str(exc) or type(exc).__name__)
            return None
        if resp.status != 200:
            logger.debug("GET %s -> HTTP %s", url, resp.status)
            return None
        return resp.text
