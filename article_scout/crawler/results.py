"""
Result storage: the per-run result map and the TTL cache of whole crawls.
"""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from article_scout.crawler.models import CrawlResult

Clock = Callable[[], float]


class ResultStore:
    """Normalized URL → CrawlResult, in insertion (completion) order.

    The cap is enforced under the lock, so concurrent workers never push the
    store past ``max_pages``.
    """

    def __init__(self, max_pages: int) -> None:
        self.max_pages = max_pages
        self._results: Dict[str, CrawlResult] = {}
        self._lock = asyncio.Lock()

    async def add(self, result: CrawlResult) -> bool:
        async with self._lock:
            if result.url in self._results or len(self._results) >= self.max_pages:
                return False
            self._results[result.url] = result
            return True

    @property
    def is_full(self) -> bool:
        return len(self._results) >= self.max_pages

    def get(self, url: str) -> Optional[CrawlResult]:
        return self._results.get(url)

    def values(self) -> List[CrawlResult]:
        return list(self._results.values())

    def clear(self) -> None:
        self._results.clear()
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._results)

    def __contains__(self, url: object) -> bool:
        return url in self._results


@dataclass(slots=True)
class _CacheEntry:
    result: CrawlResult
    stored_at: float


class ResultCache:
    """Seed URL → first result of a previous crawl, with age checked on read.

    *clock* returns seconds; inject a fake one in tests.
    """

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[str, _CacheEntry] = {}

    def get(self, key: str, max_age_ms: int) -> Optional[CrawlResult]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        age_ms = (self._clock() - entry.stored_at) * 1000
        if age_ms >= max_age_ms:
            return None
        return entry.result

    def put(self, key: str, result: CrawlResult) -> None:
        self._entries[key] = _CacheEntry(result, self._clock())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
