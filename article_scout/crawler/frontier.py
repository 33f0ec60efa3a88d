"""
Frontier: FIFO queue of pending pages plus the visited set of the current run.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional, Set
from urllib.parse import urlsplit

from article_scout.config import CrawlOptions
from article_scout.crawler.models import QueueItem
from article_scout.utils import is_valid_url, normalize_url

logger = logging.getLogger("ArticleScout")


class Frontier:
    """Admission filters, FIFO queue and visited tracking shared by all workers.

    A URL is admitted at most once per run: the admitted set only grows until
    :meth:`reset`. The underlying :class:`asyncio.Queue` keeps track of
    unfinished items so the scheduler can ``join()`` it.
    """

    def __init__(self, options: CrawlOptions) -> None:
        self.options = options
        self._queue: asyncio.Queue[QueueItem] = asyncio.Queue()
        self._admitted: Set[str] = set()
        self._visited: Set[str] = set()
        self._lock = asyncio.Lock()

    def _reject_reason(self, url: str, depth: int) -> Optional[str]:
        if depth > self.options.max_depth:
            return "too deep"
        parsed = urlsplit(url)
        host = parsed.hostname or ""
        allowed = self.options.allowed_domains
        if allowed and not any(domain in host for domain in allowed):
            return "domain not allowed"
        path = parsed.path.lower()
        if any(path.endswith(f".{ext}") for ext in self.options.disallowed_extensions):
            return "extension not allowed"
        return None

    async def admit(self, url: str, depth: int, parent_url: Optional[str] = None) -> bool:
        """Queue *url* unless a filter rejects it. Rejection is silent (returns False)."""
        if not is_valid_url(url):
            return False
        normalized = normalize_url(url)
        reason = self._reject_reason(normalized, depth)
        if reason:
            logger.debug("Not queued (%s): %s", reason, normalized)
            return False
        async with self._lock:
            if normalized in self._visited or normalized in self._admitted:
                return False
            self._admitted.add(normalized)
            self._queue.put_nowait(QueueItem(normalized, depth, parent_url, source_url=url))
        return True

    def dequeue(self) -> Optional[QueueItem]:
        """Pop the oldest pending item, or None when the queue is drained."""
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None

    async def get(self) -> QueueItem:
        """Wait for the next pending item."""
        return await self._queue.get()

    def task_done(self) -> None:
        self._queue.task_done()

    async def join(self) -> None:
        """Block until every dequeued item has been marked done."""
        await self._queue.join()

    async def mark_visited(self, url: str) -> bool:
        """Record *url* as visited. False if another worker got there first."""
        async with self._lock:
            if url in self._visited:
                return False
            self._visited.add(url)
            return True

    def is_visited(self, url: str) -> bool:
        return url in self._visited

    def clear(self) -> int:
        """Discard every pending item; returns how many were dropped."""
        dropped = 0
        while True:
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            self._queue.task_done()
            dropped += 1
        return dropped

    def reset(self) -> None:
        """Forget everything from the previous run."""
        self._queue = asyncio.Queue()
        self._lock = asyncio.Lock()
        self._admitted.clear()
        self._visited.clear()

    @property
    def size(self) -> int:
        return self._queue.qsize()

    @property
    def visited_count(self) -> int:
        return len(self._visited)
