# File: tests/conftest.py
from __future__ import annotations

from typing import Callable, Dict, List, Sequence, Union

import pytest

from article_scout.config import CrawlOptions
from article_scout.crawler.fetcher import HttpResponse

_Reply = Union[HttpResponse, BaseException]


class FakeTransport:
    """In-memory HttpTransport.

    Each URL owns a list of replies consumed in order; the last one repeats.
    Unknown URLs answer 404. Every requested URL is recorded in ``calls``.
    """

    def __init__(self) -> None:
        self.routes: Dict[str, List[_Reply]] = {}
        self.calls: List[str] = []

    def add(self, url: str, *replies: _Reply) -> FakeTransport:
        self.routes.setdefault(url, []).extend(replies)
        return self

    def html(self, url: str, markup: str) -> FakeTransport:
        return self.add(url, HttpResponse(200, "text/html; charset=utf-8", markup))

    def text(self, url: str, body: str, content_type: str = "text/plain") -> FakeTransport:
        return self.add(url, HttpResponse(200, content_type, body))

    def count(self, url: str) -> int:
        return self.calls.count(url)

    async def get(self, url: str) -> HttpResponse:
        self.calls.append(url)
        replies = self.routes.get(url)
        if not replies:
            return HttpResponse(404, "text/plain", "")
        reply = replies.pop(0) if len(replies) > 1 else replies[0]
        if isinstance(reply, BaseException):
            raise reply
        return reply


def make_page(title: str, links: Sequence[str] = (), body: str = "") -> str:
    """Small HTML document with a title, some text and links."""
    anchors = "".join(f'<a href="{href}">{href}</a>' for href in links)
    return (
        f"<html><head><title>{title}</title></head>"
        f"<body><h1>{title}</h1><p>{body or 'Some plain page text.'}</p>{anchors}</body></html>"
    )


@pytest.fixture()
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def page() -> Callable[..., str]:
    return make_page


@pytest.fixture()
def sleeps() -> List[float]:
    """Records every delay passed to the injected sleep function."""
    return []


@pytest.fixture()
def fake_sleep(sleeps: List[float]):
    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return _sleep


@pytest.fixture()
def options_factory() -> Callable[..., CrawlOptions]:
    """CrawlOptions tuned for tests: no delays, no sitemap unless asked."""

    def _make(**overrides) -> CrawlOptions:
        params = dict(
            crawl_delay_ms=0,
            retry_delay_ms=0,
            timeout_ms=2000,
            user_agent="TestAgent/1.0",
            follow_sitemap=False,
        )
        params.update(overrides)
        return CrawlOptions(**params)

    return _make
