import asyncio

import pytest
from aiohttp import ClientConnectionError

from article_scout.crawler.crawler import AsyncCrawler
from article_scout.crawler.results import ResultCache
from article_scout.exceptions import CrawlerBusyError
from conftest import FakeTransport, make_page

SEED = "http://site.test/"


class HookedTransport(FakeTransport):
    """FakeTransport that runs an async hook before answering a chosen URL."""

    def __init__(self, url, hook):
        super().__init__()
        self.hook_url = url
        self.hook = hook

    async def get(self, url):
        if url == self.hook_url:
            await self.hook()
        return await super().get(url)


def fan_out(transport, count, prefix="/p"):
    links = [f"{prefix}{i}" for i in range(count)]
    transport.html(SEED, make_page("Home", links))
    for href in links:
        transport.html(f"http://site.test{href}", make_page(href))
    return [f"http://site.test{href}" for href in links]


@pytest.mark.asyncio()
async def test_max_pages_is_a_hard_cap(fake_transport, options_factory):
    fan_out(fake_transport, 10)
    crawler = AsyncCrawler(options_factory(max_pages=3), transport=fake_transport)

    results = await crawler.crawl(SEED)

    assert len(results) == 3
    assert results[0].url == SEED
    assert crawler.stats()["results"] == 3


@pytest.mark.asyncio()
async def test_results_come_back_in_breadth_first_order(fake_transport, options_factory):
    fake_transport.html(SEED, make_page("Home", ["/a", "/b"]))
    fake_transport.html("http://site.test/a", make_page("A", ["/a/deep"]))
    fake_transport.html("http://site.test/b", make_page("B"))
    fake_transport.html("http://site.test/a/deep", make_page("Deep"))
    crawler = AsyncCrawler(options_factory(concurrency=1), transport=fake_transport)

    results = await crawler.crawl(SEED)

    assert [(r.url, r.depth) for r in results] == [
        (SEED, 0),
        ("http://site.test/a", 1),
        ("http://site.test/b", 1),
        ("http://site.test/a/deep", 2),
    ]
    assert crawler.stats() == {"visited": 4, "queued": 0, "results": 4}


@pytest.mark.asyncio()
async def test_each_page_is_fetched_once(fake_transport, options_factory):
    fake_transport.html(SEED, make_page("Home", ["/a", "/a/", "/a?x=1#top", "/A"]))
    fake_transport.html("http://site.test/a", make_page("A", ["/", "/a"]))
    fake_transport.html("http://site.test/a?x=1", make_page("A with query"))
    crawler = AsyncCrawler(options_factory(), transport=fake_transport)

    results = await crawler.crawl(SEED)

    assert sorted(r.url for r in results) == [SEED, "http://site.test/a", "http://site.test/a?x=1"]
    assert fake_transport.count(SEED) == 1
    assert fake_transport.count("http://site.test/a") == 1


@pytest.mark.asyncio()
async def test_robots_rules_and_crawl_delay(fake_transport, options_factory, sleeps, fake_sleep):
    fake_transport.text(
        "http://site.test/robots.txt",
        "User-agent: *\nDisallow: /private\nCrawl-delay: 2\n",
    )
    fake_transport.html(SEED, make_page("Home", ["/private", "/b"]))
    fake_transport.html("http://site.test/b", make_page("B", ["/private/x"]))
    fake_transport.html("http://site.test/private", make_page("Secret"))
    crawler = AsyncCrawler(
        options_factory(concurrency=1), transport=fake_transport, sleep=fake_sleep
    )

    results = await crawler.crawl(SEED)

    assert [r.url for r in results] == [SEED, "http://site.test/b"]
    assert fake_transport.count("http://site.test/private") == 0
    assert crawler.disallowed_pages == ["http://site.test/private", "http://site.test/private/x"]
    # robots.txt Crawl-delay overrides crawl_delay_ms after every fetched page
    assert sleeps == [2.0, 2.0]


@pytest.mark.asyncio()
async def test_failed_pages_do_not_stop_the_run(fake_transport, options_factory, sleeps, fake_sleep):
    fake_transport.html(SEED, make_page("Home", ["/flaky", "/dead"]))
    fake_transport.add(
        "http://site.test/flaky",
        ClientConnectionError("reset"),
        ClientConnectionError("reset"),
    )
    fake_transport.html("http://site.test/flaky", make_page("Flaky"))
    fake_transport.add("http://site.test/dead", ClientConnectionError("refused"))
    crawler = AsyncCrawler(
        options_factory(retry_attempts=3, retry_delay_ms=10, concurrency=1),
        transport=fake_transport,
        sleep=fake_sleep,
    )

    results = await crawler.crawl(SEED)

    assert [r.url for r in results] == [SEED, "http://site.test/flaky"]
    assert crawler.failed_pages == ["http://site.test/dead"]
    assert fake_transport.count("http://site.test/dead") == 3
    assert sorted(sleeps) == [0.01, 0.01, 0.02, 0.02]


@pytest.mark.asyncio()
async def test_always_failing_page_with_two_attempts(fake_transport, options_factory):
    fake_transport.add(SEED, ClientConnectionError("down"))
    crawler = AsyncCrawler(options_factory(retry_attempts=2), transport=fake_transport)

    results = await asyncio.wait_for(crawler.crawl(SEED), timeout=5)

    assert results == []
    assert fake_transport.count(SEED) == 2
    assert crawler.failed_pages == [SEED]
    assert not crawler.is_running


@pytest.mark.asyncio()
async def test_rejected_seed_gives_empty_result(fake_transport, options_factory):
    crawler = AsyncCrawler(options_factory(), transport=fake_transport)

    assert await crawler.crawl("not a url") == []
    assert await crawler.crawl("http://site.test/file.pdf") == []
    assert fake_transport.calls == []


@pytest.mark.asyncio()
async def test_allowed_domains_keep_the_crawl_on_site(fake_transport, options_factory):
    fake_transport.html(SEED, make_page("Home", ["http://other.test/x", "http://news.site.test/y"]))
    fake_transport.html("http://news.site.test/y", make_page("Y"))
    options = options_factory(allowed_domains=["site.test"], respect_robots=False)
    crawler = AsyncCrawler(options, transport=fake_transport)

    results = await crawler.crawl(SEED)

    assert sorted(r.url for r in results) == ["http://news.site.test/y", SEED]
    assert fake_transport.count("http://other.test/x") == 0


@pytest.mark.asyncio()
async def test_sitemap_seeds_the_queue(fake_transport, options_factory):
    fake_transport.html(SEED, make_page("Home"))
    fake_transport.text(
        "http://site.test/sitemap.xml",
        "<urlset><url><loc>http://site.test/s1</loc></url><url><loc>http://site.test/s2</loc></url></urlset>",
        "application/xml",
    )
    fake_transport.html("http://site.test/s1", make_page("S1"))
    fake_transport.html("http://site.test/s2", make_page("S2"))
    crawler = AsyncCrawler(
        options_factory(follow_sitemap=True, max_depth=0, concurrency=1), transport=fake_transport
    )

    results = await crawler.crawl(SEED)

    assert [(r.url, r.depth) for r in results] == [
        (SEED, 0),
        ("http://site.test/s1", 0),
        ("http://site.test/s2", 0),
    ]


@pytest.mark.asyncio()
async def test_optional_extraction_can_be_disabled(fake_transport, options_factory):
    fake_transport.html(SEED, make_page("Home", body="Plain words here."))
    options = options_factory(extract_article_data=False, detect_language=False, extract_keywords=False)
    crawler = AsyncCrawler(options, transport=fake_transport)

    (result,) = await crawler.crawl(SEED)

    assert result.title == "Home"
    assert result.article is None
    assert result.keywords is None
    assert result.language is None
    assert result.difficulty == "easy"


@pytest.mark.asyncio()
async def test_second_crawl_while_running_is_rejected(options_factory):
    release = asyncio.Event()
    transport = HookedTransport(SEED, release.wait)
    transport.html(SEED, make_page("Home"))
    crawler = AsyncCrawler(options_factory(), transport=transport)

    task = asyncio.create_task(crawler.crawl(SEED))
    await asyncio.sleep(0.01)
    assert crawler.is_running

    with pytest.raises(CrawlerBusyError):
        await crawler.crawl(SEED)

    release.set()
    results = await asyncio.wait_for(task, timeout=5)
    assert [r.url for r in results] == [SEED]
    assert not crawler.is_running
    # the instance can be reused once the run is over
    assert len(await crawler.crawl(SEED)) == 1


@pytest.mark.asyncio()
async def test_stop_drops_pending_work(options_factory):
    holder = {}

    async def stop_now():
        holder["crawler"].stop()

    transport = HookedTransport("http://site.test/p0", stop_now)
    fan_out(transport, 20)
    crawler = holder["crawler"] = AsyncCrawler(options_factory(concurrency=1), transport=transport)

    results = await asyncio.wait_for(crawler.crawl(SEED), timeout=5)

    # the in-flight page still completes
    assert [r.url for r in results] == [SEED, "http://site.test/p0"]
    assert crawler.stats()["queued"] == 0
    assert transport.count("http://site.test/p1") == 0


@pytest.mark.asyncio()
async def test_hard_stop_cancels_in_flight_requests(options_factory):
    started = asyncio.Event()

    async def hang():
        started.set()
        await asyncio.Event().wait()

    transport = HookedTransport("http://site.test/p0", hang)
    fan_out(transport, 5)
    crawler = AsyncCrawler(options_factory(concurrency=1), transport=transport)

    task = asyncio.create_task(crawler.crawl(SEED))
    await asyncio.wait_for(started.wait(), timeout=5)
    crawler.stop(hard=True)
    results = await asyncio.wait_for(task, timeout=5)

    assert [r.url for r in results] == [SEED]
    assert not crawler.is_running


@pytest.mark.asyncio()
async def test_crawl_with_cache_reuses_fresh_result(fake_transport, options_factory):
    now = [100.0]
    cache = ResultCache(clock=lambda: now[0])
    fake_transport.html(SEED, make_page("Home", ["/a"]))
    fake_transport.html("http://site.test/a", make_page("A"))
    crawler = AsyncCrawler(
        options_factory(cache_max_age_ms=60_000), transport=fake_transport, cache=cache
    )

    first = await crawler.crawl_with_cache("http://SITE.test")
    assert len(first) == 2

    now[0] += 30
    second = await crawler.crawl_with_cache(SEED)
    assert [r.url for r in second] == [SEED]
    assert second[0] is first[0]
    assert fake_transport.count(SEED) == 1

    now[0] += 31
    third = await crawler.crawl_with_cache(SEED)
    assert len(third) == 2
    assert fake_transport.count(SEED) == 2


@pytest.mark.asyncio()
async def test_empty_crawl_is_not_cached(fake_transport, options_factory):
    crawler = AsyncCrawler(options_factory(), transport=fake_transport)

    assert await crawler.crawl_with_cache(SEED) == []
    assert len(crawler.cache) == 0


@pytest.mark.asyncio()
async def test_mixed_case_links_honour_robots_rules(fake_transport, options_factory):
    fake_transport.text("http://site.test/robots.txt", "User-agent: *\nDisallow: /Private\n")
    fake_transport.html(SEED, make_page("Home", ["/Private", "/Open"]))
    fake_transport.html("http://site.test/private", make_page("Secret"))
    fake_transport.html("http://site.test/open", make_page("Open"))
    crawler = AsyncCrawler(options_factory(concurrency=1), transport=fake_transport)

    results = await crawler.crawl(SEED)

    assert [r.url for r in results] == [SEED, "http://site.test/open"]
    assert crawler.disallowed_pages == ["http://site.test/private"]
    assert fake_transport.count("http://site.test/private") == 0
