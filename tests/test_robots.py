import asyncio

import pytest
from aiohttp import ClientConnectionError

from article_scout.crawler.fetcher import Fetcher, HttpResponse
from article_scout.crawler.robots import PolicyStore, RobotsTxtRules

ROBOTS = """
# comment line
User-agent: BadBot
Disallow: /

User-agent: TestAgent
User-agent: OtherAgent
Disallow: /private
Allow: /private/open
Crawl-delay: 2.5

User-agent: *
Disallow: /tmp/
Disallow: /*.php$
Disallow:
"""


@pytest.fixture()
def rules():
    return RobotsTxtRules(ROBOTS)


def test_specific_agent_group(rules):
    assert not rules.can_fetch("TestAgent/1.0", "/private/notes")
    assert rules.can_fetch("TestAgent/1.0", "/private/open/doc")
    assert rules.can_fetch("TestAgent/1.0", "/tmp/file")
    assert rules.crawl_delay("TestAgent/1.0") == 2.5
    assert rules.crawl_delay("OtherAgent") == 2.5


def test_wildcard_group(rules):
    assert not rules.can_fetch("SomeCrawler", "/tmp/x")
    assert not rules.can_fetch("SomeCrawler", "/index.php")
    assert rules.can_fetch("SomeCrawler", "/index.php?x=1")
    assert rules.can_fetch("SomeCrawler", "/private")
    assert rules.crawl_delay("SomeCrawler") is None


def test_block_all(rules):
    assert not rules.can_fetch("BadBot", "/")


def test_allow_wins_on_equal_length():
    rules = RobotsTxtRules("User-agent: *\nDisallow: /page\nAllow: /page\n")
    assert rules.can_fetch("any", "/page")


def test_empty_file_allows_everything():
    rules = RobotsTxtRules("")
    assert rules.can_fetch("any", "/anything")
    assert rules.crawl_delay("any") is None


def _store(transport, options_factory, **overrides):
    options = options_factory(**overrides)
    return PolicyStore(Fetcher(transport, options), options)


@pytest.mark.asyncio()
async def test_policy_loaded_once_per_host(fake_transport, options_factory):
    fake_transport.text("http://site.test/robots.txt", "User-agent: *\nDisallow: /private\nCrawl-delay: 3")
    store = _store(fake_transport, options_factory)

    await asyncio.gather(*(store.ensure_loaded(f"http://site.test/p{i}") for i in range(5)))

    assert fake_transport.count("http://site.test/robots.txt") == 1
    assert not store.is_allowed("http://site.test/private/x")
    assert store.is_allowed("http://site.test/public")
    assert store.crawl_delay_ms("http://site.test/public") == 3000


@pytest.mark.asyncio()
async def test_failed_robots_is_permissive(fake_transport, options_factory):
    fake_transport.add("http://down.test/robots.txt", ClientConnectionError("down"))
    fake_transport.add("http://err.test/robots.txt", HttpResponse(500, "text/plain", ""))
    store = _store(fake_transport, options_factory, crawl_delay_ms=1500)

    await store.ensure_loaded("http://down.test/")
    await store.ensure_loaded("http://err.test/")

    assert store.is_allowed("http://down.test/private")
    assert store.is_allowed("http://err.test/private")
    assert store.crawl_delay_ms("http://down.test/") == 1500
    assert len(store) == 2


@pytest.mark.asyncio()
async def test_unknown_host_is_allowed(fake_transport, options_factory):
    store = _store(fake_transport, options_factory, crawl_delay_ms=700)
    assert store.is_allowed("http://never-loaded.test/x")
    assert store.crawl_delay_ms("http://never-loaded.test/x") == 700


@pytest.mark.asyncio()
async def test_robots_ignored_when_not_respected(fake_transport, options_factory):
    fake_transport.text("http://site.test/robots.txt", "User-agent: *\nDisallow: /\nCrawl-delay: 9")
    store = _store(fake_transport, options_factory, respect_robots=False, crawl_delay_ms=100)

    await store.ensure_loaded("http://site.test/")

    assert store.is_allowed("http://site.test/anything")
    assert store.crawl_delay_ms("http://site.test/anything") == 100


@pytest.mark.asyncio()
async def test_query_string_is_matched(fake_transport, options_factory):
    fake_transport.text("http://site.test/robots.txt", "User-agent: *\nDisallow: /search?")
    store = _store(fake_transport, options_factory)
    await store.ensure_loaded("http://site.test/")

    assert not store.is_allowed("http://site.test/search?q=x")
    assert store.is_allowed("http://site.test/search")


@pytest.mark.asyncio()
async def test_link_spelling_is_checked_besides_normalized_url(fake_transport, options_factory):
    fake_transport.text("http://site.test/robots.txt", "User-agent: *\nDisallow: /Private")
    store = _store(fake_transport, options_factory)
    await store.ensure_loaded("http://site.test/")

    # the normalized form is lower-cased and slips past the rule on its own
    assert store.is_allowed("http://site.test/private")
    assert not store.is_allowed("http://site.test/private", "http://site.test/Private#top")
    assert store.is_allowed("http://site.test/public", "http://site.test/Public")
