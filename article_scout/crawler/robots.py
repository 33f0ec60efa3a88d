"""
robots.txt handling: an RFC 9309 rule parser and the per-host policy cache.
"""
from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlsplit, urlunsplit

from article_scout.config import CrawlOptions
from article_scout.crawler.fetcher import Fetcher
from article_scout.utils import extract_host

logger = logging.getLogger("ArticleScout")

__all__ = ("RobotsTxtRules", "PolicyEntry", "PolicyStore")


def _path_of(url: str) -> str:
    parsed = urlsplit(url)
    path = parsed.path or "/"
    return f"{path}?{parsed.query}" if parsed.query else path


@dataclass(slots=True)
class _Group:
    agents: List[str] = field(default_factory=list)
    directives: List[Tuple[str, str]] = field(default_factory=list)
    crawl_delay: Optional[float] = None

    @property
    def has_rules(self) -> bool:
        return bool(self.directives) or self.crawl_delay is not None


class RobotsTxtRules:
    """
    Parses robots.txt (RFC 9309): longest match wins, Allow wins ties,
    ``*`` and ``$`` wildcards are supported. An empty Disallow allows all paths.
    """
    _WILDCARD_RE = re.compile(r"[*$]")

    def __init__(self, text: str) -> None:
        self._groups: List[_Group] = []
        self._regex_cache: Dict[str, re.Pattern[str]] = {}
        self._parse(text)

    def can_fetch(self, user_agent: str, path: str) -> bool:
        group = self._match_group(user_agent)
        if group is None:
            return True
        best_len = -1
        allow: Optional[bool] = None
        for directive, pattern in group.directives:
            if not self._match_path(path, pattern):
                continue
            length = len(self._WILDCARD_RE.sub("", pattern))
            if length > best_len or (length == best_len and directive == "allow"):
                best_len = length
                allow = directive == "allow"
        return True if allow is None else allow

    def crawl_delay(self, user_agent: str) -> Optional[float]:
        group = self._match_group(user_agent)
        return None if group is None else group.crawl_delay

    def _parse(self, text: str) -> None:
        current: Optional[_Group] = None
        for raw in text.splitlines():
            line = raw.split("#", 1)[0].strip()
            if not line or ":" not in line:
                continue
            key, _, val = line.partition(":")
            key = key.strip().lower()
            val = val.strip()
            if key == "user-agent":
                # consecutive User-agent lines share one group
                if current is None or current.has_rules:
                    current = _Group()
                    self._groups.append(current)
                current.agents.append(val.lower())
                continue
            if key not in ("allow", "disallow", "crawl-delay"):
                continue
            if current is None:
                current = _Group(agents=["*"])
                self._groups.append(current)
            if key == "crawl-delay":
                try:
                    current.crawl_delay = float(val)
                except ValueError:
                    logger.debug("Ignoring bad Crawl-delay value %r", val)
            elif val:
                current.directives.append((key, val))

    def _match_group(self, user_agent: str) -> Optional[_Group]:
        ua = user_agent.lower()
        for group in self._groups:
            if any(a != "*" and ua.startswith(a) for a in group.agents):
                return group
        for group in self._groups:
            if "*" in group.agents:
                return group
        return None

    def _match_path(self, path: str, pattern: str) -> bool:
        regex = self._regex_cache.get(pattern)
        if regex is None:
            body = pattern[:-1] if pattern.endswith("$") else pattern
            esc = re.escape(body).replace(r"\*", ".*")
            regex = re.compile(f"^{esc}$" if pattern.endswith("$") else f"^{esc}")
            self._regex_cache[pattern] = regex
        return bool(regex.match(path))


@dataclass(slots=True)
class PolicyEntry:
    """Cached robots.txt state of one host. ``rules is None`` allows everything."""

    rules: Optional[RobotsTxtRules] = None
    crawl_delay: Optional[float] = None


class PolicyStore:
    """Per-host robots.txt cache, filled lazily and kept for the whole run."""

    def __init__(self, fetcher: Fetcher, options: CrawlOptions) -> None:
        self.fetcher = fetcher
        self.options = options
        self._entries: Dict[str, PolicyEntry] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    async def ensure_loaded(self, url: str) -> PolicyEntry:
        """Fetch ``robots.txt`` of *url*'s host once; failures install a permissive entry."""
        host = extract_host(url)
        entry = self._entries.get(host)
        if entry is not None:
            return entry
        lock = self._locks.setdefault(host, asyncio.Lock())
        async with lock:
            entry = self._entries.get(host)
            if entry is None:
                entry = await self._load(url)
                self._entries[host] = entry
        return entry

    async def _load(self, url: str) -> PolicyEntry:
        parsed = urlsplit(url)
        robots_url = urlunsplit((parsed.scheme, parsed.netloc, "/robots.txt", "", ""))
        text = await self.fetcher.fetch_text(robots_url)
        if text is None:
            logger.warning("Could not load robots.txt for %s, allowing everything", parsed.netloc)
            return PolicyEntry()
        rules = RobotsTxtRules(text)
        logger.info("Loaded robots.txt for %s", parsed.netloc)
        return PolicyEntry(rules=rules, crawl_delay=rules.crawl_delay(self.options.user_agent))

    def is_allowed(self, url: str, source_url: Optional[str] = None) -> bool:
        """Check *url* against the host's rules.

        Normalized URLs are lower-cased, so *source_url* (the link as written)
        is checked as well; both spellings must be allowed.
        """
        if not self.options.respect_robots:
            return True
        entry = self._entries.get(extract_host(url))
        if entry is None or entry.rules is None:
            return True
        candidates = [url]
        if source_url and source_url != url:
            candidates.append(source_url)
        return all(
            entry.rules.can_fetch(self.options.user_agent, _path_of(candidate))
            for candidate in candidates
        )

    def crawl_delay_ms(self, url: str) -> int:
        """Robots Crawl-delay in ms when declared, otherwise the configured delay."""
        if self.options.respect_robots:
            entry = self._entries.get(extract_host(url))
            if entry is not None and entry.crawl_delay is not None:
                return int(entry.crawl_delay * 1000)
        return self.options.crawl_delay_ms

    def clear(self) -> None:
        self._entries.clear()
        self._locks.clear()

    def __len__(self) -> int:
        return len(self._entries)
