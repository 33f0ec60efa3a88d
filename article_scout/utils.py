"""article_scout.utils: URL canonicalisation and small helpers shared by the crawler."""

from __future__ import annotations

from typing import Collection, List, Sequence
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from article_scout.logger import logger

__all__: Sequence[str] = (
    "normalize_url",
    "is_valid_url",
    "extract_host",
    "remove_duplicates",
)


def normalize_url(url: str) -> str:
    """Canonical form of *url* used for de-duplication and queue keys.

    Drops the fragment, sorts query parameters by key, strips trailing
    slashes from the path (``/`` itself is kept) and lower-cases the result.
    Anything that does not parse as an absolute URL is returned unchanged.
    """
    try:
        parsed = urlsplit(url.strip())
    except (ValueError, AttributeError):
        return url
    if not parsed.scheme or not parsed.netloc:
        return url

    path = parsed.path.rstrip("/") or "/"
    params = parse_qsl(parsed.query, keep_blank_values=True)
    params.sort(key=lambda kv: kv[0])
    query = urlencode(params)
    return urlunsplit((parsed.scheme, parsed.netloc, path, query, "")).lower()


def is_valid_url(url: str) -> bool:
    """True for absolute http(s) URLs with a host."""
    try:
        parsed = urlsplit(url)
    except (ValueError, AttributeError):
        return False
    return parsed.scheme.lower() in ("http", "https") and bool(parsed.netloc)


def extract_host(url: str) -> str:
    """Return the lower-cased host (with port) of *url*, or ``""``."""
    try:
        return urlsplit(url).netloc.lower()
    except (ValueError, AttributeError):
        return ""


def remove_duplicates(urls: Collection[str]) -> List[str]:
    """Remove duplicate URLs while keeping their order."""
    unique = list(dict.fromkeys(urls))
    removed = len(urls) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique
