"""Custom exceptions for ArticleScout."""


class ArticleScoutError(Exception):
    """Base exception for all ArticleScout errors."""


class CrawlerBusyError(ArticleScoutError, RuntimeError):
    """Raised when ``crawl()`` is called on a crawler that is already running."""


class FetchError(ArticleScoutError):
    """Raised when a page could not be fetched within the retry budget."""

    def __init__(self, url: str, attempts: int, cause: BaseException | None = None) -> None:
        self.url = url
        self.attempts = attempts
        self.cause = cause
        reason = f": {cause}" if cause else ""
        super().__init__(f"failed to fetch {url} after {attempts} attempt(s){reason}")
