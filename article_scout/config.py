"""
Loading and validation of crawl options for ArticleScout.
Pydantic describes the schema and checks the data.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, FrozenSet, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_DISALLOWED_EXTENSIONS: FrozenSet[str] = frozenset(
    {
        "jpg", "jpeg", "png", "gif", "svg", "ico", "css", "js", "pdf", "doc",
        "docx", "xls", "xlsx", "zip", "rar", "mp3", "mp4", "avi", "mov",
    }
)


class CrawlOptions(BaseModel):
    """Options for one crawl run. Immutable once built."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_depth: int = Field(3, ge=0, description="Maximum link depth from the seed.")
    max_pages: int = Field(100, ge=1, description="Hard cap on collected results.")
    crawl_delay_ms: int = Field(1000, ge=0, description="Pause after each page unless robots.txt says otherwise.")
    timeout_ms: int = Field(30000, gt=0, description="Timeout of a single request.")
    user_agent: str = Field("ArticleScout/1.0", min_length=1, description="User-Agent header.")
    respect_robots: bool = Field(True, description="Honour robots.txt rules and Crawl-delay.")
    follow_sitemap: bool = Field(True, description="Seed the queue from /sitemap.xml.")
    allowed_domains: FrozenSet[str] = Field(
        default_factory=frozenset, description="Host substrings allowed; empty means any host."
    )
    disallowed_extensions: FrozenSet[str] = Field(
        DEFAULT_DISALLOWED_EXTENSIONS, description="Path extensions that are never queued."
    )
    retry_attempts: int = Field(3, ge=1, description="Attempts per page on transport errors.")
    retry_delay_ms: int = Field(2000, ge=0, description="Base of the linear retry backoff.")
    selector: Optional[str] = Field(None, description="CSS selector overriding content extraction.")
    extract_article_data: bool = True
    detect_language: bool = True
    extract_keywords: bool = True
    concurrency: int = Field(3, ge=1, description="Number of concurrent workers.")
    cache_max_age_ms: int = Field(5 * 60 * 1000, ge=0, description="Freshness window of cached crawls.")

    @field_validator("allowed_domains", mode="before")
    def _lower_domains(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = [v]
        if isinstance(v, (list, tuple, set, frozenset)):
            return frozenset(str(d).strip().lower() for d in v if str(d).strip())
        return v

    @field_validator("disallowed_extensions", mode="before")
    def _strip_dots(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = [v]
        if isinstance(v, (list, tuple, set, frozenset)):
            return frozenset(str(e).strip().lstrip(".").lower() for e in v if str(e).strip())
        return v

    @field_validator("selector", mode="before")
    def _empty_selector(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def timeout(self) -> float:
        """Request timeout in seconds."""
        return self.timeout_ms / 1000


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> CrawlOptions:
    """
    Read YAML or JSON and return validated :class:`CrawlOptions`.
    ``None`` yields the defaults; a missing file raises FileNotFoundError.
    """
    if path is None:
        return CrawlOptions()

    path_obj = Path(path).expanduser().resolve()
    if not path_obj.is_file():
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Unsupported config format: {suffix}")

    return CrawlOptions(**data)
