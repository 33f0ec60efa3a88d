"""article_scout.report: JSON and HTML renderers for crawl reports, used by the CLI."""

from __future__ import annotations

from article_scout.report.html_report import DEFAULT_TEMPLATE_DIR, render_html
from article_scout.report.json_report import render_json

__all__ = ["render_json", "render_html", "DEFAULT_TEMPLATE_DIR"]
