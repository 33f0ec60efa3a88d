"""Parsers for HTML pages, article fields, text statistics and sitemaps."""
