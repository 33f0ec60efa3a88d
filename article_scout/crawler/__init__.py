"""Crawler core: frontier, robots policy, sitemap discovery, fetching and the worker pool."""
