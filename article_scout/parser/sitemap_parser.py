# File: article_scout/parser/sitemap_parser.py
"""article_scout.parser.sitemap_parser: parsing of sitemap.xml and sitemap index files."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal

from lxml import etree

SitemapKind = Literal["urlset", "index", "unknown"]


@dataclass(slots=True)
class SitemapDocument:
    """``<loc>`` values of one sitemap file and the kind of file they came from."""

    kind: SitemapKind
    locs: List[str] = field(default_factory=list)


def _local_name(tag: object) -> str:
    if not isinstance(tag, str):
        return ""
    return etree.QName(tag).localname.lower()


def parse_sitemap(xml_content: str | bytes) -> SitemapDocument:
    """Parse sitemap XML.

    Args:
        xml_content: body of a ``<urlset>`` sitemap or a ``<sitemapindex>``.

    Returns:
        SitemapDocument with kind ``"index"`` (locs are nested sitemaps),
        ``"urlset"`` (locs are pages) or ``"unknown"`` for anything else.
        Namespaced and plain documents are handled alike; broken markup is
        recovered as far as lxml can.

    Example:
    ```python
    from article_scout.parser.sitemap_parser import parse_sitemap

    doc = parse_sitemap(open("sitemap.xml", encoding="utf-8").read())
    if doc.kind == "urlset":
        print(doc.locs)
    ```
    """
    data = xml_content.encode("utf-8") if isinstance(xml_content, str) else xml_content
    if not data.strip():
        return SitemapDocument("unknown")
    parser = etree.XMLParser(ns_clean=True, recover=True, resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(data, parser=parser)
    except etree.XMLSyntaxError:
        return SitemapDocument("unknown")
    if root is None:
        return SitemapDocument("unknown")

    root_name = _local_name(root.tag)
    if root_name == "sitemapindex":
        kind: SitemapKind = "index"
        entry_name = "sitemap"
    elif root_name == "urlset":
        kind = "urlset"
        entry_name = "url"
    else:
        return SitemapDocument("unknown")

    locs: List[str] = []
    for entry in root:
        if _local_name(entry.tag) != entry_name:
            continue
        for child in entry:
            if _local_name(child.tag) == "loc" and child.text and child.text.strip():
                locs.append(child.text.strip())
    return SitemapDocument(kind, locs)
