"""Metadata hunting: title/author/date/site from structured page metadata.

Tiers are tried in a strict order and the first tier that yields a headline
wins; values are never merged across tiers.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

from .selectors import attr_text, node_text, query_all, query_first


logger = logging.getLogger(__name__)

ARTICLE_TYPES = {"Article", "BlogPosting", "NewsArticle"}


@dataclass
class HuntedMetadata:
    headline: Optional[str] = None
    author: Optional[str] = None
    date: Optional[str] = None
    site: Optional[str] = None
    source: str = "heuristics"  # json-ld, opengraph, twitter, heuristics


class MetadataHunter:

    def hunt(self, root) -> HuntedMetadata:
        linked = self.from_json_ld(root)
        if linked is not None and linked.headline:
            return linked

        og = HuntedMetadata(
            headline=self._meta(root, 'meta[property="og:title"]'),
            author=self._meta(root, 'meta[property="article:author"]'),
            date=self._meta(root, 'meta[property="article:published_time"]'),
            site=self._meta(root, 'meta[property="og:site_name"]'),
            source="opengraph",
        )
        if og.headline:
            return og

        twitter = HuntedMetadata(
            headline=self._meta(root, 'meta[name="twitter:title"]'),
            author=self._meta(root, 'meta[name="twitter:creator"]'),
            site=self._meta(root, 'meta[name="twitter:site"]'),
            source="twitter",
        )
        if twitter.headline:
            return twitter

        return HuntedMetadata(
            headline=node_text(query_first(root, "title")) or None,
            author=self.hunt_author(root),
            date=attr_text(query_first(root, "time[datetime]"), "datetime") or None,
            source="heuristics",
        )

    def hunt_author(self, root) -> Optional[str]:
        """Heuristic author lookup within a document or a single subtree."""
        for selector in ('[rel="author"]', ".author", ".user"):
            text = node_text(query_first(root, selector))
            if text:
                return text
        tagged = query_first(root, "[author]")
        if tagged is not None:
            return attr_text(tagged, "author") or node_text(tagged) or None
        return None

    def from_json_ld(self, root) -> Optional[HuntedMetadata]:
        for script in query_all(root, 'script[type="application/ld+json"]'):
            raw = script.text(deep=True, separator="", strip=False) or ""
            try:
                data = json.loads(raw)
            except (ValueError, TypeError) as exc:
                logger.debug("Skipping malformed JSON-LD block: %s", exc)
                continue
            for item in self._iter_json_ld_items(data):
                if not self._is_article(item):
                    continue
                author = item.get("author")
                if isinstance(author, list):
                    author = author[0] if author else None
                if isinstance(author, dict):
                    author = author.get("name")
                publisher = item.get("publisher")
                return HuntedMetadata(
                    headline=self._string(item.get("headline") or item.get("name")),
                    author=self._string(author),
                    date=self._string(item.get("datePublished")),
                    site=self._string(publisher.get("name")) if isinstance(publisher, dict) else None,
                    source="json-ld",
                )
        return None

    def _iter_json_ld_items(self, data: Any) -> Iterator[Dict[str, Any]]:
        items = data if isinstance(data, list) else [data]
        for item in items:
            if not isinstance(item, dict):
                continue
            yield item
            graph = item.get("@graph")
            if isinstance(graph, list):
                for nested in graph:
                    if isinstance(nested, dict):
                        yield nested

    @staticmethod
    def _is_article(item: Dict[str, Any]) -> bool:
        kind = item.get("@type")
        if isinstance(kind, list):
            return any(k in ARTICLE_TYPES for k in kind if isinstance(k, str))
        return kind in ARTICLE_TYPES

    @staticmethod
    def _meta(root, selector: str) -> Optional[str]:
        return attr_text(query_first(root, selector), "content") or None

    @staticmethod
    def _string(value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None


def fallback_title(root) -> str:
    """Title used when no metadata tier produced a headline."""
    og_title = attr_text(query_first(root, 'meta[property="og:title"]'), "content")
    if og_title:
        return og_title
    h1 = node_text(query_first(root, "h1"))
    if h1:
        return h1
    return node_text(query_first(root, "title")) or "Untitled"
