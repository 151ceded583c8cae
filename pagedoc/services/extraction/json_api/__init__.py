"""Adapters from known API JSON shapes straight to content blocks."""

from typing import Any, Callable, Optional, Tuple

from ..models import RawDocument
from .hn import HnJsonExtractor
from .reddit import RedditJsonExtractor
from .stackoverflow import StackOverflowJsonExtractor
from .wikipedia import WikipediaJsonExtractor

Extract = Callable[[Any, Optional[str]], RawDocument]

# Checked in order; the first marker found in the source identifier wins.
JSON_EXTRACTORS: Tuple[Tuple[Tuple[str, ...], str, Extract], ...] = (
    (("reddit.com",), "reddit", RedditJsonExtractor.extract),
    (("hn.algolia.com", "news.ycombinator.com"), "hacker-news", HnJsonExtractor.extract),
    (("wikipedia.org",), "wikipedia", WikipediaJsonExtractor.extract),
    (("stackexchange.com", "stackoverflow.com"), "stack-exchange", StackOverflowJsonExtractor.extract),
)


def find_json_extractor(identifier: str) -> Optional[Tuple[str, Extract]]:
    for markers, name, extract in JSON_EXTRACTORS:
        if any(marker in identifier for marker in markers):
            return name, extract
    return None


__all__ = [
    "JSON_EXTRACTORS",
    "find_json_extractor",
    "HnJsonExtractor",
    "RedditJsonExtractor",
    "StackOverflowJsonExtractor",
    "WikipediaJsonExtractor",
]
