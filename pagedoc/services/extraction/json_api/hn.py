"""Hacker News items from the Algolia API (``/api/v1/items/<id>``)."""

from typing import Any, List, Optional

from ..constants import CONFIDENCE_GOVERNED
from ..models import ContentBlock, LinkBlock, PageMeta, RawDocument, TextBlock, ThreadItemBlock
from .base import json_metadata, require, strip_markup

SOURCE = "Hacker News"


class HnJsonExtractor:

    @classmethod
    def extract(cls, data: Any, url: Optional[str] = None) -> RawDocument:
        item_id = require(data, "id", SOURCE)

        content: List[ContentBlock] = []
        text = strip_markup(data.get("text"))
        if text:
            content.append(TextBlock(text=text))
        elif data.get("url"):
            content.append(LinkBlock(text="External Link", url=data["url"]))
        content.extend(cls.extract_comments(data.get("children") or []))

        return RawDocument(
            title=data.get("title") or "Hacker News Thread",
            url=url or f"https://news.ycombinator.com/item?id={item_id}",
            meta=PageMeta(
                author=data.get("author"),
                site="news.ycombinator.com",
                published=data.get("created_at"),
                pack="news.ycombinator.com (JSON)",
                confidence=CONFIDENCE_GOVERNED,
            ),
            kind="thread",
            content=content,
            metadata=json_metadata("hn-algolia-api"),
        )

    @classmethod
    def extract_comments(cls, children: List[Any], depth: int = 0) -> List[ThreadItemBlock]:
        """Comments arrive already nested; deleted ones (no text) are dropped with their replies."""
        blocks: List[ThreadItemBlock] = []
        for child in children:
            if not isinstance(child, dict):
                continue
            text = strip_markup(child.get("text"))
            if not text:
                continue
            blocks.append(ThreadItemBlock(
                depth=depth,
                author=child.get("author"),
                content=[TextBlock(text=text)],
                children=list(cls.extract_comments(child.get("children") or [], depth + 1)),
            ))
        return blocks
