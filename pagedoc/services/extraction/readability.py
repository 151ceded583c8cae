"""Readability fallback: full-document extraction through trafilatura."""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import List, Optional

import trafilatura

from .models import CodeBlock, ContentBlock, HeadingBlock, LinkBlock, ListBlock, QuoteBlock, TextBlock


logger = logging.getLogger(__name__)


@dataclass
class ReadableArticle:
    title: str
    html_content: str  # trafilatura XML document


def extract_article(html: str) -> Optional[ReadableArticle]:
    """Run trafilatura over a page. Never raises; failures return None."""
    try:
        markup = trafilatura.extract(
            html,
            output_format="xml",
            with_metadata=True,
            include_comments=False,
            include_tables=True,
            include_links=True,
            include_images=False,
        )
    except Exception as exc:
        logger.warning("Readability extraction failed: %s", exc)
        return None
    if not markup:
        return None

    try:
        root = ET.fromstring(markup)
    except ET.ParseError as exc:
        logger.warning("Readability returned unparseable markup: %s", exc)
        return None
    return ReadableArticle(title=(root.get("title") or "").strip(), html_content=markup)


def article_blocks(article: Optional[ReadableArticle]) -> List[ContentBlock]:
    """Map the readability document onto content blocks."""
    if article is None:
        return []
    try:
        root = ET.fromstring(article.html_content)
    except ET.ParseError:
        return []

    main = root.find("main")
    blocks: List[ContentBlock] = []
    _walk(main if main is not None else root, blocks)
    return blocks


def _text(element: ET.Element) -> str:
    return " ".join("".join(element.itertext()).split())


def _walk(element: ET.Element, blocks: List[ContentBlock]) -> None:
    for child in element:
        tag = child.tag
        if tag == "head":
            rend = child.get("rend") or ""
            level = int(rend[1]) if len(rend) == 2 and rend[0] == "h" and rend[1].isdigit() else 2
            blocks.append(HeadingBlock(level=level, text=_text(child)))
        elif tag == "p":
            text = _text(child)
            if text:
                blocks.append(TextBlock(text=text))
        elif tag == "quote":
            blocks.append(QuoteBlock(text=_text(child)))
        elif tag == "code":
            blocks.append(CodeBlock(text="".join(child.itertext()).strip()))
        elif tag == "list":
            items = [text for text in (_text(item) for item in child.iter("item")) if text]
            if items:
                blocks.append(ListBlock(items=items))
        elif tag == "table":
            rows = []
            for row in child.iter("row"):
                cells = [_text(cell) for cell in row.iter("cell")]
                if cells:
                    rows.append(" | ".join(cells))
            if rows:
                blocks.append(ListBlock(items=rows))
        elif tag == "ref" and child.get("target"):
            blocks.append(LinkBlock(text=_text(child), url=child.get("target") or ""))
        else:
            _walk(child, blocks)
