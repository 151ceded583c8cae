"""Structural extraction: pattern-pack rules plus block-type heuristics."""

import logging
import re
from typing import List, Optional

from selectolax.parser import HTMLParser, Node

from .constants import BLOCK_HEADING_TAGS, CONTENT_ROOT_CANDIDATES, THIN_CONTENT_THRESHOLD
from .generic_thread import GenericThreadDetector
from .metadata import MetadataHunter
from .models import (
    CodeBlock,
    ContentBlock,
    HeadingBlock,
    LinkBlock,
    ListBlock,
    QuoteBlock,
    TextBlock,
    ThreadItemBlock,
    Trace,
)
from .selectors import (
    attr_text,
    element_children,
    matches,
    node_text,
    own_text,
    parse_int,
    query_all,
    query_first,
)
from .tree import rebuild_thread_tree
from ..patterns.registry import PatternPack


logger = logging.getLogger(__name__)

_DEPTH_MATH = re.compile(r"^\s*x\s*([/*])\s*(\d+(?:\.\d+)?)\s*$")
_LANGUAGE_CLASS = re.compile(r"^(?:language|lang)-([\w+#.-]+)$")
_NESTED_LISTS = ("ul", "ol")


def apply_depth_math(raw: int, expression: Optional[str]) -> int:
    """Evaluate ``x / N`` or ``x * N`` on a raw depth value (floored)."""
    if not expression:
        return raw
    match = _DEPTH_MATH.match(expression)
    if match is None:
        return raw
    operator, operand = match.group(1), float(match.group(2))
    if operator == "/":
        return int(raw // operand) if operand else raw
    return int(raw * operand)


class StructuralExtractor:
    """
    Walks a parsed document and turns it into content blocks.

    With a pattern pack, its selectors pick the content root, blacklist
    elements and identify thread-items. Everything else is classified by
    tag. Thin results without a pack item selector are handed to the
    generic thread detector.
    """

    def __init__(
        self,
        pack: Optional[PatternPack] = None,
        trace: Optional[Trace] = None,
        hunter: Optional[MetadataHunter] = None,
        generic_threads: bool = True,
        thin_threshold: int = THIN_CONTENT_THRESHOLD,
    ):
        self.pack = pack
        self.trace = trace if trace is not None else Trace()
        self.hunter = hunter or MetadataHunter()
        self.generic_threads = generic_threads
        self.thin_threshold = thin_threshold

    @property
    def item_selector(self) -> Optional[str]:
        if self.pack is None:
            return None
        return self.pack.selectors.item or None

    def extract(self, tree: HTMLParser) -> List[ContentBlock]:
        blocks: List[ContentBlock] = []
        content_root = self._content_root(tree)

        if content_root is not None:
            self.walk(content_root, blocks)
            self.trace.signals["itemSelector"] = self.item_selector or "none"

            if self._is_flat_depth_list(blocks):
                self.trace.add_step(
                    "Tree Reconstruction",
                    "Pattern-driven",
                    "Rebuilding hierarchy from flat HTML list via depth metadata",
                )
                blocks = list(rebuild_thread_tree(blocks))

            self.trace.signals["blockCount"] = len(blocks)

        if len(blocks) < self.thin_threshold and not self.item_selector and self.generic_threads:
            detector = GenericThreadDetector(
                walker=self.walk,
                trace=self.trace,
                hunter=self.hunter,
                filters=self.pack.filters if self.pack else (),
            )
            thread = detector.detect(tree)
            if thread:
                self.trace.add_step(
                    "Generic Thread",
                    "Detected",
                    f"Found {len(thread)} items via generic heuristics",
                )
                self.trace.signals["strategy"] = "generic-thread"
                blocks = list(thread)

        if not blocks:
            logger.debug("No content blocks found under the content root")
        return blocks

    def _content_root(self, tree: HTMLParser) -> Optional[Node]:
        root_selector = self.pack.selectors.root if self.pack else None
        if root_selector:
            node = query_first(tree, root_selector)
            if node is not None:
                self.trace.add_step(
                    "Content Root",
                    node.tag,
                    f"Selected via pack selector: {root_selector}",
                    {"selector": root_selector},
                )
                self.trace.signals["rootSelector"] = root_selector
                return node

        for candidate in CONTENT_ROOT_CANDIDATES:
            node = query_first(tree, candidate)
            if node is not None:
                break
        else:
            node = tree.root
        if node is not None:
            self.trace.add_step("Content Root", node.tag or "root", "Selected via heuristics")
            self.trace.signals["rootSelector"] = (node.tag or "root").lower()
        return node

    @staticmethod
    def _is_flat_depth_list(blocks: List[ContentBlock]) -> bool:
        if not blocks:
            return False
        if not all(isinstance(b, ThreadItemBlock) and not b.children for b in blocks):
            return False
        return any(b.depth > 0 for b in blocks)

    def walk(
        self,
        node: Node,
        blocks: List[ContentBlock],
        skip: Optional[str] = None,
    ) -> None:
        """
        Classify the element children of ``node`` into ``blocks``.

        Elements matching ``skip`` are ignored (used for thread-item bodies
        whose nested items are extracted separately).
        """
        filters = self.pack.filters if self.pack else []
        item_selector = self.item_selector

        for child in element_children(node):
            if any(matches(child, f) for f in filters):
                continue
            if skip and matches(child, skip):
                continue

            tag = child.tag.lower()
            if item_selector and matches(child, item_selector):
                self._extract_thread_item(child, blocks)
            elif tag in BLOCK_HEADING_TAGS:
                blocks.append(HeadingBlock(level=int(tag[1]), text=node_text(child)))
            elif tag == "p":
                text = node_text(child)
                if text:
                    blocks.append(TextBlock(text=text))
            elif tag == "blockquote":
                cite = query_first(child, "cite")
                blocks.append(QuoteBlock(
                    text=node_text(child),
                    author=node_text(cite) or None,
                ))
            elif tag in ("pre", "code"):
                blocks.append(CodeBlock(text=node_text(child), language=self._code_language(child)))
            elif tag in ("ul", "ol"):
                items = [text for text in (own_text(li, _NESTED_LISTS) for li in query_all(child, "li")) if text]
                if items:
                    blocks.append(ListBlock(items=items))
            elif tag == "a":
                blocks.append(LinkBlock(text=node_text(child), url=attr_text(child, "href")))
            else:
                self.walk(child, blocks, skip=skip)

    @staticmethod
    def _code_language(node: Node) -> Optional[str]:
        candidates = [node]
        inner = query_first(node, "code")
        if inner is not None:
            candidates.append(inner)
        for candidate in candidates:
            for cls in attr_text(candidate, "class").split():
                match = _LANGUAGE_CLASS.match(cls)
                if match:
                    return match.group(1)
        return None

    def _extract_thread_item(self, node: Node, blocks: List[ContentBlock]) -> None:
        item = ThreadItemBlock(
            depth=self._resolve_depth(node),
            author=self._resolve_author(node),
        )

        body = self._resolve_body(node)
        self.walk(body, item.content, skip=self.item_selector)
        if not item.content:
            filters = self.pack.filters if self.pack else []
            text = own_text(body, [self.item_selector, *filters])
            if text:
                item.content.append(TextBlock(text=text))
        blocks.append(item)

        item_selector = self.item_selector
        for nested in element_children(node):
            if item_selector and matches(nested, item_selector):
                self._extract_thread_item(nested, item.children)
            else:
                self._search_thread_items(nested, item.children)

    def _search_thread_items(self, node: Node, blocks: List[ContentBlock]) -> None:
        item_selector = self.item_selector
        for child in element_children(node):
            if item_selector and matches(child, item_selector):
                self._extract_thread_item(child, blocks)
            else:
                self._search_thread_items(child, blocks)

    def _resolve_author(self, node: Node) -> Optional[str]:
        selector = self.pack.selectors.author if self.pack else None
        author: Optional[str] = None
        if selector and selector.startswith("attr:"):
            author = attr_text(node, selector.split(":", 1)[1]) or None
        elif selector:
            author = node_text(query_first(node, selector)) or None
        if not author:
            author = attr_text(node, "author") or node_text(query_first(node, "[author]")) or None
        return author

    def _resolve_body(self, node: Node) -> Node:
        selector = self.pack.selectors.body if self.pack else None
        body = query_first(node, selector) if selector else None
        if body is None:
            body = query_first(node, '[slot="comment"]')
        if body is None:
            body = query_first(node, ".md")
        return body if body is not None else node

    def _resolve_depth(self, node: Node) -> int:
        selectors = self.pack.selectors if self.pack else None
        method = selectors.depth_method if selectors else None

        if method == "attr" and selectors.depth:
            return parse_int(attr_text(node, selectors.depth.split(":")[-1]))

        if method == "query" and selectors.depth:
            depth_node = query_first(node, selectors.depth)
            if depth_node is None:
                return 0
            if selectors.depth_math:
                raw = parse_int(attr_text(depth_node, "width") or node_text(depth_node))
                return apply_depth_math(raw, selectors.depth_math)
            return parse_int(node_text(depth_node))

        if method == "nested":
            depth = 0
            parent = node.parent
            while parent is not None:
                if self.item_selector and matches(parent, self.item_selector):
                    depth += 1
                parent = parent.parent
            return depth

        depth = parse_int(attr_text(node, "depth") or attr_text(node, "aria-level"))
        if depth > 0:
            self.trace.add_step(
                "Depth Inference",
                "Attribute",
                f"Found depth {depth} via attribute",
                {"method": "attribute", "value": depth},
            )
        return depth
