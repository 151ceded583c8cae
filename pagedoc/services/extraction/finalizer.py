"""Document finalization: limits, deterministic ids, link table, signature.

The finalizer is a pure transform. Blocks handed to it are never modified;
every step returns new block instances.
"""

import unicodedata
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from .constants import ELLIPSIS, MIXED_TEXT_BLOCK_COUNT
from .models import (
    TEXT_BEARING,
    CodeBlock,
    ContentBlock,
    HeadingBlock,
    ImageBlock,
    LinkBlock,
    LinkRef,
    ListBlock,
    PageDoc,
    QuoteBlock,
    RawDocument,
    TextBlock,
    ThreadItemBlock,
)


FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193


def fnv1a(text: str) -> str:
    """32-bit FNV-1a of the UTF-8 encoding, as 8 lowercase hex digits."""
    value = FNV_OFFSET_BASIS
    for byte in text.encode("utf-8"):
        value ^= byte
        value = (value * FNV_PRIME) & 0xFFFFFFFF
    return format(value, "08x")


def normalize_text(text: Optional[str]) -> str:
    return " ".join(unicodedata.normalize("NFC", text or "").split())


def infer_kind(blocks: Sequence[ContentBlock]) -> str:
    has_thread = any(isinstance(b, ThreadItemBlock) for b in blocks)
    text_blocks = sum(1 for b in blocks if isinstance(b, TextBlock))
    if has_thread and text_blocks > MIXED_TEXT_BLOCK_COUNT:
        return "mixed"
    if has_thread:
        return "thread"
    return "article"


def shape_token(block: ContentBlock) -> str:
    if isinstance(block, HeadingBlock):
        return f"H{block.level}"
    if isinstance(block, ThreadItemBlock):
        return f"T{block.depth}[{len(block.children)}]"
    if isinstance(block, (TextBlock, CodeBlock, QuoteBlock, ListBlock, LinkBlock, ImageBlock)):
        return block.type[0].upper()
    raise TypeError(f"Unknown content block: {block!r}")


def structural_signature(blocks: Sequence[ContentBlock]) -> str:
    """Hash of the top-level block skeleton; independent of text content."""
    return fnv1a("|".join(shape_token(b) for b in blocks))


class DocumentFinalizer:

    def __init__(self, max_depth: Optional[int] = None, max_length: Optional[int] = None):
        self.max_depth = max_depth
        self.max_length = max_length

    def finalize(self, raw: RawDocument, *, infer: bool = True) -> PageDoc:
        content = self.apply_limits(raw.content)
        content = self.assign_ids(content)
        content, links = self.dedupe_links(content)

        meta = replace(raw.meta, warnings=list(raw.meta.warnings))
        return PageDoc(
            title=normalize_text(raw.title),
            url=raw.url,
            meta=meta,
            kind=infer_kind(content) if infer else raw.kind,
            content=content,
            links=links,
            metadata=dict(raw.metadata),
            structural_signature=structural_signature(content),
        )

    def apply_limits(self, blocks: Sequence[ContentBlock]) -> List[ContentBlock]:
        if self.max_depth is None and not self.max_length:
            return list(blocks)
        limited: List[ContentBlock] = []
        for block in blocks:
            if isinstance(block, ThreadItemBlock):
                if self.max_depth is not None and block.depth > self.max_depth:
                    continue
                limited.append(replace(
                    block,
                    content=self.apply_limits(block.content),
                    children=self.apply_limits(block.children),
                ))
            elif isinstance(block, TEXT_BEARING) and self.max_length and self.max_length > 0:
                text = normalize_text(block.text)
                if len(text) > self.max_length:
                    text = text[:self.max_length] + ELLIPSIS
                limited.append(replace(block, text=text))
            else:
                limited.append(block)
        return limited

    def assign_ids(
        self,
        blocks: Sequence[ContentBlock],
        parent_id: Optional[str] = None,
        prefix: str = "0",
    ) -> List[ContentBlock]:
        """Depth-first id assignment and text normalization."""
        assigned: List[ContentBlock] = []
        for index, block in enumerate(blocks):
            path = f"{prefix}.{index}"
            if isinstance(block, TEXT_BEARING):
                text = normalize_text(block.text)
                assigned.append(replace(block, text=text, id=fnv1a(block.type + path + text)))
            elif isinstance(block, ListBlock):
                assigned.append(replace(
                    block,
                    items=[normalize_text(item) for item in block.items],
                    id=fnv1a(block.type + path),
                ))
            elif isinstance(block, ImageBlock):
                assigned.append(replace(block, id=fnv1a(block.type + path)))
            elif isinstance(block, ThreadItemBlock):
                block_id = fnv1a(block.type + path)
                assigned.append(replace(
                    block,
                    id=block_id,
                    parent_id=parent_id,
                    content=self.assign_ids(block.content, block_id, f"{path}.c"),
                    children=self.assign_ids(block.children, block_id, f"{path}.n"),
                ))
            else:
                raise TypeError(f"Unknown content block: {block!r}")
        return assigned

    def dedupe_links(self, blocks: Sequence[ContentBlock]) -> Tuple[List[ContentBlock], List[LinkRef]]:
        links: List[LinkRef] = []
        seen: Dict[str, int] = {}

        def visit(items: Sequence[ContentBlock]) -> List[ContentBlock]:
            result: List[ContentBlock] = []
            for block in items:
                if isinstance(block, LinkBlock):
                    ref_id = seen.get(block.url)
                    if ref_id is None:
                        ref_id = len(links) + 1
                        seen[block.url] = ref_id
                        links.append(LinkRef(id=ref_id, text=block.text, url=block.url))
                    result.append(replace(block, ref_id=ref_id))
                elif isinstance(block, ThreadItemBlock):
                    result.append(replace(
                        block,
                        content=visit(block.content),
                        children=visit(block.children),
                    ))
                else:
                    result.append(block)
            return result

        return visit(blocks), links
