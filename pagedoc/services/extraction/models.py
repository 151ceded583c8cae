"""Data models for the extraction pipeline."""

import time
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Union


SCHEMA_VERSION = "1.1"


@dataclass
class HeadingBlock:
    level: int
    text: str
    id: str = ""
    type: ClassVar[str] = "heading"


@dataclass
class TextBlock:
    text: str
    id: str = ""
    type: ClassVar[str] = "text"


@dataclass
class CodeBlock:
    text: str
    language: Optional[str] = None
    id: str = ""
    type: ClassVar[str] = "code"


@dataclass
class QuoteBlock:
    text: str
    author: Optional[str] = None
    id: str = ""
    type: ClassVar[str] = "quote"


@dataclass
class ListBlock:
    items: List[str] = field(default_factory=list)
    id: str = ""
    type: ClassVar[str] = "list"


@dataclass
class LinkBlock:
    text: str
    url: str
    ref_id: Optional[int] = None
    id: str = ""
    type: ClassVar[str] = "link"


@dataclass
class ImageBlock:
    src: str
    alt: Optional[str] = None
    id: str = ""
    type: ClassVar[str] = "image"


@dataclass
class ThreadItemBlock:
    """One node of a discussion: its own body in ``content``, replies in ``children``."""
    depth: int = 0
    author: Optional[str] = None
    content: List["ContentBlock"] = field(default_factory=list)
    children: List["ContentBlock"] = field(default_factory=list)
    parent_id: Optional[str] = None
    collapsed: bool = False
    id: str = ""
    type: ClassVar[str] = "thread-item"


ContentBlock = Union[
    HeadingBlock,
    TextBlock,
    CodeBlock,
    QuoteBlock,
    ListBlock,
    LinkBlock,
    ImageBlock,
    ThreadItemBlock,
]

# Variants that carry a ``text`` field
TEXT_BEARING = (HeadingBlock, TextBlock, CodeBlock, QuoteBlock, LinkBlock)


def block_to_dict(block: ContentBlock) -> Dict[str, Any]:
    """Serialize a block to the wire format consumed by renderers."""
    data: Dict[str, Any] = {"type": block.type, "id": block.id}
    if isinstance(block, HeadingBlock):
        data.update(level=block.level, text=block.text)
    elif isinstance(block, TextBlock):
        data["text"] = block.text
    elif isinstance(block, CodeBlock):
        data["text"] = block.text
        if block.language:
            data["language"] = block.language
    elif isinstance(block, QuoteBlock):
        data["text"] = block.text
        if block.author:
            data["author"] = block.author
    elif isinstance(block, ListBlock):
        data["items"] = list(block.items)
    elif isinstance(block, LinkBlock):
        data.update(text=block.text, url=block.url)
        if block.ref_id is not None:
            data["refId"] = block.ref_id
    elif isinstance(block, ImageBlock):
        data["src"] = block.src
        if block.alt is not None:
            data["alt"] = block.alt
    elif isinstance(block, ThreadItemBlock):
        data["depth"] = block.depth
        if block.author is not None:
            data["author"] = block.author
        data["content"] = [block_to_dict(b) for b in block.content]
        data["children"] = [block_to_dict(b) for b in block.children]
        if block.parent_id is not None:
            data["parentId"] = block.parent_id
        data["collapsed"] = block.collapsed
    else:
        raise TypeError(f"Unknown content block: {block!r}")
    return data


@dataclass
class LinkRef:
    id: int
    text: str
    url: str


@dataclass
class PageMeta:
    author: Optional[str] = None
    site: Optional[str] = None
    published: Optional[str] = None
    pack: Optional[str] = None
    json_ld: bool = False
    confidence: float = 1.0
    warnings: List[str] = field(default_factory=list)


@dataclass
class PageDoc:
    """Finalized, deterministic document tree."""
    title: str
    url: Optional[str] = None
    meta: PageMeta = field(default_factory=PageMeta)
    kind: str = "article"  # thread, article, mixed
    content: List[ContentBlock] = field(default_factory=list)
    links: List[LinkRef] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    structural_signature: str = ""
    version: str = SCHEMA_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "title": self.title,
            "url": self.url,
            "meta": {
                "author": self.meta.author,
                "site": self.meta.site,
                "published": self.meta.published,
                "pack": self.meta.pack,
                "jsonLd": self.meta.json_ld,
                "confidence": self.meta.confidence,
                "warnings": list(self.meta.warnings),
            },
            "kind": self.kind,
            "content": [block_to_dict(b) for b in self.content],
            "links": [{"id": ref.id, "text": ref.text, "url": ref.url} for ref in self.links],
            "metadata": dict(self.metadata),
            "structural_signature": self.structural_signature,
        }


@dataclass
class RawDocument:
    """Extractor output that has not been through the finalizer yet."""
    title: str
    url: Optional[str] = None
    meta: PageMeta = field(default_factory=PageMeta)
    kind: str = "article"
    content: List[ContentBlock] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class IngestionPayload:
    source: str  # url, file, stdin
    identifier: str
    raw_content: bytes
    mime_type: Optional[str] = None

    @property
    def text(self) -> str:
        return self.raw_content.decode("utf-8", errors="replace")


@dataclass
class TraceStep:
    name: str
    decision: str
    reason: str
    timestamp: float
    data: Optional[Dict[str, Any]] = None


@dataclass
class Trace:
    """Ordered audit trail of the decisions made during one run."""
    steps: List[TraceStep] = field(default_factory=list)
    signals: Dict[str, Any] = field(default_factory=dict)
    duration_ms: int = 0

    def add_step(
        self,
        name: str,
        decision: str,
        reason: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.steps.append(TraceStep(
            name=name,
            decision=decision,
            reason=reason,
            timestamp=time.time(),
            data=data,
        ))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "steps": [
                {
                    "name": step.name,
                    "decision": step.decision,
                    "reason": step.reason,
                    "timestamp": step.timestamp,
                    **({"data": step.data} if step.data is not None else {}),
                }
                for step in self.steps
            ],
            "signals": dict(self.signals),
            "durationMs": self.duration_ms,
        }
