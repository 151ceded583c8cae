"""Minimal selector language used by pattern packs, plus selectolax node helpers.

Supported alternatives (comma separated, any one may match):
``tag``, ``tag.class1.class2``, ``.class``, ``[attr=value]`` and
``tag[attr=value]``. There are no combinators and no pseudo-classes.
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from selectolax.parser import Node


_SIMPLE_PATTERN = re.compile(
    r"""^(?P<tag>[A-Za-z][\w-]*)?
        (?P<classes>(?:\.[\w-]+)*)
        (?:\[(?P<attr>[\w:-]+)=['"]?(?P<value>[^'"\]]*)['"]?\])?$""",
    re.VERBOSE,
)


@dataclass(frozen=True)
class SimplePattern:
    tag: Optional[str]
    classes: Tuple[str, ...]
    attr: Optional[str]
    value: Optional[str]


@lru_cache(maxsize=512)
def parse_selector(selector: str) -> Tuple[SimplePattern, ...]:
    patterns: List[SimplePattern] = []
    for raw in str(selector or "").split(","):
        part = raw.strip()
        if not part:
            continue
        match = _SIMPLE_PATTERN.match(part)
        if match is None or not any(match.group("tag", "classes", "attr")):
            continue
        classes = tuple(c for c in (match.group("classes") or "").split(".") if c)
        patterns.append(SimplePattern(
            tag=(match.group("tag") or "").lower() or None,
            classes=classes,
            attr=match.group("attr"),
            value=match.group("value"),
        ))
    return tuple(patterns)


def is_element(node: Optional[Node]) -> bool:
    """True for element nodes; text, comment and document nodes are excluded."""
    if node is None:
        return False
    tag = node.tag
    return bool(tag) and not tag.startswith(("-", "_", "#", "!"))


def matches(node: Optional[Node], selector: str) -> bool:
    if not is_element(node):
        return False
    tag = node.tag.lower()
    node_classes = attr_text(node, "class").split()
    for pattern in parse_selector(selector):
        if pattern.tag and pattern.tag != tag:
            continue
        if any(cls not in node_classes for cls in pattern.classes):
            continue
        if pattern.attr is not None and attr_text(node, pattern.attr) != pattern.value:
            continue
        return True
    return False


def element_children(node: Node) -> Iterator[Node]:
    for child in node.iter():
        if is_element(child):
            yield child


def node_text(node: Optional[Node]) -> str:
    """Deep text of a node, trimmed at the ends only."""
    if node is None:
        return ""
    try:
        text = node.text(deep=True, separator="", strip=False)
    except Exception:
        return ""
    return str(text or "").strip()


def attr_text(node: Optional[Node], key: str) -> str:
    if node is None:
        return ""
    raw = node.attributes.get(key)
    if raw is None:
        return ""
    return str(raw).strip()


def query_first(node: Optional[Node], selector: Optional[str]) -> Optional[Node]:
    """CSS lookup that treats invalid selectors as no match."""
    if node is None or not selector:
        return None
    try:
        return node.css_first(selector)
    except Exception:
        return None


def query_all(node: Optional[Node], selector: Optional[str]) -> List[Node]:
    if node is None or not selector:
        return []
    try:
        return list(node.css(selector))
    except Exception:
        return []


def parse_int(raw: Optional[str]) -> int:
    """Leading integer of a string, 0 when there is none."""
    match = re.match(r"\s*(-?\d+)", str(raw or ""))
    return int(match.group(1)) if match else 0


def own_text(node: Optional[Node], exclude: Union[str, Sequence[str], None] = None) -> str:
    """Whitespace-collapsed text of a node, leaving out descendants matching any of ``exclude``."""
    if node is None:
        return ""
    selectors = [exclude] if isinstance(exclude, str) else [s for s in (exclude or []) if s]
    parts: List[str] = []
    _collect_text(node, selectors, parts)
    return " ".join(" ".join(parts).split())


def _collect_text(node: Node, selectors: List[str], parts: List[str]) -> None:
    for child in node.iter(include_text=True):
        if child.tag == "-text":
            parts.append(child.text() or "")
        elif is_element(child) and not any(matches(child, s) for s in selectors):
            _collect_text(child, selectors, parts)
