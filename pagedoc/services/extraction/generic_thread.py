"""Generic thread detection for pages no pattern pack governs."""

from typing import Callable, Dict, List, Optional, Sequence

from selectolax.parser import Node

from .constants import (
    GENERIC_CONTAINER_SELECTOR,
    GENERIC_DEFAULT_AUTHOR,
    GENERIC_MIN_REPEAT,
    GENERIC_MIN_REPEAT_WITH_DEPTH,
)
from .metadata import MetadataHunter
from .models import ContentBlock, TextBlock, ThreadItemBlock, Trace
from .selectors import attr_text, matches, own_text, parse_int, query_all
from .tree import rebuild_thread_tree


Walker = Callable[..., None]


class GenericThreadDetector:
    """
    Finds the most repeated container class and treats its elements as a
    flat list of thread-items.

    Class strings are compared literally: "comment odd" and "comment even"
    are different containers.
    """

    def __init__(
        self,
        walker: Walker,
        trace: Optional[Trace] = None,
        hunter: Optional[MetadataHunter] = None,
        filters: Sequence[str] = (),
    ):
        self.walker = walker
        self.filters = list(filters)
        self.trace = trace if trace is not None else Trace()
        self.hunter = hunter or MetadataHunter()

    def best_container_class(self, root) -> Optional[str]:
        counts: Dict[str, int] = {}
        depth_tagged: Dict[str, bool] = {}
        for element in query_all(root, GENERIC_CONTAINER_SELECTOR):
            cls = attr_text(element, "class")
            if not cls:
                continue
            counts[cls] = counts.get(cls, 0) + 1
            if self._explicit_depth(element) > 0:
                depth_tagged[cls] = True

        best: Optional[str] = None
        best_count = 0
        for cls, count in counts.items():
            minimum = GENERIC_MIN_REPEAT_WITH_DEPTH if depth_tagged.get(cls) else GENERIC_MIN_REPEAT
            if count >= minimum and count > best_count:
                best, best_count = cls, count
        return best

    def detect(self, root) -> List[ThreadItemBlock]:
        cls = self.best_container_class(root)
        if cls is None:
            return []

        selector = "." + ".".join(cls.split())
        self.trace.add_step("Generic Thread", "Heuristic", f"Identified repeated container: {selector}")

        flat: List[ContentBlock] = []
        for element in query_all(root, "*"):
            if not matches(element, selector):
                continue
            content: List[ContentBlock] = []
            self.walker(element, content, skip=selector)
            if not content:
                text = own_text(element, [selector, *self.filters])
                if not text:
                    continue
                content = [TextBlock(text=text)]
            flat.append(ThreadItemBlock(
                depth=self._depth(element, selector),
                author=self.hunter.hunt_author(element) or GENERIC_DEFAULT_AUTHOR,
                content=content,
            ))

        return rebuild_thread_tree(flat)

    @staticmethod
    def _explicit_depth(element: Node) -> int:
        return parse_int(attr_text(element, "depth") or attr_text(element, "aria-level"))

    def _depth(self, element: Node, selector: str) -> int:
        depth = self._explicit_depth(element)
        if depth:
            return depth
        parent = element.parent
        while parent is not None:
            if matches(parent, selector):
                depth += 1
            parent = parent.parent
        return depth

