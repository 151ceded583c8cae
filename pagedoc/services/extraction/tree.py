"""Depth-stack reconstruction of nested threads from flat depth-tagged lists."""

from dataclasses import replace
from typing import List, Sequence, Tuple

from .models import ContentBlock, ThreadItemBlock


def rebuild_thread_tree(flat: Sequence[ContentBlock]) -> List[ThreadItemBlock]:
    """
    Nest a flat, document-ordered list of thread-items by their ``depth``.

    Each item becomes a child of the nearest preceding item with a smaller
    depth, or a new root when there is none. Non thread-items are ignored.
    The input blocks are not modified; new ``ThreadItemBlock`` instances are
    returned, with any children an item already had kept ahead of adopted ones.
    """
    items = [block for block in flat if isinstance(block, ThreadItemBlock)]
    adopted: List[List[int]] = [[] for _ in items]
    roots: List[int] = []
    stack: List[Tuple[int, int]] = []  # (owner index, depth)

    for index, item in enumerate(items):
        while stack and stack[-1][1] >= item.depth:
            stack.pop()
        if stack:
            adopted[stack[-1][0]].append(index)
        else:
            roots.append(index)
        stack.append((index, item.depth))

    # Children always come after their owner, so a reverse pass sees them built.
    built: List[ThreadItemBlock] = list(items)
    for index in range(len(items) - 1, -1, -1):
        item = items[index]
        built[index] = replace(
            item,
            content=list(item.content),
            children=list(item.children) + [built[j] for j in adopted[index]],
        )
    return [built[i] for i in roots]
