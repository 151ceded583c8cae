from pagedoc.services.extraction.models import TextBlock, ThreadItemBlock
from pagedoc.services.extraction.tree import rebuild_thread_tree


def _item(depth: int, text: str) -> ThreadItemBlock:
    return ThreadItemBlock(depth=depth, author=text, content=[TextBlock(text=text)])


def test_rebuild_nests_by_depth():
    flat = [_item(0, "a"), _item(1, "b"), _item(2, "c"), _item(1, "d"), _item(0, "e")]

    roots = rebuild_thread_tree(flat)

    assert [r.author for r in roots] == ["a", "e"]
    assert [c.author for c in roots[0].children] == ["b", "d"]
    assert [c.author for c in roots[0].children[0].children] == ["c"]
    assert roots[1].children == []


def test_rebuild_does_not_modify_input():
    flat = [_item(0, "a"), _item(1, "b")]

    roots = rebuild_thread_tree(flat)

    assert flat[0].children == []
    assert roots[0] is not flat[0]
    assert roots[0].children[0].author == "b"


def test_rebuild_treats_depth_jumps_and_equal_depths():
    roots = rebuild_thread_tree([_item(2, "deep"), _item(2, "sibling"), _item(5, "jump")])

    assert [r.author for r in roots] == ["deep", "sibling"]
    assert [c.author for c in roots[1].children] == ["jump"]


def test_rebuild_ignores_non_thread_blocks():
    assert rebuild_thread_tree([TextBlock(text="x"), _item(0, "a")])[0].author == "a"
    assert rebuild_thread_tree([]) == []
