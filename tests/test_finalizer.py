from pagedoc.services.extraction.finalizer import (
    DocumentFinalizer,
    fnv1a,
    infer_kind,
    normalize_text,
    structural_signature,
)
from pagedoc.services.extraction.models import (
    HeadingBlock,
    ImageBlock,
    LinkBlock,
    ListBlock,
    PageMeta,
    RawDocument,
    TextBlock,
    ThreadItemBlock,
)
from pagedoc.services.extraction.tree import rebuild_thread_tree


def _raw(content, **kwargs) -> RawDocument:
    return RawDocument(title=kwargs.pop("title", "Doc"), content=content, meta=PageMeta(), **kwargs)


def _sample_content():
    return [
        HeadingBlock(level=1, text="Title"),
        TextBlock(text="Intro  text"),
        ThreadItemBlock(depth=0, author="a", content=[TextBlock(text="Root")], children=[
            ThreadItemBlock(depth=1, author="b", content=[TextBlock(text="Reply")]),
        ]),
        ImageBlock(src="https://img.test/x.png"),
    ]


def test_fnv1a_known_values():
    assert fnv1a("") == "811c9dc5"
    assert fnv1a("a") == "e40c292c"


def test_finalize_is_deterministic():
    first = DocumentFinalizer().finalize(_raw(_sample_content()))
    second = DocumentFinalizer().finalize(_raw(_sample_content()))

    assert first.to_dict() == second.to_dict()
    ids = [b.id for b in first.content]
    assert all(ids)
    assert len(set(ids)) == len(ids)


def test_ids_depend_on_text_and_position():
    doc = DocumentFinalizer().finalize(_raw([TextBlock(text="same"), TextBlock(text="same")]))
    changed = DocumentFinalizer().finalize(_raw([TextBlock(text="other"), TextBlock(text="same")]))

    assert doc.content[0].id != doc.content[1].id
    assert doc.content[0].id != changed.content[0].id
    assert doc.content[1].id == changed.content[1].id


def test_finalize_does_not_mutate_input():
    raw = _raw(_sample_content())

    DocumentFinalizer(max_length=3).finalize(raw)

    assert raw.content[0].id == ""
    assert raw.content[1].text == "Intro  text"
    assert raw.content[2].children[0].parent_id is None


def test_parent_ids_follow_the_tree():
    doc = DocumentFinalizer().finalize(_raw(_sample_content()))
    root = doc.content[2]

    assert root.parent_id is None
    assert root.children[0].parent_id == root.id
    assert root.content[0].id


def test_text_is_nfc_normalized_and_collapsed():
    doc = DocumentFinalizer().finalize(_raw(
        [TextBlock(text="  cafe\u0301   au\n lait "), ListBlock(items=[" a  b "])],
        title="  Spaced   title ",
    ))

    assert doc.content[0].text == "caf\u00e9 au lait"
    assert doc.content[1].items == ["a b"]
    assert doc.title == "Spaced title"
    assert normalize_text(None) == ""


def test_links_are_deduplicated_in_first_seen_order():
    content = [
        LinkBlock(text="A", url="https://a.test"),
        ThreadItemBlock(content=[LinkBlock(text="B", url="https://b.test")]),
        LinkBlock(text="A again", url="https://a.test"),
    ]

    doc = DocumentFinalizer().finalize(_raw(content))

    assert [(ref.id, ref.text, ref.url) for ref in doc.links] == [
        (1, "A", "https://a.test"),
        (2, "B", "https://b.test"),
    ]
    assert doc.content[0].ref_id == 1
    assert doc.content[1].content[0].ref_id == 2
    assert doc.content[2].ref_id == 1


def test_max_depth_prunes_deeper_thread_items():
    flat = [ThreadItemBlock(depth=d, content=[TextBlock(text=f"d{d}")]) for d in range(4)]
    raw = _raw(rebuild_thread_tree(flat))

    doc = DocumentFinalizer(max_depth=2).finalize(raw)

    assert len(doc.content) == 1
    level1 = doc.content[0].children[0]
    level2 = level1.children[0]
    assert level2.depth == 2
    assert level2.children == []


def test_max_length_truncates_with_ellipsis():
    doc = DocumentFinalizer(max_length=5).finalize(_raw([
        TextBlock(text="abcdefgh"),
        HeadingBlock(level=2, text="abc"),
        ThreadItemBlock(content=[TextBlock(text="123456789")]),
    ]))

    assert doc.content[0].text == "abcde..."
    assert doc.content[1].text == "abc"
    assert doc.content[2].content[0].text == "12345..."


def test_kind_inference():
    thread = ThreadItemBlock()
    texts = [TextBlock(text=str(i)) for i in range(6)]

    assert infer_kind([thread]) == "thread"
    assert infer_kind([thread] + texts) == "mixed"
    assert infer_kind([thread] + texts[:5]) == "thread"
    assert infer_kind(texts) == "article"
    assert infer_kind([]) == "article"


def test_json_documents_keep_their_kind():
    raw = _raw([TextBlock(text="x")], kind="thread")

    assert DocumentFinalizer().finalize(raw, infer=False).kind == "thread"
    assert DocumentFinalizer().finalize(raw).kind == "article"


def test_signature_tracks_shape_not_text():
    one = structural_signature([HeadingBlock(level=2, text="a"), TextBlock(text="b")])
    two = structural_signature([HeadingBlock(level=2, text="other"), TextBlock(text="words")])
    three = structural_signature([HeadingBlock(level=3, text="a"), TextBlock(text="b")])

    assert one == two
    assert one != three


def test_to_dict_wire_format():
    doc = DocumentFinalizer().finalize(_raw(
        [LinkBlock(text="A", url="https://a.test"), ThreadItemBlock(author="x", children=[ThreadItemBlock(depth=1)])],
        url="https://example.com",
    ))

    data = doc.to_dict()

    assert data["version"] == "1.1"
    assert data["content"][0]["refId"] == 1
    assert data["content"][1]["type"] == "thread-item"
    assert data["content"][1]["children"][0]["parentId"] == data["content"][1]["id"]
    assert data["meta"]["jsonLd"] is False
    assert data["links"] == [{"id": 1, "text": "A", "url": "https://a.test"}]
