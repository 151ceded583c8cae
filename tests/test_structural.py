from selectolax.parser import HTMLParser

from pagedoc.services.extraction.models import (
    CodeBlock,
    HeadingBlock,
    LinkBlock,
    ListBlock,
    QuoteBlock,
    TextBlock,
    ThreadItemBlock,
    Trace,
)
from pagedoc.services.extraction.structural import StructuralExtractor, apply_depth_math
from pagedoc.services.patterns.registry import PatternPack


REDDIT_PACK = PatternPack.model_validate({
    "domain": "reddit.com",
    "selectors": {
        "root": "shreddit-comment-tree",
        "item": "shreddit-comment",
        "author": "attr:author",
        "body": '[slot="comment"]',
        "depth": "attr:depth",
        "depthMethod": "attr",
    },
})

HN_PACK = PatternPack.model_validate({
    "domain": "news.ycombinator.com",
    "selectors": {
        "root": "table.comment-tree",
        "item": "tr.athing.comtr",
        "author": ".hnuser",
        "body": ".commtext",
        "depth": "td.ind img",
        "depthMethod": "query",
        "depthMath": "x / 40",
    },
    "filters": [".reply"],
})


def _hn_row(user: str, width: int, text: str) -> str:
    return (
        '<tr class="athing comtr"><td><table><tr>'
        f'<td class="ind"><img src="s.gif" width="{width}"></td>'
        f'<td><a class="hnuser">{user}</a><div class="commtext">{text}</div>'
        '<div class="reply"><a href="reply">reply</a></div></td>'
        "</tr></table></td></tr>"
    )


def test_heuristic_block_classification():
    html = """<html><body><nav><p>menu</p></nav><main>
        <h2>Intro</h2>
        <p>One</p>
        <blockquote>Quoted <cite>Ann</cite></blockquote>
        <pre class="language-python">print(1)</pre>
        <ul><li>a</li><li> </li><li>b</li></ul>
        <a href="https://x.test">X</a>
        <div><section><p>Nested</p></section></div>
    </main></body></html>"""
    trace = Trace()

    blocks = StructuralExtractor(trace=trace).extract(HTMLParser(html))

    assert [type(b) for b in blocks] == [
        HeadingBlock, TextBlock, QuoteBlock, CodeBlock, ListBlock, LinkBlock, TextBlock,
    ]
    assert blocks[0].level == 2
    assert blocks[2].author == "Ann"
    assert blocks[3].language == "python"
    assert blocks[4].items == ["a", "b"]
    assert blocks[5].url == "https://x.test"
    assert blocks[6].text == "Nested"
    assert trace.signals["rootSelector"] == "main"
    assert trace.signals["blockCount"] == 7
    assert trace.steps[0].name == "Content Root"


def test_pack_item_selector_builds_nested_thread():
    html = """<html><body><shreddit-comment-tree>
        <shreddit-comment author="alice" depth="0">
            <div slot="comment"><p>Top level</p></div>
            <shreddit-comment author="bob" depth="1">
                <div slot="comment"><p>Reply</p></div>
            </shreddit-comment>
        </shreddit-comment>
    </shreddit-comment-tree></body></html>"""
    trace = Trace()

    blocks = StructuralExtractor(pack=REDDIT_PACK, trace=trace).extract(HTMLParser(html))

    assert len(blocks) == 1
    root = blocks[0]
    assert isinstance(root, ThreadItemBlock)
    assert root.author == "alice"
    assert root.depth == 0
    assert [b.text for b in root.content] == ["Top level"]
    assert len(root.children) == 1
    reply = root.children[0]
    assert reply.author == "bob"
    assert reply.depth == 1
    assert [b.text for b in reply.content] == ["Reply"]
    assert reply.children == []
    assert trace.signals["rootSelector"] == "shreddit-comment-tree"
    assert trace.signals["itemSelector"] == "shreddit-comment"


def test_flat_indented_rows_are_rebuilt_into_a_tree():
    html = (
        '<html><body><table class="comment-tree">'
        + _hn_row("pg", 0, "First")
        + _hn_row("dang", 40, "Second")
        + _hn_row("tptacek", 80, "Third")
        + _hn_row("patio11", 0, "Fourth")
        + "</table></body></html>"
    )
    trace = Trace()

    blocks = StructuralExtractor(pack=HN_PACK, trace=trace).extract(HTMLParser(html))

    assert [b.author for b in blocks] == ["pg", "patio11"]
    first = blocks[0]
    assert [b.text for b in first.content] == ["First"]
    assert first.children[0].author == "dang"
    assert first.children[0].depth == 1
    assert first.children[0].children[0].author == "tptacek"
    assert first.children[0].children[0].depth == 2
    assert any(step.name == "Tree Reconstruction" for step in trace.steps)


def test_filters_blacklist_elements():
    pack = PatternPack.model_validate({"domain": "example.com", "selectors": {"root": "article"}, "filters": [".ad"]})
    html = '<html><body><article><p>Keep</p><div class="ad"><p>Drop</p></div></article></body></html>'

    blocks = StructuralExtractor(pack=pack).extract(HTMLParser(html))

    assert [b.text for b in blocks] == ["Keep"]


def test_filters_apply_to_thread_item_text_fallback():
    pack = PatternPack.model_validate({
        "domain": "forum.test",
        "selectors": {"item": "div.c"},
        "filters": [".meta"],
    })
    html = """<html><body>
        <div class="c"><span class="meta">VOTES 99</span> hello</div>
        <div class="c"><span>by ann <b class="meta">VOTES 7</b></span> there</div>
    </body></html>"""

    blocks = StructuralExtractor(pack=pack).extract(HTMLParser(html))

    texts = [item.content[0].text for item in blocks]
    assert texts == ["hello", "by ann there"]
    assert all("VOTES" not in text for text in texts)


def test_nested_list_items_keep_their_own_text():
    html = "<html><body><main><ul><li>a<ul><li>b</li></ul></li><li>c</li></ul></main></body></html>"

    blocks = StructuralExtractor().extract(HTMLParser(html))

    assert [type(b) for b in blocks] == [ListBlock]
    assert blocks[0].items == ["a", "b", "c"]


def test_depth_attribute_fallback_without_declared_method():
    pack = PatternPack.model_validate({"domain": "forum.test", "selectors": {"item": "div.post"}})
    html = """<html><body>
        <div class="post" aria-level="0"><p>A</p></div>
        <div class="post" aria-level="1"><p>B</p></div>
    </body></html>"""
    trace = Trace()

    blocks = StructuralExtractor(pack=pack, trace=trace).extract(HTMLParser(html))

    assert len(blocks) == 1
    assert blocks[0].children[0].depth == 1
    assert any(step.name == "Depth Inference" for step in trace.steps)


def test_nested_depth_method_counts_item_ancestors():
    pack = PatternPack.model_validate({
        "domain": "forum.test",
        "selectors": {"item": "div.post", "depthMethod": "nested"},
    })
    html = """<html><body><div class="post"><p>A</p>
        <div class="post"><p>B</p><div class="post"><p>C</p></div></div>
    </div></body></html>"""

    blocks = StructuralExtractor(pack=pack).extract(HTMLParser(html))

    assert blocks[0].depth == 0
    assert blocks[0].children[0].depth == 1
    assert blocks[0].children[0].children[0].depth == 2
    assert [b.text for b in blocks[0].content] == ["A"]


def test_apply_depth_math():
    assert apply_depth_math(80, "x / 40") == 2
    assert apply_depth_math(3, "x * 2") == 6
    assert apply_depth_math(5, None) == 5
    assert apply_depth_math(5, "x ^ 2") == 5
