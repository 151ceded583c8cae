from pagedoc.services.extraction import readability
from pagedoc.services.extraction.models import (
    CodeBlock,
    HeadingBlock,
    ListBlock,
    QuoteBlock,
    TextBlock,
)


ARTICLE_XML = (
    '<doc title="My Article" author="Ann">'
    "<main>"
    '<head rend="h2">Section</head>'
    "<p>Para one</p>"
    "<list><item>x</item><item>y</item></list>"
    "<quote>Q</quote>"
    "<code>c = 1</code>"
    "<table><row><cell>a</cell><cell>b</cell></row></table>"
    '<p>See <ref target="https://e.test">link</ref></p>'
    "</main>"
    "<comments/>"
    "</doc>"
)


def test_extract_article_maps_trafilatura_xml(monkeypatch):
    calls = []

    def _fake_extract(html, **kwargs):
        calls.append(kwargs)
        return ARTICLE_XML

    monkeypatch.setattr(readability.trafilatura, "extract", _fake_extract)

    article = readability.extract_article("<html><body><p>x</p></body></html>")

    assert article is not None
    assert article.title == "My Article"
    assert calls[0]["output_format"] == "xml"
    assert readability.article_blocks(article) == [
        HeadingBlock(level=2, text="Section"),
        TextBlock(text="Para one"),
        ListBlock(items=["x", "y"]),
        QuoteBlock(text="Q"),
        CodeBlock(text="c = 1"),
        ListBlock(items=["a | b"]),
        TextBlock(text="See link"),
    ]


def test_extract_article_never_raises(monkeypatch):
    def _boom(html, **kwargs):
        raise RuntimeError("parser exploded")

    monkeypatch.setattr(readability.trafilatura, "extract", _boom)
    assert readability.extract_article("<html></html>") is None

    monkeypatch.setattr(readability.trafilatura, "extract", lambda html, **kwargs: None)
    assert readability.extract_article("<html></html>") is None

    monkeypatch.setattr(readability.trafilatura, "extract", lambda html, **kwargs: "<doc><main>")
    assert readability.extract_article("<html></html>") is None


def test_article_blocks_of_nothing():
    assert readability.article_blocks(None) == []
