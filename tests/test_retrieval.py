import asyncio

import httpx
import pytest

from pagedoc.config import Settings
from pagedoc.services.extraction.errors import IngestionError
from pagedoc.services.retrieval.browser import (
    NoOpBrowserAdapter,
    PlaywrightBrowserAdapter,
    build_browser_adapter,
)
from pagedoc.services.retrieval.ingestor import Ingestor


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_ingest_url_reads_body_and_mime_type():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["user_agent"] = request.headers.get("user-agent")
        return httpx.Response(200, content=b"<p>hi</p>", headers={"content-type": "text/html; charset=utf-8"})

    settings = Settings()
    payload = asyncio.run(Ingestor(settings, client=_client(handler)).ingest("https://e.test/x"))

    assert payload.source == "url"
    assert payload.identifier == "https://e.test/x"
    assert payload.raw_content == b"<p>hi</p>"
    assert payload.mime_type == "text/html"
    assert seen["user_agent"] == settings.user_agent


def test_ingest_url_http_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, content=b"missing")

    with pytest.raises(IngestionError):
        asyncio.run(Ingestor(Settings(), client=_client(handler)).ingest("https://e.test/missing"))


def test_ingest_file(tmp_path):
    path = tmp_path / "page.html"
    path.write_bytes(b"<p>local</p>")

    payload = asyncio.run(Ingestor(Settings()).ingest(str(path)))

    assert payload.source == "file"
    assert payload.raw_content == b"<p>local</p>"
    assert payload.mime_type == "text/html"
    assert payload.text == "<p>local</p>"


def test_ingest_missing_file_and_empty_input(tmp_path):
    with pytest.raises(IngestionError):
        asyncio.run(Ingestor(Settings()).ingest(str(tmp_path / "nope.html")))
    with pytest.raises(IngestionError):
        asyncio.run(Ingestor(Settings()).ingest("  "))


def test_build_browser_adapter_follows_settings():
    assert isinstance(build_browser_adapter(Settings(browser_enabled=False)), NoOpBrowserAdapter)
    assert isinstance(build_browser_adapter(Settings(browser_enabled=True)), PlaywrightBrowserAdapter)


def test_local_paths_render_through_file_urls(tmp_path):
    target = PlaywrightBrowserAdapter._target(str(tmp_path / "page.html"))

    assert target.startswith("file://")
    assert target.endswith("/page.html")
    assert PlaywrightBrowserAdapter._target("https://e.test") == "https://e.test"
