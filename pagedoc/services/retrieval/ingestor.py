"""Fetch-or-read: turns a URL, a file path or ``-`` (stdin) into an ingestion payload."""

import asyncio
import logging
import mimetypes
import sys
from pathlib import Path
from typing import Optional

import httpx

from pagedoc.config import Settings, get_settings

from ..extraction.errors import IngestionError
from ..extraction.models import IngestionPayload


logger = logging.getLogger(__name__)


class Ingestor:

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings or get_settings()
        self._client = client

    async def ingest(self, source: str) -> IngestionPayload:
        source = str(source or "").strip()
        if not source:
            raise IngestionError("No input given")
        if source == "-":
            return await self._from_stdin()
        if source.startswith(("http://", "https://")):
            return await self._from_url(source)
        return self._from_file(source)

    async def _from_url(self, url: str) -> IngestionPayload:
        headers = {"User-Agent": self.settings.user_agent}
        try:
            if self._client is not None:
                resp = await self._client.get(url, headers=headers, follow_redirects=True)
            else:
                async with httpx.AsyncClient(timeout=self.settings.fetch_timeout_seconds) as client:
                    resp = await client.get(url, headers=headers, follow_redirects=True)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise IngestionError(f"Failed to fetch {url}: {exc}") from exc

        content_type = resp.headers.get("content-type")
        logger.debug("Fetched %s (%d bytes, %s)", url, len(resp.content), content_type)
        return IngestionPayload(
            source="url",
            identifier=url,
            raw_content=resp.content,
            mime_type=content_type.split(";")[0].strip() if content_type else None,
        )

    @staticmethod
    def _from_file(path: str) -> IngestionPayload:
        file_path = Path(path).expanduser()
        try:
            data = file_path.read_bytes()
        except OSError as exc:
            raise IngestionError(f"Failed to read {path}: {exc}") from exc
        mime_type, _ = mimetypes.guess_type(file_path.name)
        return IngestionPayload(source="file", identifier=path, raw_content=data, mime_type=mime_type)

    @staticmethod
    async def _from_stdin() -> IngestionPayload:
        data = await asyncio.get_running_loop().run_in_executor(None, sys.stdin.buffer.read)
        return IngestionPayload(source="stdin", identifier="stdin", raw_content=data)
