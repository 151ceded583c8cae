"""Browser rendering: headless Chromium through Playwright, or nothing."""

import logging
from pathlib import Path
from typing import Optional, Protocol

from playwright.async_api import async_playwright

from pagedoc.config import Settings, get_settings

from ..extraction.errors import RenderUnavailableError


logger = logging.getLogger(__name__)


class BrowserAdapter(Protocol):
    provider: str

    async def render(self, url: str) -> str:
        ...

    async def close(self) -> None:
        ...


class NoOpBrowserAdapter:
    """Used where headless rendering is not offered; every render fails."""

    provider = "none"

    async def render(self, url: str) -> str:
        raise RenderUnavailableError(
            "Browser rendering is not available in this deployment (set PAGEDOC_BROWSER_ENABLED=true)"
        )

    async def close(self) -> None:
        return None


class PlaywrightBrowserAdapter:
    """
    Lazily launched headless Chromium.

    The browser is started on the first render and reused until ``close``.
    Local paths are rendered through ``file://`` URLs.
    """

    provider = "playwright"

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._playwright = None
        self._browser = None

    async def _ensure_browser(self):
        if self._browser is not None:
            return self._browser
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(headless=self.settings.browser_headless)
        except Exception as exc:
            await self.close()
            raise RenderUnavailableError(f"Failed to launch Chromium: {exc}") from exc
        logger.info("Launched headless Chromium")
        return self._browser

    @staticmethod
    def _target(url: str) -> str:
        if url.startswith(("http://", "https://", "file://")):
            return url
        return Path(url).expanduser().resolve().as_uri()

    async def render(self, url: str) -> str:
        browser = await self._ensure_browser()
        page = await browser.new_page(user_agent=self.settings.user_agent)
        try:
            await page.goto(self._target(url), wait_until="networkidle", timeout=self.settings.render_timeout_ms)
            return await page.content()
        except Exception as exc:
            raise RenderUnavailableError(f"Render failed for {url}: {exc}") from exc
        finally:
            await page.close()

    async def close(self) -> None:
        browser, playwright = self._browser, self._playwright
        self._browser = None
        self._playwright = None
        if browser is not None:
            await browser.close()
        if playwright is not None:
            await playwright.stop()


def build_browser_adapter(settings: Optional[Settings] = None) -> BrowserAdapter:
    settings = settings or get_settings()
    if settings.browser_enabled:
        return PlaywrightBrowserAdapter(settings)
    return NoOpBrowserAdapter()
