"""Ingestion and browser-rendering collaborators."""

from .browser import BrowserAdapter, NoOpBrowserAdapter, PlaywrightBrowserAdapter, build_browser_adapter
from .ingestor import Ingestor

__all__ = [
    "BrowserAdapter",
    "NoOpBrowserAdapter",
    "PlaywrightBrowserAdapter",
    "build_browser_adapter",
    "Ingestor",
]
