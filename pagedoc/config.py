from pathlib import Path
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


BUNDLED_PATTERNS_DIR = Path(__file__).resolve().parent / "services" / "patterns" / "packs"


class Settings(BaseSettings):
    # Pattern packs and learned per-domain state
    patterns_dir: str = str(BUNDLED_PATTERNS_DIR)
    state_path: str = str(Path.home() / ".pagedoc" / "site-state.json")

    # Browser rendering (headless Chromium through Playwright)
    browser_enabled: bool = False
    browser_headless: bool = True
    render_timeout_ms: int = 30000

    # Ingestion
    fetch_timeout_seconds: float = 15.0
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    # Per-input budget, raced against the whole pipeline
    timeout_seconds: float = 60.0

    # Extraction heuristics and resource limits
    thin_content_threshold: int = 3
    max_depth: Optional[int] = None
    max_length: Optional[int] = None

    class Config:
        env_prefix = "PAGEDOC_"
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()
