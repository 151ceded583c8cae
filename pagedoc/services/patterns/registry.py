"""Pattern pack registry: per-domain extraction hints loaded from YAML."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Optional, Union
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .state import DomainState, DomainStateStore, InMemoryDomainStateStore


logger = logging.getLogger(__name__)


class PackSelectors(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    root: Optional[str] = None
    item: Optional[str] = None
    author: Optional[str] = None
    body: Optional[str] = None
    depth: Optional[str] = None
    depth_method: Optional[Literal["attr", "query", "nested"]] = Field(default=None, alias="depthMethod")
    depth_math: Optional[str] = Field(default=None, alias="depthMath")


class UrlTransform(BaseModel):
    model_config = ConfigDict(frozen=True)

    search: str
    replace: str


class PatternPack(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    domain: str
    version: Optional[str] = None
    selectors: PackSelectors = Field(default_factory=PackSelectors)
    transform: Optional[UrlTransform] = None
    filters: List[str] = Field(default_factory=list)

    @property
    def pack_version(self) -> str:
        return self.version or self.domain


def domain_for_url(identifier: str) -> Optional[str]:
    """Registrable lookup key for a URL: hostname without a leading ``www.``."""
    try:
        parsed = urlparse(str(identifier or "").strip())
    except ValueError:
        return None
    host = (parsed.hostname or "").lower()
    if not parsed.scheme or not host:
        return None
    if host.startswith("www."):
        host = host[4:]
    return host


def transform_url(pack: Optional[PatternPack], url: str) -> str:
    """Apply the pack's regex URL rewrite when it matches ``url``."""
    if pack is None or pack.transform is None:
        return url
    try:
        pattern = re.compile(pack.transform.search)
    except re.error as exc:
        logger.warning("Invalid transform pattern in pack %s: %s", pack.domain, exc)
        return url
    if not pattern.search(url):
        return url
    return pattern.sub(_js_replacement(pack.transform.replace), url, count=1)


def _js_replacement(template: str) -> str:
    # Pack files use $1-style group references.
    return re.sub(r"\$(\d+)", r"\\g<\1>", template)


class PatternRegistry:
    """
    Holds pattern packs keyed by domain and fronts the domain state store.

    Packs are loaded once and treated as read-only for the rest of a run.
    """

    def __init__(
        self,
        patterns_dir: Optional[Union[str, Path]] = None,
        state_store: Optional[DomainStateStore] = None,
    ):
        self.patterns_dir = Path(patterns_dir) if patterns_dir else None
        self.state_store = state_store if state_store is not None else InMemoryDomainStateStore()
        self._packs: Dict[str, PatternPack] = {}

    @property
    def packs(self) -> Dict[str, PatternPack]:
        return dict(self._packs)

    def add_pack(self, pack: Union[PatternPack, Mapping[str, Any]]) -> Optional[PatternPack]:
        if not isinstance(pack, PatternPack):
            try:
                pack = PatternPack.model_validate(dict(pack))
            except ValidationError as exc:
                logger.warning("Rejecting invalid pattern pack: %s", exc)
                return None
        if not pack.domain:
            return None
        self._packs[pack.domain] = pack
        return pack

    def load_packs(self) -> None:
        if self.patterns_dir is not None:
            if not self.patterns_dir.is_dir():
                logger.warning("Pattern directory %s does not exist", self.patterns_dir)
            else:
                for path in sorted(self.patterns_dir.iterdir()):
                    if path.suffix not in (".yaml", ".yml"):
                        continue
                    self._load_pack_file(path)
        self.state_store.load()
        logger.debug("Loaded %d pattern packs", len(self._packs))

    def _load_pack_file(self, path: Path) -> None:
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Error loading pattern pack %s: %s", path, exc)
            return
        if isinstance(data, dict):
            self.add_pack(data)

    def get_pack_for_url(self, identifier: str) -> Optional[PatternPack]:
        domain = domain_for_url(identifier)
        if domain is not None:
            return self._packs.get(domain)

        # Not a URL (a local path, a bare name): substring match on the domain
        # or its registrable label ("reddit" for reddit.com, "wikipedia" for en.wikipedia.org).
        for key, pack in self._packs.items():
            if key in identifier:
                return pack
            labels = key.split(".")
            base = labels[-2] if len(labels) >= 2 else labels[0]
            if base and base in identifier:
                return pack
        return None

    def get_domain_state(self, url: str) -> Optional[DomainState]:
        domain = domain_for_url(url)
        if domain is None:
            return None
        return self.state_store.get(domain)

    def save_domain_state(
        self,
        domain: str,
        partial: Union[DomainState, Mapping[str, Any]],
    ) -> DomainState:
        return self.state_store.save(domain, partial)
