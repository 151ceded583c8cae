"""Pattern packs and learned per-domain state."""

from .registry import PackSelectors, PatternPack, PatternRegistry, UrlTransform, domain_for_url, transform_url
from .state import DomainState, DomainStateStore, InMemoryDomainStateStore

__all__ = [
    "PackSelectors",
    "PatternPack",
    "PatternRegistry",
    "UrlTransform",
    "domain_for_url",
    "transform_url",
    "DomainState",
    "DomainStateStore",
    "InMemoryDomainStateStore",
]
