"""Shared helpers for the JSON API extractors."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from selectolax.parser import HTMLParser

from ..errors import InvalidApiResponseError


def require(data: Any, key: str, source: str) -> Any:
    """Fetch a required field from a JSON object, or fail the extractor."""
    if not isinstance(data, dict) or data.get(key) is None:
        raise InvalidApiResponseError(f"Invalid {source} response: missing '{key}'")
    return data[key]


def as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def strip_markup(html: Optional[str]) -> str:
    """Plain text of an HTML fragment as returned by forum APIs."""
    if not html:
        return ""
    tree = HTMLParser(html)
    root = tree.body if tree.body is not None else tree.root
    if root is None:
        return ""
    return " ".join((root.text(deep=True, separator=" ", strip=False) or "").split())


def epoch_to_iso(value: Any) -> Optional[str]:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc).isoformat().replace("+00:00", "Z")


def json_metadata(source: str) -> Dict[str, Any]:
    return {"source": source, "mimeType": "application/json"}
