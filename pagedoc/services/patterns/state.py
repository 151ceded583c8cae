"""Per-domain learned state (did this domain need a browser render?).

The store is a single JSON file keyed by domain. Every save is a full
read-merge-write of that file, so concurrent writers from separate processes
can clobber each other; the last writer wins. No locking is attempted.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError


logger = logging.getLogger(__name__)


class DomainState(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    provider: Optional[str] = None  # fetch, playwright
    last_success: Optional[str] = Field(default=None, alias="lastSuccess")
    pack_version: Optional[str] = Field(default=None, alias="packVersion")
    score: Optional[float] = None
    needs_rendering: Optional[bool] = Field(default=None, alias="needsRendering")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class DomainStateStore:
    """File-backed key-value store of ``DomainState`` records."""

    def __init__(self, path: Optional[Union[str, Path]]) -> None:
        self.path = Path(path).expanduser() if path else None
        self._state: Dict[str, Dict[str, Any]] = {}

    def load(self) -> None:
        self._state = self._read()

    def _read(self) -> Dict[str, Dict[str, Any]]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable domain state file %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, dict)}

    def _write(self, state: Dict[str, Dict[str, Any]]) -> None:
        if self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(state, indent=2, sort_keys=True), encoding="utf-8")
        except OSError as exc:
            logger.warning("Failed to save domain state to %s: %s", self.path, exc)

    def get(self, domain: str) -> Optional[DomainState]:
        raw = self._state.get(domain)
        if raw is None:
            return None
        try:
            return DomainState.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Ignoring invalid state for %s: %s", domain, exc)
            return None

    def save(self, domain: str, partial: Union[DomainState, Mapping[str, Any]]) -> DomainState:
        """Merge ``partial`` into the record for ``domain`` and rewrite the file."""
        if isinstance(partial, DomainState):
            update = partial.model_dump(by_alias=True, exclude_unset=True)
        else:
            update = DomainState.model_validate(dict(partial)).model_dump(by_alias=True, exclude_unset=True)
        update.setdefault("lastSuccess", utc_now_iso())

        state = self._read() if self.path is not None else dict(self._state)
        state.update({k: v for k, v in self._state.items() if k not in state})
        merged = {**state.get(domain, {}), **update}
        state[domain] = merged
        self._state = state
        self._write(state)
        return DomainState.model_validate(merged)

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        return {domain: dict(record) for domain, record in self._state.items()}


class InMemoryDomainStateStore(DomainStateStore):
    """Store with no backing file, for tests and read-only deployments."""

    def __init__(self, initial: Optional[Mapping[str, Mapping[str, Any]]] = None) -> None:
        super().__init__(None)
        self._state = {domain: dict(record) for domain, record in (initial or {}).items()}

    def load(self) -> None:
        return None
