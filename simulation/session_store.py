"""Session store: the single durable slot holding the active session.

The store is the source of truth between operations; nothing else caches
session state across calls.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from models.config import StoreConfig
from models.portfolio import SessionState

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    def get(self, key: str) -> SessionState | None:
        ...

    def set(self, key: str, session: SessionState) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class InMemorySessionStore:
    """Process-local store. Holds serialized JSON so callers never share objects."""

    def __init__(self) -> None:
        self._slots: dict[str, str] = {}

    def get(self, key: str) -> SessionState | None:
        raw = self._slots.get(key)
        if raw is None:
            return None
        return SessionState.model_validate_json(raw)

    def set(self, key: str, session: SessionState) -> None:
        self._slots[key] = session.model_dump_json()

    def delete(self, key: str) -> None:
        self._slots.pop(key, None)


class JsonFileSessionStore:
    """One pretty-printed JSON file per key under *directory*.

    Writes go to a temporary file that is then renamed over the target, so a
    crash mid-write never leaves a truncated session behind.
    """

    def __init__(self, directory: str | Path) -> None:
        self._dir = Path(directory)

    def _path(self, key: str) -> Path:
        return self._dir / f"{key}.json"

    def get(self, key: str) -> SessionState | None:
        path = self._path(key)
        if not path.exists():
            return None
        return SessionState.model_validate_json(path.read_text(encoding="utf-8"))

    def set(self, key: str, session: SessionState) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._dir, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(session.model_dump_json(indent=2))
            os.replace(tmp_name, self._path(key))
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Persisted session '%s' to %s", key, self._path(key))

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


def create_session_store(config: StoreConfig) -> SessionStore:
    """Instantiate the store backend named in *config*."""
    if config.backend == "memory":
        return InMemorySessionStore()
    return JsonFileSessionStore(config.path)
