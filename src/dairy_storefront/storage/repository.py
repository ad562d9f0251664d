"""Durable string-keyed storage backing the cart and wishlist."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Synchronous string key-value storage."""

    def get(self, key: str) -> str | None:
        """Return the stored value or ``None`` when ``key`` is absent."""

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    def reload(self) -> None:
        """Discard cached values and read the backing medium again."""


class MemoryStore:
    """Non-durable store used in tests and for throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def reload(self) -> None:
        pass

    def keys(self) -> list[str]:
        return list(self._values)


class JsonFileStore:
    """Persists all keys to a single JSON document on disk.

    Every ``set`` rewrites the whole file so the content survives process
    restarts. A missing or unreadable file is treated as an empty store.
    Write failures (disk full, permissions) surface as ``OSError``.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._values = self._read()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}

        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable store file %s", self._path)
            return {}

        if not isinstance(payload, dict):
            logger.warning("Ignoring store file %s with unexpected layout", self._path)
            return {}

        return {str(key): value for key, value in payload.items() if isinstance(value, str)}

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value
        self._flush()

    def reload(self) -> None:
        """Re-read the file, picking up writes made by another process."""

        self._values = self._read()

    def _flush(self) -> None:
        temp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            temp_path.write_text(json.dumps(self._values, ensure_ascii=False), encoding="utf-8")
            temp_path.replace(self._path)
        except OSError:
            temp_path.unlink(missing_ok=True)
            logger.error("Failed to write %s", self._path)
            raise
