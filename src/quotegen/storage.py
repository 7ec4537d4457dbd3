"""Key/value storage backends.

Both backends hold string values under string keys. ``JsonFileStorage``
survives restarts; ``MemoryStorage`` lives only as long as the process.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Protocol

_logger = logging.getLogger(__name__)


class Storage(Protocol):
    """Structural storage interface used by the quote store.

    Tests and embedders can pass any object with these three methods.
    """

    def get_item(self, key: str) -> str | None:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


class MemoryStorage:
    """Non-durable storage, the equivalent of a browser session store."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def __len__(self) -> int:
        return len(self._items)


class JsonFileStorage:
    """Durable storage kept as one JSON object in a file.

    The whole file is rewritten on every change via a temporary file and
    ``os.replace`` so a crash never leaves a half-written document behind.
    An unreadable or malformed file is treated as empty.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)
        self._items: dict[str, str] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, str]:
        if self._items is not None:
            return self._items

        items: dict[str, str] = {}
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raw = None
        except OSError:
            _logger.warning("Could not read storage file %s", self._path, exc_info=True)
            raw = None

        if raw is not None:
            try:
                decoded = json.loads(raw)
            except json.JSONDecodeError:
                _logger.warning("Storage file %s is not valid JSON; starting empty", self._path)
                decoded = {}
            if isinstance(decoded, dict):
                items = {str(k): v for k, v in decoded.items() if isinstance(v, str)}
            else:
                _logger.warning("Storage file %s does not hold a JSON object; starting empty", self._path)

        self._items = items
        return items

    def _write(self) -> None:
        items = self._read()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(f"{self._path.name}.tmp")
        tmp.write_text(json.dumps(items, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp, self._path)
        _logger.debug("Wrote %d key(s) to %s", len(items), self._path)

    def get_item(self, key: str) -> str | None:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        self._read()[key] = value
        self._write()

    def remove_item(self, key: str) -> None:
        items = self._read()
        if key in items:
            del items[key]
            self._write()

    def reload(self) -> None:
        """Drop the in-memory copy so the next read hits the file again."""
        self._items = None
