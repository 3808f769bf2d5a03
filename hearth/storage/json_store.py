"""
hearth.storage.json_store — Flush-on-Write JSON Key/Value Store
================================================================

Every stateful subsystem (economy, activity, warnings, mutes, welcome,
audit-log, bad words) keeps one JSON document on disk: a mapping from a
composite key (``"{guild_id}"`` or ``"{guild_id}-{user_id}"``) to a plain
record.  The whole document is rewritten on every mutation.

Failure policy:
    * A missing, empty, or unreadable file loads as an empty mapping.
    * A failed write is logged and swallowed — the in-memory mapping stays
      authoritative for the rest of the process lifetime.

Usage::

    from hearth.storage.json_store import JsonStore, user_key

    store = JsonStore(data_dir / "economy.json")
    store.set(user_key(guild_id, user_id), {"balance": 100})
    store.save()
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def guild_key(guild_id: int) -> str:
    """Key for a guild-scoped record."""
    return str(guild_id)


def user_key(guild_id: int, user_id: int) -> str:
    """Key for a (guild, user)-scoped record."""
    return f"{guild_id}-{user_id}"


class JsonStore:
    """A JSON-serializable mapping bound to one file path.

    Not thread-safe; all callers share the bot's single event loop.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._data: dict[str, Any] = {}
        self.load()

    # -------------------------------------------------------------------
    # Disk I/O
    # -------------------------------------------------------------------
    def load(self) -> None:
        """(Re)load the mapping from disk, treating absent state as empty."""
        if not self.path.exists():
            self._data = {}
            return
        try:
            raw = self.path.read_text(encoding="utf-8")
            parsed = json.loads(raw) if raw.strip() else {}
        except (OSError, json.JSONDecodeError):
            logger.exception("Failed to load %s — starting empty", self.path)
            parsed = {}
        if not isinstance(parsed, dict):
            logger.warning("Ignoring non-mapping document in %s", self.path)
            parsed = {}
        self._data = parsed

    def save(self) -> bool:
        """Rewrite the whole document.  Returns False if the write failed."""
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(self._data, fh, indent=2)
            os.replace(tmp_name, self.path)
        except (OSError, TypeError, ValueError):
            logger.exception("Failed to save %s", self.path)
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
            return False
        return True

    # -------------------------------------------------------------------
    # Mapping access
    # -------------------------------------------------------------------
    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> bool:
        """Remove *key*.  Returns False if it was absent."""
        if key not in self._data:
            return False
        del self._data[key]
        return True

    def items(self, prefix: str | None = None) -> Iterator[tuple[str, Any]]:
        """Iterate entries in insertion order, optionally filtered by key prefix."""
        for key, value in list(self._data.items()):
            if prefix is None or key.startswith(prefix):
                yield key, value

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)
