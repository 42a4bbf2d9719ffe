"""JSON-file action history store."""

from __future__ import annotations

import json
import os
from dataclasses import replace
from pathlib import Path

from loguru import logger

from omnibar.core.models import ActionEntry

DEFAULT_MAX_ENTRIES = 100


class FileHistoryStore:
    """Action history persisted as a JSON array.

    Recording an existing id bumps its frequency and refreshes its metadata.
    The store keeps at most ``max_entries`` rows, dropping the least recently
    accessed ones.
    """

    def __init__(self, path: Path, *, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        self.path = path
        self.max_entries = max(1, int(max_entries))
        self._entries: list[ActionEntry] = self._read()

    async def get_recent(self, limit: int) -> list[ActionEntry]:
        ordered = sorted(self._entries, key=lambda entry: entry.last_accessed, reverse=True)
        return ordered[: max(0, limit)]

    async def record(self, entry: ActionEntry) -> None:
        for index, existing in enumerate(self._entries):
            if existing.id == entry.id:
                self._entries[index] = replace(
                    existing,
                    name=entry.name,
                    content=entry.content,
                    icon=entry.icon if entry.icon is not None else existing.icon,
                    last_accessed=entry.last_accessed,
                    frequency=existing.frequency + 1,
                )
                break
        else:
            self._entries.append(replace(entry, frequency=1))

        if len(self._entries) > self.max_entries:
            self._entries.sort(key=lambda e: e.last_accessed, reverse=True)
            del self._entries[self.max_entries :]
        self._write()

    async def clear(self) -> None:
        self._entries = []
        self._write()

    def _read(self) -> list[ActionEntry]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text())
            return [ActionEntry.from_dict(item) for item in raw if isinstance(item, dict)]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable history file {self.path}: {e}")
            return []

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f".{self.path.name}.tmp-{os.getpid()}")
        tmp_path.write_text(json.dumps([entry.to_dict() for entry in self._entries], indent=2))
        os.replace(tmp_path, self.path)
