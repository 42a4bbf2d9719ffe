"""Persisted exchange-rate cache (one JSON document per storage key)."""

from __future__ import annotations

import json
import os
from pathlib import Path

from loguru import logger

from omnibar.core.models import RateTable
from omnibar.utils.helpers import safe_filename


class JsonRateCache:
    """Stores ``{"rates", "timestamp", "base"}`` under ``<directory>/<storage_key>.json``."""

    def __init__(self, directory: Path, storage_key: str) -> None:
        self.path = directory / f"{safe_filename(storage_key)}.json"

    def load(self) -> RateTable | None:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text())
            rates = {str(k).upper(): float(v) for k, v in dict(data["rates"]).items()}
            return RateTable(
                rates=rates,
                base=str(data.get("base", "USD")),
                fetched_at=float(data["timestamp"]),
            )
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable rate cache {self.path}: {e}")
            return None

    def save(self, table: RateTable) -> None:
        """Atomically replace the cache file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"rates": dict(table.rates), "timestamp": table.fetched_at, "base": table.base}
        tmp_path = self.path.with_name(f".{self.path.name}.tmp-{os.getpid()}")
        tmp_path.write_text(json.dumps(payload))
        os.replace(tmp_path, self.path)
