"""Simple structured telemetry sink for controller and skill counters."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

from loguru import logger


@dataclass(slots=True)
class InMemoryTelemetry:
    """In-memory counter sink with structured debug logging."""

    counters: Counter[str] = field(default_factory=Counter)

    def incr(self, name: str, value: int = 1, labels: tuple[tuple[str, str], ...] = ()) -> None:
        self.counters[name] += int(value)
        if labels:
            labels_text = ",".join(f"{k}={v}" for k, v in labels)
            self.counters[f"{name}{{{labels_text}}}"] += int(value)
            logger.debug("telemetry {} += {} ({})", name, value, labels_text)
        else:
            logger.debug("telemetry {} += {}", name, value)

    def get_counter(self, name: str, labels: tuple[tuple[str, str], ...] = ()) -> int:
        """Get counter value for testing."""
        if not labels:
            return int(self.counters[name])
        labels_text = ",".join(f"{k}={v}" for k, v in labels)
        return int(self.counters[f"{name}{{{labels_text}}}"])
