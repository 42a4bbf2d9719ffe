"""Domain models for the query interpretation core."""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from omnibar.skills.base import Skill

InteractionMode = Literal["idle", "searching", "chatting", "executing", "translating"]
ActionKind = Literal["app", "script", "file", "ai"]
CandidateKind = Literal["skill", "tool", "script", "app", "internal"]


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True, slots=True, kw_only=True)
class MatchResult:
    """One skill's interpretation of a query."""

    score: float
    data: Any
    preview: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class SkillMatch:
    """Winning registry result, bound to the skill that produced it."""

    skill: Skill
    score: float
    data: Any
    preview: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class RateTable:
    """Exchange rates relative to ``base``, stamped with fetch time (epoch seconds)."""

    rates: Mapping[str, float]
    base: str
    fetched_at: float

    def is_fresh(self, now: float, ttl_seconds: float) -> bool:
        return (now - self.fetched_at) < ttl_seconds

    def convert(self, amount: float, from_code: str, to_code: str) -> tuple[float, float] | None:
        """Return ``(result, unit_rate)`` or None when either code is missing."""
        rate_from = self.rates.get(from_code)
        rate_to = self.rates.get(to_code)
        if not rate_from or not rate_to:
            return None
        return (amount / rate_from) * rate_to, rate_to / rate_from


@dataclass(frozen=True, slots=True, kw_only=True)
class ActionEntry:
    """One row of the user's selection history."""

    id: str
    kind: ActionKind
    content: str
    name: str
    icon: str | None = None
    last_accessed: int = field(default_factory=now_ms)
    frequency: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "content": self.content,
            "name": self.name,
            "icon": self.icon,
            "last_accessed": self.last_accessed,
            "frequency": self.frequency,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> ActionEntry:
        return cls(
            id=str(raw["id"]),
            kind=raw.get("kind", "app"),
            content=str(raw.get("content", "")),
            name=str(raw.get("name", "")),
            icon=raw.get("icon"),
            last_accessed=int(raw.get("last_accessed", 0)),
            frequency=int(raw.get("frequency", 1)),
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class AppEntry:
    """Installed application as reported by the host."""

    name: str
    exec: str
    icon: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class WindowEntry:
    """Open window as reported by the host."""

    title: str
    class_name: str
    address: str


@dataclass(frozen=True, slots=True, kw_only=True)
class ScriptEntry:
    """User script runnable from the palette."""

    alias: str
    path: str
    args: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class AIToolEntry:
    """AI tool preset opened in chat mode."""

    id: str
    name: str
    description: str = ""
    icon: str | None = None
    keywords: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class Candidate:
    """The single matched skill/tool shown at the top of the palette."""

    kind: CandidateKind
    id: str
    name: str
    description: str = ""
    icon: str | None = None
    data: Any = None
    skill: Skill | None = None
