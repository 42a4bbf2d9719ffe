"""Skill capability contract."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from omnibar.core.models import MatchResult


@runtime_checkable
class Skill(Protocol):
    """A capability that scores free-text queries and acts on the winning match.

    ``match`` must be synchronous and cheap: it runs on every keystroke.
    Background work (e.g. cache warm-up) may be scheduled but never awaited.
    ``execute`` receives the ``data`` payload of a previous ``match``.
    """

    id: str
    name: str
    description: str
    icon: str

    def match(self, query: str) -> MatchResult | None:
        """Score ``query``; return None when the skill does not apply."""

    async def execute(self, data: Any) -> Any:
        """Perform the skill action for a matched payload."""
