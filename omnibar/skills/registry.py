"""Skill registry: picks the most confident interpretation of a query."""

from __future__ import annotations

from loguru import logger

from omnibar.core.models import SkillMatch
from omnibar.skills.base import Skill

CONFIDENCE_FLOOR = 0.5


class SkillRegistry:
    """Ordered collection of skills.

    Registration order only matters for exact score ties: the first
    registered skill wins.
    """

    def __init__(self) -> None:
        self._skills: list[Skill] = []

    def register(self, skill: Skill) -> None:
        """Append a skill."""
        self._skills.append(skill)

    def get(self, skill_id: str) -> Skill | None:
        """Get a registered skill by id."""
        for skill in self._skills:
            if skill.id == skill_id:
                return skill
        return None

    @property
    def skills(self) -> list[Skill]:
        return list(self._skills)

    def match(self, query: str) -> SkillMatch | None:
        """Return the strictly highest-scoring match above the confidence floor."""
        if not query:
            return None

        best: SkillMatch | None = None
        for skill in self._skills:
            try:
                result = skill.match(query)
            except Exception as e:
                logger.error(f"Skill {skill.id} failed to match {query!r}: {e}")
                continue
            if result is None:
                continue
            if best is None or result.score > best.score:
                best = SkillMatch(
                    skill=skill,
                    score=result.score,
                    data=result.data,
                    preview=result.preview,
                )

        if best is None or best.score <= CONFIDENCE_FLOOR:
            return None
        return best

    def __len__(self) -> int:
        return len(self._skills)

    def __contains__(self, skill_id: str) -> bool:
        return self.get(skill_id) is not None
