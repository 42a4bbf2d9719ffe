"""Built-in skills and the registry that ranks them."""

from __future__ import annotations

from omnibar.skills.base import Skill
from omnibar.skills.currency import CurrencySkill
from omnibar.skills.math import MathSkill
from omnibar.skills.registry import CONFIDENCE_FLOOR, SkillRegistry


def build_default_registry(*, currency: CurrencySkill | None = None) -> SkillRegistry:
    """Registry with the calculator first, then the currency converter when given."""
    registry = SkillRegistry()
    registry.register(MathSkill())
    if currency is not None:
        registry.register(currency)
    return registry


__all__ = [
    "CONFIDENCE_FLOOR",
    "CurrencySkill",
    "MathSkill",
    "Skill",
    "SkillRegistry",
    "build_default_registry",
]
