"""Typed core domain models and errors."""

from omnibar.core.errors import (
    InvalidExpression,
    OmnibarError,
    RateUnavailable,
    UnresolvableCurrency,
    UnsupportedCurrency,
)
from omnibar.core.models import (
    ActionEntry,
    AppEntry,
    Candidate,
    MatchResult,
    RateTable,
    ScriptEntry,
    SkillMatch,
    WindowEntry,
)

__all__ = [
    "ActionEntry",
    "AppEntry",
    "Candidate",
    "InvalidExpression",
    "MatchResult",
    "OmnibarError",
    "RateTable",
    "RateUnavailable",
    "ScriptEntry",
    "SkillMatch",
    "UnresolvableCurrency",
    "UnsupportedCurrency",
    "WindowEntry",
]
