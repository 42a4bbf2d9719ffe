"""Calculator skill: direct arithmetic and simple natural-language phrasing."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from omnibar.core.errors import InvalidExpression
from omnibar.core.models import MatchResult
from omnibar.skills.evaluator import evaluate, format_number

DIRECT_SCORE = 1.0
NATURAL_SCORE = 0.95

_DIRECT_RE = re.compile(r"^[\d.\s()+\-*/%^]+$")
_HAS_OPERATOR_RE = re.compile(r"[+\-*/%^]")
_HAS_DIGIT_RE = re.compile(r"\d")
_HAS_MATH_TOKEN_RE = re.compile(r"[+\-*/^a-z(]")

# (prefix pattern, operator that "and" / "by" stand for)
_COMMANDS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"^(?:product|multiply)\b"), "*"),
    (re.compile(r"^(?:divide|quotient)\b"), "/"),
    (re.compile(r"^(?:difference|subtract)\b"), "-"),
    (re.compile(r"^(?:sum|add)\b"), "+"),
)

# Longer phrases first.
_REPLACEMENTS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\bplus\b"), "+"),
    (re.compile(r"\bminus\b"), "-"),
    (re.compile(r"\btimes\b"), "*"),
    (re.compile(r"\bdivided by\b"), "/"),
    (re.compile(r"\bmultiplied by\b"), "*"),
    (re.compile(r"\bsum of\b"), ""),
    (re.compile(r"\bproduct of\b"), ""),
    (re.compile(r"\bdifference of\b"), ""),
    (re.compile(r"\bquotient of\b"), ""),
    (re.compile(r"\bsquare root of\b"), "sqrt"),
    (re.compile(r"\bto the power of\b"), "^"),
    (re.compile(r"\bpower of\b"), "^"),
    (re.compile(r"\band\b"), "+"),
)

_COMMAND_VERB_RE = re.compile(r"^(?:add|multiply|divide|subtract)\s+")
_FILLER_RE = re.compile(r"^(?:calculate|what is|compute)\s+")


@dataclass(frozen=True, slots=True)
class MathData:
    expression: str
    result: float


def preprocess_natural_language(query: str) -> str | None:
    """Normalize a phrase like ``sum of 5 and 10`` into ``5 + 10``.

    Returns None when the normalized text does not look like arithmetic.
    """
    q = query.lower().strip().rstrip("?").strip()

    for pattern, op in _COMMANDS:
        if pattern.match(q):
            q = re.sub(r"\band\b", op, q)
            if op in {"*", "/"}:
                q = re.sub(r"(?<!divided )(?<!multiplied )\bby\b", op, q)
            break

    for pattern, replacement in _REPLACEMENTS:
        q = pattern.sub(replacement, q)

    q = _FILLER_RE.sub("", q)
    q = _COMMAND_VERB_RE.sub("", q)
    q = " ".join(q.split())

    if _HAS_DIGIT_RE.search(q) and _HAS_MATH_TOKEN_RE.search(q):
        return q
    return None


class MathSkill:
    """Evaluates arithmetic queries; direct input outranks natural language."""

    id = "builtin-math"
    name = "Calculator"
    description = "Calculate math expressions"
    icon = "mdi-calculator"

    def match(self, query: str) -> MatchResult | None:
        if not query:
            return None

        # A bare number (phone number, year, ...) is not a calculation.
        if _DIRECT_RE.match(query) and _HAS_OPERATOR_RE.search(query):
            result = self._try_evaluate(query)
            if result is not None:
                return self._result(query.strip(), result, DIRECT_SCORE)

        expression = preprocess_natural_language(query)
        if expression:
            result = self._try_evaluate(expression)
            if result is not None:
                return self._result(expression, result, NATURAL_SCORE)

        return None

    async def execute(self, data: MathData) -> float:
        return data.result

    @staticmethod
    def _try_evaluate(expression: str) -> float | None:
        try:
            result = evaluate(expression)
        except InvalidExpression:
            return None
        if math.isnan(result):
            return None
        return result

    @staticmethod
    def _result(expression: str, result: float, score: float) -> MatchResult:
        return MatchResult(
            score=score,
            data=MathData(expression=expression, result=result),
            preview=f"= {format_number(result)}",
        )
