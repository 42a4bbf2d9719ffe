from omnibar.core.models import MatchResult
from omnibar.skills import CONFIDENCE_FLOOR, CurrencySkill, MathSkill, SkillRegistry, build_default_registry


class FixedSkill:
    description = ""
    icon = None

    def __init__(self, skill_id: str, score: float | None) -> None:
        self.id = skill_id
        self.name = skill_id
        self.score = score
        self.calls = 0

    def match(self, query: str) -> MatchResult | None:
        self.calls += 1
        if self.score is None:
            return None
        return MatchResult(score=self.score, data={"skill": self.id, "query": query}, preview=self.id)

    async def execute(self, data: object) -> object:
        return data


class BrokenSkill(FixedSkill):
    def match(self, query: str) -> MatchResult | None:
        raise RuntimeError("boom")


def test_highest_score_wins() -> None:
    registry = SkillRegistry()
    registry.register(FixedSkill("low", 0.4))
    registry.register(FixedSkill("high", 0.6))

    match = registry.match("anything")

    assert match is not None
    assert match.skill.id == "high"
    assert match.score == 0.6
    assert match.data == {"skill": "high", "query": "anything"}


def test_score_at_floor_is_rejected() -> None:
    registry = SkillRegistry()
    registry.register(FixedSkill("floor", CONFIDENCE_FLOOR))
    registry.register(FixedSkill("lower", 0.2))

    assert registry.match("anything") is None


def test_ties_keep_first_registered() -> None:
    registry = SkillRegistry()
    registry.register(FixedSkill("first", 0.9))
    registry.register(FixedSkill("second", 0.9))

    assert registry.match("q").skill.id == "first"


def test_empty_query_short_circuits() -> None:
    skill = FixedSkill("any", 1.0)
    registry = SkillRegistry()
    registry.register(skill)

    assert registry.match("") is None
    assert skill.calls == 0


def test_failing_skill_is_skipped() -> None:
    registry = SkillRegistry()
    registry.register(BrokenSkill("broken", 1.0))
    registry.register(FixedSkill("ok", 0.8))

    assert registry.match("q").skill.id == "ok"


def test_no_matches_returns_none() -> None:
    registry = SkillRegistry()
    registry.register(FixedSkill("none", None))

    assert registry.match("q") is None


def test_match_is_idempotent() -> None:
    registry = build_default_registry()

    first = registry.match("2 + 2")
    second = registry.match("2 + 2")

    assert first is not None and second is not None
    assert (first.skill.id, first.score, first.data) == (second.skill.id, second.score, second.data)


class _NoRates:
    async def fetch_exchange_rates(self, base_currency: str) -> dict:
        return {"result": "error", "rates": {}}


def test_default_registry_contents() -> None:
    registry = build_default_registry(currency=CurrencySkill(provider=_NoRates()))

    assert len(registry) == 2
    assert "builtin-math" in registry
    assert "builtin-currency" in registry
    assert isinstance(registry.get("builtin-math"), MathSkill)
    assert registry.get("missing") is None
    assert [skill.id for skill in registry.skills] == ["builtin-math", "builtin-currency"]
