import asyncio
from typing import Any

import pytest

from omnibar.adapters.telemetry import InMemoryTelemetry
from omnibar.core.errors import RateUnavailable, UnresolvableCurrency, UnsupportedCurrency
from omnibar.core.models import RateTable
from omnibar.skills.currency import CurrencyData, CurrencySkill
from omnibar.skills.locale import StaticLocaleProbe, currency_from_locale, resolve_default_currency

NOW = 1_700_000_000.0
DAY = 24 * 60 * 60


class FakeRateProvider:
    def __init__(self, rates: dict[str, float] | None = None, *, result: str = "success") -> None:
        self.rates = rates if rates is not None else {"USD": 1.0, "EUR": 0.92, "GBP": 0.79}
        self.result = result
        self.calls = 0
        self.gate: asyncio.Event | None = None

    async def fetch_exchange_rates(self, base_currency: str) -> dict[str, Any]:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        return {"result": self.result, "rates": dict(self.rates)}


class ExplodingRateProvider:
    async def fetch_exchange_rates(self, base_currency: str) -> dict[str, Any]:
        raise ConnectionError("offline")


class MemoryRateCache:
    def __init__(self, table: RateTable | None = None) -> None:
        self.table = table
        self.saved: list[RateTable] = []

    def load(self) -> RateTable | None:
        return self.table

    def save(self, table: RateTable) -> None:
        self.table = table
        self.saved.append(table)


class Clock:
    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _skill(
    provider: Any = None,
    *,
    cache: MemoryRateCache | None = None,
    clock: Clock | None = None,
    locale_probe: StaticLocaleProbe | None = None,
    **kwargs: Any,
) -> CurrencySkill:
    return CurrencySkill(
        provider=provider or FakeRateProvider(),
        cache=cache,
        locale_probe=locale_probe or StaticLocaleProbe("en_US", "UTC"),
        clock=clock or Clock(),
        **kwargs,
    )


def _fresh_cache(rates: dict[str, float] | None = None) -> MemoryRateCache:
    return MemoryRateCache(RateTable(rates=rates or {"USD": 1.0, "EUR": 0.92}, base="USD", fetched_at=NOW - 60))


async def test_converts_with_cached_rates() -> None:
    provider = FakeRateProvider()
    skill = _skill(provider, cache=_fresh_cache())

    match = skill.match("100 usd to eur")

    assert match is not None
    assert match.score == 1.0
    assert match.data.result == pytest.approx(92.0)
    assert match.preview == "100 USD = 92.00 EUR"
    assert await skill.execute(match.data) == "92.00"
    assert provider.calls == 0


async def test_missing_destination_defaults_to_locale_currency() -> None:
    skill = _skill(cache=_fresh_cache(), locale_probe=StaticLocaleProbe("en_US", "UTC"))

    match = skill.match("100 eur")

    assert match is not None
    assert match.data.from_code == "EUR"
    assert match.data.to_code == "USD"


async def test_symbols_and_expressions_resolve() -> None:
    skill = _skill(cache=_fresh_cache())

    match = skill.match("(50 + 50) $ in €")

    assert match is not None
    assert (match.data.amount, match.data.from_code, match.data.to_code) == (100, "USD", "EUR")


def test_resolve_currency() -> None:
    skill = _skill()

    assert skill.resolve_currency("gbp") == "GBP"
    assert skill.resolve_currency("£") == "GBP"
    assert skill.resolve_currency("₹") == "INR"
    with pytest.raises(UnresolvableCurrency):
        skill.resolve_currency("zzz")
    with pytest.raises(UnresolvableCurrency):
        skill.resolve_currency("#")


@pytest.mark.parametrize("query", ["", "hello", "100", "100 zzz to eur", "2 + 2", "usd to eur"])
def test_non_currency_queries_do_not_match(query: str) -> None:
    assert _skill(cache=_fresh_cache()).match(query) is None


async def test_match_without_rates_is_pending_and_refreshes_in_background() -> None:
    provider = FakeRateProvider()
    skill = _skill(provider)

    match = skill.match("10 usd to eur")

    assert match is not None
    assert match.score == 1.0
    assert match.data.result is None
    assert match.preview == "Convert 10 USD to EUR..."

    table = await skill.get_rates()
    assert table is not None
    assert provider.calls == 1
    assert skill.match("10 usd to eur").data.result == pytest.approx(9.2)


async def test_execute_fetches_when_rates_missing() -> None:
    provider = FakeRateProvider()
    skill = _skill(provider)

    result = await skill.execute(CurrencyData(amount=10, from_code="USD", to_code="GBP"))

    assert result == "7.90"
    assert provider.calls == 1


async def test_concurrent_requests_share_one_fetch() -> None:
    provider = FakeRateProvider()
    provider.gate = asyncio.Event()
    skill = _skill(provider)

    waiters = [asyncio.create_task(skill.get_rates()) for _ in range(5)]
    await asyncio.sleep(0)
    provider.gate.set()
    tables = await asyncio.gather(*waiters)

    assert provider.calls == 1
    assert all(table is tables[0] for table in tables)


async def test_expired_table_triggers_refetch() -> None:
    provider = FakeRateProvider()
    clock = Clock()
    skill = _skill(provider, cache=_fresh_cache(), clock=clock)

    assert (await skill.get_rates()) is not None
    assert provider.calls == 0

    clock.now += DAY
    await skill.get_rates()
    assert provider.calls == 1


async def test_fetch_failure_raises_rate_unavailable_and_keeps_stale_table() -> None:
    telemetry = InMemoryTelemetry()
    clock = Clock()
    stale = RateTable(rates={"USD": 1.0, "EUR": 0.9}, base="USD", fetched_at=NOW)
    skill = _skill(FakeRateProvider(result="error"), cache=MemoryRateCache(stale), clock=clock, telemetry=telemetry)
    assert skill.match("1 usd to eur").data.result == pytest.approx(0.9)

    clock.now += 2 * DAY
    with pytest.raises(RateUnavailable):
        await skill.execute(CurrencyData(amount=1, from_code="USD", to_code="EUR"))

    assert skill.table is stale
    assert telemetry.get_counter("rates_fetch", (("outcome", "error"),)) == 1


async def test_provider_exception_is_contained() -> None:
    skill = _skill(ExplodingRateProvider())

    assert await skill.get_rates() is None
    with pytest.raises(RateUnavailable):
        await skill.execute(CurrencyData(amount=1, from_code="USD", to_code="EUR"))


async def test_non_numeric_rate_is_reported_as_unavailable() -> None:
    telemetry = InMemoryTelemetry()
    cache = MemoryRateCache()
    skill = _skill(FakeRateProvider({"USD": 1.0, "EUR": None}), cache=cache, telemetry=telemetry)

    with pytest.raises(RateUnavailable):
        await skill.execute(CurrencyData(amount=1, from_code="USD", to_code="EUR"))

    assert skill.table is None
    assert cache.saved == []
    assert telemetry.get_counter("rates_fetch", (("outcome", "error"),)) == 1


async def test_unknown_code_in_table_raises_unsupported_currency() -> None:
    skill = _skill(FakeRateProvider({"USD": 1.0, "EUR": 0.92}))

    with pytest.raises(UnsupportedCurrency) as exc_info:
        await skill.execute(CurrencyData(amount=5, from_code="USD", to_code="JPY"))

    assert exc_info.value.code == "JPY"
    assert "JPY" in str(exc_info.value)


async def test_successful_fetch_is_persisted_and_reused() -> None:
    provider = FakeRateProvider()
    cache = MemoryRateCache()
    first = _skill(provider, cache=cache)

    await first.refresh()

    assert len(cache.saved) == 1
    assert cache.saved[0].fetched_at == NOW

    second = _skill(provider, cache=cache)
    assert second.match("10 usd to eur").data.result == pytest.approx(9.2)
    assert provider.calls == 1


async def test_explicit_default_target_overrides_locale() -> None:
    skill = _skill(cache=_fresh_cache(), default_target="eur")

    assert skill.match("10 usd").data.to_code == "EUR"


def test_locale_currency_inference() -> None:
    assert currency_from_locale("en_US.UTF-8") == "USD"
    assert currency_from_locale("es-CO") == "COP"
    assert currency_from_locale("de_DE@euro") == "EUR"
    assert currency_from_locale("not a locale") is None


@pytest.mark.parametrize(
    ("locale_name", "timezone_name", "expected"),
    [
        ("en_US", "UTC", "USD"),
        ("en_US", "America/Bogota", "COP"),
        (None, "Europe/Berlin", "EUR"),
        ("ja_JP", "America/New_York", "JPY"),
        (None, None, "USD"),
    ],
)
def test_default_currency_resolution(locale_name: str | None, timezone_name: str | None, expected: str) -> None:
    assert resolve_default_currency(StaticLocaleProbe(locale_name, timezone_name)) == expected
