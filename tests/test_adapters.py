import json
from pathlib import Path

import httpx

from omnibar.adapters.history_file import FileHistoryStore
from omnibar.adapters.rate_cache import JsonRateCache
from omnibar.adapters.rates_http import HttpRateProvider
from omnibar.adapters.telemetry import InMemoryTelemetry
from omnibar.core.models import ActionEntry, RateTable
from omnibar.core.ports import TelemetryPort


def _entry(entry_id: str, last_accessed: int, **kwargs) -> ActionEntry:
    kind, _, content = entry_id.partition(":")
    return ActionEntry(
        id=entry_id,
        kind=kind,
        content=content,
        name=kwargs.pop("name", content),
        last_accessed=last_accessed,
        **kwargs,
    )


async def test_history_records_and_orders_by_recency(tmp_path: Path) -> None:
    store = FileHistoryStore(tmp_path / "history.json")

    await store.record(_entry("app:firefox", 1))
    await store.record(_entry("file:/tmp/a.txt", 2))
    await store.record(_entry("app:firefox", 3, name="Firefox", icon="firefox"))

    recent = await store.get_recent(10)
    assert [e.id for e in recent] == ["app:firefox", "file:/tmp/a.txt"]
    assert recent[0].frequency == 2
    assert recent[0].name == "Firefox"
    assert recent[0].icon == "firefox"
    assert [e.id for e in await store.get_recent(1)] == ["app:firefox"]


async def test_history_persists_and_trims(tmp_path: Path) -> None:
    path = tmp_path / "data" / "history.json"
    store = FileHistoryStore(path, max_entries=2)
    for index in range(3):
        await store.record(_entry(f"file:/tmp/{index}", index))

    reloaded = FileHistoryStore(path, max_entries=2)
    assert [e.content for e in await reloaded.get_recent(10)] == ["/tmp/2", "/tmp/1"]

    await reloaded.clear()
    assert json.loads(path.read_text()) == []
    assert await FileHistoryStore(path).get_recent(10) == []


async def test_history_ignores_corrupt_file(tmp_path: Path) -> None:
    path = tmp_path / "history.json"
    path.write_text("[{broken")

    assert await FileHistoryStore(path).get_recent(5) == []


def test_rate_cache_roundtrip(tmp_path: Path) -> None:
    cache = JsonRateCache(tmp_path, "omnibar_currency_rates")
    assert cache.load() is None

    cache.save(RateTable(rates={"USD": 1.0, "EUR": 0.92}, base="USD", fetched_at=123.0))

    assert cache.path == tmp_path / "omnibar_currency_rates.json"
    assert json.loads(cache.path.read_text()) == {"rates": {"USD": 1.0, "EUR": 0.92}, "timestamp": 123.0, "base": "USD"}
    loaded = cache.load()
    assert loaded is not None
    assert loaded.rates == {"USD": 1.0, "EUR": 0.92}
    assert loaded.fetched_at == 123.0


def test_rate_cache_ignores_corrupt_payload(tmp_path: Path) -> None:
    cache = JsonRateCache(tmp_path, "rates")
    cache.path.write_text(json.dumps({"rates": {"USD": "x"}, "timestamp": 1}))

    assert cache.load() is None


async def test_http_rate_provider_success() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json={"result": "success", "base_code": "USD", "rates": {"USD": 1, "EUR": 0.92}})

    provider = HttpRateProvider("https://rates.test/v6/latest/", transport=httpx.MockTransport(handler))
    payload = await provider.fetch_exchange_rates("usd")

    assert seen == ["https://rates.test/v6/latest/USD"]
    assert payload == {"result": "success", "rates": {"USD": 1, "EUR": 0.92}}


async def test_http_rate_provider_reports_errors() -> None:
    def server_error(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="down")

    def not_json(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>")

    for handler in (server_error, not_json):
        provider = HttpRateProvider("https://rates.test", transport=httpx.MockTransport(handler))
        assert await provider.fetch_exchange_rates("USD") == {"result": "error", "rates": {}}


def test_in_memory_telemetry_counts_labels() -> None:
    telemetry = InMemoryTelemetry()
    assert isinstance(telemetry, TelemetryPort)

    telemetry.incr("host_error", labels=(("op", "search_files"),))
    telemetry.incr("host_error", 2, labels=(("op", "list_apps"),))

    assert telemetry.get_counter("host_error") == 3
    assert telemetry.get_counter("host_error", (("op", "list_apps"),)) == 2
