"""Port interfaces between the query core and its host collaborators."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from omnibar.core.models import ActionEntry, AppEntry, RateTable, ScriptEntry, WindowEntry


class HostPort(Protocol):
    """Enumeration and search capabilities provided by the desktop host."""

    async def list_open_windows(self) -> list[WindowEntry]:
        """Return currently open windows."""

    async def search_files(self, query: str, base_path: str, include_hidden: bool) -> list[str]:
        """Return paths under ``base_path`` matching ``query``."""

    async def list_apps(self) -> list[AppEntry]:
        """Return installed applications."""

    async def list_scripts(self) -> list[ScriptEntry]:
        """Return user scripts."""


class HistoryPort(Protocol):
    """Persisted action history store."""

    async def get_recent(self, limit: int) -> list[ActionEntry]:
        """Return up to ``limit`` entries, most recent first."""

    async def record(self, entry: ActionEntry) -> None:
        """Insert a new entry or update the one sharing its id."""

    async def clear(self) -> None:
        """Drop all history."""


class RateProviderPort(Protocol):
    """Exchange-rate network source."""

    async def fetch_exchange_rates(self, base_currency: str) -> dict[str, Any]:
        """Return ``{"result": "success"|"error", "rates": {code: rate}}``."""


class RateCachePort(Protocol):
    """Persisted rate-table cache surviving restarts."""

    def load(self) -> RateTable | None:
        """Return the persisted table, or None when absent/corrupt."""

    def save(self, table: RateTable) -> None:
        """Persist one table."""


class LocaleProbe(Protocol):
    """Platform introspection used to infer a default target currency."""

    def locale_name(self) -> str | None:
        """Return a locale identifier such as ``en_US`` or ``es-CO``."""

    def timezone_name(self) -> str | None:
        """Return an IANA timezone name such as ``America/Bogota``."""


@runtime_checkable
class TelemetryPort(Protocol):
    """Counter telemetry sink."""

    def incr(self, name: str, value: int = 1, labels: tuple[tuple[str, str], ...] = ()) -> None:
        """Increase named counter with optional labels."""
