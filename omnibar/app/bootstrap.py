"""Application bootstrap and runtime wiring for the query controller."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger

from omnibar.adapters.history_file import FileHistoryStore
from omnibar.adapters.host_local import LocalHost
from omnibar.adapters.rate_cache import JsonRateCache
from omnibar.adapters.rates_http import HttpRateProvider
from omnibar.adapters.telemetry import InMemoryTelemetry
from omnibar.core.controller import QueryController
from omnibar.skills import CurrencySkill, SkillRegistry, build_default_registry
from omnibar.skills.locale import SystemLocaleProbe
from omnibar.utils.helpers import get_cache_path, get_history_path

if TYPE_CHECKING:
    from omnibar.config.schema import Config
    from omnibar.core.ports import HistoryPort, HostPort, LocaleProbe, RateProviderPort


@dataclass(slots=True)
class Runtime:
    """Wired application graph."""

    config: Config
    controller: QueryController
    registry: SkillRegistry
    currency: CurrencySkill
    history: HistoryPort
    telemetry: InMemoryTelemetry


def build_currency_skill(
    config: Config,
    *,
    provider: RateProviderPort | None = None,
    locale_probe: LocaleProbe | None = None,
    telemetry: InMemoryTelemetry | None = None,
) -> CurrencySkill:
    currency_cfg = config.currency
    return CurrencySkill(
        provider=provider
        or HttpRateProvider(currency_cfg.api_url, timeout_seconds=currency_cfg.timeout_seconds),
        cache=JsonRateCache(get_cache_path(), currency_cfg.storage_key),
        locale_probe=locale_probe or SystemLocaleProbe(),
        default_target=currency_cfg.default_target,
        base_currency=currency_cfg.base_currency,
        ttl_seconds=currency_cfg.ttl_seconds,
        telemetry=telemetry,
    )


def build_runtime(
    config: Config,
    *,
    host: HostPort | None = None,
    history: HistoryPort | None = None,
    provider: RateProviderPort | None = None,
    locale_probe: LocaleProbe | None = None,
) -> Runtime:
    """Build the controller graph from config; explicit ports override the local adapters."""
    telemetry = InMemoryTelemetry()
    currency = build_currency_skill(config, provider=provider, locale_probe=locale_probe, telemetry=telemetry)
    registry = build_default_registry(currency=currency)

    if host is None:
        host = LocalHost(
            scripts=config.script_entries,
            max_file_results=config.file_search.max_results,
        )
    if history is None:
        history = FileHistoryStore(get_history_path(), max_entries=config.history.max_entries)

    controller = QueryController(
        host=host,
        history=history,
        registry=registry,
        config=config,
        telemetry=telemetry,
    )
    logger.debug("runtime built with {} skills", len(registry))
    return Runtime(
        config=config,
        controller=controller,
        registry=registry,
        currency=currency,
        history=history,
        telemetry=telemetry,
    )
