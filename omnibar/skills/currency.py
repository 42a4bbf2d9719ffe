"""Currency conversion skill backed by a cached, TTL-bounded rate table."""

from __future__ import annotations

import asyncio
import re
import time
from collections.abc import Callable
from dataclasses import dataclass

from babel import Locale
from babel.numbers import list_currencies
from loguru import logger

from omnibar.core.errors import (
    InvalidExpression,
    RateUnavailable,
    UnresolvableCurrency,
    UnsupportedCurrency,
)
from omnibar.core.models import MatchResult, RateTable
from omnibar.core.ports import LocaleProbe, RateCachePort, RateProviderPort, TelemetryPort
from omnibar.skills.evaluator import evaluate, format_number
from omnibar.skills.locale import SystemLocaleProbe, resolve_default_currency

DEFAULT_TTL_SECONDS = 24 * 60 * 60
DEFAULT_BASE_CURRENCY = "USD"

# "100 usd to eur", "(100+50) $ to €", "convert 10 eur in gbp", "100 eur"
_QUERY_RE = re.compile(
    r"^\s*(?:convert|calculate)?\s*([\d.\s+\-*/()]+?)\s*([a-z]{3}|[^0-9\s()])"
    r"(?:\s*(?:to|in|as)\s*([a-z]{3}|[^0-9\s()]))?\s*$",
    re.IGNORECASE,
)

# Applied over the generated symbol map; these symbols are shared by many
# currencies and need a fixed answer.
SYMBOL_OVERRIDES: dict[str, str] = {
    "$": "USD",
    "€": "EUR",
    "£": "GBP",
    "¥": "JPY",
    "₹": "INR",
    "₽": "RUB",
    "₩": "KRW",
    "₿": "BTC",
    "₺": "TRY",
    "₴": "UAH",
    "₪": "ILS",
    "₫": "VND",
    "₱": "PHP",
    "₦": "NGN",
    "฿": "THB",
    "₡": "CRC",
    "₲": "PYG",
    "₸": "KZT",
}


def _build_symbol_map() -> dict[str, str]:
    symbol_to_code: dict[str, str] = {}
    symbols = Locale.parse("en").currency_symbols
    for code in sorted(symbols):
        symbol = symbols[code]
        # Multi-letter symbols ("CA$", "kr") cannot appear as a single token.
        if len(symbol) == 1 and not symbol.isalnum():
            symbol_to_code.setdefault(symbol, code)
    symbol_to_code.update(SYMBOL_OVERRIDES)
    return symbol_to_code


SYMBOL_TO_CODE = _build_symbol_map()
KNOWN_CODES = frozenset(code.upper() for code in list_currencies()) | frozenset(SYMBOL_OVERRIDES.values())


@dataclass(frozen=True, slots=True)
class CurrencyData:
    amount: float
    from_code: str
    to_code: str
    result: float | None = None
    rate: float | None = None
    timestamp: float | None = None


class CurrencySkill:
    """Converts ``<amount> <currency> [to <currency>]`` queries."""

    id = "builtin-currency"
    name = "Currency Converter"
    description = "Convert between currencies (e.g. 10 usd to eur)"
    icon = "💱"

    def __init__(
        self,
        *,
        provider: RateProviderPort,
        cache: RateCachePort | None = None,
        locale_probe: LocaleProbe | None = None,
        default_target: str | None = None,
        base_currency: str = DEFAULT_BASE_CURRENCY,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
        telemetry: TelemetryPort | None = None,
    ) -> None:
        self._provider = provider
        self._cache = cache
        self._locale_probe = locale_probe or SystemLocaleProbe()
        self._default_target = default_target.upper() if default_target else None
        self._base_currency = base_currency.upper()
        self._ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._telemetry = telemetry
        self._table: RateTable | None = None
        self._cache_checked = False
        self._fetch_task: asyncio.Task[RateTable | None] | None = None

    # ── Skill contract ───────────────────────────────────────────────

    def match(self, query: str) -> MatchResult | None:
        if not query:
            return None
        m = _QUERY_RE.match(query.strip().lower())
        if m is None:
            return None
        amount_expr, from_raw, to_raw = m.groups()

        try:
            from_code = self.resolve_currency(from_raw)
            to_code = self.resolve_currency(to_raw) if to_raw else self.default_target()
            amount = evaluate(amount_expr)
        except (UnresolvableCurrency, InvalidExpression) as e:
            logger.debug("currency query {!r} rejected: {}", query, e)
            return None

        table = self._fresh_table()
        converted = table.convert(amount, from_code, to_code) if table else None
        if table is None:
            self._schedule_refresh()

        amount_text = format_number(amount)
        if converted is None:
            data = CurrencyData(amount=amount, from_code=from_code, to_code=to_code)
            preview = f"Convert {amount_text} {from_code} to {to_code}..."
        else:
            result, rate = converted
            data = CurrencyData(
                amount=amount,
                from_code=from_code,
                to_code=to_code,
                result=result,
                rate=rate,
                timestamp=table.fetched_at,
            )
            preview = f"{amount_text} {from_code} = {result:.2f} {to_code}"

        # Confidence reflects pattern recognition, not whether rates are cached.
        return MatchResult(score=1.0, data=data, preview=preview)

    async def execute(self, data: CurrencyData) -> str:
        if data.result is not None:
            return f"{data.result:.2f}"

        table = await self.get_rates()
        if table is None:
            raise RateUnavailable("Could not fetch exchange rates")
        converted = table.convert(data.amount, data.from_code, data.to_code)
        if converted is None:
            missing = data.from_code if not table.rates.get(data.from_code) else data.to_code
            raise UnsupportedCurrency(missing)
        return f"{converted[0]:.2f}"

    # ── Currency resolution ──────────────────────────────────────────

    def resolve_currency(self, token: str) -> str:
        """Map a 3-letter code or a symbol to an ISO code."""
        raw = token.strip()
        if len(raw) == 3 and raw.isalpha():
            code = raw.upper()
            if code in KNOWN_CODES or (self._table is not None and code in self._table.rates):
                return code
            raise UnresolvableCurrency(f"unknown currency code {code}")
        code = SYMBOL_TO_CODE.get(raw)
        if code is None:
            raise UnresolvableCurrency(f"unknown currency symbol {raw!r}")
        return code

    def default_target(self) -> str:
        if self._default_target:
            return self._default_target
        return resolve_default_currency(self._locale_probe)

    # ── Rate table ───────────────────────────────────────────────────

    @property
    def table(self) -> RateTable | None:
        return self._table

    async def get_rates(self, *, force: bool = False) -> RateTable | None:
        """Return a fresh rate table, fetching at most once across concurrent callers."""
        if self._fetch_task is not None:
            return await asyncio.shield(self._fetch_task)
        if not force:
            table = self._fresh_table()
            if table is not None:
                return table
        return await asyncio.shield(self._start_fetch())

    async def refresh(self) -> RateTable | None:
        """Force a network refresh (shares any fetch already in flight)."""
        return await self.get_rates(force=True)

    def _fresh_table(self) -> RateTable | None:
        now = self._clock()
        if self._table is None and not self._cache_checked:
            self._cache_checked = True
            self._load_persisted()
        if self._table is not None and self._table.is_fresh(now, self._ttl_seconds):
            return self._table
        return None

    def _load_persisted(self) -> None:
        if self._cache is None:
            return
        try:
            persisted = self._cache.load()
        except Exception as e:
            logger.warning("currency rate cache unreadable: {}", e)
            return
        if persisted is not None and persisted.is_fresh(self._clock(), self._ttl_seconds):
            self._table = persisted

    def _schedule_refresh(self) -> None:
        if self._fetch_task is not None:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("no running event loop; currency rate refresh deferred")
            return
        self._start_fetch()

    def _start_fetch(self) -> asyncio.Task[RateTable | None]:
        if self._fetch_task is None:
            self._fetch_task = asyncio.create_task(self._fetch())
        return self._fetch_task

    async def _fetch(self) -> RateTable | None:
        try:
            try:
                payload = await self._provider.fetch_exchange_rates(self._base_currency)
            except Exception as e:
                logger.error("exchange rate fetch failed: {}", e)
                self._metric("error")
                return None

            rates = payload.get("rates") if isinstance(payload, dict) else None
            if not isinstance(payload, dict) or payload.get("result") != "success" or not isinstance(rates, dict):
                logger.warning("exchange rate provider returned no usable rates")
                self._metric("error")
                return None

            try:
                parsed = {str(k).upper(): float(v) for k, v in rates.items()}
            except (TypeError, ValueError) as e:
                logger.warning("exchange rate provider returned a non-numeric rate: {}", e)
                self._metric("error")
                return None

            table = RateTable(rates=parsed, base=self._base_currency, fetched_at=self._clock())
            # Single assignment: readers see either the old table or the new one.
            self._table = table
            self._metric("success")
            logger.info("exchange rates refreshed ({} currencies)", len(table.rates))
            if self._cache is not None:
                try:
                    self._cache.save(table)
                except OSError as e:
                    logger.warning("failed to persist exchange rates: {}", e)
            return table
        finally:
            self._fetch_task = None

    def _metric(self, outcome: str) -> None:
        if self._telemetry is not None:
            self._telemetry.incr("rates_fetch", labels=(("outcome", outcome),))
