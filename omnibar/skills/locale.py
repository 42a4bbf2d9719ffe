"""Default target currency inference from locale and timezone."""

from __future__ import annotations

import locale as _locale
import os
from pathlib import Path

from babel import Locale, UnknownLocaleError
from babel.core import get_global
from babel.numbers import get_territory_currencies
from loguru import logger

from omnibar.core.ports import LocaleProbe

FALLBACK_CURRENCY = "USD"

_LOCALE_ENV_VARS = ("LC_ALL", "LC_MONETARY", "LANG")
_ZONEINFO_MARKER = "zoneinfo/"


class SystemLocaleProbe:
    """Reads locale and timezone from the process environment."""

    def __init__(self, localtime_path: Path = Path("/etc/localtime")) -> None:
        self._localtime_path = localtime_path

    def locale_name(self) -> str | None:
        for var in _LOCALE_ENV_VARS:
            value = os.environ.get(var, "").strip()
            if value and value not in {"C", "POSIX"}:
                return value
        try:
            name, _ = _locale.getlocale()
        except ValueError:
            return None
        return name

    def timezone_name(self) -> str | None:
        tz = os.environ.get("TZ", "").strip().lstrip(":")
        if tz:
            return tz
        try:
            target = str(self._localtime_path.resolve())
        except OSError:
            return None
        if _ZONEINFO_MARKER in target:
            return target.split(_ZONEINFO_MARKER, 1)[1]
        return None


class StaticLocaleProbe:
    """Fixed locale/timezone pair (tests, explicit configuration)."""

    def __init__(self, locale_name: str | None = None, timezone_name: str | None = None) -> None:
        self._locale_name = locale_name
        self._timezone_name = timezone_name

    def locale_name(self) -> str | None:
        return self._locale_name

    def timezone_name(self) -> str | None:
        return self._timezone_name


def territory_currency(territory: str | None) -> str | None:
    """Primary legal-tender currency for an ISO 3166 territory code."""
    if not territory:
        return None
    try:
        currencies = get_territory_currencies(territory.upper())
    except (KeyError, ValueError):
        return None
    return currencies[0] if currencies else None


def currency_from_locale(name: str | None) -> str | None:
    """``en_US.UTF-8`` / ``es-CO`` → ``USD`` / ``COP``."""
    if not name:
        return None
    cleaned = name.split(".", 1)[0].split("@", 1)[0].replace("-", "_")
    try:
        parsed = Locale.parse(cleaned)
    except (UnknownLocaleError, ValueError, TypeError):
        logger.debug("unparseable locale {!r}", name)
        return None
    return territory_currency(parsed.territory)


def currency_from_timezone(name: str | None) -> str | None:
    """``America/Bogota`` → ``CO`` → ``COP``."""
    if not name:
        return None
    zone_territories: dict[str, str] = get_global("zone_territories")
    territory = zone_territories.get(name)
    if not territory or territory == "001":
        return None
    return territory_currency(territory)


def resolve_default_currency(probe: LocaleProbe) -> str:
    """Pick the destination currency when a query omits it.

    The locale currency is the primary signal. A USD locale is often just an
    untouched ``en_US`` default, so a timezone-derived currency replaces it.
    A non-USD locale currency is kept even when the timezone disagrees.
    """
    locale_currency: str | None = None
    try:
        locale_currency = currency_from_locale(probe.locale_name())
    except Exception as e:
        logger.warning("locale currency lookup failed: {}", e)

    tz_currency: str | None = None
    try:
        tz_currency = currency_from_timezone(probe.timezone_name())
    except Exception as e:
        logger.warning("timezone currency lookup failed: {}", e)

    if tz_currency and (not locale_currency or locale_currency == FALLBACK_CURRENCY):
        return tz_currency
    return locale_currency or FALLBACK_CURRENCY
