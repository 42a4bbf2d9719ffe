"""Centralized defaults for generated/migrated config files."""

from __future__ import annotations

from copy import deepcopy
from typing import Any

DEFAULT_RATES_API_URL = "https://open.er-api.com/v6/latest"

DEFAULT_PALETTE: dict[str, Any] = {
    "file_search_prefix": "ff ",
    "translate_prefix": "tr ",
    "debounce_ms": 300,
    "max_apps": 5,
    "max_windows": 5,
    "recent_actions_limit": 20,
}

DEFAULT_FILE_SEARCH: dict[str, Any] = {
    "base_path": "~",
    "include_hidden": False,
    "max_results": 50,
}

DEFAULT_CURRENCY: dict[str, Any] = {
    "api_url": DEFAULT_RATES_API_URL,
    "base_currency": "USD",
    "ttl_hours": 24,
    "timeout_seconds": 10.0,
    "default_target": None,
    "storage_key": "omnibar_currency_rates",
}

DEFAULT_HISTORY: dict[str, Any] = {
    "max_entries": 100,
}

_SECTIONS: dict[str, dict[str, Any]] = {
    "palette": DEFAULT_PALETTE,
    "file_search": DEFAULT_FILE_SEARCH,
    "currency": DEFAULT_CURRENCY,
    "history": DEFAULT_HISTORY,
}


def default_section(name: str) -> dict[str, Any]:
    """Return a deep-copied default payload for one config section."""
    return deepcopy(_SECTIONS[name])


def apply_missing_defaults(snake_config: dict[str, Any]) -> None:
    """Inject missing config defaults without overriding existing user values."""
    if not isinstance(snake_config, dict):
        return

    for name in _SECTIONS:
        section = snake_config.setdefault(name, {})
        if not isinstance(section, dict):
            snake_config[name] = default_section(name)
            continue
        for k, v in default_section(name).items():
            section.setdefault(k, v)

    for list_key in ("scripts", "ai_tools"):
        if not isinstance(snake_config.get(list_key), list):
            snake_config[list_key] = []
    if not isinstance(snake_config.get("shortcuts"), dict):
        snake_config["shortcuts"] = {}
