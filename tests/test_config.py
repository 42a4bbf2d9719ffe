import json
from pathlib import Path

import pytest

from omnibar.config.loader import convert_keys, convert_to_camel, load_config, normalize_config, save_config
from omnibar.config.schema import Config
from omnibar.utils.helpers import get_cache_path, get_data_path, get_history_path


def test_defaults() -> None:
    config = Config()

    assert config.palette.file_search_prefix == "ff "
    assert config.palette.translate_prefix == "tr "
    assert config.palette.debounce_seconds == pytest.approx(0.3)
    assert config.palette.max_apps == 5
    assert config.file_search.max_results == 50
    assert config.currency.api_url == "https://open.er-api.com/v6/latest"
    assert config.currency.ttl_seconds == 24 * 3600
    assert config.currency.default_target is None
    assert config.history.max_entries == 100


def test_camel_case_roundtrip(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    config = Config.model_validate(
        normalize_config(
            {
                "palette": {"debounceMs": 150},
                "currency": {"defaultTarget": "eur"},
                "scripts": [{"alias": "backup", "path": "/bin/backup.sh", "args": ["--fast"]}],
                "aiTools": [{"id": "gpt", "name": "ChatGPT", "keywords": ["chat "]}],
                "shortcuts": {"myWeb": "app:firefox"},
            }
        )
    )

    save_config(config, path)
    raw = json.loads(path.read_text())
    loaded = load_config(path)

    assert raw["palette"]["debounceMs"] == 150
    assert raw["palette"]["fileSearchPrefix"] == "ff "
    assert raw["currency"]["defaultTarget"] == "EUR"
    assert raw["aiTools"][0]["id"] == "gpt"
    assert raw["shortcuts"] == {"myWeb": "app:firefox"}
    assert loaded.palette.debounce_ms == 150
    assert loaded.currency.default_target == "EUR"
    assert loaded.script_entries[0].args == ("--fast",)
    assert loaded.ai_tool_entries[0].keywords == ("chat ",)
    assert loaded.normalized_shortcuts == {"myweb": "app:firefox"}
    assert (path.stat().st_mode & 0o777) == 0o600


def test_invalid_file_falls_back_to_defaults(tmp_path: Path) -> None:
    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    invalid = tmp_path / "invalid.json"
    invalid.write_text(json.dumps({"currency": {"baseCurrency": "dollars"}}))

    assert load_config(broken) == Config()
    assert load_config(invalid).currency.base_currency == "USD"
    assert load_config(tmp_path / "missing.json") == Config()


def test_missing_sections_are_seeded() -> None:
    snake = normalize_config({"history": {"maxEntries": 10}, "scripts": "oops"})

    assert snake["history"] == {"max_entries": 10}
    assert snake["palette"]["debounce_ms"] == 300
    assert snake["scripts"] == []
    assert snake["shortcuts"] == {}
    with pytest.raises(ValueError):
        normalize_config([])


def test_key_conversion() -> None:
    assert convert_keys({"fileSearch": {"includeHidden": True}}) == {"file_search": {"include_hidden": True}}
    assert convert_to_camel({"file_search": [{"max_results": 1}]}) == {"fileSearch": [{"maxResults": 1}]}


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OMNIBAR_PALETTE__DEBOUNCE_MS", "75")
    monkeypatch.setenv("OMNIBAR_CURRENCY__BASE_CURRENCY", "eur")

    config = Config()

    assert config.palette.debounce_ms == 75
    assert config.currency.base_currency == "EUR"


def test_data_paths_respect_omnibar_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OMNIBAR_HOME", str(tmp_path / "home"))

    assert get_data_path() == tmp_path / "home"
    assert get_cache_path() == tmp_path / "home" / "var" / "cache"
    assert get_cache_path().is_dir()
    assert get_history_path() == tmp_path / "home" / "data" / "history.json"
