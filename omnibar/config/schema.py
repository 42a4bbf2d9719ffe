"""Configuration schema using Pydantic."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from omnibar.config.defaults import (
    DEFAULT_CURRENCY,
    DEFAULT_FILE_SEARCH,
    DEFAULT_HISTORY,
    DEFAULT_PALETTE,
)
from omnibar.core.models import AIToolEntry, ScriptEntry


class PaletteConfig(BaseModel):
    """Query prefixes, debounce and display limits."""

    model_config = ConfigDict(extra="ignore")

    file_search_prefix: str = str(DEFAULT_PALETTE["file_search_prefix"])
    translate_prefix: str = str(DEFAULT_PALETTE["translate_prefix"])
    debounce_ms: int = Field(default=int(DEFAULT_PALETTE["debounce_ms"]), ge=0)
    max_apps: int = Field(default=int(DEFAULT_PALETTE["max_apps"]), ge=1)
    max_windows: int = Field(default=int(DEFAULT_PALETTE["max_windows"]), ge=1)
    recent_actions_limit: int = Field(default=int(DEFAULT_PALETTE["recent_actions_limit"]), ge=1)

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0


class FileSearchConfig(BaseModel):
    """File search scope."""

    model_config = ConfigDict(extra="ignore")

    base_path: str = str(DEFAULT_FILE_SEARCH["base_path"])
    include_hidden: bool = bool(DEFAULT_FILE_SEARCH["include_hidden"])
    max_results: int = Field(default=int(DEFAULT_FILE_SEARCH["max_results"]), ge=1)

    @property
    def resolved_base_path(self) -> Path:
        return Path(self.base_path).expanduser()


class CurrencyConfig(BaseModel):
    """Exchange-rate source and cache settings."""

    model_config = ConfigDict(extra="ignore")

    api_url: str = str(DEFAULT_CURRENCY["api_url"])
    base_currency: str = str(DEFAULT_CURRENCY["base_currency"])
    ttl_hours: float = Field(default=float(DEFAULT_CURRENCY["ttl_hours"]), gt=0)
    timeout_seconds: float = Field(default=float(DEFAULT_CURRENCY["timeout_seconds"]), gt=0)
    default_target: str | None = None  # Skips locale/timezone inference when set
    storage_key: str = str(DEFAULT_CURRENCY["storage_key"])

    @field_validator("base_currency", "default_target")
    @classmethod
    def _upper_code(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip().upper()
        if value and (len(value) != 3 or not value.isalpha()):
            raise ValueError(f"invalid currency code: {value}")
        return value or None

    @property
    def ttl_seconds(self) -> float:
        return self.ttl_hours * 3600.0


class HistoryConfig(BaseModel):
    """Action history store settings."""

    model_config = ConfigDict(extra="ignore")

    max_entries: int = Field(default=int(DEFAULT_HISTORY["max_entries"]), ge=1)


class ScriptConfig(BaseModel):
    """User script runnable from the palette."""

    model_config = ConfigDict(extra="ignore")

    alias: str
    path: str
    args: list[str] = Field(default_factory=list)

    def to_entry(self) -> ScriptEntry:
        return ScriptEntry(alias=self.alias, path=self.path, args=tuple(self.args))


class AIToolConfig(BaseModel):
    """AI tool preset matched by keyword prefix or shortcut."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    description: str = ""
    icon: str | None = None
    keywords: list[str] = Field(default_factory=list)

    def to_entry(self) -> AIToolEntry:
        return AIToolEntry(
            id=self.id,
            name=self.name,
            description=self.description,
            icon=self.icon,
            keywords=tuple(self.keywords),
        )


class Config(BaseSettings):
    """Root configuration for omnibar."""

    model_config = SettingsConfigDict(
        extra="ignore",
        populate_by_name=True,
        env_prefix="OMNIBAR_",
        env_nested_delimiter="__",
    )

    config_version: int = 1
    palette: PaletteConfig = Field(default_factory=PaletteConfig)
    file_search: FileSearchConfig = Field(default_factory=FileSearchConfig)
    currency: CurrencyConfig = Field(default_factory=CurrencyConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    scripts: list[ScriptConfig] = Field(default_factory=list)
    ai_tools: list[AIToolConfig] = Field(default_factory=list)
    shortcuts: dict[str, str] = Field(default_factory=dict)

    @property
    def script_entries(self) -> list[ScriptEntry]:
        return [script.to_entry() for script in self.scripts]

    @property
    def ai_tool_entries(self) -> list[AIToolEntry]:
        return [tool.to_entry() for tool in self.ai_tools]

    @property
    def normalized_shortcuts(self) -> dict[str, str]:
        """Shortcut keys are matched against the lowercased query."""
        return {key.lower(): target for key, target in self.shortcuts.items()}
