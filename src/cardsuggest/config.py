"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (CARDSUGGEST__CACHE__MAX_AGE_HOURS=12)
  2. cardsuggest.yaml       (searched in cwd, then ~/.config/cardsuggest/)
  3. Hardcoded defaults

The config file is optional; all fields have sensible defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_DATA_DIR = platformdirs.user_data_dir("cardsuggest")
_DEFAULT_JSON_PATH = str(Path(_DEFAULT_DATA_DIR) / "cache.json")
_DEFAULT_SQLITE_PATH = str(Path(_DEFAULT_DATA_DIR) / "cache.db")


def _find_config_file() -> str | None:
    """Return the path of the first cardsuggest.yaml found, or None."""
    candidates = [
        Path("cardsuggest.yaml"),
        Path.home() / ".config" / "cardsuggest" / "cardsuggest.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class CatalogSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    base_url: str = "https://api.scryfall.com"
    timeout_seconds: float = Field(default=10.0, gt=0)
    user_agent: str = "cardsuggest/0.1"


class CacheSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    max_age_hours: float = Field(default=24, ge=0)
    backend: Literal["json", "sqlite"] = "json"
    # Empty means the platform default for the chosen backend.
    path: str = ""

    @property
    def max_age_ms(self) -> int:
        return int(self.max_age_hours * 60 * 60 * 1000)

    def resolved_path(self) -> Path:
        if self.path:
            return Path(self.path).expanduser()
        if self.backend == "sqlite":
            return Path(_DEFAULT_SQLITE_PATH)
        return Path(_DEFAULT_JSON_PATH)


class SuggestSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    min_match_length: int = Field(default=3, ge=1)
    max_candidates: int = Field(default=0, ge=0)  # 0 = unlimited


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: CARDSUGGEST__SUGGEST__MIN_MATCH_LENGTH=2
        env_prefix="CARDSUGGEST__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    catalog: CatalogSettings = CatalogSettings()
    cache: CacheSettings = CacheSettings()
    suggest: SuggestSettings = SuggestSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
