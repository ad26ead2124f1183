"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (WOWDEV__SERVER__TRANSPORT=http)
  2. wowdev.yaml            (searched in cwd, then the platform config dir)
  3. Hardcoded defaults

The config file is optional; every field has a default.
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

_CONFIG_FILE_NAME = "wowdev.yaml"
_DEFAULT_CONFIG_DIR = platformdirs.user_config_dir("wowdev")


def _find_config_file() -> str | None:
    """Return the path of the first wowdev.yaml found, or None."""
    candidates = [
        Path(_CONFIG_FILE_NAME),
        Path(_DEFAULT_CONFIG_DIR) / _CONFIG_FILE_NAME,
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ServerSettings(_Section):
    transport: Literal["stdio", "http"] = "stdio"
    host: str = "127.0.0.1"
    port: int = 8080


class FetcherSettings(_Section):
    # Hard deadline for one fetch including every retry.
    request_timeout_seconds: float = Field(default=15.0, gt=0)
    retry_wait_seconds: float = Field(default=3.0, ge=0)
    user_agent: str = "wow-dev-mcp/v0"


class SourceSettings(_Section):
    resources_base_url: str = "https://raw.githubusercontent.com/Ketho/BlizzardInterfaceResources"
    wiki_base_url: str = "https://warcraft.wiki.gg"


class DatasetSettings(_Section):
    global_strings_refresh_hours: float = Field(default=3.0, gt=0)
    global_api_refresh_hours: float = Field(default=1.0, gt=0)
    # Used instead of the refresh interval until the first population succeeds.
    retry_interval_seconds: float = Field(default=30.0, gt=0)


class WikiSettings(_Section):
    cache_capacity: int = Field(default=5000, ge=1)
    cache_ttl_minutes: float = Field(default=30.0, gt=0)
    request_timeout_seconds: float = Field(default=12.0, gt=0)


class SearchSettings(_Section):
    strings_threshold: float = Field(default=0.08, ge=0, le=1)
    strings_limit: int = Field(default=25, ge=0, le=100)
    api_threshold: float = Field(default=0.1, ge=0, le=1)
    api_limit: int = Field(default=100, ge=0)
    result_cap: int = Field(default=100, ge=1)


class LoggingSettings(_Section):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: WOWDEV__SERVER__PORT=9090
        env_prefix="WOWDEV__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = ServerSettings()
    fetcher: FetcherSettings = FetcherSettings()
    sources: SourceSettings = SourceSettings()
    datasets: DatasetSettings = DatasetSettings()
    wiki: WikiSettings = WikiSettings()
    search: SearchSettings = SearchSettings()
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
