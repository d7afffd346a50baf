"""Configuration management for the transactions client."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Callable, TypeVar

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from transactions_client.utils.http import normalize_base_url

_config_logger = logging.getLogger(__name__)


class LoggingSettings(BaseModel):
    level: str = Field(default="INFO", description="Python logging level name")
    file: str | None = Field(default=None, description="Optional log file path")


class ApiSettings(BaseModel):
    base_url: str = Field(default="http://localhost:8080/api")
    timeout_seconds: float = Field(default=10.0, ge=0.1, le=300.0)

    @field_validator("base_url")
    @classmethod
    def _validate_base_url(cls, value: str) -> str:
        return normalize_base_url(value)


class CacheSettings(BaseModel):
    stale_seconds: int = Field(
        default=300,
        ge=0,
        le=86_400,
        description="Seconds a fetched snapshot is served without a remote call.",
    )
    max_entries: int = Field(default=256, ge=1, le=10_000)


class StorageSettings(BaseModel):
    client_state_path: str = Field(default="./data/client_state.sqlite")


class Settings(BaseModel):
    api: ApiSettings = Field(default_factory=ApiSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


ENV_KEYS = {
    "api_url": "TRANSACTIONS_API_URL",
    "api_timeout": "TRANSACTIONS_API_TIMEOUT_SECONDS",
    "stale_seconds": "TRANSACTIONS_CACHE_STALE_SECONDS",
    "cache_max_entries": "TRANSACTIONS_CACHE_MAX_ENTRIES",
    "client_state_path": "CLIENT_STATE_PATH",
    "log_level": "LOG_LEVEL",
    "log_file": "LOG_FILE",
}


def _project_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _resolve_path(path: str) -> str:
    candidate = Path(path).expanduser()
    if candidate.is_absolute():
        return str(candidate.resolve())
    return str((_project_root() / candidate).resolve())


_Number = TypeVar("_Number", int, float)


def _env_number(key: str, default: _Number, parse: Callable[[str], _Number]) -> _Number:
    """Read a numeric environment value, falling back to ``default`` when blank or malformed."""
    raw = (os.getenv(key) or "").strip()
    if not raw:
        return default
    try:
        return parse(raw)
    except ValueError:
        _config_logger.warning(
            "Ignoring %s=%r (not a %s); using %s", key, raw, parse.__name__, default
        )
        return default


def load_settings() -> Settings:
    """Load configuration once per process; tests clear ``_load_settings_cached``."""
    return _load_settings_cached()


@lru_cache(maxsize=1)
def _load_settings_cached() -> Settings:
    load_dotenv(dotenv_path=_project_root() / ".env")
    log_file_env = os.getenv(ENV_KEYS["log_file"])
    api_defaults = ApiSettings()
    cache_defaults = CacheSettings()

    settings_data: dict[str, object] = {
        "api": {
            "base_url": os.getenv(ENV_KEYS["api_url"], api_defaults.base_url),
            "timeout_seconds": _env_number(
                ENV_KEYS["api_timeout"], api_defaults.timeout_seconds, float
            ),
        },
        "cache": {
            "stale_seconds": _env_number(
                ENV_KEYS["stale_seconds"], cache_defaults.stale_seconds, int
            ),
            "max_entries": _env_number(
                ENV_KEYS["cache_max_entries"], cache_defaults.max_entries, int
            ),
        },
        "storage": {
            "client_state_path": _resolve_path(
                os.getenv(
                    ENV_KEYS["client_state_path"], StorageSettings().client_state_path
                )
            ),
        },
        "logging": {
            "level": os.getenv(ENV_KEYS["log_level"], LoggingSettings().level),
            "file": _resolve_path(log_file_env) if log_file_env else None,
        },
    }

    try:
        settings = Settings.model_validate(settings_data)
    except (ValidationError, ValueError) as exc:
        raise RuntimeError(f"Invalid configuration: {exc}") from exc

    return settings
