"""Application configuration helpers."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

ENV_FILE_CANDIDATES = (Path(".env"), Path(".env.local"))
logger = logging.getLogger(__name__)


class Settings(BaseModel):
    """Global application settings loaded from environment variables or .env files."""

    database_path: Path = Field(
        default=Path("./data/larder.db"),
        description="SQLite database location.",
    )
    api_token: Optional[str] = Field(
        default=None,
        description="Bearer token required for mutating endpoints.",
    )
    log_level: str = Field(default="INFO", description="Logging level (DEBUG/INFO/WARNING/ERROR)")
    log_format: str = Field(
        default="plain",
        description="Logging format (plain/json).",
    )
    log_requests: bool = Field(
        default=True,
        description="Emit request access logs when true.",
    )
    low_stock_threshold: float = Field(
        default=0.25,
        gt=0.0,
        le=1.0,
        description="Items with quantity strictly below this value are considered low on stock.",
    )
    activity_retention_days: int = Field(
        default=28,
        ge=1,
        description="Activity entries older than this many days are dropped on the next record.",
    )
    activity_max_entries: int = Field(
        default=100,
        ge=1,
        description="Maximum number of activity entries retained.",
    )

    model_config = ConfigDict(frozen=True)


def _coerce_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


# Environment variable -> (settings field, parser).
_ENV_FIELDS: dict[str, tuple[str, Callable[[str], object]]] = {
    "LARDER_DATABASE_PATH": ("database_path", Path),
    "LARDER_API_TOKEN": ("api_token", str),
    "LARDER_LOG_LEVEL": ("log_level", str),
    "LARDER_LOG_FORMAT": ("log_format", str),
    "LARDER_LOG_REQUESTS": ("log_requests", _coerce_bool),
    "LARDER_LOW_STOCK_THRESHOLD": ("low_stock_threshold", float),
    "LARDER_ACTIVITY_RETENTION_DAYS": ("activity_retention_days", int),
    "LARDER_ACTIVITY_MAX_ENTRIES": ("activity_max_entries", int),
}


def _read_env_file(path: Path) -> dict[str, str]:
    if not path.is_file():
        return {}
    values: dict[str, str] = {}
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, raw_value = line.split("=", 1)
        values[key.strip()] = raw_value.strip().strip("\"'")
    return values


def _load_from_env() -> dict[str, object]:
    """Collect overrides from ``LARDER_*`` variables; .env files fill in what is unset."""

    file_values: dict[str, str] = {}
    for candidate in ENV_FILE_CANDIDATES:
        file_values.update(_read_env_file(candidate))

    payload: dict[str, object] = {}
    for key, (field, parse) in _ENV_FIELDS.items():
        raw = os.environ.get(key) or file_values.get(key)
        if not raw:
            continue
        try:
            payload[field] = parse(raw)
        except ValueError:
            logger.warning("Ignoring %s=%r: not a valid %s", key, raw, field)
    return payload


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings(**_load_from_env())
