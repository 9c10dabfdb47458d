"""Configuration loading and validation."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_LOG_FORMATS = ("json", "text")


@dataclass(frozen=True)
class ScopeConfig:
    """Library configuration. All values sourced from environment variables."""

    log_level: str = "INFO"
    log_format: str = "json"
    sqlite_timeout_seconds: float = 5.0


def load_config(env_path: str | Path | None = None) -> ScopeConfig:
    """Load configuration from environment variables.

    Loads a .env file if present (for local development), then validates
    every value. Raises ValueError listing all invalid variables.
    """
    load_dotenv(dotenv_path=env_path)

    log_level = os.environ.get("CONNSCOPE_LOG_LEVEL", "INFO").upper()
    log_format = os.environ.get("CONNSCOPE_LOG_FORMAT", "json").lower()
    raw_timeout = os.environ.get("CONNSCOPE_SQLITE_TIMEOUT", "5.0")

    invalid = []
    if log_level not in _LOG_LEVELS:
        invalid.append("CONNSCOPE_LOG_LEVEL")
    if log_format not in _LOG_FORMATS:
        invalid.append("CONNSCOPE_LOG_FORMAT")
    try:
        sqlite_timeout_seconds = float(raw_timeout)
    except ValueError:
        sqlite_timeout_seconds = -1.0
    if not math.isfinite(sqlite_timeout_seconds) or sqlite_timeout_seconds < 0:
        invalid.append("CONNSCOPE_SQLITE_TIMEOUT")

    if invalid:
        raise ValueError(
            f"Invalid environment variables: {', '.join(invalid)}"
        )

    return ScopeConfig(
        log_level=log_level,
        log_format=log_format,
        sqlite_timeout_seconds=sqlite_timeout_seconds,
    )
