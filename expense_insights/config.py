"""Configuration management for expense insights.

This module centralizes all configuration values including paths,
display defaults, logging and the AI client settings.  Paths are resolved
from environment variables at import time; AI settings are read
explicitly through :func:`load_ai_settings` when the process starts and
are then passed to whatever needs them.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ValidationError

# Base project root - assumes this file is in expense_insights/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("EXPENSE_INSIGHTS_DATA_DIR", _PROJECT_ROOT / "data"))

# Database
DB_PATH = Path(
    os.getenv("EXPENSE_INSIGHTS_DB_PATH", DATA_DIR / "expenses.db")
).resolve()

# Stored currency preference; used for display only
CURRENCY_SYMBOL = os.getenv("EXPENSE_INSIGHTS_CURRENCY", "₹")

LOG_LEVEL = os.getenv("EXPENSE_INSIGHTS_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

DEFAULT_AI_MODEL = "gpt-3.5-turbo"
DEFAULT_AI_TIMEOUT = 15.0
DEFAULT_AI_MAX_RETRIES = 1
DEFAULT_AI_TEMPERATURE = 0.7
DEFAULT_AI_MAX_TOKENS = 200

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, DB_PATH.parent]:
        directory.mkdir(parents=True, exist_ok=True)


def get_db_path() -> str:
    """Get the database path as a string."""
    return str(DB_PATH)


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for command line entry points."""
    logging.basicConfig(level=(level or LOG_LEVEL).upper(), format=LOG_FORMAT)


@dataclass(frozen=True)
class AISettings:
    """Credentials and limits for the AI text-generation client."""

    api_key: Optional[str] = None
    model: str = DEFAULT_AI_MODEL
    timeout: float = DEFAULT_AI_TIMEOUT
    max_retries: int = DEFAULT_AI_MAX_RETRIES
    temperature: float = DEFAULT_AI_TEMPERATURE
    max_tokens: int = DEFAULT_AI_MAX_TOKENS
    enabled: bool = True

    @property
    def is_configured(self) -> bool:
        return self.enabled and bool(self.api_key)


def _parse_number(env: Mapping[str, str], key: str, default, cast):
    raw = env.get(key)
    if raw is None or not str(raw).strip():
        return default
    try:
        value = cast(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{key} must be a number, got {raw!r}") from exc
    if value < 0:
        raise ValidationError(f"{key} must not be negative, got {raw!r}")
    return value


def _parse_flag(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None or not str(raw).strip():
        return default
    lowered = str(raw).strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValidationError(f"{key} must be a boolean flag, got {raw!r}")


def load_ai_settings(
    env: Optional[Mapping[str, str]] = None,
    dotenv_path: Optional[Path] = None,
) -> AISettings:
    """Read AI client settings from the environment.

    Args:
        env: Mapping to read from. Defaults to ``os.environ`` after loading
            ``.env`` from the project root (or ``dotenv_path``).
        dotenv_path: Optional explicit ``.env`` file to load first

    Returns:
        Frozen ``AISettings`` instance

    Raises:
        ValidationError: If a numeric or boolean setting cannot be parsed

    Example:
        >>> settings = load_ai_settings({'OPENAI_API_KEY': 'sk-test'})
        >>> settings.is_configured
        True
    """
    if env is None:
        load_dotenv(dotenv_path or _PROJECT_ROOT / ".env")
        env = os.environ

    return AISettings(
        api_key=env.get("OPENAI_API_KEY") or None,
        model=env.get("EXPENSE_INSIGHTS_AI_MODEL") or DEFAULT_AI_MODEL,
        timeout=_parse_number(env, "EXPENSE_INSIGHTS_AI_TIMEOUT", DEFAULT_AI_TIMEOUT, float),
        max_retries=_parse_number(env, "EXPENSE_INSIGHTS_AI_MAX_RETRIES", DEFAULT_AI_MAX_RETRIES, int),
        temperature=_parse_number(env, "EXPENSE_INSIGHTS_AI_TEMPERATURE", DEFAULT_AI_TEMPERATURE, float),
        max_tokens=_parse_number(env, "EXPENSE_INSIGHTS_AI_MAX_TOKENS", DEFAULT_AI_MAX_TOKENS, int),
        enabled=_parse_flag(env, "EXPENSE_INSIGHTS_AI_ENABLED", True),
    )
