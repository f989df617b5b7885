"""
Lockup engine configuration.

Values are read from environment variables when the module is imported.
Use ``load_config()`` to build a fresh ``LockupConfig`` after changing the
environment (tests do this through ``monkeypatch``).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60

# 10 years of 365 days
DEFAULT_MAX_VESTING_DURATION = 10 * 365 * SECONDS_PER_DAY

ZERO_ADDRESS = "0x" + "0" * 40

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def _get_int(env_var: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{env_var} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ConfigurationError(f"{env_var} must be >= {minimum}, got {value}")
    return value


def _get_log_level(env_var: str, default: str = "INFO") -> str:
    level = os.getenv(env_var, default).strip().upper() or default
    if level not in _LOG_LEVELS:
        raise ConfigurationError(f"{env_var} must be one of {', '.join(_LOG_LEVELS)}, got {level!r}")
    return level


@dataclass(frozen=True)
class LockupConfig:
    max_vesting_duration: int = DEFAULT_MAX_VESTING_DURATION
    log_level: str = "INFO"
    log_file: str | None = None
    environment: str = "production"


def load_config() -> LockupConfig:
    """Build a LockupConfig from the current environment."""
    config = LockupConfig(
        max_vesting_duration=_get_int("LOCKUP_MAX_VESTING_DURATION", DEFAULT_MAX_VESTING_DURATION),
        log_level=_get_log_level("LOCKUP_LOG_LEVEL"),
        log_file=os.getenv("LOCKUP_LOG_FILE", "").strip() or None,
        environment=os.getenv("LOCKUP_ENVIRONMENT", "production").strip() or "production",
    )
    if config.max_vesting_duration != DEFAULT_MAX_VESTING_DURATION:
        logger.info(
            "Using non-default maximum vesting duration",
            extra={"event": "config.max_vesting_duration", "value": config.max_vesting_duration},
        )
    return config


CONFIG = load_config()
MAX_VESTING_DURATION = CONFIG.max_vesting_duration
