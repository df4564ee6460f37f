"""Application settings read from the environment.

Protean's own configuration (databases, brokers, event store) lives in
``domain.toml`` next to the domain. The values here cover what the
ordering engine itself needs: the business calendar, token handling and
transaction retry policy.
"""

import os
from dataclasses import dataclass
from functools import lru_cache


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or value == "":
        return default
    return int(value)


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None or value == "":
        return default
    return float(value)


@dataclass(frozen=True)
class Settings:
    timezone: str = "UTC"
    order_number_prefix: str = "BBQ"
    jwt_secret: str = "canteen-dev-jwt-secret-change-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = 60 * 24
    tx_max_attempts: int = 3
    tx_backoff_seconds: float = 0.05
    tx_backoff_max_seconds: float = 1.0


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings from environment variables, falling back to defaults."""
    defaults = Settings()
    return Settings(
        timezone=os.getenv("CANTEEN_TIMEZONE", defaults.timezone),
        order_number_prefix=os.getenv("ORDER_NUMBER_PREFIX", defaults.order_number_prefix),
        jwt_secret=os.getenv("JWT_SECRET", defaults.jwt_secret),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", defaults.jwt_algorithm),
        jwt_expires_minutes=_env_int("JWT_EXPIRES_MINUTES", defaults.jwt_expires_minutes),
        tx_max_attempts=max(1, _env_int("TX_MAX_ATTEMPTS", defaults.tx_max_attempts)),
        tx_backoff_seconds=_env_float("TX_BACKOFF_SECONDS", defaults.tx_backoff_seconds),
        tx_backoff_max_seconds=_env_float("TX_BACKOFF_MAX_SECONDS", defaults.tx_backoff_max_seconds),
    )


def reset_settings() -> None:
    """Drop cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()
