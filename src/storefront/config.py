"""Runtime settings read from environment variables."""

import os
from dataclasses import dataclass
from functools import lru_cache


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    environment: str = "development"
    bonus_earn_percent: int = 5
    bonus_max_share_percent: int = 100
    welcome_bonus: int = 100
    auto_complete_days: int = 14
    gateway_timeout_seconds: int = 10
    delivery_adapter: str = "fake"
    payment_adapter: str = "fake"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, built once from the environment."""
    return Settings(
        environment=os.environ.get("PROTEAN_ENV", "development").lower(),
        bonus_earn_percent=_int_env("STOREFRONT_BONUS_EARN_PERCENT", 5),
        bonus_max_share_percent=_int_env("STOREFRONT_BONUS_MAX_SHARE_PERCENT", 100),
        welcome_bonus=_int_env("STOREFRONT_WELCOME_BONUS", 100),
        auto_complete_days=_int_env("STOREFRONT_AUTO_COMPLETE_DAYS", 14),
        gateway_timeout_seconds=_int_env("STOREFRONT_GATEWAY_TIMEOUT_SECONDS", 10),
        delivery_adapter=os.environ.get("DELIVERY_ADAPTER", "fake"),
        payment_adapter=os.environ.get("PAYMENT_ADAPTER", "fake"),
    )


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()
