"""Runtime configuration for the price tracker.

All values come from environment variables with sensible defaults, so the
tracker runs without any configuration at all.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

COINGECKO_API_BASE = "https://api.coingecko.com/api/v3"
COINCAP_API_BASE = "https://api.coincap.io/v2"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class TrackerConfig:
    """Fetch, polling and retry settings."""

    fetch_timeout_ms: int = 10_000
    refetch_interval_s: float = 30.0
    stale_time_s: float = 15.0
    retry: int = 2
    retry_base_delay_ms: int = 1000
    retry_max_delay_ms: int = 5000
    coingecko_api_base: str = COINGECKO_API_BASE
    coincap_api_base: str = COINCAP_API_BASE
    poll_enabled: bool = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "TrackerConfig":
        """Build config from environment variables.

        Args:
            environ: Mapping to read from (default: ``os.environ``)

        Raises:
            ValueError: If a variable is set to an unparseable or negative value
        """
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            fetch_timeout_ms=_int(env, "PRICE_FETCH_TIMEOUT_MS", defaults.fetch_timeout_ms),
            refetch_interval_s=_float(env, "PRICE_REFETCH_INTERVAL_S", defaults.refetch_interval_s),
            stale_time_s=_float(env, "PRICE_STALE_TIME_S", defaults.stale_time_s),
            retry=_int(env, "PRICE_RETRY", defaults.retry),
            retry_base_delay_ms=_int(env, "PRICE_RETRY_BASE_DELAY_MS", defaults.retry_base_delay_ms),
            retry_max_delay_ms=_int(env, "PRICE_RETRY_MAX_DELAY_MS", defaults.retry_max_delay_ms),
            coingecko_api_base=env.get("COINGECKO_API_BASE", defaults.coingecko_api_base).rstrip("/"),
            coincap_api_base=env.get("COINCAP_API_BASE", defaults.coincap_api_base).rstrip("/"),
            poll_enabled=_bool(env, "PRICE_POLL_ENABLED", defaults.poll_enabled),
        )


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from exc
    if value < 0:
        raise ValueError(f"{key} must be >= 0, got {value}")
    return value


def _float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be a number, got {raw!r}") from exc
    if value < 0:
        raise ValueError(f"{key} must be >= 0, got {value}")
    return value


def _bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{key} must be a boolean, got {raw!r}")
