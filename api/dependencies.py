"""Process-wide singletons shared by the API routes.

Routes receive these through ``Depends`` so tests can swap them with
``app.dependency_overrides``.
"""

from __future__ import annotations

from core.config import TrackerConfig
from core.health import HealthChecker
from core.market_data.chain import ProviderChain, build_default_chain
from core.refresh.scheduler import RefreshScheduler

_config: TrackerConfig | None = None
_chain: ProviderChain | None = None
_scheduler: RefreshScheduler | None = None


def get_config() -> TrackerConfig:
    """Get or load the tracker configuration."""
    global _config
    if _config is None:
        _config = TrackerConfig.from_env()
    return _config


def get_chain() -> ProviderChain:
    """Get or build the CoinGecko → CoinCap provider chain."""
    global _chain
    if _chain is None:
        _chain = build_default_chain(get_config())
    return _chain


def get_scheduler() -> RefreshScheduler:
    """Get or build the refresh scheduler (not started)."""
    global _scheduler
    if _scheduler is None:
        _scheduler = RefreshScheduler.from_config(get_chain().fetch, get_config())
    return _scheduler


def get_health_checker() -> HealthChecker:
    return HealthChecker(get_chain(), get_scheduler())


async def shutdown() -> None:
    """Stop polling, close HTTP clients and drop the singletons."""
    global _config, _chain, _scheduler
    if _scheduler is not None:
        await _scheduler.stop()
    if _chain is not None:
        await _chain.close()
    _config = None
    _chain = None
    _scheduler = None
