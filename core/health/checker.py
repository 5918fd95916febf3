"""Health check logic for price providers and the refresh scheduler.

Provider health is read from the chain's record of its latest attempts, so a
health check never issues upstream requests of its own.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from core.market_data.chain import ProviderChain
from core.refresh.scheduler import RefreshScheduler


@dataclass
class HealthStatus:
    """Health status for a component."""

    status: Literal["ok", "degraded", "error", "unknown"]
    latency_ms: Optional[float] = None
    message: Optional[str] = None
    details: Optional[dict] = None


class HealthChecker:
    """Health checker for upstream providers and the price cell."""

    def __init__(
        self,
        chain: ProviderChain,
        scheduler: Optional[RefreshScheduler] = None,
    ):
        """Initialize health checker.

        Args:
            chain: Provider chain whose recorded attempts are reported
            scheduler: Scheduler whose cached price freshness is reported
        """
        self.chain = chain
        self.scheduler = scheduler

    @property
    def provider_names(self) -> tuple[str, ...]:
        return self.chain.names

    def check_provider(self, name: str) -> HealthStatus:
        """Report the outcome of the chain's latest attempt against ``name``."""
        attempt = self.chain.last_attempts.get(name)
        if attempt is None:
            # Secondary providers are only queried after a primary failure
            return HealthStatus(status="unknown", message=f"{name} not queried yet")

        details = {"attempted_at": attempt.attempted_at_ms}
        if attempt.ok:
            return HealthStatus(status="ok", latency_ms=attempt.latency_ms, message=attempt.message, details=details)
        return HealthStatus(
            status="error",
            latency_ms=attempt.latency_ms,
            message=f"{name} unavailable: {attempt.message}",
            details=details,
        )

    def check_scheduler(self) -> HealthStatus:
        """Report whether the cached price is fresh, stale, or missing."""
        if self.scheduler is None:
            return HealthStatus(status="degraded", message="Refresh scheduler not running")

        state = self.scheduler.state
        details = {
            "polling": self.scheduler.is_polling,
            "fetching": state.is_fetching,
            "provider": state.provider,
            "data_updated_at": state.data_updated_at or None,
            "failure_count": state.failure_count,
        }

        if state.data is None:
            status = "error" if state.is_error else "degraded"
            message = state.error_message or "No price loaded yet"
            return HealthStatus(status=status, message=message, details=details)

        if state.is_error:
            return HealthStatus(
                status="degraded",
                message=f"Serving last known price: {state.error_message}",
                details=details,
            )

        return HealthStatus(status="ok", message="Price up to date", details=details)

    def check_all(self) -> dict[str, HealthStatus]:
        """Check all components."""
        result = {name.lower(): self.check_provider(name) for name in self.provider_names}
        result["scheduler"] = self.check_scheduler()
        return result
