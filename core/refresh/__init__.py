"""Refresh scheduling and the price state cell."""

from core.refresh.scheduler import RefreshScheduler
from core.refresh.state import QueryState

__all__ = ["QueryState", "RefreshScheduler"]
