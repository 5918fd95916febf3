"""Health check API endpoint."""

from __future__ import annotations

import time
from typing import Any

from fastapi import APIRouter, Depends

from api.dependencies import get_health_checker
from core.health import HealthChecker

router = APIRouter(prefix="/system/health", tags=["health"])

# Track API start time
_api_start_time = time.time()


@router.get("")
async def health_check(checker: HealthChecker = Depends(get_health_checker)) -> dict[str, Any]:
    """Get system health status.

    Returns health status for:
    - Each price provider (outcome and latency of its latest fetch attempt)
    - The refresh scheduler (freshness of the cached price)
    - API uptime
    """
    checks = checker.check_all()

    uptime_seconds = int(time.time() - _api_start_time)

    result: dict[str, Any] = {
        "api": {
            "status": "ok",
            "uptime_seconds": uptime_seconds,
            "message": "API running",
        }
    }

    for component, status in checks.items():
        result[component] = {
            "status": status.status,
            "message": status.message,
        }
        if status.latency_ms is not None:
            result[component]["latency_ms"] = status.latency_ms
        if status.details:
            result[component]["details"] = status.details

    # One provider down is survivable thanks to the fallback chain
    provider_statuses = [checks[name.lower()].status for name in checker.provider_names]
    provider_statuses = [s for s in provider_statuses if s != "unknown"]
    if provider_statuses and all(s == "error" for s in provider_statuses):
        overall_status = "error"
    elif any(s != "ok" for s in provider_statuses):
        overall_status = "degraded"
    else:
        overall_status = "ok"

    scheduler_status = checks["scheduler"].status
    if scheduler_status == "error":
        overall_status = "error"
    elif scheduler_status == "degraded" and overall_status == "ok":
        overall_status = "degraded"

    result["overall"] = {
        "status": overall_status,
    }

    return result
