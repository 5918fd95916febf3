"""XRP price API endpoints."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from api.dependencies import get_scheduler
from core.refresh.scheduler import RefreshScheduler
from core.view_model import build_view

router = APIRouter(prefix="/price", tags=["price"])


class PriceViewResponse(BaseModel):
    """Display-ready view of the XRP price cell."""

    mode: Literal["loading", "error", "ready"]
    badge: Literal["Live", "Error"]
    price: str
    change: str
    change_direction: Literal["up", "down"]
    market_cap: str
    volume_24h: str
    supply: str
    max_supply: str
    rank: str
    last_updated: str
    refresh_label: str
    warning: Optional[str] = None
    error_message: Optional[str] = None


class PriceStateResponse(BaseModel):
    """Raw price cell, with the asset in its canonical shape."""

    data: Optional[Dict[str, Any]] = None
    status: Literal["idle", "loading", "success", "error"]
    is_loading: bool
    is_fetching: bool
    is_error: bool
    error: Optional[str] = None
    data_updated_at: int
    error_updated_at: int
    failure_count: int
    provider: Optional[str] = None


@router.get("", response_model=PriceViewResponse)
async def get_price(
    revalidate: bool = Query(False, description="Fetch first if the cached price is stale"),
    scheduler: RefreshScheduler = Depends(get_scheduler),
):
    """Get the current XRP price view.

    Never fails on upstream errors; the view reports them instead.
    """
    if revalidate:
        await scheduler.revalidate_if_stale()
    return asdict(build_view(scheduler.state))


@router.get("/state", response_model=PriceStateResponse)
async def get_price_state(scheduler: RefreshScheduler = Depends(get_scheduler)):
    """Get the raw price cell."""
    state = scheduler.state
    return {
        "data": state.data.to_dict() if state.data else None,
        "status": state.status,
        "is_loading": state.is_loading,
        "is_fetching": state.is_fetching,
        "is_error": state.is_error,
        "error": state.error_message,
        "data_updated_at": state.data_updated_at,
        "error_updated_at": state.error_updated_at,
        "failure_count": state.failure_count,
        "provider": state.provider,
    }


@router.post("/refresh", response_model=PriceViewResponse)
async def refresh_price(scheduler: RefreshScheduler = Depends(get_scheduler)):
    """User-initiated refresh: single attempt, joins a fetch already in flight."""
    state = await scheduler.refetch()
    return asdict(build_view(state))
