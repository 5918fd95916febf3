"""Display state for the price screen.

Turns a ``QueryState`` into the decisions the screen makes: a full error
panel only when nothing was ever loaded, otherwise the (possibly stale)
price with an inline warning.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal, Optional

from core.formatters import format_currency, format_percentage, format_supply, parse_number
from core.refresh.state import QueryState

ViewMode = Literal["loading", "error", "ready"]

STALE_WARNING = "Warning: Data may be outdated due to API issues"


@dataclass(frozen=True)
class PriceView:
    mode: ViewMode
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


def _last_updated(updated_at_ms: int) -> str:
    if not updated_at_ms:
        return ""
    return datetime.fromtimestamp(updated_at_ms / 1000, tz=timezone.utc).isoformat(timespec="seconds")


def build_view(state: QueryState) -> PriceView:
    """Build the screen's view of the current price cell."""
    asset = state.data

    if asset is None:
        mode: ViewMode = "error" if state.is_error else "loading"
    else:
        mode = "ready"

    price = parse_number(asset.price_usd if asset else None) or 0.0
    change = parse_number(asset.change_percent_24hr if asset else None) or 0.0

    if mode == "error":
        refresh_label = "Retrying..." if state.is_fetching else "Try Again"
    else:
        refresh_label = "Updating..." if state.is_fetching else "Refresh Current Price"

    return PriceView(
        mode=mode,
        badge="Error" if state.is_error else "Live",
        price=f"{price:.4f}",
        change=format_percentage(asset.change_percent_24hr if asset else None),
        change_direction="up" if change >= 0 else "down",
        market_cap=format_currency(asset.market_cap_usd if asset else None, compact=True),
        volume_24h=format_currency(asset.volume_usd_24hr if asset else None, compact=True),
        supply=format_supply(asset.supply if asset else None),
        max_supply=format_supply(asset.max_supply if asset else None),
        rank=f"#{asset.rank}" if asset and asset.rank else "#-",
        last_updated=_last_updated(state.data_updated_at),
        refresh_label=refresh_label,
        warning=STALE_WARNING if mode == "ready" and state.is_error else None,
        error_message=state.error_message if mode == "error" else None,
    )
