"""Normalize provider payloads into CanonicalAsset.

Every numeric field leaving this module is either a finite decimal string or,
for ``max_supply`` only, ``None``. Missing or malformed values fall back to
documented defaults instead of leaking through.
"""

from __future__ import annotations

import math
import re
from typing import Any, Optional

from core.market_data.errors import ValidationError
from core.types import CanonicalAsset

XRP_ID = "xrp"
XRP_SYMBOL = "XRP"
XRP_NAME = "XRP"

# XRP's usual market cap rank, used only when CoinGecko omits the rank.
# This literal is specific to XRP and is not a general default.
XRP_FALLBACK_RANK = "7"

# Protocol-level cap: 100 billion XRP were created at genesis.
XRP_MAX_SUPPLY = "100000000000"

UNRANKED = "0"

# Decimal or exponent notation only
_DECIMAL = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def to_numeric_string(value: Any, default: Optional[str] = "0") -> Optional[str]:
    """Coerce a JSON value to a finite decimal string.

    Numbers are stringified and plain decimal strings are kept (trimmed).
    Anything else yields ``default``: ``None``, bools, text such as
    ``"1_000"`` or ``"nan"``, and values outside the float range.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        text = str(value)
    elif isinstance(value, str):
        text = value.strip()
        if not _DECIMAL.fullmatch(text):
            return default
    else:
        return default

    # Oversized integers parse to inf here
    if not math.isfinite(float(text)):
        return default
    return text


def to_rank_string(value: Any, default: str) -> str:
    """Coerce a market cap rank to an integer string."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, str) and value.strip().isdigit():
        return value.strip()
    return default


def _usd(market_data: dict[str, Any], key: str) -> Any:
    nested = market_data.get(key)
    if isinstance(nested, dict):
        return nested.get("usd")
    return None


def normalize_coingecko(payload: Any) -> CanonicalAsset:
    """Map a CoinGecko ``/coins/ripple`` response.

    CoinGecko has no VWAP, so ``vwap_24hr`` mirrors the current price.

    Raises:
        ValidationError: If ``market_data`` is missing
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid CoinGecko response: expected a JSON object")

    market_data = payload.get("market_data")
    if not isinstance(market_data, dict):
        raise ValidationError("Invalid CoinGecko response: missing market data")

    price = to_numeric_string(_usd(market_data, "current_price"))

    return CanonicalAsset(
        id=XRP_ID,
        rank=to_rank_string(payload.get("market_cap_rank"), XRP_FALLBACK_RANK),
        symbol=XRP_SYMBOL,
        name=XRP_NAME,
        supply=to_numeric_string(market_data.get("circulating_supply")),
        max_supply=to_numeric_string(market_data.get("max_supply"), XRP_MAX_SUPPLY),
        market_cap_usd=to_numeric_string(_usd(market_data, "market_cap")),
        volume_usd_24hr=to_numeric_string(_usd(market_data, "total_volume")),
        price_usd=price,
        change_percent_24hr=to_numeric_string(market_data.get("price_change_percentage_24h")),
        vwap_24hr=price,
    )


def normalize_coincap(payload: Any) -> CanonicalAsset:
    """Map a CoinCap ``/assets/xrp`` response.

    CoinCap already returns the canonical shape; fields are passed through
    and only defaulted when absent or malformed.

    Raises:
        ValidationError: If ``data.priceUsd`` is missing, not a string, or not numeric
    """
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, dict) or not isinstance(data.get("priceUsd"), str):
        raise ValidationError("Invalid CoinCap response: missing price data")

    price = to_numeric_string(data["priceUsd"], None)
    if price is None:
        raise ValidationError(f"Invalid CoinCap response: non-numeric price {data['priceUsd']!r}")

    return CanonicalAsset(
        id=str(data.get("id") or XRP_ID),
        rank=to_rank_string(data.get("rank"), UNRANKED),
        symbol=str(data.get("symbol") or XRP_SYMBOL),
        name=str(data.get("name") or XRP_NAME),
        supply=to_numeric_string(data.get("supply")),
        max_supply=to_numeric_string(data.get("maxSupply"), None),
        market_cap_usd=to_numeric_string(data.get("marketCapUsd")),
        volume_usd_24hr=to_numeric_string(data.get("volumeUsd24Hr")),
        price_usd=price,
        change_percent_24hr=to_numeric_string(data.get("changePercent24Hr")),
        vwap_24hr=to_numeric_string(data.get("vwap24Hr")),
    )
