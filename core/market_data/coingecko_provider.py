"""CoinGecko price provider (primary).

Uses the free tier API (no API key required).
Rate limit: 10-30 calls/minute on free tier, comfortably above one poll
every 30 seconds.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urlencode

from core.config import COINGECKO_API_BASE
from core.market_data.base import PriceProvider
from core.market_data.fetcher import TimeoutBoundedFetcher
from core.market_data.normalize import normalize_coingecko
from core.types import CanonicalAsset

COIN_ID = "ripple"

# Only market data is needed; everything else is switched off to keep the payload small
COIN_QUERY = {
    "localization": "false",
    "tickers": "false",
    "market_data": "true",
    "community_data": "false",
    "developer_data": "false",
    "sparkline": "false",
}


class CoinGeckoProvider(PriceProvider):
    """XRP snapshot from CoinGecko's ``/coins/{id}`` endpoint."""

    name = "CoinGecko"

    def __init__(self, fetcher: TimeoutBoundedFetcher, *, base_url: str = COINGECKO_API_BASE) -> None:
        super().__init__(fetcher)
        self.base_url = base_url.rstrip("/")

    def build_url(self) -> str:
        return f"{self.base_url}/coins/{COIN_ID}?{urlencode(COIN_QUERY)}"

    def normalize(self, payload: Any) -> CanonicalAsset:
        return normalize_coingecko(payload)
