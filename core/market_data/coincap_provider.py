"""CoinCap price provider (secondary)."""

from __future__ import annotations

import time
from typing import Any, Callable

from core.config import COINCAP_API_BASE
from core.market_data.base import PriceProvider
from core.market_data.fetcher import TimeoutBoundedFetcher
from core.market_data.normalize import normalize_coincap
from core.types import CanonicalAsset

ASSET_ID = "xrp"


class CoinCapProvider(PriceProvider):
    """XRP snapshot from CoinCap's ``/assets/{id}`` endpoint.

    A millisecond timestamp is appended to every request so intermediate
    caches never serve an old snapshot.
    """

    name = "CoinCap"

    def __init__(
        self,
        fetcher: TimeoutBoundedFetcher,
        *,
        base_url: str = COINCAP_API_BASE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(fetcher)
        self.base_url = base_url.rstrip("/")
        self._clock = clock

    def build_url(self) -> str:
        timestamp_ms = int(self._clock() * 1000)
        return f"{self.base_url}/assets/{ASSET_ID}?t={timestamp_ms}"

    def normalize(self, payload: Any) -> CanonicalAsset:
        return normalize_coincap(payload)
