"""Shared test fixtures for pytest.

Provides provider payloads, a sample asset, and a mock-transport fetcher
factory used across multiple test files.
"""

from typing import Any, Callable

import httpx
import pytest

from core.market_data.fetcher import TimeoutBoundedFetcher
from core.types import AssetEnvelope, CanonicalAsset


@pytest.fixture
def coingecko_payload() -> dict[str, Any]:
    """Trimmed CoinGecko /coins/ripple response with market data."""
    return {
        "id": "ripple",
        "symbol": "xrp",
        "name": "XRP",
        "market_cap_rank": 4,
        "market_data": {
            "current_price": {"usd": 0.5234, "eur": 0.4812},
            "market_cap": {"usd": 29000000000, "eur": 26600000000},
            "total_volume": {"usd": 1200000000},
            "price_change_percentage_24h": -1.23456,
            "circulating_supply": 55000000000.0,
            "max_supply": 100000000000.0,
        },
    }


@pytest.fixture
def coincap_payload() -> dict[str, Any]:
    """CoinCap /assets/xrp response."""
    return {
        "data": {
            "id": "xrp",
            "rank": "5",
            "symbol": "XRP",
            "name": "XRP",
            "supply": "54900000000.0000000000000000",
            "maxSupply": "100000000000.0000000000000000",
            "marketCapUsd": "28712345678.1234567890123456",
            "volumeUsd24Hr": "987654321.1234567890123456",
            "priceUsd": "0.5229812345678901",
            "changePercent24Hr": "2.3456789012345678",
            "vwap24Hr": "0.5201234567890123",
        },
        "timestamp": 1700000000000,
    }


@pytest.fixture
def sample_asset() -> CanonicalAsset:
    """A normalized XRP snapshot."""
    return CanonicalAsset.from_dict(
        {
            "id": "xrp",
            "rank": "4",
            "symbol": "XRP",
            "name": "XRP",
            "supply": "55000000000",
            "maxSupply": "100000000000",
            "marketCapUsd": "29000000000",
            "volumeUsd24Hr": "1200000000",
            "priceUsd": "0.5234",
            "changePercent24Hr": "-1.23456",
            "vwap24Hr": "0.5234",
        }
    )


@pytest.fixture
def sample_envelope(sample_asset: CanonicalAsset) -> AssetEnvelope:
    return AssetEnvelope(data=sample_asset, provider="CoinGecko", fetched_at_ms=1700000000000)


@pytest.fixture
def make_fetcher() -> Callable[..., TimeoutBoundedFetcher]:
    """Factory for fetchers backed by an ``httpx.MockTransport`` handler."""

    def factory(handler: Callable[[httpx.Request], Any], timeout_ms: int = 10_000) -> TimeoutBoundedFetcher:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return TimeoutBoundedFetcher(timeout_ms=timeout_ms, client=client)

    return factory
