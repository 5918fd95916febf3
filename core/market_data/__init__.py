"""XRP price retrieval: timeout-bounded fetching, provider adapters and fallback."""

from core.market_data.base import PriceProvider
from core.market_data.chain import ProviderChain, build_default_chain, fetch_xrp_price
from core.market_data.coincap_provider import CoinCapProvider
from core.market_data.coingecko_provider import CoinGeckoProvider
from core.market_data.errors import (
    AllProvidersFailedError,
    FetchTimeoutError,
    HttpError,
    NetworkError,
    PriceFeedError,
    ValidationError,
)
from core.market_data.fetcher import TimeoutBoundedFetcher

__all__ = [
    "AllProvidersFailedError",
    "CoinCapProvider",
    "CoinGeckoProvider",
    "FetchTimeoutError",
    "HttpError",
    "NetworkError",
    "PriceFeedError",
    "PriceProvider",
    "ProviderChain",
    "TimeoutBoundedFetcher",
    "ValidationError",
    "build_default_chain",
    "fetch_xrp_price",
]
