"""Provider chain: fixed-order fallback across price providers.

The chain is the only place adapter errors are handled. Each provider gets
exactly one attempt per call; failures are recorded as
``"<Provider>: <cause>"`` reasons and the next provider is tried. When every
provider fails the reasons are raised together as
``AllProvidersFailedError``.
"""

from __future__ import annotations

import logging
import time
from typing import Optional, Sequence

from core.config import TrackerConfig
from core.market_data.base import PriceProvider
from core.market_data.coincap_provider import CoinCapProvider
from core.market_data.coingecko_provider import CoinGeckoProvider
from core.market_data.errors import AllProvidersFailedError, PriceFeedError
from core.market_data.fetcher import TimeoutBoundedFetcher
from core.types import AssetEnvelope, FetchErr, FetchOk, FetchOutcome, ProviderAttempt

logger = logging.getLogger(__name__)


class ProviderChain:
    """Tries providers in order and returns the first success."""

    def __init__(self, providers: Sequence[PriceProvider]) -> None:
        if not providers:
            raise ValueError("ProviderChain needs at least one provider")
        self.providers = tuple(providers)
        # Latest attempt per provider name, read by the health checker
        self.last_attempts: dict[str, ProviderAttempt] = {}

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(provider.name for provider in self.providers)

    async def run(self) -> FetchOutcome:
        """Attempt each provider once, in order, without raising."""
        reasons: list[str] = []

        for provider in self.providers:
            started = time.monotonic()
            try:
                asset = await provider.fetch_asset()
            except PriceFeedError as exc:
                message = str(exc)
            except Exception as exc:
                # Adapter bug; still just a failed attempt from the chain's view
                logger.exception("Unexpected error from %s provider", provider.name)
                message = str(exc) or f"Unknown {provider.name} error"
            else:
                self._record(provider.name, True, f"{provider.name} reachable", started)
                return FetchOk(asset=asset, provider=provider.name)

            self._record(provider.name, False, message, started)
            reasons.append(f"{provider.name}: {message}")
            logger.warning("%s API failed: %s", provider.name, message)

        return FetchErr(reasons=tuple(reasons))

    def _record(self, name: str, ok: bool, message: str, started: float) -> None:
        self.last_attempts[name] = ProviderAttempt(
            provider=name,
            ok=ok,
            message=message,
            latency_ms=round((time.monotonic() - started) * 1000, 2),
            attempted_at_ms=int(time.time() * 1000),
        )

    async def fetch(self) -> AssetEnvelope:
        """Return the first successful snapshot.

        Raises:
            AllProvidersFailedError: If every provider failed
        """
        outcome = await self.run()
        if isinstance(outcome, FetchErr):
            error = AllProvidersFailedError(outcome.reasons)
            logger.error("%s", error)
            raise error
        return AssetEnvelope(
            data=outcome.asset,
            provider=outcome.provider,
            fetched_at_ms=int(time.time() * 1000),
        )

    async def close(self) -> None:
        """Close every provider's HTTP client."""
        for provider in self.providers:
            await provider.close()


def build_default_chain(
    config: Optional[TrackerConfig] = None,
    *,
    fetcher: Optional[TimeoutBoundedFetcher] = None,
) -> ProviderChain:
    """Build the CoinGecko → CoinCap chain sharing one fetcher."""
    config = config or TrackerConfig.from_env()
    fetcher = fetcher or TimeoutBoundedFetcher(timeout_ms=config.fetch_timeout_ms)
    return ProviderChain(
        [
            CoinGeckoProvider(fetcher, base_url=config.coingecko_api_base),
            CoinCapProvider(fetcher, base_url=config.coincap_api_base),
        ]
    )


async def fetch_xrp_price(chain: Optional[ProviderChain] = None) -> AssetEnvelope:
    """Fetch the current XRP snapshot, CoinGecko first, then CoinCap.

    Args:
        chain: Chain to use. When omitted a default chain is built for this
            call and closed afterwards.

    Returns:
        AssetEnvelope whose ``data`` is the CanonicalAsset

    Raises:
        AllProvidersFailedError: If both providers failed
    """
    if chain is not None:
        return await chain.fetch()

    chain = build_default_chain()
    try:
        return await chain.fetch()
    finally:
        await chain.close()
