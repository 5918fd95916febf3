"""Price provider interface.

Every upstream price source implements ``PriceProvider``. Subclasses supply
the request URL and the payload normalizer; the base class handles the HTTP
round trip, status check and JSON decoding.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from core.market_data.errors import HttpError, ValidationError
from core.market_data.fetcher import TimeoutBoundedFetcher
from core.types import CanonicalAsset

logger = logging.getLogger(__name__)


class PriceProvider(ABC):
    """Abstract base class for price source adapters."""

    name: str = "provider"

    def __init__(self, fetcher: TimeoutBoundedFetcher) -> None:
        self.fetcher = fetcher

    @abstractmethod
    def build_url(self) -> str:
        """Return the URL for a single snapshot request."""

    @abstractmethod
    def normalize(self, payload: Any) -> CanonicalAsset:
        """Map a decoded response body to a CanonicalAsset.

        Raises:
            ValidationError: If the payload is missing required data
        """

    async def fetch_asset(self) -> CanonicalAsset:
        """Fetch and normalize one asset snapshot.

        Raises:
            FetchTimeoutError: Deadline exceeded
            NetworkError: Transport failure
            HttpError: Non-2xx status
            ValidationError: Body is not JSON or has the wrong shape
        """
        logger.info("Fetching XRP price from %s API...", self.name)
        response = await self.fetcher.fetch(self.build_url())

        # Status is checked before the body is touched
        if not response.is_success:
            raise HttpError(self.name, response.status_code, response.reason_phrase)

        try:
            payload = response.json()
        except ValueError as exc:
            raise ValidationError(f"Invalid {self.name} response: body is not valid JSON") from exc

        asset = self.normalize(payload)
        logger.info(
            "Successfully fetched XRP data from %s: price=%s supply=%s market_cap=%s",
            self.name,
            asset.price_usd,
            asset.supply,
            asset.market_cap_usd,
        )
        return asset

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.fetcher.close()
