"""HTTP GET with a hard deadline.

The deadline runs concurrently with the request; whichever finishes first
wins and the loser is cancelled, so no timer or request outlives the call.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from core.market_data.errors import FetchTimeoutError, NetworkError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 10_000

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
    "Cache-Control": "no-cache",
}


class TimeoutBoundedFetcher:
    """Issues GET requests that fail with ``FetchTimeoutError`` past a deadline."""

    def __init__(
        self,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            timeout_ms: Default deadline per request in milliseconds
            client: Pre-built client (e.g. with a mock transport). When given,
                the caller keeps ownership and ``close()`` leaves it open.
        """
        self.timeout_ms = timeout_ms
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None:
            # The deadline is enforced here, not by httpx
            self._client = httpx.AsyncClient(headers=DEFAULT_HEADERS, timeout=None)
        return self._client

    async def fetch(self, url: str, timeout_ms: int | None = None) -> httpx.Response:
        """GET ``url`` and return the response, whatever its status.

        Args:
            url: Absolute URL
            timeout_ms: Override the default deadline

        Returns:
            The raw ``httpx.Response``

        Raises:
            FetchTimeoutError: If the deadline elapsed first
            NetworkError: If the transport failed before the deadline
        """
        deadline_ms = self.timeout_ms if timeout_ms is None else timeout_ms
        client = self._get_client()

        try:
            return await asyncio.wait_for(
                client.get(url, headers=DEFAULT_HEADERS),
                timeout=deadline_ms / 1000,
            )
        except asyncio.TimeoutError as exc:
            logger.debug("GET %s aborted after %dms", url, deadline_ms)
            raise FetchTimeoutError(url, deadline_ms) from exc
        except httpx.TimeoutException as exc:
            # Only reachable with an injected client that sets its own timeouts
            raise FetchTimeoutError(url, deadline_ms) from exc
        except httpx.TransportError as exc:
            raise NetworkError(f"Network request failed: {exc}", cause=exc) from exc

    async def close(self) -> None:
        """Close the HTTP client if this fetcher created it. Safe to call twice."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
