"""Error taxonomy for price retrieval.

Adapters raise these; the provider chain turns them into reason strings and
only ``AllProvidersFailedError`` travels past it.
"""

from __future__ import annotations

from typing import Sequence


class PriceFeedError(Exception):
    """Base exception for price retrieval errors."""


class FetchTimeoutError(PriceFeedError, TimeoutError):
    """The request deadline elapsed before a response arrived."""

    def __init__(self, url: str, timeout_ms: int) -> None:
        super().__init__(f"Request timed out after {timeout_ms}ms")
        self.url = url
        self.timeout_ms = timeout_ms


class NetworkError(PriceFeedError):
    """Transport-level failure (DNS, refused connection, reset)."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class HttpError(PriceFeedError):
    """Upstream answered with a non-2xx status."""

    def __init__(self, provider: str, status: int, status_text: str = "") -> None:
        super().__init__(f"{provider} API error: {status} {status_text}".rstrip())
        self.provider = provider
        self.status = status
        self.status_text = status_text


class ValidationError(PriceFeedError):
    """Response body does not have the expected shape."""


class AllProvidersFailedError(PriceFeedError):
    """Every provider in the chain failed; ``reasons`` keeps attempt order."""

    def __init__(self, reasons: Sequence[str]) -> None:
        self.reasons = tuple(reasons)
        super().__init__(f"All APIs failed: {', '.join(self.reasons)}")
