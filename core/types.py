from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

# Canonical (wire) key for each CanonicalAsset attribute, in display order.
CANONICAL_KEYS: dict[str, str] = {
    "id": "id",
    "rank": "rank",
    "symbol": "symbol",
    "name": "name",
    "supply": "supply",
    "max_supply": "maxSupply",
    "market_cap_usd": "marketCapUsd",
    "volume_usd_24hr": "volumeUsd24Hr",
    "price_usd": "priceUsd",
    "change_percent_24hr": "changePercent24Hr",
    "vwap_24hr": "vwap24Hr",
}


@dataclass(frozen=True)
class CanonicalAsset:
    """Unified market snapshot every provider is normalized into.

    Numeric fields are decimal strings that parse with ``float()``.
    ``max_supply`` is the only field allowed to be ``None``.
    """

    id: str
    rank: str
    symbol: str
    name: str
    supply: str
    max_supply: Optional[str]
    market_cap_usd: str
    volume_usd_24hr: str
    price_usd: str
    change_percent_24hr: str
    vwap_24hr: str

    def to_dict(self) -> dict[str, Optional[str]]:
        """Serialize using the canonical camelCase keys."""
        return {wire: getattr(self, attr) for attr, wire in CANONICAL_KEYS.items()}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CanonicalAsset":
        """Build from a mapping keyed by canonical camelCase keys.

        No coercion is applied; use ``core.market_data.normalize`` for
        untrusted provider payloads.
        """
        return cls(**{attr: payload.get(wire) for attr, wire in CANONICAL_KEYS.items()})


@dataclass(frozen=True)
class AssetEnvelope:
    """Result of a successful provider-chain fetch."""

    data: CanonicalAsset
    provider: str
    fetched_at_ms: int


@dataclass(frozen=True)
class FetchOk:
    asset: CanonicalAsset
    provider: str


@dataclass(frozen=True)
class FetchErr:
    reasons: tuple[str, ...]  # "<Provider>: <cause>", in attempt order


FetchOutcome = Union[FetchOk, FetchErr]


@dataclass(frozen=True)
class ProviderAttempt:
    """Outcome of the most recent chain attempt against one provider."""

    provider: str
    ok: bool
    message: str
    latency_ms: float
    attempted_at_ms: int
