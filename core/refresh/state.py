from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from core.types import CanonicalAsset

QueryStatus = Literal["idle", "loading", "success", "error"]


@dataclass(frozen=True)
class QueryState:
    """Snapshot of the price cell read by the presentation layer.

    The scheduler replaces the whole snapshot on every transition, so a
    reader never sees a half-applied update. ``error`` is only cleared by a
    successful fetch; ``data`` is only replaced by one.
    """

    data: Optional[CanonicalAsset] = None
    error: Optional[Exception] = None
    status: QueryStatus = "idle"
    is_fetching: bool = False
    data_updated_at: int = 0  # epoch ms, 0 = never loaded
    error_updated_at: int = 0
    failure_count: int = 0
    provider: Optional[str] = None

    @property
    def is_loading(self) -> bool:
        """Fetching with nothing to show yet."""
        return self.is_fetching and self.data is None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def is_success(self) -> bool:
        return self.status == "success"

    @property
    def error_message(self) -> Optional[str]:
        if self.error is None:
            return None
        return str(self.error) or type(self.error).__name__
