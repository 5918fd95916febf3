"""Background refresh scheduler for the XRP price cell.

Owns all timing: the periodic poll, the staleness window, and bounded
retry-with-backoff for background fetches. At most one fetch is in flight
at any time; triggers that arrive while one is running join it instead of
starting another, so results are applied strictly in trigger order.

Usage::

    chain = build_default_chain()
    scheduler = RefreshScheduler(chain.fetch)
    scheduler.start()            # poll every 30s
    ...
    state = await scheduler.refetch()   # pull-to-refresh
    ...
    await scheduler.stop()
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from dataclasses import replace
from typing import Awaitable, Callable, Optional

from core.config import TrackerConfig
from core.refresh.state import QueryState, QueryStatus
from core.types import AssetEnvelope

logger = logging.getLogger(__name__)

FetchFn = Callable[[], Awaitable[AssetEnvelope]]
Listener = Callable[[QueryState], None]


class RefreshScheduler:
    """Drives fetches and holds the last-known-good price.

    Args:
        fetch_fn: Coroutine function returning an AssetEnvelope, normally
            ``ProviderChain.fetch``
        refetch_interval_s: Seconds between background polls
        stale_time_s: Age after which data is eligible for revalidation
        retry: Extra attempts for background fetches
        retry_base_delay_ms: Backoff base; delay is ``base * 2**attempt``
        retry_max_delay_ms: Backoff cap
        clock: Wall clock in seconds (injectable for tests)
        sleep: Async sleep in seconds (injectable for tests)
    """

    def __init__(
        self,
        fetch_fn: FetchFn,
        *,
        refetch_interval_s: float = 30.0,
        stale_time_s: float = 15.0,
        retry: int = 2,
        retry_base_delay_ms: int = 1000,
        retry_max_delay_ms: int = 5000,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._fetch_fn = fetch_fn
        self.refetch_interval_s = refetch_interval_s
        self.stale_time_s = stale_time_s
        self.retry = retry
        self.retry_base_delay_ms = retry_base_delay_ms
        self.retry_max_delay_ms = retry_max_delay_ms
        self._clock = clock
        self._sleep = sleep

        self._state = QueryState()
        self._inflight: Optional[asyncio.Task] = None
        self._poll_task: Optional[asyncio.Task] = None
        self._listeners: list[Listener] = []

    @classmethod
    def from_config(cls, fetch_fn: FetchFn, config: TrackerConfig) -> "RefreshScheduler":
        return cls(
            fetch_fn,
            refetch_interval_s=config.refetch_interval_s,
            stale_time_s=config.stale_time_s,
            retry=config.retry,
            retry_base_delay_ms=config.retry_base_delay_ms,
            retry_max_delay_ms=config.retry_max_delay_ms,
        )

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def state(self) -> QueryState:
        return self._state

    @property
    def is_fetching(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with every new state. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def retry_delay_ms(self, attempt: int) -> int:
        """Backoff before retry ``attempt`` (0-based): 1000, 2000, 4000, 5000, ..."""
        return min(self.retry_base_delay_ms * (2**attempt), self.retry_max_delay_ms)

    def is_stale(self) -> bool:
        """True when there is no data or it is older than the staleness window."""
        if self._state.data is None:
            return True
        age_ms = self._now_ms() - self._state.data_updated_at
        return age_ms > self.stale_time_s * 1000

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    async def refetch(self) -> QueryState:
        """User-initiated refresh: one immediate attempt, no retries."""
        return await self._trigger(with_retry=False, source="manual")

    async def refresh(self) -> QueryState:
        """Background refresh with retry and exponential backoff."""
        return await self._trigger(with_retry=True, source="background")

    async def revalidate_if_stale(self) -> QueryState:
        """Background refresh only if the current data is stale."""
        if not self.is_stale():
            logger.debug("XRP price is fresh, skipping revalidation")
            return self._state
        return await self.refresh()

    # ------------------------------------------------------------------
    # Periodic polling
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the background poll loop (no-op if already running)."""
        if self.is_polling:
            return
        self._poll_task = asyncio.create_task(self._poll_loop())
        logger.info("XRP price polling started (every %.0fs)", self.refetch_interval_s)

    async def stop(self) -> None:
        """Stop polling and cancel any in-flight fetch (shutdown only)."""
        tasks = [task for task in (self._poll_task, self._inflight) if task is not None and not task.done()]
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._poll_task = None
        self._inflight = None
        if self._state.is_fetching:
            # Fetch task was cancelled before it started running
            self._set_state(replace(self._state, status=self._settled_status(), is_fetching=False))
        if tasks:
            logger.info("XRP price polling stopped")

    async def _poll_loop(self) -> None:
        await self.revalidate_if_stale()
        while True:
            await self._sleep(self.refetch_interval_s)
            await self.refresh()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _settled_status(self) -> QueryStatus:
        if self._state.error is not None:
            return "error"
        if self._state.data is not None:
            return "success"
        return "idle"

    def _set_state(self, state: QueryState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("QueryState listener failed")

    async def _trigger(self, *, with_retry: bool, source: str) -> QueryState:
        task = self._inflight
        if task is None or task.done():
            logger.debug("Starting %s XRP price fetch", source)
            self._set_state(replace(self._state, status="loading", is_fetching=True))
            task = asyncio.create_task(self._run(with_retry))
            self._inflight = task
        else:
            logger.debug("XRP price fetch already in flight, %s trigger joins it", source)

        # A cancelled caller must not cancel the shared fetch
        await asyncio.shield(task)
        return self._state

    async def _run(self, with_retry: bool) -> None:
        attempts = self.retry + 1 if with_retry else 1
        last_error: Optional[Exception] = None

        try:
            for attempt in range(attempts):
                try:
                    envelope = await self._fetch_fn()
                except Exception as exc:
                    last_error = exc
                    if attempt + 1 >= attempts:
                        break
                    delay_ms = self.retry_delay_ms(attempt)
                    logger.warning(
                        "XRP price fetch failed (attempt %d/%d): %s. Retrying in %dms",
                        attempt + 1,
                        attempts,
                        exc,
                        delay_ms,
                    )
                    self._set_state(replace(self._state, failure_count=attempt + 1))
                    await self._sleep(delay_ms / 1000)
                else:
                    self._set_state(
                        QueryState(
                            data=envelope.data,
                            status="success",
                            data_updated_at=self._now_ms(),
                            provider=envelope.provider,
                        )
                    )
                    logger.info("XRP price updated from %s: %s", envelope.provider, envelope.data.price_usd)
                    return

            if self._state.data is not None:
                logger.error("XRP price fetch failed, keeping last known price: %s", last_error)
            else:
                logger.error("XRP price fetch failed with no cached price: %s", last_error)
            self._set_state(
                replace(
                    self._state,
                    error=last_error,
                    status="error",
                    is_fetching=False,
                    error_updated_at=self._now_ms(),
                    failure_count=attempts,
                )
            )
        except asyncio.CancelledError:
            self._set_state(replace(self._state, status=self._settled_status(), is_fetching=False))
            raise
        finally:
            if self._inflight is asyncio.current_task():
                self._inflight = None
