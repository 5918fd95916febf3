"""Tests for the refresh scheduler."""

from __future__ import annotations

import asyncio

import pytest

from core.config import TrackerConfig
from core.market_data.errors import AllProvidersFailedError
from core.refresh.scheduler import RefreshScheduler
from core.refresh.state import QueryState


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class ScriptedFetch:
    """Fetch function returning/raising scripted results in order; the last one repeats."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0
        self.gate: asyncio.Event | None = None

    async def __call__(self):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        result = self.results[min(self.calls, len(self.results)) - 1]
        if isinstance(result, Exception):
            raise result
        return result


def _failure() -> AllProvidersFailedError:
    return AllProvidersFailedError(["CoinGecko: down", "CoinCap: down"])


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def sleep(seconds: float) -> None:
        sleeps.append(seconds)
        await asyncio.sleep(0)

    return sleep


def _scheduler(fetch, clock, fake_sleep, **kwargs) -> RefreshScheduler:
    return RefreshScheduler(fetch, clock=clock, sleep=fake_sleep, **kwargs)


def test_initial_state_is_idle():
    scheduler = RefreshScheduler(ScriptedFetch())

    state = scheduler.state
    assert state == QueryState()
    assert state.status == "idle"
    assert not state.is_loading
    assert not state.is_error
    assert scheduler.is_stale()


def test_retry_delay_doubles_and_caps():
    scheduler = RefreshScheduler(ScriptedFetch())
    assert [scheduler.retry_delay_ms(attempt) for attempt in range(5)] == [1000, 2000, 4000, 5000, 5000]


def test_from_config():
    config = TrackerConfig(refetch_interval_s=60, stale_time_s=20, retry=3)
    scheduler = RefreshScheduler.from_config(ScriptedFetch(), config)

    assert scheduler.refetch_interval_s == 60
    assert scheduler.stale_time_s == 20
    assert scheduler.retry == 3


@pytest.mark.asyncio
async def test_successful_refetch(sample_envelope, clock, fake_sleep):
    scheduler = _scheduler(ScriptedFetch(sample_envelope), clock, fake_sleep)

    state = await scheduler.refetch()

    assert state.status == "success"
    assert state.data == sample_envelope.data
    assert state.provider == "CoinGecko"
    assert state.data_updated_at == 1_700_000_000_000
    assert not state.is_fetching
    assert not state.is_error


@pytest.mark.asyncio
async def test_loading_flags_while_in_flight(sample_envelope, clock, fake_sleep):
    fetch = ScriptedFetch(sample_envelope)
    fetch.gate = asyncio.Event()
    scheduler = _scheduler(fetch, clock, fake_sleep)

    first = asyncio.create_task(scheduler.refetch())
    await asyncio.sleep(0)

    assert scheduler.state.status == "loading"
    assert scheduler.state.is_loading
    assert scheduler.is_fetching

    fetch.gate.set()
    await first

    # A refetch with data on screen is fetching but not "loading"
    fetch.gate = asyncio.Event()
    second = asyncio.create_task(scheduler.refetch())
    await asyncio.sleep(0)

    assert scheduler.state.is_fetching
    assert not scheduler.state.is_loading
    assert scheduler.state.data == sample_envelope.data

    fetch.gate.set()
    await second


@pytest.mark.asyncio
async def test_trigger_during_fetch_does_not_start_second_call(sample_envelope, clock, fake_sleep):
    fetch = ScriptedFetch(sample_envelope)
    fetch.gate = asyncio.Event()
    scheduler = _scheduler(fetch, clock, fake_sleep)

    background = asyncio.create_task(scheduler.refresh())
    await asyncio.sleep(0)
    manual = asyncio.create_task(scheduler.refetch())
    stale_check = asyncio.create_task(scheduler.revalidate_if_stale())
    await asyncio.sleep(0)

    assert fetch.calls == 1

    fetch.gate.set()
    results = await asyncio.gather(background, manual, stale_check)

    assert fetch.calls == 1
    assert all(state.data == sample_envelope.data for state in results)
    assert not scheduler.is_fetching


@pytest.mark.asyncio
async def test_background_retries_keep_last_good_value(sample_envelope, clock, fake_sleep, sleeps):
    fetch = ScriptedFetch(sample_envelope, _failure(), _failure(), _failure())
    scheduler = _scheduler(fetch, clock, fake_sleep)

    await scheduler.refresh()
    good_updated_at = scheduler.state.data_updated_at
    clock.now += 30

    state = await scheduler.refresh()

    assert fetch.calls == 4  # 1 success + 1 attempt + 2 retries
    assert sleeps == [1.0, 2.0]
    assert state.data == sample_envelope.data
    assert state.data_updated_at == good_updated_at
    assert state.is_error
    assert state.status == "error"
    assert isinstance(state.error, AllProvidersFailedError)
    assert state.failure_count == 3
    assert not state.is_fetching


@pytest.mark.asyncio
async def test_background_retry_recovers(sample_envelope, clock, fake_sleep, sleeps):
    fetch = ScriptedFetch(_failure(), sample_envelope)
    scheduler = _scheduler(fetch, clock, fake_sleep)

    state = await scheduler.refresh()

    assert fetch.calls == 2
    assert sleeps == [1.0]
    assert state.status == "success"
    assert state.failure_count == 0
    assert not state.is_error


@pytest.mark.asyncio
async def test_failure_without_previous_data(clock, fake_sleep):
    scheduler = _scheduler(ScriptedFetch(_failure()), clock, fake_sleep)

    state = await scheduler.refresh()

    assert state.data is None
    assert state.status == "error"
    assert state.is_error
    assert state.error_message.startswith("All APIs failed")
    assert state.error_updated_at == 1_700_000_000_000


@pytest.mark.asyncio
async def test_manual_refetch_is_single_attempt(clock, fake_sleep, sleeps):
    fetch = ScriptedFetch(_failure())
    scheduler = _scheduler(fetch, clock, fake_sleep)

    state = await scheduler.refetch()

    assert fetch.calls == 1
    assert sleeps == []
    assert state.is_error
    assert state.failure_count == 1


@pytest.mark.asyncio
async def test_success_clears_previous_error(sample_envelope, clock, fake_sleep):
    fetch = ScriptedFetch(_failure(), sample_envelope)
    scheduler = _scheduler(fetch, clock, fake_sleep)

    await scheduler.refetch()
    assert scheduler.state.is_error

    state = await scheduler.refetch()

    assert state.status == "success"
    assert state.error is None
    assert not state.is_error


@pytest.mark.asyncio
async def test_revalidate_only_when_stale(sample_envelope, clock, fake_sleep):
    fetch = ScriptedFetch(sample_envelope)
    scheduler = _scheduler(fetch, clock, fake_sleep)

    await scheduler.revalidate_if_stale()
    assert fetch.calls == 1

    clock.now += 15  # exactly at the window edge is still fresh
    await scheduler.revalidate_if_stale()
    assert fetch.calls == 1

    clock.now += 1
    assert scheduler.is_stale()
    await scheduler.revalidate_if_stale()
    assert fetch.calls == 2


@pytest.mark.asyncio
async def test_listeners_see_every_transition(sample_envelope, clock, fake_sleep):
    scheduler = _scheduler(ScriptedFetch(sample_envelope), clock, fake_sleep)
    statuses: list[str] = []

    def broken_listener(state: QueryState) -> None:
        raise RuntimeError("render failed")

    scheduler.subscribe(broken_listener)
    unsubscribe = scheduler.subscribe(lambda state: statuses.append(state.status))

    await scheduler.refetch()
    unsubscribe()
    await scheduler.refetch()

    assert statuses == ["loading", "success"]
    assert scheduler.state.status == "success"


@pytest.mark.asyncio
async def test_poll_loop_fetches_on_interval(sample_envelope, clock, fake_sleep, sleeps):
    fetch = ScriptedFetch(sample_envelope)
    scheduler = _scheduler(fetch, clock, fake_sleep, refetch_interval_s=30.0)

    scheduler.start()
    scheduler.start()  # second start is a no-op
    for _ in range(50):
        if fetch.calls >= 3:
            break
        await asyncio.sleep(0)

    await scheduler.stop()

    assert fetch.calls >= 3
    assert not scheduler.is_polling
    assert set(sleeps) == {30.0}
    assert scheduler.state.data == sample_envelope.data


@pytest.mark.asyncio
async def test_stop_cancels_in_flight_fetch(clock, fake_sleep):
    fetch = ScriptedFetch(_failure())
    fetch.gate = asyncio.Event()
    scheduler = _scheduler(fetch, clock, fake_sleep)

    scheduler.start()
    for _ in range(10):
        if fetch.calls:
            break
        await asyncio.sleep(0)
    assert scheduler.is_fetching

    await scheduler.stop()

    assert not scheduler.is_fetching
    assert not scheduler.state.is_fetching
    assert scheduler.state.status == "idle"
