from __future__ import annotations

import asyncio
import logging

import pytest

from chainmon.models import ChainId, ChainState, SourceId
from chainmon.scheduler import PollScheduler
from chainmon.state.store import AggregationStore, ChainUpdateRecorder


class _QuickSource:
    def __init__(self, source: SourceId, chain: ChainId, height: int) -> None:
        self._source = source
        self._chain = chain
        self._height = height

    def supported_chains(self) -> frozenset[ChainId]:
        return frozenset({self._chain})

    def supported_sources(self) -> frozenset[SourceId]:
        return frozenset({self._source})

    async def check_updates(self, recorder: ChainUpdateRecorder) -> None:
        await recorder.update(self._source, self._chain, ChainState(hash=f"h{self._height}", height=self._height))


class _HangingSource:
    def __init__(self) -> None:
        self.cancelled = False

    def supported_chains(self) -> frozenset[ChainId]:
        return frozenset({ChainId.TEZOS})

    def supported_sources(self) -> frozenset[SourceId]:
        return frozenset({SourceId.OTHER})

    async def check_updates(self, recorder: ChainUpdateRecorder) -> None:
        try:
            await asyncio.sleep(3600)
        except asyncio.CancelledError:
            self.cancelled = True
            raise


class _BrokenSource:
    def supported_chains(self) -> frozenset[ChainId]:
        return frozenset({ChainId.BITCOIN})

    def supported_sources(self) -> frozenset[SourceId]:
        return frozenset({SourceId.BLOCKCHAIN})

    async def check_updates(self, recorder: ChainUpdateRecorder) -> None:
        raise RuntimeError("provider exploded")


@pytest.mark.asyncio
async def test_hung_source_does_not_block_others(caplog: pytest.LogCaptureFixture) -> None:
    store = AggregationStore()
    hanging = _HangingSource()
    scheduler = PollScheduler(
        [_QuickSource(SourceId.BITGO, ChainId.BITCOIN, 100), hanging],
        store.recorder(),
        cycle_timeout=0.05,
    )

    with caplog.at_level(logging.WARNING, logger="chainmon.scheduler"):
        report = await asyncio.wait_for(scheduler.run_cycle(), timeout=2)
    await asyncio.sleep(0.01)

    assert report.completed == ["BitGo"]
    assert report.timed_out == ["Other"]
    assert hanging.cancelled
    assert await store.best_height(ChainId.BITCOIN) == 100
    assert "Timeout waiting for updates" in caplog.text
    assert "Other" in caplog.text


@pytest.mark.asyncio
async def test_failing_source_is_logged_and_cycle_completes(caplog: pytest.LogCaptureFixture) -> None:
    store = AggregationStore()
    scheduler = PollScheduler(
        [_BrokenSource(), _QuickSource(SourceId.BLOCKCYPHER, ChainId.LITECOIN, 7)],
        store.recorder(),
        cycle_timeout=1,
    )

    with caplog.at_level(logging.ERROR, logger="chainmon.scheduler"):
        report = await scheduler.run_cycle()

    assert report.failed == ["Blockchain"]
    assert report.completed == ["BlockCypher"]
    assert "provider exploded" in caplog.text
    assert await store.best_height(ChainId.LITECOIN) == 7
    assert scheduler.cycles == 1


@pytest.mark.asyncio
async def test_run_forever_sleeps_between_cycles_and_stops() -> None:
    store = AggregationStore()
    scheduler = PollScheduler(
        [_QuickSource(SourceId.BITGO, ChainId.BITCOIN, 1)],
        store.recorder(),
        interval=0.01,
        cycle_timeout=1,
    )

    runner = asyncio.create_task(scheduler.run_forever())
    while scheduler.cycles < 3:
        await asyncio.sleep(0.01)
    scheduler.stop()
    await asyncio.wait_for(runner, timeout=1)

    assert scheduler.cycles >= 3


@pytest.mark.asyncio
async def test_stop_before_run_forever_returns_without_cycling() -> None:
    store = AggregationStore()
    scheduler = PollScheduler([_QuickSource(SourceId.BITGO, ChainId.BITCOIN, 1)], store.recorder(), interval=60)

    scheduler.stop()
    await asyncio.wait_for(scheduler.run_forever(), timeout=1)

    assert scheduler.cycles == 0
    assert await store.snapshot_all() == []


@pytest.mark.asyncio
async def test_empty_cycle() -> None:
    scheduler = PollScheduler([], AggregationStore().recorder())
    report = await scheduler.run_cycle()
    assert (report.completed, report.failed, report.timed_out) == ([], [], [])
