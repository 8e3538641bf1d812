from __future__ import annotations

import logging

import pytest

from chainmon.models import ChainId, ChainState, SourceId, StateUpdate
from chainmon.state.store import AggregationStore


class _Clock:
    def __init__(self, now: int = 1_700_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


def _state(hash_: str, height: int) -> ChainState:
    return ChainState(hash=hash_, height=height)


@pytest.mark.asyncio
async def test_two_sources_best_height_and_behind() -> None:
    store = AggregationStore(clock=_Clock())

    await store.update(SourceId.BITGO, ChainId.BITCOIN, _state("a", 100))
    await store.update(SourceId.BLOCKCYPHER, ChainId.BITCOIN, _state("b", 101))

    assert await store.best_height(ChainId.BITCOIN) == 101
    assert await store.how_far_behind(SourceId.BITGO, ChainId.BITCOIN) == 1
    assert await store.how_far_behind(SourceId.BLOCKCYPHER, ChainId.BITCOIN) == 0

    snapshot = await store.snapshot_all()
    bitcoin = {(u.source, u.state.hash, u.state.height) for u in snapshot if u.chain == ChainId.BITCOIN}
    assert bitcoin == {(SourceId.BITGO, "a", 100), (SourceId.BLOCKCYPHER, "b", 101)}


@pytest.mark.asyncio
async def test_identical_update_is_unchanged_and_keeps_first_seen() -> None:
    clock = _Clock(1000)
    store = AggregationStore(clock=clock)

    assert await store.update(SourceId.OTHER, ChainId.TEZOS, _state("1", 5)) is True
    first = await store.get_state(SourceId.OTHER, ChainId.TEZOS)

    clock.now = 1060
    assert await store.update(SourceId.OTHER, ChainId.TEZOS, _state("1", 5)) is False
    second = await store.get_state(SourceId.OTHER, ChainId.TEZOS)

    assert first is not None and second is not None
    assert second.first_seen_ts == first.first_seen_ts == 1000
    assert first.last_checked_ts == 1000
    assert second.last_checked_ts == 1060


@pytest.mark.asyncio
async def test_hash_change_at_same_height_is_a_change_but_keeps_first_seen() -> None:
    clock = _Clock(1000)
    store = AggregationStore(clock=clock)
    await store.update(SourceId.BITGO, ChainId.ETHEREUM, _state("x", 50))

    clock.now = 1012
    assert await store.update(SourceId.BITGO, ChainId.ETHEREUM, _state("y", 50)) is True

    stored = await store.get_state(SourceId.BITGO, ChainId.ETHEREUM)
    assert stored is not None
    assert stored.hash == "y"
    assert stored.first_seen_ts == 1000
    assert stored.last_checked_ts == 1012


@pytest.mark.asyncio
async def test_new_height_resets_first_seen() -> None:
    clock = _Clock(1000)
    store = AggregationStore(clock=clock)
    await store.update(SourceId.BITGO, ChainId.ETHEREUM, _state("x", 50))

    clock.now = 1012
    await store.update(SourceId.BITGO, ChainId.ETHEREUM, _state("z", 51))

    stored = await store.get_state(SourceId.BITGO, ChainId.ETHEREUM)
    assert stored is not None
    assert stored.first_seen_ts == 1012


@pytest.mark.asyncio
async def test_best_height_never_decreases() -> None:
    store = AggregationStore(clock=_Clock())
    seen = []
    for height in (10, 12, 7, 12, 3, 15, 14):
        await store.update(SourceId.MEMPOOL_SPACE, ChainId.BITCOIN_TESTNET, _state(f"h{height}", height))
        seen.append(await store.best_height(ChainId.BITCOIN_TESTNET))

    assert seen == [10, 12, 12, 12, 12, 15, 15]


@pytest.mark.asyncio
async def test_how_far_behind_treats_missing_entry_as_zero() -> None:
    store = AggregationStore(clock=_Clock())
    assert await store.how_far_behind(SourceId.BITGO, ChainId.LITECOIN) == 0

    await store.update(SourceId.BLOCKCYPHER, ChainId.LITECOIN, _state("l", 2_500_000))
    assert await store.how_far_behind(SourceId.BITGO, ChainId.LITECOIN) == 2_500_000


@pytest.mark.asyncio
async def test_how_far_behind_is_zero_once_a_source_drops_back_and_catches_up() -> None:
    store = AggregationStore(clock=_Clock())
    await store.update(SourceId.BITGO, ChainId.BITCOIN, _state("a", 100))
    await store.update(SourceId.BITGO, ChainId.BITCOIN, _state("r", 98))

    # The best height stays at 100, the source is now two behind.
    assert await store.how_far_behind(SourceId.BITGO, ChainId.BITCOIN) == 2

    await store.update(SourceId.BITGO, ChainId.BITCOIN, _state("a", 100))
    assert await store.how_far_behind(SourceId.BITGO, ChainId.BITCOIN) == 0


@pytest.mark.asyncio
async def test_changes_are_published_in_order(caplog: pytest.LogCaptureFixture) -> None:
    store = AggregationStore(clock=_Clock())
    with store.subscribe() as sub:
        with caplog.at_level(logging.DEBUG, logger="chainmon.state.store"):
            await store.update(SourceId.BITGO, ChainId.BITCOIN, _state("a", 100))
            await store.update(SourceId.BITGO, ChainId.BITCOIN, _state("a", 100))
            await store.update(SourceId.BLOCKCYPHER, ChainId.BITCOIN, _state("b", 101))

        first = sub.get_nowait()
        second = sub.get_nowait()
        assert sub.get_nowait() is None

    assert isinstance(first, StateUpdate)
    assert (first.source, first.state.height) == (SourceId.BITGO, 100)
    assert second is not None
    assert (second.source, second.state.height) == (SourceId.BLOCKCYPHER, 101)
    assert "bitgo bitcoin update: 100" in caplog.text


@pytest.mark.asyncio
async def test_update_without_subscribers_is_fine() -> None:
    store = AggregationStore(clock=_Clock())
    assert store.broadcaster.subscriber_count == 0
    assert await store.update(SourceId.BITGO, ChainId.BITCOIN, _state("a", 1)) is True


@pytest.mark.asyncio
async def test_snapshot_best_states_keyed_by_ticker() -> None:
    store = AggregationStore(clock=_Clock())
    await store.update(SourceId.BITGO, ChainId.BITCOIN, _state("a", 100))
    await store.update(SourceId.BLOCKCYPHER, ChainId.BITCOIN, _state("b", 101))
    await store.update(SourceId.BITGO, ChainId.ETHEREUM, _state("e", 17_000_000))

    best = await store.snapshot_best_states()

    assert set(best) == {"BTC", "ETH"}
    assert best["BTC"].hash == "b"
    assert best["ETH"].height == 17_000_000


@pytest.mark.asyncio
async def test_snapshot_best_states_falls_back_when_best_source_dropped_back() -> None:
    store = AggregationStore(clock=_Clock())
    await store.update(SourceId.BITGO, ChainId.BITCOIN, _state("a", 100))
    await store.update(SourceId.BITGO, ChainId.BITCOIN, _state("r", 99))
    await store.update(SourceId.BLOCKCYPHER, ChainId.BITCOIN, _state("q", 98))

    best = await store.snapshot_best_states()

    assert best["BTC"].hash == "r"
    assert best["BTC"].height == 99


@pytest.mark.asyncio
async def test_recorder_view_exposes_update_and_behind_only() -> None:
    store = AggregationStore(clock=_Clock())
    recorder = store.recorder()

    assert await recorder.update(SourceId.OTHER, ChainId.STACKS, _state("s", 7)) is True
    assert await recorder.how_far_behind(SourceId.OTHER, ChainId.STACKS) == 0
    assert not hasattr(recorder, "snapshot_all")
