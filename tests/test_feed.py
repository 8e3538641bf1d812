from __future__ import annotations

import asyncio

import pytest

from chainmon.models import ChainId, ChainState, SourceId, StateUpdate
from chainmon.registry import ActiveCatalog
from chainmon.state.feed import InitMessage, SnapshotMessage, UpdateMessage, subscriber_feed
from chainmon.state.store import AggregationStore


def _catalog() -> ActiveCatalog:
    catalog = ActiveCatalog()
    catalog.add_sources(frozenset({SourceId.BITGO, SourceId.BLOCKCYPHER}))
    catalog.add_chains(frozenset({ChainId.BITCOIN}))
    return catalog


@pytest.mark.asyncio
async def test_init_then_snapshot_then_live_updates() -> None:
    store = AggregationStore(clock=lambda: 1000)
    await store.update(SourceId.BITGO, ChainId.BITCOIN, ChainState(hash="a", height=100))

    feed = subscriber_feed(store, _catalog())
    init = await anext(feed)
    snapshot = await anext(feed)

    assert isinstance(init, InitMessage)
    assert [info.id for info in init.sources] == [SourceId.BITGO, SourceId.BLOCKCYPHER]
    assert isinstance(snapshot, SnapshotMessage)
    assert [(u.source, u.state.height) for u in snapshot.updates] == [(SourceId.BITGO, 100)]

    await store.update(SourceId.BLOCKCYPHER, ChainId.BITCOIN, ChainState(hash="b", height=101))
    live = await asyncio.wait_for(anext(feed), timeout=1)

    assert isinstance(live, UpdateMessage)
    assert live.update.source == SourceId.BLOCKCYPHER
    assert live.update.state.height == 101

    await feed.aclose()
    assert store.broadcaster.subscriber_count == 0


@pytest.mark.asyncio
async def test_update_published_before_snapshot_is_not_lost() -> None:
    store = AggregationStore(clock=lambda: 1000)
    feed = subscriber_feed(store, _catalog())

    await anext(feed)  # init; the subscription is open from here on
    await store.update(SourceId.BITGO, ChainId.BITCOIN, ChainState(hash="a", height=100))
    snapshot = await anext(feed)
    live = await asyncio.wait_for(anext(feed), timeout=1)

    assert isinstance(snapshot, SnapshotMessage)
    assert len(snapshot.updates) == 1
    # Racing the snapshot means seeing it twice, never zero times.
    assert isinstance(live, UpdateMessage)
    assert live.update.state.hash == "a"
    await feed.aclose()


def test_wire_forms() -> None:
    stamped = ChainState(hash="h", height=5).stamp(10)
    update = StateUpdate(source=SourceId.OTHER, chain=ChainId.TEZOS, state=stamped)

    assert UpdateMessage(update=update).to_wire() == {
        "type": "update",
        "source": "other",
        "chain": "tezos",
        "firstSeenTs": 10,
        "lastCheckedTs": 10,
        "hash": "h",
        "height": 5,
    }
    assert SnapshotMessage(updates=(update,)).to_wire()["type"] == "snapshot"

    init = InitMessage(sources=_catalog().sources, chains=_catalog().chains).to_wire()
    assert init["type"] == "init"
    assert init["chains"][0]["ticker"] == "BTC"
    assert init["chains"][0]["blockTimeSecs"] == 600
    assert init["chains"][0]["networkType"] == "mainnet"
    assert init["sources"][0]["shortName"] == "BitGo"
