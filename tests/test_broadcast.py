from __future__ import annotations

import asyncio

import pytest

from chainmon.exceptions import SubscriptionClosedError
from chainmon.state.broadcast import Broadcaster


def test_publish_without_subscribers_returns_zero() -> None:
    broadcaster: Broadcaster[int] = Broadcaster()
    assert broadcaster.publish(1) == 0


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        Broadcaster(0)


def test_every_subscriber_gets_every_event() -> None:
    broadcaster: Broadcaster[str] = Broadcaster()
    first = broadcaster.subscribe()
    second = broadcaster.subscribe()

    assert broadcaster.publish("a") == 2
    assert broadcaster.publish("b") == 2

    assert [first.get_nowait(), first.get_nowait()] == ["a", "b"]
    assert [second.get_nowait(), second.get_nowait()] == ["a", "b"]


def test_full_queue_drops_oldest_and_counts() -> None:
    broadcaster: Broadcaster[int] = Broadcaster(capacity=3)
    sub = broadcaster.subscribe()
    for event in range(5):
        broadcaster.publish(event)

    assert sub.pending == 3
    assert sub.dropped == 2
    assert [sub.get_nowait() for _ in range(3)] == [2, 3, 4]
    assert sub.get_nowait() is None


def test_lagging_subscriber_does_not_affect_others() -> None:
    broadcaster: Broadcaster[int] = Broadcaster(capacity=2)
    slow = broadcaster.subscribe()
    fast = broadcaster.subscribe()

    for event in range(4):
        broadcaster.publish(event)
        assert fast.get_nowait() == event

    assert slow.dropped == 2
    assert fast.dropped == 0


def test_close_unsubscribes() -> None:
    broadcaster: Broadcaster[int] = Broadcaster()
    with broadcaster.subscribe() as sub:
        assert broadcaster.subscriber_count == 1
    assert sub.closed
    assert broadcaster.subscriber_count == 0
    assert broadcaster.publish(1) == 0


@pytest.mark.asyncio
async def test_get_waits_for_publish() -> None:
    broadcaster: Broadcaster[str] = Broadcaster()
    sub = broadcaster.subscribe()

    waiter = asyncio.create_task(sub.get())
    await asyncio.sleep(0)
    assert not waiter.done()

    broadcaster.publish("tip")
    assert await asyncio.wait_for(waiter, timeout=1) == "tip"


@pytest.mark.asyncio
async def test_iteration_drains_then_stops_after_close() -> None:
    broadcaster: Broadcaster[int] = Broadcaster()
    sub = broadcaster.subscribe()
    broadcaster.publish(1)
    broadcaster.publish(2)
    sub.close()

    assert [event async for event in sub] == [1, 2]
    with pytest.raises(SubscriptionClosedError):
        await sub.get()


@pytest.mark.asyncio
async def test_close_wakes_a_waiting_consumer() -> None:
    broadcaster: Broadcaster[int] = Broadcaster()
    sub = broadcaster.subscribe()

    async def consume() -> list[int]:
        return [event async for event in sub]

    consumer = asyncio.create_task(consume())
    await asyncio.sleep(0)
    broadcaster.publish(7)
    await asyncio.sleep(0)
    sub.close()

    assert await asyncio.wait_for(consumer, timeout=1) == [7]
