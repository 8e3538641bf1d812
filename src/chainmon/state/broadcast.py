"""Fan-out of state updates to live subscribers.

Every subscriber gets its own bounded queue. Publishing appends to each
queue without awaiting; a queue that is full drops its oldest event, so a
slow subscriber can never hold up the publisher or other subscribers.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import AsyncIterator
from typing import Any, Generic, TypeVar

from chainmon._constants import DEFAULT_SUBSCRIBER_BUFFER
from chainmon.exceptions import SubscriptionClosedError

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class Subscription(Generic[T]):
    """One subscriber's view of the broadcast stream.

    Usage::

        with broadcaster.subscribe() as sub:
            async for event in sub:
                ...
    """

    def __init__(self, broadcaster: Broadcaster[T], capacity: int) -> None:
        self._broadcaster = broadcaster
        self._queue: deque[T] = deque(maxlen=capacity)
        self._ready = asyncio.Event()
        self._closed = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return len(self._queue)

    def _push(self, event: T) -> None:
        if len(self._queue) == self._queue.maxlen:
            if self.dropped == 0:
                _logger.debug("Subscriber lagging; dropping oldest events (capacity=%d)", self._queue.maxlen)
            self.dropped += 1
        self._queue.append(event)
        self._ready.set()

    def get_nowait(self) -> T | None:
        """Next queued event, or ``None`` if nothing is pending."""
        if not self._queue:
            return None
        return self._queue.popleft()

    async def get(self) -> T:
        """Wait for the next event.

        Raises :class:`SubscriptionClosedError` once the subscription is closed
        and everything queued before the close has been consumed.
        """
        while not self._queue:
            if self._closed:
                raise SubscriptionClosedError("subscription closed")
            self._ready.clear()
            await self._ready.wait()
        return self._queue.popleft()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._broadcaster.unsubscribe(self)
        self._ready.set()

    def __aiter__(self) -> AsyncIterator[T]:
        return self

    async def __anext__(self) -> T:
        try:
            return await self.get()
        except SubscriptionClosedError:
            raise StopAsyncIteration from None

    def __enter__(self) -> Subscription[T]:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


class Broadcaster(Generic[T]):
    """Multi-consumer broadcast channel with per-subscriber bounded buffers."""

    def __init__(self, capacity: int = DEFAULT_SUBSCRIBER_BUFFER) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._subscribers: list[Subscription[T]] = []

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> Subscription[T]:
        """Register a subscriber; it receives every event published from now on."""
        sub = Subscription(self, self._capacity)
        self._subscribers.append(sub)
        _logger.debug("Subscriber added (total=%d)", len(self._subscribers))
        return sub

    def unsubscribe(self, sub: Subscription[T]) -> None:
        try:
            self._subscribers.remove(sub)
        except ValueError:
            return
        _logger.debug("Subscriber removed (total=%d)", len(self._subscribers))

    def publish(self, event: T) -> int:
        """Queue *event* for every current subscriber.

        Returns how many subscribers it was queued for; ``0`` is not an error.
        """
        for sub in self._subscribers:
            sub._push(event)  # noqa: SLF001
        return len(self._subscribers)
