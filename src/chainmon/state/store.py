"""In-memory aggregation store.

This is the only component allowed to merge chain tips reported by
sources. It keeps the latest state per (source, chain) pair and the best
(highest) height ever seen per chain, and publishes visible changes to its
:class:`~chainmon.state.broadcast.Broadcaster`.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Protocol

from chainmon.models.chain_state import ChainState, StateUpdate, TimestampedChainState
from chainmon.models.ids import ChainId, SourceId
from chainmon.registry import ticker
from chainmon.state.broadcast import Broadcaster, Subscription
from chainmon.state.policy import blocks_behind, carry_over, is_visible_change, merge_best_height

_logger = logging.getLogger(__name__)


def _now_ts() -> int:
    """Current epoch timestamp in whole seconds."""
    return int(time.time())


class ChainUpdateRecorder(Protocol):
    """The two store operations source adapters are allowed to use."""

    async def update(self, source: SourceId, chain: ChainId, state: ChainState) -> bool: ...

    async def how_far_behind(self, source: SourceId, chain: ChainId) -> int: ...


class _RecorderView:
    """Narrow handle on a store; hides snapshots and subscriptions from adapters."""

    __slots__ = ("_store",)

    def __init__(self, store: AggregationStore) -> None:
        self._store = store

    async def update(self, source: SourceId, chain: ChainId, state: ChainState) -> bool:
        return await self._store.update(source, chain, state)

    async def how_far_behind(self, source: SourceId, chain: ChainId) -> int:
        return await self._store.how_far_behind(source, chain)


class AggregationStore:
    """Latest chain tips per (source, chain) plus the best height per chain.

    Both maps are guarded by one lock, held for the whole read-modify-write
    of an :meth:`update` and for the duration of every read.
    """

    def __init__(
        self,
        *,
        broadcaster: Broadcaster[StateUpdate] | None = None,
        clock: Callable[[], int] = _now_ts,
    ) -> None:
        self._broadcaster: Broadcaster[StateUpdate] = broadcaster if broadcaster is not None else Broadcaster()
        self._clock = clock
        self._lock = asyncio.Lock()
        self._states: dict[tuple[SourceId, ChainId], TimestampedChainState] = {}
        self._best_height: dict[ChainId, int] = {}

    @property
    def broadcaster(self) -> Broadcaster[StateUpdate]:
        return self._broadcaster

    def recorder(self) -> ChainUpdateRecorder:
        return _RecorderView(self)

    def subscribe(self) -> Subscription[StateUpdate]:
        """Subscribe to every visible change published from now on."""
        return self._broadcaster.subscribe()

    async def update(self, source: SourceId, chain: ChainId, state: ChainState) -> bool:
        """Record a tip reported by *source* for *chain*.

        Returns ``True`` when the stored hash/height for the pair changed,
        in which case the new state has been published to subscribers.
        """
        _logger.debug("%s %s update: %d", source, chain, state.height)
        incoming = state.stamp(self._clock())

        async with self._lock:
            self._best_height[chain] = merge_best_height(self._best_height.get(chain), state.height)

            key = (source, chain)
            previous = self._states.get(key)
            stored = carry_over(previous, incoming)
            self._states[key] = stored
            changed = is_visible_change(previous, stored)
            if changed:
                # Nobody listening is fine.
                self._broadcaster.publish(StateUpdate(source=source, chain=chain, state=stored))
        return changed

    async def how_far_behind(self, source: SourceId, chain: ChainId) -> int:
        """Blocks between the chain's best height and what *source* last reported.

        A pair that never reported counts as height ``0``, so a source that
        has not seen a chain the others know about is "behind" by the whole
        best height and gets checked right away.
        """
        async with self._lock:
            entry = self._states.get((source, chain))
            gap, clamped = blocks_behind(self._best_height.get(chain), entry.height if entry is not None else None)
        if clamped:
            _logger.warning("%s is ahead of the best height for %s; treating as not behind", source, chain)
        return gap

    async def best_height(self, chain: ChainId) -> int:
        async with self._lock:
            return self._best_height.get(chain, 0)

    async def get_state(self, source: SourceId, chain: ChainId) -> TimestampedChainState | None:
        async with self._lock:
            return self._states.get((source, chain))

    async def snapshot_best_states(self) -> dict[str, TimestampedChainState]:
        """Per chain ticker, one source's state at the chain's best height.

        Ties between sources at the same height go to whichever entry is found
        first. If every source has since reported a lower height (best height
        never goes down), the highest remaining entry is used.
        """
        async with self._lock:
            best: dict[str, TimestampedChainState] = {}
            for chain, height in self._best_height.items():
                candidates = [state for (_, state_chain), state in self._states.items() if state_chain == chain]
                match = next((state for state in candidates if state.height == height), None)
                if match is None:
                    _logger.debug("No source currently at best height %d for %s", height, chain)
                    match = max(candidates, key=lambda state: state.height)
                best[ticker(chain)] = match
            return best

    async def snapshot_all(self) -> list[StateUpdate]:
        """Every tracked (source, chain) state."""
        async with self._lock:
            return [
                StateUpdate(source=source, chain=chain, state=state) for (source, chain), state in self._states.items()
            ]
