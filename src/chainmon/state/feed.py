"""What a newly connected subscriber receives, in order.

1. :class:`InitMessage` with the registered sources and chains,
2. :class:`SnapshotMessage` with every tracked (source, chain) state,
3. one :class:`UpdateMessage` per change published afterwards.

The subscription is opened *before* the snapshot is read, so a change that
races the snapshot shows up twice at worst and is never lost.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any, Literal

from chainmon.models._base import ChainMonBaseModel
from chainmon.models.chain_state import StateUpdate
from chainmon.models.info import ChainInfo, SourceInfo
from chainmon.registry import ActiveCatalog
from chainmon.state.store import AggregationStore


class InitMessage(ChainMonBaseModel):
    type: Literal["init"] = "init"
    sources: tuple[SourceInfo, ...]
    chains: tuple[ChainInfo, ...]


class SnapshotMessage(ChainMonBaseModel):
    type: Literal["snapshot"] = "snapshot"
    updates: tuple[StateUpdate, ...]

    def to_wire(self) -> dict[str, Any]:
        return {"type": self.type, "updates": [update.to_wire() for update in self.updates]}


class UpdateMessage(ChainMonBaseModel):
    type: Literal["update"] = "update"
    update: StateUpdate

    def to_wire(self) -> dict[str, Any]:
        return {"type": self.type, **self.update.to_wire()}


FeedMessage = InitMessage | SnapshotMessage | UpdateMessage


async def subscriber_feed(store: AggregationStore, catalog: ActiveCatalog) -> AsyncGenerator[FeedMessage, None]:
    """Yield the init message, the snapshot, then live updates until closed.

    The subscription is released when the generator is closed (for example
    when the consumer's connection goes away and it stops iterating).
    """
    with store.subscribe() as sub:
        yield InitMessage(sources=catalog.sources, chains=catalog.chains)
        yield SnapshotMessage(updates=tuple(await store.snapshot_all()))
        async for update in sub:
            yield UpdateMessage(update=update)
