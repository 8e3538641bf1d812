"""Records shared across the store, the adapters and the transport."""

from chainmon.models._base import ChainMonBaseModel
from chainmon.models.chain_state import ChainState, StateUpdate, TimestampedChainState
from chainmon.models.ids import ChainId, NetworkType, SourceId
from chainmon.models.info import ChainInfo, SourceInfo

__all__ = [
    "ChainId",
    "ChainInfo",
    "ChainMonBaseModel",
    "ChainState",
    "NetworkType",
    "SourceId",
    "SourceInfo",
    "StateUpdate",
    "TimestampedChainState",
]
