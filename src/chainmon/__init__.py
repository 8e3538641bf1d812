"""chainmon - Poll blockchain data providers and stream the best known chain tips."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("chainmon")
except PackageNotFoundError:
    __version__ = "0+local"
from chainmon.config import MonitorConfig
from chainmon.exceptions import (
    ChainMonConfigError,
    ChainMonError,
    SourceError,
    SourceFetchError,
    SourceParseError,
    SubscriptionClosedError,
    UnknownChainError,
)
from chainmon.models import (
    ChainId,
    ChainInfo,
    ChainState,
    NetworkType,
    SourceId,
    SourceInfo,
    StateUpdate,
    TimestampedChainState,
)
from chainmon.monitor import ChainMonitor
from chainmon.ratelimit import UpdateRateLimiter
from chainmon.scheduler import CycleReport, PollScheduler
from chainmon.state.broadcast import Broadcaster, Subscription
from chainmon.state.store import AggregationStore, ChainUpdateRecorder

__all__ = [
    "__version__",
    "AggregationStore",
    "Broadcaster",
    "ChainId",
    "ChainInfo",
    "ChainMonConfigError",
    "ChainMonError",
    "ChainMonitor",
    "ChainState",
    "ChainUpdateRecorder",
    "CycleReport",
    "MonitorConfig",
    "NetworkType",
    "PollScheduler",
    "SourceError",
    "SourceFetchError",
    "SourceId",
    "SourceInfo",
    "SourceParseError",
    "StateUpdate",
    "Subscription",
    "SubscriptionClosedError",
    "TimestampedChainState",
    "UnknownChainError",
    "UpdateRateLimiter",
]
