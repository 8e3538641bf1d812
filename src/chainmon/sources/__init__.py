"""Source adapters and the factory that builds the configured set."""

from __future__ import annotations

from collections.abc import Callable

from chainmon.config import MonitorConfig
from chainmon.models.ids import SourceId
from chainmon.ratelimit import UpdateRateLimiter
from chainmon.sources._http import Fetcher, JsonFetcher
from chainmon.sources.base import Source, source_name, sweep_chains
from chainmon.sources.bitgo import BitGo
from chainmon.sources.blockchain import Blockchain
from chainmon.sources.blockchair import Blockchair
from chainmon.sources.blockcypher import BlockCypher
from chainmon.sources.chainmonitor import Mirror
from chainmon.sources.mempoolspace import MempoolSpace
from chainmon.sources.other import Other

_DIRECT_FACTORIES: dict[SourceId, Callable[..., Source]] = {
    SourceId.BITGO: BitGo,
    SourceId.BLOCKCHAIN: Blockchain,
    SourceId.BLOCKCHAIR: Blockchair,
    SourceId.BLOCKCYPHER: BlockCypher,
    SourceId.MEMPOOL_SPACE: MempoolSpace,
    SourceId.OTHER: Other,
}


def build_sources(config: MonitorConfig, fetcher: Fetcher) -> list[Source]:
    """Instantiate the adapters *config* enables, each with its own limiter."""
    sources: list[Source] = []
    for source_id in config.sources:
        limiter = UpdateRateLimiter(
            source_id,
            periodic_check=config.periodic_check,
            min_interval=config.min_check_interval,
        )
        sources.append(_DIRECT_FACTORIES[source_id](fetcher, rate_limiter=limiter))
    if config.mirror_url:
        sources.append(Mirror(fetcher, config.mirror_url))
    return sources


__all__ = [
    "BitGo",
    "BlockCypher",
    "Blockchain",
    "Blockchair",
    "Fetcher",
    "JsonFetcher",
    "MempoolSpace",
    "Mirror",
    "Other",
    "Source",
    "build_sources",
    "source_name",
    "sweep_chains",
]
