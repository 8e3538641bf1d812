"""High-level monitor wiring the sources, the store and the poll loop."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, Sequence
from typing import Any

import aiohttp

from chainmon.config import MonitorConfig
from chainmon.exceptions import ChainMonError
from chainmon.models.chain_state import StateUpdate, TimestampedChainState
from chainmon.models.ids import SourceId
from chainmon.models.info import ChainInfo, SourceInfo
from chainmon.registry import ActiveCatalog
from chainmon.scheduler import CycleReport, PollScheduler
from chainmon.sources import Fetcher, JsonFetcher, Source, build_sources
from chainmon.state.broadcast import Broadcaster
from chainmon.state.feed import FeedMessage, subscriber_feed
from chainmon.state.store import AggregationStore

_logger = logging.getLogger(__name__)


class ChainMonitor:
    """Polls the configured sources and keeps the merged chain state.

    Usage::

        async with ChainMonitor(MonitorConfig.from_env()) as monitor:
            await monitor.run_forever()

    Parameters
    ----------
    config : MonitorConfig
        Monitor configuration.
    session : aiohttp.ClientSession or None
        Shared HTTP session. When omitted the monitor opens one on enter and
        closes it on exit.
    sources : sequence of Source or None
        Adapters to poll instead of the ones built from *config*. No HTTP
        session is opened for them.
    """

    def __init__(
        self,
        config: MonitorConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        sources: Sequence[Source] | None = None,
    ) -> None:
        self._config = config if config is not None else MonitorConfig()
        self._external_session = session is not None
        self._http_session = session
        self._explicit_sources = list(sources) if sources is not None else None
        self._store = AggregationStore(broadcaster=Broadcaster(self._config.subscriber_buffer))
        self._catalog = ActiveCatalog()
        self._scheduler: PollScheduler | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> ChainMonitor:
        if self._explicit_sources is not None:
            sources = self._explicit_sources
        else:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            fetcher: Fetcher = JsonFetcher(
                self._http_session,
                user_agent=self._config.user_agent,
                timeout=self._config.http_timeout,
            )
            sources = build_sources(self._config, fetcher)

        for source in sources:
            for source_id in source.supported_sources():
                url = self._config.mirror_url if source_id is SourceId.CHAIN_MONITOR else None
                self._catalog.add_source(source_id, url=url)
            self._catalog.add_chains(source.supported_chains())

        self._scheduler = PollScheduler(
            sources,
            self._store.recorder(),
            interval=self._config.poll_interval,
            cycle_timeout=self._config.cycle_timeout,
        )
        _logger.info(
            "Monitoring %d chains from %d sources",
            len(self._catalog.chains),
            len(self._catalog.sources),
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._scheduler is not None:
            self._scheduler.stop()
            self._scheduler = None
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    def _require_scheduler(self) -> PollScheduler:
        if self._scheduler is None:
            raise ChainMonError("Monitor not started. Use 'async with ChainMonitor(...) as monitor:'")
        return self._scheduler

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def config(self) -> MonitorConfig:
        return self._config

    @property
    def store(self) -> AggregationStore:
        return self._store

    @property
    def sources(self) -> tuple[SourceInfo, ...]:
        return self._catalog.sources

    @property
    def chains(self) -> tuple[ChainInfo, ...]:
        return self._catalog.chains

    async def get_all_states(self) -> list[StateUpdate]:
        """Every tracked (source, chain) state."""
        return await self._store.snapshot_all()

    async def best_states_by_ticker(self) -> dict[str, TimestampedChainState]:
        """One best state per chain, keyed by ticker."""
        return await self._store.snapshot_best_states()

    def subscribe(self) -> AsyncGenerator[FeedMessage, None]:
        """Feed for one subscriber: init, snapshot, then live updates.

        Close the returned generator (``aclose()``) to unsubscribe.
        """
        return subscriber_feed(self._store, self._catalog)

    # ------------------------------------------------------------------
    # Poll loop
    # ------------------------------------------------------------------

    async def run_cycle(self) -> CycleReport:
        return await self._require_scheduler().run_cycle()

    async def run_forever(self) -> None:
        await self._require_scheduler().run_forever()

    def stop(self) -> None:
        if self._scheduler is not None:
            self._scheduler.stop()
