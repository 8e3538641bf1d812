"""Mirror of another chainmon instance's ``/state`` endpoint.

The upstream already throttles and merges its own sources, so this adapter
simply reads its best states once per cycle and records them as one
source. Tickers the local registry does not know are ignored.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from pydantic import ValidationError

from chainmon.exceptions import SourceError, UnknownChainError
from chainmon.models.chain_state import TimestampedChainState
from chainmon.models.ids import ChainId, SourceId
from chainmon.registry import CHAINS, require_chain_from_ticker, short_name
from chainmon.sources._http import Fetcher
from chainmon.state.store import ChainUpdateRecorder

_logger = logging.getLogger(__name__)


class Mirror:
    ID = SourceId.CHAIN_MONITOR

    def __init__(self, fetcher: Fetcher, url: str, *, chains: Iterable[ChainId] | None = None) -> None:
        self._fetcher = fetcher
        self._url = url.rstrip("/")
        self._chains = frozenset(chains) if chains is not None else frozenset(CHAINS)

    @property
    def url(self) -> str:
        return self._url

    def supported_chains(self) -> frozenset[ChainId]:
        return self._chains

    def supported_sources(self) -> frozenset[SourceId]:
        return frozenset({self.ID})

    async def get_states(self) -> dict[ChainId, TimestampedChainState]:
        """Upstream best states for the chains this mirror tracks."""
        value = await self._fetcher.get_json(f"{self._url}/state")
        if not isinstance(value, dict):
            _logger.warning("Unexpected /state payload from %s: %s", self._url, type(value).__name__)
            return {}

        states: dict[ChainId, TimestampedChainState] = {}
        for ticker, raw in value.items():
            try:
                chain = require_chain_from_ticker(ticker, source=self._url)
            except UnknownChainError as exc:
                _logger.debug("Unknown ticker %s ignored: %s", ticker, exc)
                continue
            if chain not in self._chains:
                _logger.debug("Untracked ticker %s ignored from %s", ticker, self._url)
                continue
            try:
                states[chain] = TimestampedChainState.model_validate(raw)
            except ValidationError:
                _logger.warning("Invalid state for %s from %s", ticker, self._url, exc_info=True)
        return states

    async def check_updates(self, recorder: ChainUpdateRecorder) -> None:
        try:
            states = await self.get_states()
        except SourceError as exc:
            _logger.warning("Could not get chain state from %s: %s", short_name(self.ID), exc)
            return

        for chain, state in states.items():
            await recorder.update(self.ID, chain, state.state)
