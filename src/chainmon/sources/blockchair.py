"""Blockchair homepage stats; one request covers all of its chains."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field

from chainmon.exceptions import SourceError, SourceParseError
from chainmon.models.chain_state import ChainState
from chainmon.models.ids import ChainId, SourceId
from chainmon.ratelimit import UpdateRateLimiter
from chainmon.registry import short_name
from chainmon.sources._http import Fetcher, parse_payload
from chainmon.sources.base import shuffled
from chainmon.state.store import ChainUpdateRecorder

_logger = logging.getLogger(__name__)

HOMEPAGE_URL = "https://api.blockchair.com/internal/homepage/en"


class _CoinData(BaseModel):
    best_block_height: int = Field(ge=0)
    best_block_hash: str


def _coin_data(payload: Any, key: str) -> Any:
    """Dig ``data.stats.data.<key>.data`` out of the homepage payload."""
    try:
        return payload["data"]["stats"]["data"][key]["data"]
    except (KeyError, TypeError) as exc:
        raise SourceParseError(f"missing stats for {key!r}") from exc


class Blockchair:
    ID = SourceId.BLOCKCHAIR

    _STATS_KEY: dict[ChainId, str] = {
        ChainId.BITCOIN: "bitcoin",
        ChainId.BITCOIN_CASH: "bitcoin-cash",
        ChainId.ETHEREUM: "ethereum",
    }

    def __init__(self, fetcher: Fetcher, *, rate_limiter: UpdateRateLimiter | None = None) -> None:
        self._fetcher = fetcher
        self._rate_limiter = rate_limiter if rate_limiter is not None else UpdateRateLimiter(self.ID)

    def supported_chains(self) -> frozenset[ChainId]:
        return frozenset(self._STATS_KEY)

    def supported_sources(self) -> frozenset[SourceId]:
        return frozenset({self.ID})

    @classmethod
    def parse_homepage(cls, payload: Any, chain: ChainId) -> ChainState:
        data = parse_payload(_CoinData, _coin_data(payload, cls._STATS_KEY[chain]), what="Blockchair coin stats")
        return ChainState(hash=data.best_block_hash, height=data.best_block_height)

    async def check_updates(self, recorder: ChainUpdateRecorder) -> None:
        # Every chain the limiter lets through is served by the same request.
        due = [chain for chain in shuffled(self._STATS_KEY) if await self._rate_limiter.should_check(chain, recorder)]
        if not due:
            return

        try:
            payload = await self._fetcher.get_json(HOMEPAGE_URL)
        except SourceError as exc:
            _logger.warning("Could not get chain state from %s: %s", short_name(self.ID), exc)
            return

        for chain in due:
            try:
                state = self.parse_homepage(payload, chain)
            except SourceError as exc:
                _logger.warning("Could not get chain state from %s for %s: %s", short_name(self.ID), short_name(chain), exc)
                continue
            await recorder.update(self.ID, chain, state)
