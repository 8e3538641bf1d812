"""BlockCypher chain endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field

from chainmon.models.chain_state import ChainState
from chainmon.models.ids import ChainId, SourceId
from chainmon.ratelimit import UpdateRateLimiter
from chainmon.sources._http import Fetcher, parse_payload
from chainmon.sources.base import sweep_chains
from chainmon.state.store import ChainUpdateRecorder

BASE_URL = "https://api.blockcypher.com/v1"


class _ChainBody(BaseModel):
    hash: str
    height: int = Field(ge=0)


class BlockCypher:
    ID = SourceId.BLOCKCYPHER

    _COIN_SYMBOL: dict[ChainId, str] = {
        ChainId.BITCOIN: "btc/main",
        ChainId.LITECOIN: "ltc/main",
        ChainId.DASH: "dash/main",
        ChainId.DOGE: "doge/main",
        ChainId.BITCOIN_TESTNET: "btc/test3",
    }

    def __init__(self, fetcher: Fetcher, *, rate_limiter: UpdateRateLimiter | None = None) -> None:
        self._fetcher = fetcher
        self._rate_limiter = rate_limiter if rate_limiter is not None else UpdateRateLimiter(self.ID)

    def supported_chains(self) -> frozenset[ChainId]:
        return frozenset(self._COIN_SYMBOL)

    def supported_sources(self) -> frozenset[SourceId]:
        return frozenset({self.ID})

    async def get_chain_state(self, chain: ChainId) -> ChainState:
        payload = await self._fetcher.get_json(f"{BASE_URL}/{self._COIN_SYMBOL[chain]}")
        body = parse_payload(_ChainBody, payload, what="BlockCypher chain")
        return ChainState(hash=body.hash, height=body.height)

    async def check_updates(self, recorder: ChainUpdateRecorder) -> None:
        await sweep_chains(
            self.ID,
            self._COIN_SYMBOL,
            recorder=recorder,
            fetch_state=self.get_chain_state,
            rate_limiter=self._rate_limiter,
        )
