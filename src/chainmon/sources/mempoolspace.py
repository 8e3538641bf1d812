"""mempool.space explorer (Bitcoin mainnet, testnet and signet)."""

from __future__ import annotations

from pydantic import BaseModel, Field, RootModel

from chainmon.exceptions import SourceParseError
from chainmon.models.chain_state import ChainState
from chainmon.models.ids import ChainId, SourceId
from chainmon.ratelimit import UpdateRateLimiter
from chainmon.sources._http import Fetcher, parse_payload
from chainmon.sources.base import sweep_chains
from chainmon.state.store import ChainUpdateRecorder

BASE_URL = "https://mempool.space"


class _Block(BaseModel):
    id: str
    height: int = Field(ge=0)


class _Blocks(RootModel[list[_Block]]):
    pass


class MempoolSpace:
    ID = SourceId.MEMPOOL_SPACE

    _API_PREFIX: dict[ChainId, str] = {
        ChainId.BITCOIN: "",
        ChainId.BITCOIN_TESTNET: "testnet/",
        ChainId.BITCOIN_SIGNET: "signet/",
    }

    def __init__(self, fetcher: Fetcher, *, rate_limiter: UpdateRateLimiter | None = None) -> None:
        self._fetcher = fetcher
        self._rate_limiter = rate_limiter if rate_limiter is not None else UpdateRateLimiter(self.ID)

    def supported_chains(self) -> frozenset[ChainId]:
        return frozenset(self._API_PREFIX)

    def supported_sources(self) -> frozenset[SourceId]:
        return frozenset({self.ID})

    async def get_chain_state(self, chain: ChainId) -> ChainState:
        payload = await self._fetcher.get_json(f"{BASE_URL}/{self._API_PREFIX[chain]}api/blocks/")
        blocks = parse_payload(_Blocks, payload, what="mempool.space blocks").root
        if not blocks:
            raise SourceParseError("No blocks returned")
        return ChainState(hash=blocks[0].id, height=blocks[0].height)

    async def check_updates(self, recorder: ChainUpdateRecorder) -> None:
        await sweep_chains(
            self.ID,
            self._API_PREFIX,
            recorder=recorder,
            fetch_state=self.get_chain_state,
            rate_limiter=self._rate_limiter,
        )
