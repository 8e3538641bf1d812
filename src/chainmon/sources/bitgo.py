"""BitGo public block API (v2)."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, Field

from chainmon.models.chain_state import ChainState
from chainmon.models.ids import ChainId, SourceId
from chainmon.ratelimit import UpdateRateLimiter
from chainmon.sources._http import Fetcher, parse_payload
from chainmon.sources.base import sweep_chains
from chainmon.state.store import ChainUpdateRecorder


@dataclass(frozen=True, slots=True)
class _Endpoint:
    host: str
    coin: str


class _BlockLatestBody(BaseModel):
    id: str
    height: int = Field(ge=0)


class BitGo:
    ID = SourceId.BITGO

    _ENDPOINTS: dict[ChainId, _Endpoint] = {
        ChainId.BITCOIN: _Endpoint("bitgo.com", "btc"),
        ChainId.BITCOIN_TESTNET: _Endpoint("test.bitgo.com", "tbtc"),
        ChainId.ETHEREUM: _Endpoint("bitgo.com", "eth"),
        ChainId.ETHEREUM_GOERLI_TESTNET: _Endpoint("test.bitgo.com", "teth"),
        ChainId.BITCOIN_CASH: _Endpoint("bitgo.com", "bch"),
        ChainId.BITCOIN_CASH_TESTNET: _Endpoint("test.bitgo.com", "tbch"),
    }

    def __init__(self, fetcher: Fetcher, *, rate_limiter: UpdateRateLimiter | None = None) -> None:
        self._fetcher = fetcher
        self._rate_limiter = rate_limiter if rate_limiter is not None else UpdateRateLimiter(self.ID)

    def supported_chains(self) -> frozenset[ChainId]:
        return frozenset(self._ENDPOINTS)

    def supported_sources(self) -> frozenset[SourceId]:
        return frozenset({self.ID})

    async def get_chain_state(self, chain: ChainId) -> ChainState:
        endpoint = self._ENDPOINTS[chain]
        payload = await self._fetcher.get_json(f"https://{endpoint.host}/api/v2/{endpoint.coin}/public/block/latest")
        body = parse_payload(_BlockLatestBody, payload, what="BitGo latest block")
        return ChainState(hash=body.id, height=body.height)

    async def check_updates(self, recorder: ChainUpdateRecorder) -> None:
        await sweep_chains(
            self.ID,
            self._ENDPOINTS,
            recorder=recorder,
            fetch_state=self.get_chain_state,
            rate_limiter=self._rate_limiter,
        )
