"""Blockchain.com APIs.

UTXO chains go through the haskoin-store "best block" endpoint; Ethereum
uses the v2 block header listing, which reports the number as a string.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from chainmon.exceptions import SourceParseError
from chainmon.models.chain_state import ChainState
from chainmon.models.ids import ChainId, SourceId
from chainmon.ratelimit import UpdateRateLimiter
from chainmon.sources._http import Fetcher, parse_payload
from chainmon.sources.base import sweep_chains
from chainmon.state.store import ChainUpdateRecorder

BASE_URL = "https://api.blockchain.info"


class _BestBlockBody(BaseModel):
    hash: str
    height: int = Field(ge=0)


class _BlockHeader(BaseModel):
    hash: str
    # Sent as a decimal string; lax mode coerces it.
    number: int = Field(ge=0)


class _BlockHeadersBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    block_headers: list[_BlockHeader]


class Blockchain:
    ID = SourceId.BLOCKCHAIN

    _COIN_SYMBOL: dict[ChainId, str] = {
        ChainId.BITCOIN: "btc",
        ChainId.BITCOIN_CASH: "bch",
        ChainId.ETHEREUM: "eth",
        ChainId.BITCOIN_TESTNET: "btc-testnet",
        ChainId.BITCOIN_CASH_TESTNET: "bch-testnet",
    }

    def __init__(self, fetcher: Fetcher, *, rate_limiter: UpdateRateLimiter | None = None) -> None:
        self._fetcher = fetcher
        self._rate_limiter = rate_limiter if rate_limiter is not None else UpdateRateLimiter(self.ID)

    def supported_chains(self) -> frozenset[ChainId]:
        return frozenset(self._COIN_SYMBOL)

    def supported_sources(self) -> frozenset[SourceId]:
        return frozenset({self.ID})

    async def _get_best_block(self, symbol: str) -> ChainState:
        payload = await self._fetcher.get_json(f"{BASE_URL}/haskoin-store/{symbol}/block/best?notx=true")
        body = parse_payload(_BestBlockBody, payload, what="Blockchain best block")
        return ChainState(hash=body.hash, height=body.height)

    async def _get_latest_header(self, symbol: str) -> ChainState:
        payload = await self._fetcher.get_json(f"{BASE_URL}/v2/{symbol}/data/blocks?size=1")
        body = parse_payload(_BlockHeadersBody, payload, what="Blockchain block headers")
        if len(body.block_headers) != 1:
            raise SourceParseError(f"Wrong size of blockHeaders in response: {len(body.block_headers)}")
        header = body.block_headers[0]
        return ChainState(hash=header.hash, height=header.number)

    async def get_chain_state(self, chain: ChainId) -> ChainState:
        symbol = self._COIN_SYMBOL[chain]
        if chain == ChainId.ETHEREUM:
            return await self._get_latest_header(symbol)
        return await self._get_best_block(symbol)

    async def check_updates(self, recorder: ChainUpdateRecorder) -> None:
        await sweep_chains(
            self.ID,
            self._COIN_SYMBOL,
            recorder=recorder,
            fetch_state=self.get_chain_state,
            rate_limiter=self._rate_limiter,
        )
