"""A catch-all of single-chain explorers and alikes."""

from __future__ import annotations

import math
import re
from collections.abc import Awaitable, Callable

from pydantic import BaseModel, Field

from chainmon._constants import HEDERA_GENESIS_TS, HEDERA_PSEUDO_BLOCK_SECS
from chainmon.exceptions import SourceParseError
from chainmon.models.chain_state import ChainState
from chainmon.models.ids import ChainId, SourceId
from chainmon.ratelimit import UpdateRateLimiter
from chainmon.sources._http import Fetcher, parse_payload
from chainmon.sources.base import sweep_chains
from chainmon.state.store import ChainUpdateRecorder

_HEX_HASH = re.compile(r"(0x[a-f0-9]+)")
_BLOCK_LINK_HASH = re.compile(r"/block/(0x[a-f0-9]+)")
_BLOCK_LINK_NUMBER = re.compile(r"/block/([0-9]+)\b")
_DATA_BLOCK_NUMBER = re.compile(r'data-block-number="([0-9]+)"')


class _AlgoBlock(BaseModel):
    hash: str = Field(min_length=1)
    round: int = Field(ge=0)


class _AlgoBlocks(BaseModel):
    blocks: list[_AlgoBlock] = Field(min_length=1)


class _StacksBlock(BaseModel):
    hash: str = Field(min_length=1)
    height: int = Field(ge=0)


class _StacksBlocks(BaseModel):
    results: list[_StacksBlock] = Field(min_length=1)


class _CasperBlock(BaseModel):
    block_hash: str = Field(alias="blockHash", min_length=1)
    height: int = Field(ge=0)


class _CasperBlocks(BaseModel):
    data: list[_CasperBlock] = Field(min_length=1)


class _EtcBlock(BaseModel):
    block_number: int = Field(ge=0)
    # The hash only comes embedded in a rendered HTML fragment.
    chain_block_html: str


class _EtcBlocks(BaseModel):
    blocks: list[_EtcBlock] = Field(min_length=1)


class _CeloBlocks(BaseModel):
    items: list[str] = Field(min_length=1)


class _HederaTx(BaseModel):
    consensus_timestamp: str
    transaction_hash: str = Field(min_length=1)


class _HederaTxs(BaseModel):
    transactions: list[_HederaTx] = Field(min_length=1)


class _TezosTip(BaseModel):
    block_hash: str = Field(min_length=1)
    height: int = Field(ge=0)


def _search(pattern: re.Pattern[str], text: str, what: str) -> str:
    match = pattern.search(text)
    if match is None:
        raise SourceParseError(f"didn't find {what}")
    return match.group(1)


class Other:
    ID = SourceId.OTHER

    def __init__(self, fetcher: Fetcher, *, rate_limiter: UpdateRateLimiter | None = None) -> None:
        self._fetcher = fetcher
        self._rate_limiter = rate_limiter if rate_limiter is not None else UpdateRateLimiter(self.ID)
        self._by_chain: dict[ChainId, Callable[[], Awaitable[ChainState]]] = {
            ChainId.ALGORAND: self.get_algorand_chain_state,
            ChainId.AVALANCHE: self.get_avalanche_chain_state,
            ChainId.CASPER: self.get_casper_chain_state,
            ChainId.CELO: self.get_celo_chain_state,
            ChainId.ETHEREUM_CLASSIC: self.get_etc_chain_state,
            ChainId.HEDERA_HASHGRAPH: self.get_hedera_chain_state,
            ChainId.STACKS: self.get_stacks_chain_state,
            ChainId.TEZOS: self.get_tezos_chain_state,
        }

    def supported_chains(self) -> frozenset[ChainId]:
        return frozenset(self._by_chain)

    def supported_sources(self) -> frozenset[SourceId]:
        return frozenset({self.ID})

    async def get_chain_state(self, chain: ChainId) -> ChainState:
        return await self._by_chain[chain]()

    async def get_algorand_chain_state(self) -> ChainState:
        value = await self._fetcher.get_json("https://indexer.algoexplorerapi.io/v2/blocks?latest=1")
        last_block = parse_payload(_AlgoBlocks, value, what="Algorand blocks").blocks[0]
        return ChainState(hash=last_block.hash, height=last_block.round)

    async def get_avalanche_chain_state(self) -> ChainState:
        body = await self._fetcher.get_text("https://snowtrace.io/blocks")
        return ChainState(
            hash=_search(_BLOCK_LINK_HASH, body, "block hash"),
            height=int(_search(_BLOCK_LINK_NUMBER, body, "block number")),
        )

    async def get_stacks_chain_state(self) -> ChainState:
        value = await self._fetcher.get_json(
            "https://stacks-node-api.stacks.co/extended/v1/block?limit=1&offset=0&unanchored=true"
        )
        last_block = parse_payload(_StacksBlocks, value, what="Stacks blocks").results[0]
        return ChainState(hash=last_block.hash, height=last_block.height)

    async def get_casper_chain_state(self) -> ChainState:
        value = await self._fetcher.get_json(
            "https://event-store-api-clarity-mainnet.make.services/blocks?page=1&limit=1&order_direction=DESC"
        )
        last_block = parse_payload(_CasperBlocks, value, what="Casper blocks").data[0]
        return ChainState(hash=last_block.block_hash, height=last_block.height)

    async def get_etc_chain_state(self) -> ChainState:
        value = await self._fetcher.get_json(
            "https://blockscout.com/etc/mainnet/chain-blocks",
            headers={"x-requested-with": "XMLHttpRequest"},
        )
        last_block = parse_payload(_EtcBlocks, value, what="Ethereum Classic blocks").blocks[0]
        return ChainState(
            hash=_search(_HEX_HASH, last_block.chain_block_html, "block hash"),
            height=last_block.block_number,
        )

    async def get_celo_chain_state(self) -> ChainState:
        value = await self._fetcher.get_json("https://explorer.celo.org/blocks?type=JSON")
        html = parse_payload(_CeloBlocks, value, what="Celo blocks").items[0]
        return ChainState(
            hash=_search(_HEX_HASH, html, "block hash"),
            height=int(_search(_DATA_BLOCK_NUMBER, html, "block number")),
        )

    async def get_hedera_chain_state(self) -> ChainState:
        value = await self._fetcher.get_json("https://mainnet-public.mirrornode.hedera.com/api/v1/transactions?limit=1")
        last_tx = parse_payload(_HederaTxs, value, what="Hedera transactions").transactions[0]
        raw_ts = last_tx.consensus_timestamp
        try:
            consensus_ts = float(raw_ts)
        except ValueError as exc:
            raise SourceParseError(f"invalid consensus_timestamp {raw_ts!r}") from exc
        if not math.isfinite(consensus_ts):
            raise SourceParseError(f"invalid consensus_timestamp {raw_ts!r}")
        height = int((consensus_ts - HEDERA_GENESIS_TS) / HEDERA_PSEUDO_BLOCK_SECS)
        if height < 0:
            raise SourceParseError(f"consensus_timestamp {raw_ts!r} predates genesis")
        return ChainState(hash=last_tx.transaction_hash, height=height)

    async def get_tezos_chain_state(self) -> ChainState:
        value = await self._fetcher.get_json("https://api.tzstats.com/explorer/tip")
        tip = parse_payload(_TezosTip, value, what="Tezos tip")
        return ChainState(hash=tip.block_hash, height=tip.height)

    async def check_updates(self, recorder: ChainUpdateRecorder) -> None:
        await sweep_chains(
            self.ID,
            self._by_chain,
            recorder=recorder,
            fetch_state=self.get_chain_state,
            rate_limiter=self._rate_limiter,
        )
