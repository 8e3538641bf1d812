"""Static catalog of chains and sources.

Identifiers are plain string enums; everything else about a chain or a
source lives in a data table keyed by identifier. Adding a chain is a
data-only change: add an enum member and a :class:`ChainRecord`.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass

from chainmon.exceptions import UnknownChainError
from chainmon.models.ids import ChainId, NetworkType, SourceId
from chainmon.models.info import ChainInfo, SourceInfo

__all__ = [
    "CHAINS",
    "SOURCES",
    "ActiveCatalog",
    "ChainId",
    "ChainRecord",
    "NetworkType",
    "SourceId",
    "SourceRecord",
    "block_time_secs",
    "chain_from_ticker",
    "chain_info",
    "full_name",
    "network_type",
    "require_chain_from_ticker",
    "short_name",
    "source_info",
    "ticker",
]


@dataclass(frozen=True, slots=True)
class ChainRecord:
    """Display metadata for one chain."""

    short_name: str
    full_name: str
    ticker: str
    block_time_secs: int
    network_type: NetworkType


@dataclass(frozen=True, slots=True)
class SourceRecord:
    """Display metadata for one source."""

    short_name: str
    full_name: str
    url: str


_MAIN = NetworkType.MAINNET
_TEST = NetworkType.TESTNET

CHAINS: dict[ChainId, ChainRecord] = {
    ChainId.BITCOIN: ChainRecord("Bitcoin", "Bitcoin Mainnet", "BTC", 600, _MAIN),
    ChainId.BITCOIN_TESTNET: ChainRecord("Bitcoin Testnet", "Bitcoin Testnet", "tBTC", 600, _TEST),
    ChainId.BITCOIN_SIGNET: ChainRecord("Bitcoin Signet", "Bitcoin Signet", "sBTC", 600, NetworkType.SIGNET),
    ChainId.BITCOIN_CASH: ChainRecord("Bitcoin Cash", "Bitcoin Cash Mainnet", "BCH", 600, _MAIN),
    ChainId.BITCOIN_CASH_TESTNET: ChainRecord("Bitcoin Cash Testnet", "Bitcoin Cash Testnet", "tBCH", 600, _TEST),
    ChainId.BITCOIN_SV: ChainRecord("Bitcoin SV", "Bitcoin SV Mainnet", "BSV", 600, _MAIN),
    ChainId.BITCOIN_GOLD: ChainRecord("Bitcoin Gold", "Bitcoin Gold Mainnet", "BTG", 600, _MAIN),
    ChainId.ETHEREUM: ChainRecord("Ethereum", "Ethereum Mainnet", "ETH", 12, _MAIN),
    ChainId.ETHEREUM_GOERLI_TESTNET: ChainRecord("Ethereum Goerli", "Ethereum Goerli Testnet", "tETH", 12, _TEST),
    ChainId.ETHEREUM_CLASSIC: ChainRecord("Ethereum Classic", "Ethereum Classic Mainnet", "ETC", 13, _MAIN),
    ChainId.LITECOIN: ChainRecord("Litecoin", "Litecoin Mainnet", "LTC", 150, _MAIN),
    ChainId.LITECOIN_TESTNET: ChainRecord("Litecoin Testnet", "Litecoin Testnet", "tLTC", 150, _TEST),
    ChainId.DASH: ChainRecord("Dash", "Dash Mainnet", "DASH", 150, _MAIN),
    ChainId.DASH_TESTNET: ChainRecord("Dash Testnet", "Dash Testnet", "tDASH", 150, _TEST),
    ChainId.DOGE: ChainRecord("Dogecoin", "Dogecoin Mainnet", "DOGE", 60, _MAIN),
    ChainId.ZCASH: ChainRecord("Zcash", "Zcash Mainnet", "ZEC", 75, _MAIN),
    ChainId.ALGORAND: ChainRecord("Algorand", "Algorand Mainnet", "ALGO", 4, _MAIN),
    ChainId.AVALANCHE: ChainRecord("Avalanche", "Avalanche C-Chain", "AVAX", 2, _MAIN),
    ChainId.CASPER: ChainRecord("Casper", "Casper Mainnet", "CSPR", 32, _MAIN),
    ChainId.CELO: ChainRecord("Celo", "Celo Mainnet", "CELO", 5, _MAIN),
    ChainId.HEDERA_HASHGRAPH: ChainRecord("Hedera", "Hedera Hashgraph Mainnet", "HBAR", 5, _MAIN),
    ChainId.STACKS: ChainRecord("Stacks", "Stacks Mainnet", "STX", 600, _MAIN),
    ChainId.TEZOS: ChainRecord("Tezos", "Tezos Mainnet", "XTZ", 15, _MAIN),
}

SOURCES: dict[SourceId, SourceRecord] = {
    SourceId.BITGO: SourceRecord("BitGo", "BitGo", "https://www.bitgo.com"),
    SourceId.BLOCKCHAIN: SourceRecord("Blockchain", "Blockchain.com", "https://www.blockchain.com"),
    SourceId.BLOCKCHAIR: SourceRecord("Blockchair", "Blockchair", "https://blockchair.com"),
    SourceId.BLOCKCYPHER: SourceRecord("BlockCypher", "BlockCypher", "https://www.blockcypher.com"),
    SourceId.CHAIN_MONITOR: SourceRecord("ChainMon", "Chain Monitor (mirror)", ""),
    SourceId.MEMPOOL_SPACE: SourceRecord("Mempool", "mempool.space", "https://mempool.space"),
    SourceId.OTHER: SourceRecord("Other", "Single-chain explorers", ""),
}

_BY_TICKER: dict[str, ChainId] = {record.ticker: chain for chain, record in CHAINS.items()}


def _record(ident: ChainId | SourceId) -> ChainRecord | SourceRecord:
    if isinstance(ident, ChainId):
        return CHAINS[ident]
    return SOURCES[ident]


def full_name(ident: ChainId | SourceId) -> str:
    return _record(ident).full_name


def short_name(ident: ChainId | SourceId) -> str:
    return _record(ident).short_name


def ticker(chain: ChainId) -> str:
    return CHAINS[chain].ticker


def block_time_secs(chain: ChainId) -> int:
    """Estimated average seconds between blocks."""
    return CHAINS[chain].block_time_secs


def network_type(chain: ChainId) -> NetworkType:
    return CHAINS[chain].network_type


def chain_from_ticker(value: str) -> ChainId | None:
    """Map a ticker (``"BTC"``, ``"tBTC"``) back to its chain, or ``None``."""
    return _BY_TICKER.get(value)


def require_chain_from_ticker(value: str, *, source: str = "") -> ChainId:
    chain = chain_from_ticker(value)
    if chain is None:
        raise UnknownChainError(value, source=source)
    return chain


def chain_info(chain: ChainId) -> ChainInfo:
    record = CHAINS[chain]
    return ChainInfo(
        id=chain,
        short_name=record.short_name,
        full_name=record.full_name,
        ticker=record.ticker,
        block_time_secs=record.block_time_secs,
        network_type=record.network_type,
    )


def source_info(source: SourceId, *, url: str | None = None) -> SourceInfo:
    record = SOURCES[source]
    return SourceInfo(
        id=source,
        short_name=record.short_name,
        full_name=record.full_name,
        url=record.url if url is None else url,
    )


class ActiveCatalog:
    """Sources and chains actually in use, sorted by id.

    Populated once at startup from the enabled source adapters. Entries are
    never removed and registering the same id twice is a no-op.
    """

    def __init__(self) -> None:
        self._sources: list[SourceInfo] = []
        self._chains: list[ChainInfo] = []

    @property
    def sources(self) -> tuple[SourceInfo, ...]:
        return tuple(self._sources)

    @property
    def chains(self) -> tuple[ChainInfo, ...]:
        return tuple(self._chains)

    def add_source(self, source: SourceId, *, url: str | None = None) -> None:
        pos = bisect.bisect_left(self._sources, source, key=lambda info: info.id)
        if pos < len(self._sources) and self._sources[pos].id == source:
            return
        self._sources.insert(pos, source_info(source, url=url))

    def add_sources(self, sources: set[SourceId] | frozenset[SourceId]) -> None:
        for source in sources:
            self.add_source(source)

    def add_chain(self, chain: ChainId) -> None:
        pos = bisect.bisect_left(self._chains, chain, key=lambda info: info.id)
        if pos < len(self._chains) and self._chains[pos].id == chain:
            return
        self._chains.insert(pos, chain_info(chain))

    def add_chains(self, chains: set[ChainId] | frozenset[ChainId]) -> None:
        for chain in chains:
            self.add_chain(chain)
