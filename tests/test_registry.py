from __future__ import annotations

import pytest

from chainmon.exceptions import UnknownChainError
from chainmon.models import ChainId, NetworkType, SourceId
from chainmon.registry import (
    CHAINS,
    SOURCES,
    ActiveCatalog,
    block_time_secs,
    chain_from_ticker,
    full_name,
    network_type,
    require_chain_from_ticker,
    short_name,
    ticker,
)


def test_every_id_has_a_record() -> None:
    assert set(CHAINS) == set(ChainId)
    assert set(SOURCES) == set(SourceId)


def test_tickers_are_unique_and_round_trip() -> None:
    tickers = [ticker(chain) for chain in ChainId]
    assert len(tickers) == len(set(tickers))
    for chain in ChainId:
        assert chain_from_ticker(ticker(chain)) is chain


def test_lookups() -> None:
    assert ticker(ChainId.BITCOIN) == "BTC"
    assert ticker(ChainId.BITCOIN_SIGNET) == "sBTC"
    assert block_time_secs(ChainId.BITCOIN) == 600
    assert network_type(ChainId.BITCOIN_TESTNET) is NetworkType.TESTNET
    assert network_type(ChainId.BITCOIN_SIGNET) is NetworkType.SIGNET
    assert short_name(SourceId.MEMPOOL_SPACE) == "Mempool"
    assert full_name(ChainId.ETHEREUM) == "Ethereum Mainnet"


def test_unknown_ticker() -> None:
    assert chain_from_ticker("NOPE") is None
    with pytest.raises(UnknownChainError, match="NOPE"):
        require_chain_from_ticker("NOPE", source="mirror")


def test_catalog_is_sorted_and_deduplicated() -> None:
    catalog = ActiveCatalog()
    catalog.add_sources(frozenset({SourceId.OTHER, SourceId.BITGO}))
    catalog.add_source(SourceId.BITGO)
    catalog.add_source(SourceId.CHAIN_MONITOR, url="http://upstream:8080")
    catalog.add_chains(frozenset({ChainId.TEZOS, ChainId.BITCOIN}))
    catalog.add_chain(ChainId.ALGORAND)
    catalog.add_chain(ChainId.BITCOIN)

    assert [info.id for info in catalog.sources] == [SourceId.BITGO, SourceId.CHAIN_MONITOR, SourceId.OTHER]
    assert [info.id for info in catalog.chains] == [ChainId.ALGORAND, ChainId.BITCOIN, ChainId.TEZOS]
    assert catalog.sources[1].url == "http://upstream:8080"
    assert catalog.chains[1].ticker == "BTC"
