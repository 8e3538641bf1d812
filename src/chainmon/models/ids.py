"""Chain and source identifiers."""

from __future__ import annotations

from enum import StrEnum


class NetworkType(StrEnum):
    MAINNET = "mainnet"
    TESTNET = "testnet"
    SIGNET = "signet"


class ChainId(StrEnum):
    BITCOIN = "bitcoin"
    BITCOIN_TESTNET = "bitcoin-testnet"
    BITCOIN_SIGNET = "bitcoin-signet"
    BITCOIN_CASH = "bitcoin-cash"
    BITCOIN_CASH_TESTNET = "bitcoin-cash-testnet"
    BITCOIN_SV = "bitcoin-sv"
    BITCOIN_GOLD = "bitcoin-gold"
    ETHEREUM = "ethereum"
    ETHEREUM_GOERLI_TESTNET = "ethereum-goerli-testnet"
    ETHEREUM_CLASSIC = "ethereum-classic"
    LITECOIN = "litecoin"
    LITECOIN_TESTNET = "litecoin-testnet"
    DASH = "dash"
    DASH_TESTNET = "dash-testnet"
    DOGE = "doge"
    ZCASH = "zcash"
    ALGORAND = "algorand"
    AVALANCHE = "avalanche"
    CASPER = "casper"
    CELO = "celo"
    HEDERA_HASHGRAPH = "hedera-hashgraph"
    STACKS = "stacks"
    TEZOS = "tezos"


class SourceId(StrEnum):
    BITGO = "bitgo"
    BLOCKCHAIN = "blockchain"
    BLOCKCHAIR = "blockchair"
    BLOCKCYPHER = "blockcypher"
    CHAIN_MONITOR = "chainmonitor"
    MEMPOOL_SPACE = "mempool-space"
    OTHER = "other"
