"""Descriptive records sent to subscribers on connect."""

from __future__ import annotations

from chainmon.models._base import ChainMonBaseModel
from chainmon.models.ids import ChainId, NetworkType, SourceId


class SourceInfo(ChainMonBaseModel):
    id: SourceId
    short_name: str
    full_name: str
    url: str = ""


class ChainInfo(ChainMonBaseModel):
    id: ChainId
    short_name: str
    full_name: str
    ticker: str
    block_time_secs: int
    network_type: NetworkType
