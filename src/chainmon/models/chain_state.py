"""Chain tip records.

A :class:`ChainState` is what a source reports; the store wraps it into a
:class:`TimestampedChainState` and publishes :class:`StateUpdate` events.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, model_validator

from chainmon.models._base import ChainMonBaseModel
from chainmon.models.ids import ChainId, SourceId


class ChainState(ChainMonBaseModel):
    """Latest observed tip of one chain as reported by one source."""

    hash: str
    height: int = Field(..., ge=0)

    def stamp(self, now: int) -> TimestampedChainState:
        """Wrap into a timestamped record first seen and last checked at *now*."""
        return TimestampedChainState(state=self, first_seen_ts=now, last_checked_ts=now)


class TimestampedChainState(ChainMonBaseModel):
    """A :class:`ChainState` plus when it was first seen and last re-checked.

    The wire form is flat::

        {"firstSeenTs": 1700000000, "lastCheckedTs": 1700000060, "hash": "00..", "height": 820000}

    and is accepted on input as well as the nested ``state`` form.
    """

    state: ChainState
    first_seen_ts: int = Field(..., ge=0)
    last_checked_ts: int = Field(..., ge=0)

    @model_validator(mode="before")
    @classmethod
    def _nest_flat_payload(cls, values: Any) -> Any:
        if not isinstance(values, dict) or "state" in values:
            return values
        working = dict(values)
        state = {key: working.pop(key) for key in ("hash", "height") if key in working}
        working["state"] = state
        return working

    @model_validator(mode="after")
    def _check_timestamps(self) -> TimestampedChainState:
        if self.first_seen_ts > self.last_checked_ts:
            raise ValueError(
                f"first_seen_ts ({self.first_seen_ts}) is after last_checked_ts ({self.last_checked_ts})"
            )
        return self

    @property
    def hash(self) -> str:
        return self.state.hash

    @property
    def height(self) -> int:
        return self.state.height

    def to_wire(self) -> dict[str, Any]:
        return {
            "firstSeenTs": self.first_seen_ts,
            "lastCheckedTs": self.last_checked_ts,
            "hash": self.state.hash,
            "height": self.state.height,
        }


class StateUpdate(ChainMonBaseModel):
    """A per-(source, chain) state, as published to subscribers."""

    source: SourceId
    chain: ChainId
    state: TimestampedChainState

    def to_wire(self) -> dict[str, Any]:
        return {"source": self.source.value, "chain": self.chain.value, **self.state.to_wire()}
