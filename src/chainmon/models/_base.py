"""Base model for chainmon records.

Every chainmon record inherits from :class:`ChainMonBaseModel` which
provides:

* ``frozen=True`` so records are replaced wholesale, never mutated.
* ``alias_generator=to_camel`` so snake_case fields serialise to the
  camelCase names used on the wire (``first_seen_ts`` → ``firstSeenTs``),
  while still accepting either spelling on input.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ChainMonBaseModel(BaseModel):
    """Base for chainmon records."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_wire(self) -> dict[str, Any]:
        """JSON-compatible dict using the camelCase wire names."""
        return self.model_dump(mode="json", by_alias=True)
