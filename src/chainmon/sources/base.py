"""The uniform capability every source adapter provides.

Adapters are not subclasses of anything: any object with
``supported_chains()``, ``supported_sources()`` and an async
``check_updates(recorder)`` is a :class:`Source`.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Awaitable, Callable, Iterable
from typing import Protocol

from chainmon.exceptions import SourceError
from chainmon.models.chain_state import ChainState
from chainmon.models.ids import ChainId, SourceId
from chainmon.ratelimit import UpdateRateLimiter
from chainmon.registry import short_name
from chainmon.state.store import ChainUpdateRecorder

_logger = logging.getLogger(__name__)


class Source(Protocol):
    def supported_chains(self) -> frozenset[ChainId]: ...

    def supported_sources(self) -> frozenset[SourceId]: ...

    async def check_updates(self, recorder: ChainUpdateRecorder) -> None: ...


def source_name(source: Source) -> str:
    """Human-readable name for logs."""
    return "+".join(sorted(short_name(ident) for ident in source.supported_sources()))


def shuffled(chains: Iterable[ChainId]) -> list[ChainId]:
    """Chains in random order.

    A sweep cut short by a rate limit or an early failure then does not
    always starve the same chains at the end of the list.
    """
    result = list(chains)
    random.shuffle(result)
    return result


async def sweep_chains(
    source: SourceId,
    chains: Iterable[ChainId],
    *,
    recorder: ChainUpdateRecorder,
    fetch_state: Callable[[ChainId], Awaitable[ChainState]],
    rate_limiter: UpdateRateLimiter | None = None,
) -> int:
    """Fetch and record each due chain, one at a time, in random order.

    A chain whose fetch fails is logged and skipped until the next time the
    rate limiter lets it through. Returns how many chains were recorded.
    """
    recorded = 0
    for chain in shuffled(chains):
        if rate_limiter is not None and not await rate_limiter.should_check(chain, recorder):
            continue
        try:
            state = await fetch_state(chain)
        except SourceError as exc:
            _logger.warning("Could not get chain state from %s for %s: %s", short_name(source), short_name(chain), exc)
            continue
        await recorder.update(source, chain, state)
        recorded += 1
    return recorded
