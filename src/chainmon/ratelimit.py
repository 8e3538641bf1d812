"""Per-source gate deciding when a chain is due for a re-check."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from chainmon._constants import DEFAULT_MIN_CHECK_INTERVAL
from chainmon.models.ids import ChainId, SourceId
from chainmon.registry import block_time_secs
from chainmon.state.store import ChainUpdateRecorder

_logger = logging.getLogger(__name__)


def _now_ts() -> int:
    return int(time.time())


class UpdateRateLimiter:
    """Throttle how often one source is asked about each chain.

    A chain is checked when either:

    * this source is behind the best height known for the chain (catch up
      quickly, including chains it has never reported), or
    * periodic checks are enabled and at least
      ``max(block_time / 2, min_interval)`` seconds have passed since the
      last check.

    Each adapter owns its own limiter, so adapters never contend on its lock.
    """

    def __init__(
        self,
        source: SourceId,
        *,
        periodic_check: bool = True,
        min_interval: float = DEFAULT_MIN_CHECK_INTERVAL,
        clock: Callable[[], int] = _now_ts,
    ) -> None:
        self._source = source
        self._periodic_check = periodic_check
        self._min_interval = min_interval
        self._clock = clock
        self._lock = asyncio.Lock()
        self._last_checked: dict[ChainId, int] = {}

    @property
    def source(self) -> SourceId:
        return self._source

    @property
    def periodic_check(self) -> bool:
        return self._periodic_check

    def threshold(self, chain: ChainId) -> float:
        """Seconds after which *chain* counts as stale."""
        return max(block_time_secs(chain) / 2, self._min_interval)

    def last_checked(self, chain: ChainId) -> int | None:
        return self._last_checked.get(chain)

    async def should_check(self, chain: ChainId, recorder: ChainUpdateRecorder) -> bool:
        """Whether *chain* should be fetched now; records the check if so."""
        is_behind = await recorder.how_far_behind(self._source, chain) > 0

        async with self._lock:
            now = self._clock()
            since_last_check = now - self._last_checked.get(chain, 0)
            is_stale = self._periodic_check and since_last_check >= self.threshold(chain)

            if not (is_behind or is_stale):
                return False
            self._last_checked[chain] = now

        _logger.debug(
            "%s: checking %s (behind=%s, stale=%s, since_last=%ds)",
            self._source,
            chain,
            is_behind,
            is_stale,
            since_last_check,
        )
        return True
