"""Repeating poll loop over all source adapters."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field

from chainmon._constants import DEFAULT_CYCLE_TIMEOUT, DEFAULT_POLL_INTERVAL
from chainmon.sources.base import Source, source_name
from chainmon.state.store import ChainUpdateRecorder

_logger = logging.getLogger(__name__)


def _consume_late_result(task: asyncio.Task[None]) -> None:
    """Retrieve the outcome of a task abandoned by a timed-out cycle."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        _logger.debug("Abandoned %s finished with an error", task.get_name(), exc_info=exc)


@dataclass(slots=True)
class CycleReport:
    """Outcome of one poll cycle, by source name."""

    completed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    timed_out: list[str] = field(default_factory=list)


class PollScheduler:
    """Run every source's ``check_updates`` concurrently, forever.

    Each cycle is bounded by *cycle_timeout*; sources still running when it
    expires are cancelled and reported, not retried within the cycle. After a
    cycle the scheduler sleeps *interval* seconds before the next one.
    """

    def __init__(
        self,
        sources: list[Source],
        recorder: ChainUpdateRecorder,
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
        cycle_timeout: float = DEFAULT_CYCLE_TIMEOUT,
    ) -> None:
        self._sources = list(sources)
        self._recorder = recorder
        self._interval = interval
        self._cycle_timeout = cycle_timeout
        self._stop = asyncio.Event()
        self.cycles = 0

    @property
    def sources(self) -> tuple[Source, ...]:
        return tuple(self._sources)

    async def run_cycle(self) -> CycleReport:
        report = CycleReport()
        if not self._sources:
            return report

        tasks: dict[asyncio.Task[None], str] = {
            asyncio.create_task(src.check_updates(self._recorder), name=f"check:{source_name(src)}"): source_name(src)
            for src in self._sources
        }
        done, pending = await asyncio.wait(tasks, timeout=self._cycle_timeout)

        for task in done:
            name = tasks[task]
            if task.cancelled():
                report.failed.append(name)
                continue
            exc = task.exception()
            if exc is not None:
                _logger.error("Source %s failed during update check", name, exc_info=exc)
                report.failed.append(name)
            else:
                report.completed.append(name)

        if pending:
            names = sorted(tasks[task] for task in pending)
            _logger.warning("Timeout waiting for updates after %.1fs from: %s", self._cycle_timeout, ", ".join(names))
            report.timed_out.extend(names)
            for task in pending:
                task.add_done_callback(_consume_late_result)
                task.cancel()

        self.cycles += 1
        return report

    async def run_forever(self) -> None:
        """Cycle until :meth:`stop` is called."""
        while not self._stop.is_set():
            await self.run_cycle()
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._stop.wait(), timeout=self._interval)

    def stop(self) -> None:
        self._stop.set()
