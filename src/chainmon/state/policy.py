"""Deterministic merge policy for chain tips.

This module contains *no* locking or I/O; the store applies these rules
while holding its lock.
"""

from __future__ import annotations

from chainmon.models.chain_state import TimestampedChainState


def merge_best_height(current: int | None, incoming: int) -> int:
    """Best height only ever moves up."""
    if current is None:
        return incoming
    return max(current, incoming)


def carry_over(previous: TimestampedChainState | None, incoming: TimestampedChainState) -> TimestampedChainState:
    """Return the record to store when *incoming* replaces *previous*.

    If the height did not move, the tip is not a new observation: keep the
    original ``first_seen_ts`` but take the fresh ``last_checked_ts``.
    """
    if previous is None or previous.height != incoming.height:
        return incoming
    return incoming.model_copy(update={"first_seen_ts": previous.first_seen_ts})


def is_visible_change(previous: TimestampedChainState | None, stored: TimestampedChainState) -> bool:
    """Whether subscribers should hear about *stored*.

    Timestamps alone never count; only a different hash or height does.
    """
    if previous is None:
        return True
    return previous.state != stored.state


def blocks_behind(best_height: int | None, source_height: int | None) -> tuple[int, bool]:
    """Gap between the best height and a source's height.

    Missing values count as ``0``. Returns ``(gap, clamped)`` where
    *clamped* is ``True`` when the source was ahead of the recorded best
    and the gap was forced to ``0``.
    """
    gap = (best_height or 0) - (source_height or 0)
    if gap < 0:
        return 0, True
    return gap, False
