"""Simulation calendar and host tick cadence.

One tick is one simulated day.  Seven days make a week, and the week
rollover is where the settlement runs.  The host clock fires every
``TICK_MS / speed`` milliseconds while the game is running.
"""

from __future__ import annotations

from typing import Tuple

from minetown.state import GameSpeed

DAYS_PER_WEEK: int = 7
TICK_MS: int = 1000


def tick_interval_ms(speed: GameSpeed) -> float | None:
    """Milliseconds between ticks, or ``None`` when the clock is stopped."""

    if speed is GameSpeed.PAUSED:
        return None
    return TICK_MS / float(speed.value)


def next_day(week: int, day: int) -> Tuple[int, int, bool]:
    """Advance the calendar by one day; the flag marks a week rollover."""

    day += 1
    if day > DAYS_PER_WEEK:
        return week + 1, 1, True
    return week, day, False


def is_payday(day: int) -> bool:
    return day == DAYS_PER_WEEK


def days_elapsed(week: int, day: int) -> int:
    return (max(1, week) - 1) * DAYS_PER_WEEK + max(1, day) - 1


__all__ = ["DAYS_PER_WEEK", "TICK_MS", "days_elapsed", "is_payday", "next_day", "tick_interval_ms"]
