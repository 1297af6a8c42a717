"""Event log for the game host.

The engine itself is silent: it only returns states.  The host session
records what happened around each transition here (a week settling, an
action being applied or rejected, a save loading) so tooling and the CLI
can show recent activity without diffing states.  The log is a bounded ring
and never touches the game state.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Iterable, List, Mapping, MutableMapping, Optional, Tuple

from minetown.state import FinancialRecord, Migration

WEEK_SETTLED = "WEEK_SETTLED"
ACTION_APPLIED = "ACTION_APPLIED"
ACTION_REJECTED = "ACTION_REJECTED"
SAVE_LOADED = "SAVE_LOADED"
SAVE_REJECTED = "SAVE_REJECTED"


@dataclass(slots=True)
class TownEvent:
    """Structured record for a single host event."""

    week: int
    day: int
    event_type: str
    payload: MutableMapping[str, Any]
    tags: Tuple[str, ...] = field(default_factory=tuple)

    def summary(self) -> str:
        if self.event_type == WEEK_SETTLED:
            profit = self.payload.get("profit")
            workers = self.payload.get("worker_count")
            if profit is not None:
                return f"week {self.payload.get('week', '?')}: profit {profit:0.2f}, {workers} workers"
        if self.event_type in (ACTION_APPLIED, ACTION_REJECTED):
            return str(self.payload.get("action", "?"))
        if self.event_type == SAVE_REJECTED:
            return str(self.payload.get("reason", "?"))
        return ", ".join(f"{k}={v}" for k, v in sorted(self.payload.items()))


class TownEventLog:
    """Fixed-size event history."""

    def __init__(self, capacity: int = 500) -> None:
        self.capacity = max(1, capacity)
        self._events: Deque[TownEvent] = deque(maxlen=self.capacity)

    def record(
        self,
        *,
        week: int,
        day: int,
        event_type: str,
        payload: Mapping[str, Any],
        tags: Iterable[str] = (),
    ) -> TownEvent:
        event = TownEvent(week=week, day=day, event_type=event_type, payload=dict(payload), tags=tuple(tags))
        self._events.append(event)
        return event

    def log_week_settled(self, *, week: int, record: FinancialRecord, migration: Migration) -> TownEvent:
        payload = {
            "week": record.week,
            "revenue": record.revenue,
            "expenses": record.expenses,
            "profit": record.profit,
            "treasury": record.treasury,
            "worker_count": record.worker_count,
            "arrivals": migration.arrivals,
            "departures": migration.departures,
        }
        return self.record(week=week, day=1, event_type=WEEK_SETTLED, payload=payload)

    def log_action(
        self,
        *,
        week: int,
        day: int,
        action: str,
        applied: bool,
        details: Optional[Mapping[str, Any]] = None,
    ) -> TownEvent:
        payload = {**(details or {}), "action": action}
        event_type = ACTION_APPLIED if applied else ACTION_REJECTED
        return self.record(week=week, day=day, event_type=event_type, payload=payload, tags=[action])

    def __len__(self) -> int:
        return len(self._events)

    def get_recent(self, *, event_type: Optional[str] = None, limit: int = 100) -> List[TownEvent]:
        """Return the newest events, oldest first, optionally filtered by type."""

        selected: List[TownEvent] = []
        for event in reversed(self._events):
            if event_type and event.event_type != event_type:
                continue
            selected.append(event)
            if len(selected) >= limit:
                break
        return list(reversed(selected))

    def iter_all(self) -> Iterable[TownEvent]:
        return tuple(self._events)

    def clear(self) -> None:
        self._events.clear()


__all__ = [
    "ACTION_APPLIED",
    "ACTION_REJECTED",
    "SAVE_LOADED",
    "SAVE_REJECTED",
    "TownEvent",
    "TownEventLog",
    "WEEK_SETTLED",
]
