from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping

from minetown.state import GameState


@dataclass(slots=True)
class Metrics:
    counters: dict[str, float] = field(default_factory=dict)
    gauges: dict[str, Any] = field(default_factory=dict)

    def inc(self, path: str, n: float = 1.0) -> float:
        self.counters[path] = self.counters.get(path, 0.0) + float(n)
        return self.counters[path]

    def set_gauge(self, path: str, value: Any) -> Any:
        self.gauges[path] = value
        return value

    def get(self, path: str, default: float = 0.0) -> float:
        return self.counters.get(path, default)

    def with_prefix(self, prefix: str) -> dict[str, float]:
        return {k: v for k, v in self.counters.items() if k.startswith(prefix)}

    def observe_state(self, state: GameState) -> None:
        """Refresh the town gauges from the current state."""

        self.gauges["treasury"] = state.treasury
        self.gauges["worker_count"] = state.worker_count
        self.gauges["worker_health"] = state.worker_health
        self.gauges["worker_satisfaction"] = state.worker_satisfaction
        self.gauges["mineral_price"] = state.current_mineral_price
        self.gauges["calendar"] = {"week": state.current_week, "day": state.current_day}

    def snapshot_signature(self) -> str:
        canonical = {
            "counters": {k: float(v) for k, v in sorted(self.counters.items())},
            "gauges": {k: self._to_jsonable(v) for k, v in sorted(self.gauges.items())},
        }
        return json.dumps(canonical, sort_keys=True, separators=(",", ":"))

    def _to_jsonable(self, value: Any) -> Any:
        if isinstance(value, (str, int, float, bool)) or value is None:
            return value
        if isinstance(value, Mapping):
            return {str(k): self._to_jsonable(v) for k, v in sorted(value.items(), key=lambda itm: str(itm[0]))}
        if isinstance(value, (list, tuple, set)):
            return [self._to_jsonable(v) for v in value]
        return str(value)


__all__ = ["Metrics"]
