"""Host session owning the single game state cell.

The engine functions are pure; :class:`GameSession` is the one place the
current state lives.  Every transition goes through :meth:`GameSession.dispatch`
under a lock, so UI callbacks, a clock thread and queued actions never
interleave.  After each change the session records an event, bumps metrics
and (with autosave on) writes the store.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Any, Callable, Deque, Dict, Optional

from minetown import engine
from minetown.admin_log import SAVE_LOADED, SAVE_REJECTED, TownEventLog
from minetown.engine import Action
from minetown.runtime.config import DEFAULT_CONFIG, BalanceConfig
from minetown.runtime.snapshot import DEFAULT_SAVE_KEY, CorruptSaveError, SaveStore, save_envelope
from minetown.runtime.telemetry import Metrics
from minetown.runtime.timebase import tick_interval_ms
from minetown.state import BuildingType, GameSpeed, GameState
from minetown.towngen import new_game_state

IDLE_POLL_SECONDS = 0.05


class GameSession:
    """Owns a :class:`GameState`, an action queue and an optional save store."""

    def __init__(
        self,
        state: Optional[GameState] = None,
        *,
        config: BalanceConfig = DEFAULT_CONFIG,
        store: Optional[SaveStore] = None,
        save_key: str = DEFAULT_SAVE_KEY,
        autosave: bool = False,
        event_log: Optional[TownEventLog] = None,
        metrics: Optional[Metrics] = None,
    ) -> None:
        self.config = config
        self.store = store
        self.save_key = save_key
        self.autosave = autosave and store is not None
        self.event_log = event_log or TownEventLog()
        self.metrics = metrics or Metrics()
        self.last_digest: Optional[str] = None
        self._state = state if state is not None else new_game_state()
        self._lock = threading.Lock()
        self._queue: Deque[Action] = deque()

    @property
    def state(self) -> GameState:
        return self._state

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def dispatch(self, action: Action) -> GameState:
        with self._lock:
            return self._apply(action)

    def enqueue(self, action: Action) -> None:
        with self._lock:
            self._queue.append(action)

    def pending(self) -> int:
        return len(self._queue)

    def drain(self) -> GameState:
        """Apply every queued action in arrival order."""

        with self._lock:
            while self._queue:
                self._apply(self._queue.popleft())
            return self._state

    def _apply(self, action: Action) -> GameState:
        before = self._state
        try:
            after = engine.reduce(before, action, self.config)
        except CorruptSaveError as exc:
            self.metrics.inc("saves.rejected")
            self.event_log.record(
                week=before.current_week,
                day=before.current_day,
                event_type=SAVE_REJECTED,
                payload={"reason": str(exc)},
            )
            raise

        if after is before:
            if action.kind == engine.TICK:
                self.metrics.inc("ticks.skipped")
            else:
                self.metrics.inc(f"actions.rejected.{action.kind}")
                self.event_log.log_action(
                    week=before.current_week,
                    day=before.current_day,
                    action=action.kind,
                    applied=False,
                    details=action.payload,
                )
            return before

        if action.kind == engine.TICK:
            self.metrics.inc("ticks.applied")
            if after.current_week != before.current_week and after.financial_history:
                self.metrics.inc("weeks.settled")
                self.event_log.log_week_settled(
                    week=after.current_week,
                    record=after.financial_history[-1],
                    migration=after.weekly_migration,
                )
        elif action.kind == engine.IMPORT_SAVE:
            self.metrics.inc("saves.loaded")
            self.event_log.record(
                week=after.current_week,
                day=after.current_day,
                event_type=SAVE_LOADED,
                payload={"source": "import"},
            )
        else:
            self.metrics.inc(f"actions.applied.{action.kind}")
            payload = {k: v for k, v in action.payload.items() if k != "saved"}
            self.event_log.log_action(
                week=after.current_week,
                day=after.current_day,
                action=action.kind,
                applied=True,
                details=payload,
            )
        self.metrics.observe_state(after)
        self._state = after
        if self.autosave:
            self._write(after)
        return after

    def _write(self, state: GameState) -> Optional[str]:
        if self.store is None:
            return None
        self.last_digest = self.store.save(self.save_key, state)
        self.metrics.inc("saves.written")
        return self.last_digest

    # ------------------------------------------------------------------
    # Convenience wrappers
    # ------------------------------------------------------------------
    def tick(self) -> GameState:
        return self.dispatch(Action(engine.TICK))

    def set_salary(self, salary: Any) -> GameState:
        return self.dispatch(Action(engine.SET_SALARY, {"salary": salary}))

    def set_game_speed(self, speed: GameSpeed | str | int) -> GameState:
        return self.dispatch(Action(engine.SET_GAME_SPEED, {"speed": speed}))

    def construct_building(self, building_type: BuildingType | str) -> GameState:
        return self.dispatch(Action(engine.CONSTRUCT_BUILDING, {"building_type": building_type}))

    def assign_workers(self, building_id: str, count: int) -> GameState:
        return self.dispatch(Action(engine.ASSIGN_WORKERS, {"building_id": building_id, "count": count}))

    def purchase_upgrade(self, upgrade_id: str) -> GameState:
        return self.dispatch(Action(engine.PURCHASE_UPGRADE, {"upgrade_id": upgrade_id}))

    def close_ceremony(self) -> GameState:
        return self.dispatch(Action(engine.CLOSE_CEREMONY))

    def acknowledge_intro(self) -> GameState:
        return self.dispatch(Action(engine.ACKNOWLEDGE_INTRO))

    def import_save(self, saved: Any) -> GameState:
        return self.dispatch(Action(engine.IMPORT_SAVE, {"saved": saved}))

    def reset(self) -> GameState:
        return self.dispatch(Action(engine.RESET_GAME))

    def export(self) -> Dict[str, Any]:
        return save_envelope(self._state)

    def save(self) -> Optional[str]:
        with self._lock:
            return self._write(self._state)

    def load(self) -> bool:
        """Merge the stored save over the current state, if one exists.

        A corrupt save is logged and left on disk; the session keeps its state.
        """

        if self.store is None:
            return False
        with self._lock:
            state = self._state
            defaults = new_game_state(seed=state.seed, has_seen_intro=state.has_seen_intro)
            try:
                loaded = self.store.load(self.save_key, defaults, self.config)
            except CorruptSaveError as exc:
                self.metrics.inc("saves.rejected")
                self.event_log.record(
                    week=state.current_week,
                    day=state.current_day,
                    event_type=SAVE_REJECTED,
                    payload={"reason": str(exc), "key": self.save_key},
                )
                return False
            if loaded is None:
                return False
            self._state = loaded
            self.metrics.inc("saves.loaded")
            self.event_log.record(
                week=loaded.current_week,
                day=loaded.current_day,
                event_type=SAVE_LOADED,
                payload={"source": "store", "key": self.save_key},
            )
            return True

    # ------------------------------------------------------------------
    # Drivers
    # ------------------------------------------------------------------
    def run_days(self, days: int, *, auto_close_ceremony: bool = True) -> GameState:
        """Advance ``days`` simulated days regardless of the clock speed."""

        if auto_close_ceremony and self._state.is_ceremony_active:
            self.close_ceremony()
        for _ in range(max(0, int(days))):
            state = self.tick()
            if state.is_ceremony_active and auto_close_ceremony:
                self.close_ceremony()
        return self._state

    def run_clock(
        self,
        stop_event: threading.Event,
        *,
        max_ticks: Optional[int] = None,
        wait: Optional[Callable[[float], bool]] = None,
    ) -> int:
        """Tick every ``TICK_MS / speed`` until ``stop_event`` is set.

        Queued actions are drained before each tick.  While paused, in a
        ceremony or game over the loop idles.  ``wait`` defaults to
        ``stop_event.wait`` and returns True when the loop should stop.
        """

        wait = wait or stop_event.wait
        ticks = 0
        while not stop_event.is_set():
            state = self.drain()
            interval = tick_interval_ms(state.game_speed)
            if interval is None or not engine.can_tick(state):
                if wait(IDLE_POLL_SECONDS):
                    break
                continue
            if wait(interval / 1000.0):
                break
            before = self.drain()
            if self.tick() is not before:
                ticks += 1
            if max_ticks is not None and ticks >= max_ticks:
                break
        return ticks


__all__ = ["GameSession", "IDLE_POLL_SECONDS"]
