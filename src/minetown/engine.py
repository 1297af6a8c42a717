"""State-transition operations for the mining-town simulation.

Every operation takes a :class:`~minetown.state.GameState` and returns the
next one.  A rejected operation (not enough money, no free workers, upgrade
already maxed, ...) returns the very same object, so callers can tell a
no-op apart with ``new is old``.  Only :func:`import_save` raises, with
:class:`~minetown.runtime.snapshot.CorruptSaveError`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Mapping

from minetown.runtime import buildings as _buildings
from minetown.runtime import upgrades as _upgrades
from minetown.runtime.config import DEFAULT_CONFIG, BalanceConfig
from minetown.runtime.ledger import bounded_append, daily_transaction
from minetown.runtime.market import daily_price
from minetown.runtime.settlement import process_weekly_ceremony
from minetown.runtime.snapshot import export_state, load_state
from minetown.runtime.timebase import DAYS_PER_WEEK, is_payday, next_day
from minetown.runtime.workforce import daily_extraction, productivity
from minetown.state import BuildingType, GameSpeed, GameState
from minetown.towngen import new_game_state


def can_tick(state: GameState) -> bool:
    return not (state.is_paused or state.is_ceremony_active or state.is_game_over)


def advance_tick(state: GameState, config: BalanceConfig = DEFAULT_CONFIG) -> GameState:
    """Simulate one day; the seventh day pays wages and settles the week."""

    if not can_tick(state):
        return state

    operational = state.operational_buildings()
    multiplier = productivity(state.worker_health, state.worker_satisfaction, operational)
    extraction = daily_extraction(
        _buildings.mine_workers(operational), state.base_production_per_worker, multiplier
    )
    price = daily_price(state, config)
    revenue = extraction * price
    maintenance = _buildings.total_maintenance(operational) / DAYS_PER_WEEK
    salaries = state.worker_count * state.salary if is_payday(state.current_day) else None

    transaction = daily_transaction(
        day=state.current_day,
        week=state.current_week,
        extraction=extraction,
        revenue=revenue,
        maintenance=maintenance,
        mineral_price=price,
        salaries=salaries,
        upgrades=state.pending_upgrades,
        construction=state.pending_construction,
    )
    operating_result = revenue - maintenance - (salaries or 0.0)
    week, day, rolled_over = next_day(state.current_week, state.current_day)

    ticked = replace(
        state,
        current_week=week,
        current_day=day,
        treasury=max(0.0, state.treasury + operating_result),
        current_mineral_price=price,
        mine_production_rate=extraction,
        total_mineral_extraction=state.total_mineral_extraction + extraction,
        daily_transactions=bounded_append(
            state.daily_transactions, transaction, limit=config.daily_transaction_days
        ),
        pending_construction=0.0,
        pending_upgrades=0.0,
    )
    if rolled_over:
        return process_weekly_ceremony(ticked, config)
    return ticked


def set_salary(state: GameState, value: Any, config: BalanceConfig = DEFAULT_CONFIG) -> GameState:
    try:
        salary = float(value)
    except (TypeError, ValueError, OverflowError):
        return state
    if math.isnan(salary):
        return state
    return replace(state, salary=max(config.min_wage, min(config.max_wage, salary)))


def _coerce_speed(speed: Any) -> GameSpeed | None:
    if isinstance(speed, GameSpeed):
        return speed
    if isinstance(speed, str) and speed.upper() in GameSpeed.__members__:
        return GameSpeed[speed.upper()]
    try:
        return GameSpeed(speed)
    except (TypeError, ValueError):
        return None


def set_game_speed(state: GameState, speed: Any) -> GameState:
    resolved = _coerce_speed(speed)
    if resolved is None:
        return state
    return replace(state, game_speed=resolved, is_paused=resolved is GameSpeed.PAUSED)


def construct_building(
    state: GameState,
    building_type: BuildingType | str,
    config: BalanceConfig = DEFAULT_CONFIG,
) -> GameState:
    return _buildings.construct_building(state, building_type, config)


def assign_workers(state: GameState, building_id: str, count: int) -> GameState:
    return _buildings.assign_workers(state, building_id, count)


def purchase_upgrade(state: GameState, upgrade_id: str, config: BalanceConfig = DEFAULT_CONFIG) -> GameState:
    return _upgrades.purchase_upgrade(state, upgrade_id, config)


def close_ceremony(state: GameState) -> GameState:
    if not state.is_ceremony_active:
        return state
    return replace(state, is_ceremony_active=False)


def acknowledge_intro(state: GameState) -> GameState:
    if state.has_seen_intro:
        return state
    return replace(state, has_seen_intro=True)


def import_save(state: GameState, saved: Any, config: BalanceConfig = DEFAULT_CONFIG) -> GameState:
    """Replace ``state`` with a saved game merged over a fresh default.

    Raises ``CorruptSaveError``; ``state`` itself is never modified.
    """

    defaults = new_game_state(seed=state.seed, has_seen_intro=state.has_seen_intro)
    return load_state(saved, defaults, config)


def reset_game(state: GameState) -> GameState:
    return new_game_state(seed=state.seed, has_seen_intro=state.has_seen_intro)


# ---------------------------------------------------------------------------
# Action queue + reducer
# ---------------------------------------------------------------------------
TICK = "TICK"
SET_SALARY = "SET_SALARY"
SET_GAME_SPEED = "SET_GAME_SPEED"
CONSTRUCT_BUILDING = "CONSTRUCT_BUILDING"
ASSIGN_WORKERS = "ASSIGN_WORKERS"
PURCHASE_UPGRADE = "PURCHASE_UPGRADE"
CLOSE_CEREMONY = "CLOSE_CEREMONY"
ACKNOWLEDGE_INTRO = "ACKNOWLEDGE_INTRO"
IMPORT_SAVE = "IMPORT_SAVE"
RESET_GAME = "RESET_GAME"


@dataclass(frozen=True, slots=True)
class Action:
    kind: str
    payload: Mapping[str, Any] = field(default_factory=dict)


Handler = Callable[[GameState, Mapping[str, Any], BalanceConfig], GameState]

_HANDLERS: Dict[str, Handler] = {
    TICK: lambda s, p, c: advance_tick(s, c),
    SET_SALARY: lambda s, p, c: set_salary(s, p.get("salary"), c),
    SET_GAME_SPEED: lambda s, p, c: set_game_speed(s, p.get("speed")),
    CONSTRUCT_BUILDING: lambda s, p, c: construct_building(s, p.get("building_type", ""), c),
    ASSIGN_WORKERS: lambda s, p, c: assign_workers(s, str(p.get("building_id", "")), p.get("count", 0)),
    PURCHASE_UPGRADE: lambda s, p, c: purchase_upgrade(s, str(p.get("upgrade_id", "")), c),
    CLOSE_CEREMONY: lambda s, p, c: close_ceremony(s),
    ACKNOWLEDGE_INTRO: lambda s, p, c: acknowledge_intro(s),
    IMPORT_SAVE: lambda s, p, c: import_save(s, p.get("saved"), c),
    RESET_GAME: lambda s, p, c: reset_game(s),
}


def reduce(state: GameState, action: Action, config: BalanceConfig = DEFAULT_CONFIG) -> GameState:
    handler = _HANDLERS.get(action.kind)
    if handler is None:
        return state
    return handler(state, action.payload, config)


__all__ = [
    "ACKNOWLEDGE_INTRO",
    "ASSIGN_WORKERS",
    "Action",
    "CLOSE_CEREMONY",
    "CONSTRUCT_BUILDING",
    "IMPORT_SAVE",
    "PURCHASE_UPGRADE",
    "RESET_GAME",
    "SET_GAME_SPEED",
    "SET_SALARY",
    "TICK",
    "acknowledge_intro",
    "advance_tick",
    "assign_workers",
    "can_tick",
    "close_ceremony",
    "construct_building",
    "export_state",
    "import_save",
    "purchase_upgrade",
    "reduce",
    "reset_game",
    "set_game_speed",
    "set_salary",
]
