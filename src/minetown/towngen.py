"""Fresh-game state construction."""

from __future__ import annotations

from minetown.runtime.buildings import INITIAL_BUILDINGS, max_worker_capacity, total_maintenance
from minetown.runtime.config import STARTING_SALARY, STARTING_TREASURY
from minetown.runtime.upgrades import INITIAL_UPGRADES
from minetown.state import GameSpeed, GameState, TownScale, freeze_assignments


def new_game_state(seed: int = 0, *, has_seen_intro: bool = False) -> GameState:
    """Week 1, day 1: a paused camp owning only the mine."""

    buildings = INITIAL_BUILDINGS
    return GameState(
        current_week=1,
        current_day=1,
        game_speed=GameSpeed.PAUSED,
        town_scale=TownScale.CAMP,
        treasury=STARTING_TREASURY,
        salary=STARTING_SALARY,
        building_maintenance=total_maintenance(buildings),
        max_worker_capacity=max_worker_capacity(buildings),
        buildings=buildings,
        upgrades=INITIAL_UPGRADES,
        worker_assignments=freeze_assignments({}),
        is_paused=True,
        has_seen_intro=has_seen_intro,
        seed=int(seed),
    )


__all__ = ["new_game_state"]
