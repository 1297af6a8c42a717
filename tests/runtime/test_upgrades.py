from dataclasses import replace

import pytest

from minetown.runtime.buildings import BUILDING_TEMPLATES
from minetown.runtime.upgrades import (
    INITIAL_UPGRADES,
    break_even_weeks,
    daily_fluctuation,
    is_maxed,
    purchase_upgrade,
    upgrade_cost,
    weekly_fluctuation,
)
from minetown.state import BuildingType, UpgradeType
from minetown.towngen import new_game_state


def _with_level(state, upgrade_id, level):
    return replace(
        state,
        upgrades=tuple(replace(u, current_level=level) if u.id == upgrade_id else u for u in state.upgrades),
    )


def test_upgrade_cost_is_geometric():
    mine = INITIAL_UPGRADES[0]
    assert upgrade_cost(mine) == 1_000.0
    assert upgrade_cost(replace(mine, current_level=2)) == 4_000.0
    assert upgrade_cost(replace(INITIAL_UPGRADES[1], current_level=1)) == 3_750.0
    assert is_maxed(replace(mine, current_level=4))
    assert not is_maxed(mine)


def test_market_stability_narrows_price_bands():
    state = new_game_state()
    assert daily_fluctuation(state) == pytest.approx(0.05)
    assert weekly_fluctuation(state) == pytest.approx(0.20)
    stable = _with_level(state, "market-stability", 5)
    assert daily_fluctuation(stable) == pytest.approx(0.025)
    assert weekly_fluctuation(stable) == pytest.approx(0.10)


def test_housing_efficiency_refreshes_capacity():
    state = new_game_state()
    barracks = replace(BUILDING_TEMPLATES[BuildingType.BARRACKS], is_operational=True)
    state = replace(
        state,
        buildings=tuple(barracks if b.id == "barracks-1" else b for b in state.buildings),
        max_worker_capacity=20,
    )
    upgraded = purchase_upgrade(state, "housing-efficiency")
    assert upgraded.upgrade_level(UpgradeType.HOUSING_EFFICIENCY) == 1
    assert upgraded.max_worker_capacity == 24
    assert upgraded.treasury == pytest.approx(10_000.0 - 1_200.0)


def test_each_mine_level_adds_ten_slots():
    state = replace(new_game_state(), treasury=100_000.0)
    for _ in range(4):
        state = purchase_upgrade(state, "mine-capacity")
    assert state.building("mine-1").worker_capacity == 90
    assert purchase_upgrade(state, "mine-capacity") is state
    assert state.pending_upgrades == pytest.approx(1_000.0 + 2_000.0 + 4_000.0 + 8_000.0)


def test_break_even_weeks_for_mine_expansion():
    state = new_game_state()
    # 10 workers * 1.0 * 7 days * 50 = 3500 a week against a 1000 cost
    assert break_even_weeks(state, INITIAL_UPGRADES[0]) == 1
    assert break_even_weeks(state, replace(INITIAL_UPGRADES[0], current_level=3)) == 3
    assert break_even_weeks(state, INITIAL_UPGRADES[1]) is None
