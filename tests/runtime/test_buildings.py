from dataclasses import replace

from minetown.runtime.buildings import (
    INITIAL_BUILDINGS,
    available_buildings,
    housing_multiplier,
    is_building_unlocked,
    max_worker_capacity,
    reconcile_assignments,
    sum_effects,
    total_maintenance,
)
from minetown.state import Building, BuildingEffects, BuildingType, TownScale
from minetown.towngen import new_game_state


def _shack(building_id, housing):
    return Building(
        id=building_id,
        type=BuildingType.BARRACKS,
        name="Shack",
        construction_cost=0.0,
        maintenance_cost=10.0,
        worker_capacity=0,
        effects=BuildingEffects(housing=housing),
        is_operational=True,
    )


def test_catalog_starts_with_only_the_mine_running():
    running = [b.id for b in INITIAL_BUILDINGS if b.is_operational]
    assert running == ["mine-1"]
    assert total_maintenance(INITIAL_BUILDINGS) == 100.0
    assert max_worker_capacity(INITIAL_BUILDINGS) == 0


def test_housing_multiplier_floors_per_building():
    assert housing_multiplier(0) == 1.0
    assert housing_multiplier(2) == 1.4
    shacks = [_shack("a", 7), _shack("b", 7)]
    # 7 * 1.4 = 9.8 floors to 9 for each shack
    assert max_worker_capacity(shacks, housing_level=2) == 18
    assert max_worker_capacity(shacks) == 14
    assert max_worker_capacity([replace(shacks[0], is_operational=False)]) == 0


def test_sum_effects_skips_unbuilt():
    built = replace(INITIAL_BUILDINGS[1], is_operational=True)
    effects = sum_effects([INITIAL_BUILDINGS[0], built, INITIAL_BUILDINGS[2]])
    assert effects.health == -15.0
    assert effects.satisfaction == -5.0
    assert effects.productivity == 100.0
    assert effects.housing == 20


def test_unlock_requirements_follow_town_scale():
    state = new_game_state()
    house = state.building("house-1")
    assert not is_building_unlocked(state, house)
    assert is_building_unlocked(replace(state, town_scale=TownScale.SETTLEMENT), house)
    assert is_building_unlocked(state, state.building("barracks-1"))
    assert [b.id for b in available_buildings(state)] == ["barracks-1"]
    assert available_buildings(replace(state, treasury=100.0)) == ()


def test_reconcile_assignments_drops_caps_and_trims():
    buildings = (
        replace(INITIAL_BUILDINGS[0], worker_capacity=50),
        replace(INITIAL_BUILDINGS[3], is_operational=True),
        INITIAL_BUILDINGS[4],
    )
    assignments = {"mine-1": 70, "infirmary-1": 5, "canteen-1": 3, "ghost-1": 4}
    synced, cleaned = reconcile_assignments(buildings, assignments, worker_count=52)
    assert cleaned == {"mine-1": 50, "infirmary-1": 2}
    assert [b.assigned_workers for b in synced] == [50, 2, 0]
