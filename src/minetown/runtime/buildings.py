from __future__ import annotations

import math
from dataclasses import replace
from typing import Dict, Iterable, Mapping, Tuple

from minetown.runtime.config import DEFAULT_CONFIG, BalanceConfig
from minetown.state import (
    Building,
    BuildingEffects,
    BuildingType,
    GameState,
    TownScale,
    UnlockRequirement,
    UpgradeType,
    freeze_assignments,
)

INITIAL_BUILDINGS: Tuple[Building, ...] = (
    Building(
        id="mine-1",
        type=BuildingType.MINE,
        name="Iron Mine",
        construction_cost=0.0,
        maintenance_cost=100.0,
        worker_capacity=50,
        effects=BuildingEffects(health=-10.0, productivity=100.0),
        is_operational=True,
        construction_progress=100.0,
        description="The heart of the operation. Workers extract ore from the depths.",
    ),
    Building(
        id="barracks-1",
        type=BuildingType.BARRACKS,
        name="Worker Barracks",
        construction_cost=500.0,
        maintenance_cost=100.0,
        worker_capacity=0,
        effects=BuildingEffects(health=-5.0, satisfaction=-5.0, housing=20),
        max_count=5,
        description="Basic communal housing. Cramped but functional.",
    ),
    Building(
        id="house-1",
        type=BuildingType.HOUSE,
        name="Worker Cottages",
        construction_cost=1000.0,
        maintenance_cost=100.0,
        worker_capacity=0,
        effects=BuildingEffects(satisfaction=10.0, housing=20),
        unlock_requirement=UnlockRequirement(TownScale.SETTLEMENT),
        description="Simple family housing. A step up from the barracks.",
    ),
    Building(
        id="infirmary-1",
        type=BuildingType.INFIRMARY,
        name="Company Infirmary",
        construction_cost=1500.0,
        maintenance_cost=200.0,
        worker_capacity=5,
        effects=BuildingEffects(health=15.0, satisfaction=5.0),
        unlock_requirement=UnlockRequirement(TownScale.SETTLEMENT),
        description="A basic medical facility to patch up the workers.",
    ),
    Building(
        id="canteen-1",
        type=BuildingType.CANTEEN,
        name="Company Canteen",
        construction_cost=1000.0,
        maintenance_cost=150.0,
        worker_capacity=5,
        effects=BuildingEffects(health=5.0, satisfaction=15.0),
        unlock_requirement=UnlockRequirement(TownScale.SETTLEMENT),
        description="A place for workers to eat and socialize.",
    ),
    Building(
        id="school-1",
        type=BuildingType.SCHOOL,
        name="Company School",
        construction_cost=2000.0,
        maintenance_cost=250.0,
        worker_capacity=5,
        effects=BuildingEffects(satisfaction=10.0, productivity=20.0),
        unlock_requirement=UnlockRequirement(TownScale.VILLAGE),
        description="Educate the workforce to increase efficiency.",
    ),
    Building(
        id="store-1",
        type=BuildingType.STORE,
        name="Company Store",
        construction_cost=1500.0,
        maintenance_cost=200.0,
        worker_capacity=5,
        effects=BuildingEffects(satisfaction=10.0, productivity=5.0),
        unlock_requirement=UnlockRequirement(TownScale.SETTLEMENT),
        description="Sell goods to the workers at... reasonable prices.",
    ),
)

BUILDING_TEMPLATES: Dict[BuildingType, Building] = {b.type: b for b in INITIAL_BUILDINGS}


def housing_multiplier(housing_level: int, config: BalanceConfig = DEFAULT_CONFIG) -> float:
    return 1.0 + config.housing_multiplier_step * max(0, housing_level)


def max_worker_capacity(
    buildings: Iterable[Building],
    housing_level: int = 0,
    config: BalanceConfig = DEFAULT_CONFIG,
) -> int:
    """Beds across operational buildings, each scaled and floored on its own."""

    multiplier = housing_multiplier(housing_level, config)
    total = 0
    for building in buildings:
        if building.is_operational and building.effects.housing > 0:
            total += math.floor(building.effects.housing * multiplier)
    return total


def state_capacity(state: GameState, config: BalanceConfig = DEFAULT_CONFIG) -> int:
    return max_worker_capacity(state.buildings, state.upgrade_level(UpgradeType.HOUSING_EFFICIENCY), config)


def total_maintenance(buildings: Iterable[Building]) -> float:
    return sum(b.maintenance_cost for b in buildings if b.is_operational)


def sum_effects(buildings: Iterable[Building]) -> BuildingEffects:
    """Sum every effect channel over operational buildings."""

    health = satisfaction = productivity = 0.0
    housing = 0
    for building in buildings:
        if not building.is_operational:
            continue
        effects = building.effects
        health += effects.health
        satisfaction += effects.satisfaction
        productivity += effects.productivity
        housing += effects.housing
    return BuildingEffects(health=health, satisfaction=satisfaction, productivity=productivity, housing=housing)


def mine_workers(buildings: Iterable[Building]) -> int:
    return sum(b.assigned_workers for b in buildings if b.type is BuildingType.MINE and b.is_operational)


def operational_count(buildings: Iterable[Building], building_type: BuildingType) -> int:
    return sum(1 for b in buildings if b.type is building_type and b.is_operational)


def unassigned_workers(state: GameState) -> int:
    return max(0, state.worker_count - sum(state.worker_assignments.values()))


def is_building_unlocked(state: GameState, building: Building) -> bool:
    requirement = building.unlock_requirement
    if requirement is None:
        return True
    if state.town_scale.rank() < requirement.town_scale.rank():
        return False
    if requirement.treasury is not None and state.treasury < requirement.treasury:
        return False
    return True


def available_buildings(state: GameState) -> Tuple[Building, ...]:
    """Unbuilt buildings the player could start right now."""

    return tuple(
        b
        for b in state.buildings
        if not b.is_operational
        and is_building_unlocked(state, b)
        and state.treasury >= b.construction_cost
        and (b.max_count is None or operational_count(state.buildings, b.type) < b.max_count)
    )


def _next_building_id(buildings: Iterable[Building], building_type: BuildingType) -> str:
    existing = {b.id for b in buildings}
    prefix = building_type.value.lower()
    index = 1
    while f"{prefix}-{index}" in existing:
        index += 1
    return f"{prefix}-{index}"


def _coerce_type(building_type: BuildingType | str) -> BuildingType | None:
    if isinstance(building_type, BuildingType):
        return building_type
    if isinstance(building_type, str) and building_type.upper() in BuildingType.__members__:
        return BuildingType[building_type.upper()]
    try:
        return BuildingType(building_type)
    except ValueError:
        return None


def construct_building(
    state: GameState,
    building_type: BuildingType | str,
    config: BalanceConfig = DEFAULT_CONFIG,
) -> GameState:
    kind = _coerce_type(building_type)
    if kind is None:
        return state
    target = next((b for b in state.buildings if b.type is kind and not b.is_operational), None)
    if target is None or state.treasury < target.construction_cost:
        return state
    if target.max_count is not None and operational_count(state.buildings, kind) >= target.max_count:
        return state

    # construction completes instantly
    built = replace(target, is_operational=True, construction_progress=100.0)
    buildings = tuple(built if b.id == target.id else b for b in state.buildings)
    if target.max_count is not None and operational_count(buildings, kind) < target.max_count:
        still_unbuilt = any(b.type is kind and not b.is_operational for b in buildings)
        if not still_unbuilt:
            fresh = replace(
                target,
                id=_next_building_id(buildings, kind),
                assigned_workers=0,
                is_operational=False,
                construction_progress=0.0,
            )
            buildings = buildings + (fresh,)

    return replace(
        state,
        buildings=buildings,
        treasury=state.treasury - target.construction_cost,
        pending_construction=state.pending_construction + target.construction_cost,
        max_worker_capacity=max_worker_capacity(
            buildings, state.upgrade_level(UpgradeType.HOUSING_EFFICIENCY), config
        ),
        building_maintenance=total_maintenance(buildings),
    )


def assign_workers(state: GameState, building_id: str, count: int) -> GameState:
    building = state.building(building_id)
    if building is None or not building.is_operational:
        return state
    try:
        requested = max(0, int(count))
    except (TypeError, ValueError, OverflowError):
        return state

    currently_assigned = state.worker_assignments.get(building_id, 0)
    if requested - currently_assigned > unassigned_workers(state):
        return state

    assigned = min(requested, building.worker_capacity)
    assignments = dict(state.worker_assignments)
    assignments[building_id] = assigned
    buildings = tuple(
        replace(b, assigned_workers=assigned) if b.id == building_id else b for b in state.buildings
    )
    return replace(state, buildings=buildings, worker_assignments=freeze_assignments(assignments))


def reconcile_assignments(
    buildings: Tuple[Building, ...],
    assignments: Mapping[str, int],
    worker_count: int,
) -> Tuple[Tuple[Building, ...], Mapping[str, int]]:
    """Rebuild the assignment map and each building's mirror from one source.

    Entries for unknown or non-operational buildings are dropped, each entry
    is capped at the building's capacity, and the total is trimmed to the
    workforce starting from the last building.
    """

    by_id = {b.id: b for b in buildings}
    cleaned: Dict[str, int] = {}
    for building_id, value in assignments.items():
        building = by_id.get(building_id)
        if building is None or not building.is_operational:
            continue
        cleaned[building_id] = max(0, min(int(value), building.worker_capacity))

    excess = sum(cleaned.values()) - max(0, worker_count)
    for building in reversed(buildings):
        if excess <= 0:
            break
        current = cleaned.get(building.id, 0)
        if current <= 0:
            continue
        cut = min(current, excess)
        cleaned[building.id] = current - cut
        excess -= cut

    synced = tuple(
        b if b.assigned_workers == cleaned.get(b.id, 0) else replace(b, assigned_workers=cleaned.get(b.id, 0))
        for b in buildings
    )
    return synced, freeze_assignments(cleaned)


__all__ = [
    "BUILDING_TEMPLATES",
    "INITIAL_BUILDINGS",
    "assign_workers",
    "available_buildings",
    "construct_building",
    "housing_multiplier",
    "is_building_unlocked",
    "max_worker_capacity",
    "mine_workers",
    "operational_count",
    "reconcile_assignments",
    "state_capacity",
    "sum_effects",
    "total_maintenance",
    "unassigned_workers",
]
