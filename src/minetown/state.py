"""Structured game state for the mining-town simulation.

Every record here is a frozen dataclass.  The engine never mutates a state in
place: transitions build a new :class:`GameState` with
:func:`dataclasses.replace` and share whatever did not change.  Sequences are
tuples, and the worker assignment map is only ever rebuilt, never edited.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple


class GameSpeed(Enum):
    """Host tick-rate multiplier (``0`` stops the clock)."""

    PAUSED = 0
    NORMAL = 1
    FAST = 3


class TownScale(Enum):
    CAMP = "Camp"
    SETTLEMENT = "Settlement"
    VILLAGE = "Village"
    TOWN = "Town"
    CITY = "City"

    @classmethod
    def ordered(cls) -> Tuple["TownScale", ...]:
        return (cls.CAMP, cls.SETTLEMENT, cls.VILLAGE, cls.TOWN, cls.CITY)

    def rank(self) -> int:
        return TownScale.ordered().index(self)


class BuildingType(Enum):
    MINE = "Mine"
    BARRACKS = "Barracks"
    HOUSE = "House"
    INFIRMARY = "Infirmary"
    CANTEEN = "Canteen"
    SCHOOL = "School"
    STORE = "Store"


class UpgradeType(Enum):
    MINE_CAPACITY = "MineCapacity"
    MARKET_STABILITY = "MarketStability"
    HOUSING_EFFICIENCY = "HousingEfficiency"


@dataclass(frozen=True, slots=True)
class BuildingEffects:
    """Per-building effect record.

    ``health`` is a flat weekly change in points, ``satisfaction`` and
    ``productivity`` are signed percentages, ``housing`` is a bed count.
    """

    health: float = 0.0
    satisfaction: float = 0.0
    productivity: float = 0.0
    housing: int = 0


@dataclass(frozen=True, slots=True)
class UnlockRequirement:
    town_scale: TownScale
    treasury: Optional[float] = None


@dataclass(frozen=True, slots=True)
class Building:
    id: str
    type: BuildingType
    name: str
    construction_cost: float
    maintenance_cost: float
    worker_capacity: int
    effects: BuildingEffects = field(default_factory=BuildingEffects)
    assigned_workers: int = 0
    is_operational: bool = False
    construction_progress: float = 0.0
    max_count: Optional[int] = None
    unlock_requirement: Optional[UnlockRequirement] = None
    description: str = ""


@dataclass(frozen=True, slots=True)
class Upgrade:
    id: str
    type: UpgradeType
    name: str
    max_level: int
    base_cost: float
    cost_multiplier: float
    value_per_level: float
    current_level: int = 0
    description: str = ""


@dataclass(frozen=True, slots=True)
class FinancialRecord:
    week: int
    revenue: float
    expenses: float
    profit: float
    treasury: float
    worker_count: int
    worker_health: float
    worker_satisfaction: float
    mineral_price: float
    production: float


@dataclass(frozen=True, slots=True)
class DailyExpenses:
    maintenance: float
    salaries: Optional[float] = None
    upgrades: Optional[float] = None
    construction: Optional[float] = None

    @property
    def total(self) -> float:
        return self.maintenance + (self.salaries or 0.0) + (self.upgrades or 0.0) + (self.construction or 0.0)


@dataclass(frozen=True, slots=True)
class DailyTransaction:
    day: int
    week: int
    extraction: float
    revenue: float
    expenses: DailyExpenses
    mineral_price: float
    net_change: float


@dataclass(frozen=True, slots=True)
class Migration:
    arrivals: int = 0
    departures: int = 0

    @property
    def net(self) -> int:
        return self.arrivals - self.departures


def freeze_assignments(assignments: Mapping[str, int]) -> Mapping[str, int]:
    """Read-only copy of a building-id to worker-count map."""

    return MappingProxyType(dict(assignments))


@dataclass(frozen=True, slots=True)
class GameState:
    # clock
    current_week: int = 1
    current_day: int = 1
    game_speed: GameSpeed = GameSpeed.PAUSED
    town_scale: TownScale = TownScale.CAMP

    # economy
    treasury: float = 10_000.0
    weekly_revenue: float = 0.0
    weekly_expenses: float = 0.0
    salary: float = 50.0
    building_maintenance: float = 0.0
    debt: float = 0.0  # reserved, no formula drives it
    financial_history: Tuple[FinancialRecord, ...] = ()
    daily_transactions: Tuple[DailyTransaction, ...] = ()
    pending_construction: float = 0.0
    pending_upgrades: float = 0.0

    # production
    mine_production_rate: float = 0.0
    total_mineral_extraction: float = 0.0
    current_mineral_price: float = 50.0
    base_production_per_worker: float = 1.0

    # workers
    worker_count: int = 0
    max_worker_capacity: int = 0
    worker_satisfaction: float = 100.0
    worker_health: float = 100.0
    weekly_migration: Migration = field(default_factory=Migration)
    worker_assignments: Mapping[str, int] = field(default_factory=lambda: freeze_assignments({}))

    buildings: Tuple[Building, ...] = ()
    upgrades: Tuple[Upgrade, ...] = ()

    # flow gates
    is_game_over: bool = False
    is_paused: bool = True
    is_ceremony_active: bool = False
    has_seen_intro: bool = False

    seed: int = 0

    def __post_init__(self) -> None:
        # frozen: keep a private read-only copy of the map
        object.__setattr__(self, "worker_assignments", freeze_assignments(self.worker_assignments))

    def building(self, building_id: str) -> Optional[Building]:
        for building in self.buildings:
            if building.id == building_id:
                return building
        return None

    def upgrade(self, upgrade_id: str) -> Optional[Upgrade]:
        for upgrade in self.upgrades:
            if upgrade.id == upgrade_id:
                return upgrade
        return None

    def upgrade_level(self, upgrade_type: UpgradeType) -> int:
        return sum(u.current_level for u in self.upgrades if u.type is upgrade_type)

    def operational_buildings(self) -> Tuple[Building, ...]:
        return tuple(b for b in self.buildings if b.is_operational)


__all__ = [
    "Building",
    "BuildingEffects",
    "BuildingType",
    "DailyExpenses",
    "DailyTransaction",
    "FinancialRecord",
    "GameSpeed",
    "GameState",
    "Migration",
    "TownScale",
    "UnlockRequirement",
    "Upgrade",
    "UpgradeType",
    "freeze_assignments",
]
