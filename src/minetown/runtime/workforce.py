from __future__ import annotations

import math
from typing import Iterable

from minetown.runtime.buildings import sum_effects
from minetown.runtime.config import DEFAULT_CONFIG, BalanceConfig
from minetown.state import Building, Migration, TownScale


def _clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, value))


def productivity(health: float, satisfaction: float, buildings: Iterable[Building]) -> float:
    """Per-worker multiplier; building bonuses stack additively with no cap."""

    base = 0.5 + 0.25 * health / 100.0 + 0.25 * satisfaction / 100.0
    return base + sum_effects(buildings).productivity / 100.0


def daily_extraction(
    mine_workers: int,
    base_production_per_worker: float,
    multiplier: float,
) -> float:
    return mine_workers * base_production_per_worker * multiplier


def weekly_migration(
    salary: float,
    satisfaction: float,
    capacity: int,
    worker_count: int,
    config: BalanceConfig = DEFAULT_CONFIG,
) -> Migration:
    wage_span = config.max_wage - config.min_wage
    arrivals = math.floor((salary - config.min_wage) / wage_span * config.migration_factor)
    available_housing = capacity - worker_count
    arrivals = max(0, min(arrivals, available_housing))

    departures = 0
    if satisfaction < config.critical_satisfaction:
        # computed in percentage points: (30 - s) / 100 == 0.3 - s / 100
        departures = math.ceil(worker_count * (config.critical_satisfaction - satisfaction) / 100.0)
    elif satisfaction < config.satisfaction_threshold:
        departures = math.ceil(worker_count * config.moderate_departure_rate)
    departures = max(0, min(departures, worker_count))
    return Migration(arrivals=arrivals, departures=departures)


def weekly_health(health: float, buildings: Iterable[Building], config: BalanceConfig = DEFAULT_CONFIG) -> float:
    return _clamp(health - config.weekly_health_decay + sum_effects(buildings).health)


def weekly_satisfaction(
    salary: float,
    health: float,
    buildings: Iterable[Building],
    config: BalanceConfig = DEFAULT_CONFIG,
) -> float:
    """Wage relative to the regional average, scaled by amenities.

    ``health`` is the already-updated weekly health; a sick workforce takes
    the low-health penalty.
    """

    infrastructure = sum_effects(buildings).satisfaction / 100.0
    value = (salary / config.regional_average_salary) * (1.0 + infrastructure) * 100.0
    if health < config.low_health_threshold:
        value *= config.low_health_satisfaction_penalty
    return _clamp(value)


def classify_town(worker_count: int) -> TownScale:
    if worker_count < 20:
        return TownScale.CAMP
    if worker_count <= 50:
        return TownScale.SETTLEMENT
    if worker_count <= 100:
        return TownScale.VILLAGE
    if worker_count <= 250:
        return TownScale.TOWN
    return TownScale.CITY


__all__ = [
    "classify_town",
    "daily_extraction",
    "productivity",
    "weekly_health",
    "weekly_migration",
    "weekly_satisfaction",
]
