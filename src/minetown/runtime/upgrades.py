from __future__ import annotations

import math
from dataclasses import replace
from typing import Tuple

from minetown.runtime.buildings import max_worker_capacity
from minetown.runtime.config import DEFAULT_CONFIG, BalanceConfig
from minetown.runtime.timebase import DAYS_PER_WEEK
from minetown.state import BuildingType, GameState, Upgrade, UpgradeType

INITIAL_UPGRADES: Tuple[Upgrade, ...] = (
    Upgrade(
        id="mine-capacity",
        type=UpgradeType.MINE_CAPACITY,
        name="Mine Expansion",
        max_level=4,
        base_cost=1000.0,
        cost_multiplier=2.0,
        value_per_level=10.0,
        description="Increase the maximum number of workers the mine can support.",
    ),
    Upgrade(
        id="market-stability",
        type=UpgradeType.MARKET_STABILITY,
        name="Market Influence",
        max_level=5,
        base_cost=1500.0,
        cost_multiplier=2.5,
        value_per_level=10.0,
        description="Reduce mineral price volatility through strategic relationships.",
    ),
    Upgrade(
        id="housing-efficiency",
        type=UpgradeType.HOUSING_EFFICIENCY,
        name="Housing Optimization",
        max_level=5,
        base_cost=1200.0,
        cost_multiplier=2.2,
        value_per_level=20.0,
        description="Improve the capacity of all housing through better design.",
    ),
)


def upgrade_cost(upgrade: Upgrade) -> float:
    """Price of the next level: ``base_cost * cost_multiplier ** current_level``."""

    return upgrade.base_cost * upgrade.cost_multiplier ** upgrade.current_level


def is_maxed(upgrade: Upgrade) -> bool:
    return upgrade.current_level >= upgrade.max_level


def daily_fluctuation(state: GameState, config: BalanceConfig = DEFAULT_CONFIG) -> float:
    level = state.upgrade_level(UpgradeType.MARKET_STABILITY)
    return max(0.0, config.daily_price_fluctuation - config.daily_fluctuation_step * level)


def weekly_fluctuation(state: GameState, config: BalanceConfig = DEFAULT_CONFIG) -> float:
    level = state.upgrade_level(UpgradeType.MARKET_STABILITY)
    return max(0.0, config.weekly_price_fluctuation - config.weekly_fluctuation_step * level)


def break_even_weeks(state: GameState, upgrade: Upgrade) -> int | None:
    """Weeks for one more mine-capacity level to pay for itself.

    Only the mine track has a direct revenue figure; the others return
    ``None``, as does a zero mineral price.
    """

    if upgrade.type is not UpgradeType.MINE_CAPACITY:
        return None
    weekly_production = state.base_production_per_worker * DAYS_PER_WEEK
    additional_revenue = upgrade.value_per_level * weekly_production * state.current_mineral_price
    if additional_revenue <= 0:
        return None
    return math.ceil(upgrade_cost(upgrade) / additional_revenue)


def purchase_upgrade(state: GameState, upgrade_id: str, config: BalanceConfig = DEFAULT_CONFIG) -> GameState:
    upgrade = state.upgrade(upgrade_id)
    if upgrade is None or is_maxed(upgrade):
        return state
    cost = upgrade_cost(upgrade)
    if state.treasury < cost:
        return state

    bought = replace(upgrade, current_level=upgrade.current_level + 1)
    upgrades = tuple(bought if u.id == upgrade_id else u for u in state.upgrades)
    buildings = state.buildings
    if bought.type is UpgradeType.MINE_CAPACITY:
        extra = int(bought.value_per_level)
        buildings = tuple(
            replace(b, worker_capacity=b.worker_capacity + extra) if b.type is BuildingType.MINE else b
            for b in buildings
        )

    updated = replace(
        state,
        upgrades=upgrades,
        buildings=buildings,
        treasury=state.treasury - cost,
        pending_upgrades=state.pending_upgrades + cost,
    )
    if bought.type is UpgradeType.HOUSING_EFFICIENCY:
        updated = replace(
            updated,
            max_worker_capacity=max_worker_capacity(
                buildings, updated.upgrade_level(UpgradeType.HOUSING_EFFICIENCY), config
            ),
        )
    return updated


__all__ = [
    "INITIAL_UPGRADES",
    "break_even_weeks",
    "daily_fluctuation",
    "is_maxed",
    "purchase_upgrade",
    "upgrade_cost",
    "weekly_fluctuation",
]
