"""Mineral price processes.

Two independent walks drive the price.  The daily walk drifts from the
previous day's price inside a narrow band; the weekly re-roll ignores the
current price and re-centres on the base price inside a wide band.  The
market-stability upgrade narrows both bands.  Draws come from seeded
streams keyed by week and day, so a given state always prices the same way.
"""

from __future__ import annotations

from minetown.runtime.config import DEFAULT_CONFIG, BalanceConfig
from minetown.runtime.rng_service import STREAM_DAILY_PRICE, STREAM_WEEKLY_PRICE, uniform_shift
from minetown.runtime.upgrades import daily_fluctuation, weekly_fluctuation
from minetown.state import GameState

MIN_PRICE: float = 1.0


def _round_price(value: float) -> float:
    return max(MIN_PRICE, float(round(value)))


def daily_price(state: GameState, config: BalanceConfig = DEFAULT_CONFIG) -> float:
    shift = uniform_shift(
        state.seed,
        STREAM_DAILY_PRICE,
        daily_fluctuation(state, config),
        scope={"week": state.current_week, "day": state.current_day},
        salt=config.deterministic_salt,
    )
    return _round_price(state.current_mineral_price * (1.0 + shift))


def weekly_price(state: GameState, week: int, config: BalanceConfig = DEFAULT_CONFIG) -> float:
    shift = uniform_shift(
        state.seed,
        STREAM_WEEKLY_PRICE,
        weekly_fluctuation(state, config),
        scope={"week": week},
        salt=config.deterministic_salt,
    )
    return _round_price(config.base_mineral_price * (1.0 + shift))


def price_band(state: GameState, config: BalanceConfig = DEFAULT_CONFIG) -> tuple[float, float]:
    """Lowest and highest price the next weekly re-roll can produce."""

    spread = weekly_fluctuation(state, config)
    base = config.base_mineral_price
    return _round_price(base * (1.0 - spread)), _round_price(base * (1.0 + spread))


__all__ = ["MIN_PRICE", "daily_price", "price_band", "weekly_price"]
