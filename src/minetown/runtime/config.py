"""Balance constants and the tunable economy configuration."""

from __future__ import annotations

from dataclasses import dataclass

MIN_WAGE: float = 10.0
MAX_WAGE: float = 100.0
REGIONAL_AVERAGE_SALARY: float = 50.0
MIGRATION_FACTOR: float = 50.0
SATISFACTION_THRESHOLD: float = 50.0  # no departures at or above
CRITICAL_SATISFACTION: float = 30.0  # steep departures below

BASE_MINERAL_PRICE: float = 50.0
STARTING_TREASURY: float = 10_000.0
STARTING_SALARY: float = 50.0

FINANCIAL_HISTORY_WEEKS: int = 10
DAILY_TRANSACTION_DAYS: int = 28


@dataclass(frozen=True, slots=True)
class BalanceConfig:
    deterministic_salt: str = "minetown-v1"
    min_wage: float = MIN_WAGE
    max_wage: float = MAX_WAGE
    regional_average_salary: float = REGIONAL_AVERAGE_SALARY
    migration_factor: float = MIGRATION_FACTOR
    satisfaction_threshold: float = SATISFACTION_THRESHOLD
    critical_satisfaction: float = CRITICAL_SATISFACTION
    moderate_departure_rate: float = 0.05
    weekly_health_decay: float = 5.0
    low_health_threshold: float = 50.0
    low_health_satisfaction_penalty: float = 0.8
    base_mineral_price: float = BASE_MINERAL_PRICE
    daily_price_fluctuation: float = 0.05
    daily_fluctuation_step: float = 0.005
    weekly_price_fluctuation: float = 0.20
    weekly_fluctuation_step: float = 0.02
    housing_multiplier_step: float = 0.2
    financial_history_weeks: int = FINANCIAL_HISTORY_WEEKS
    daily_transaction_days: int = DAILY_TRANSACTION_DAYS


DEFAULT_CONFIG = BalanceConfig()


__all__ = [
    "BASE_MINERAL_PRICE",
    "BalanceConfig",
    "CRITICAL_SATISFACTION",
    "DAILY_TRANSACTION_DAYS",
    "DEFAULT_CONFIG",
    "FINANCIAL_HISTORY_WEEKS",
    "MAX_WAGE",
    "MIGRATION_FACTOR",
    "MIN_WAGE",
    "REGIONAL_AVERAGE_SALARY",
    "SATISFACTION_THRESHOLD",
    "STARTING_SALARY",
    "STARTING_TREASURY",
]
