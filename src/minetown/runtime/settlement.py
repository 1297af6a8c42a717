"""Weekly settlement ("ceremony").

Runs once the calendar has rolled into a new week.  Money already moved
day by day, so the settlement only aggregates the finished week's daily
transactions for the record and floors the treasury.  It then moves the
population and re-derives health, satisfaction and town scale, re-rolls the
weekly mineral price, and blocks the clock until the player dismisses the
summary.
"""

from __future__ import annotations

from dataclasses import replace

from minetown.runtime.buildings import reconcile_assignments, state_capacity, total_maintenance
from minetown.runtime.config import DEFAULT_CONFIG, BalanceConfig
from minetown.runtime.ledger import average_price, bounded_append, operating_expenses, week_transactions
from minetown.runtime.market import weekly_price
from minetown.runtime.workforce import classify_town, weekly_health, weekly_migration, weekly_satisfaction
from minetown.state import FinancialRecord, GameState


def process_weekly_ceremony(state: GameState, config: BalanceConfig = DEFAULT_CONFIG) -> GameState:
    completed_week = state.current_week - 1
    capacity = state_capacity(state, config)

    transactions = week_transactions(state.daily_transactions, completed_week)
    revenue = sum(tx.revenue for tx in transactions)
    expenses = sum(operating_expenses(tx) for tx in transactions)
    profit = revenue - expenses
    production = sum(tx.extraction for tx in transactions)
    treasury = max(0.0, state.treasury)

    migration = weekly_migration(state.salary, state.worker_satisfaction, capacity, state.worker_count, config)
    worker_count = max(0, state.worker_count + migration.net)
    buildings, assignments = reconcile_assignments(state.buildings, state.worker_assignments, worker_count)

    operational = tuple(b for b in buildings if b.is_operational)
    health = weekly_health(state.worker_health, operational, config)
    satisfaction = weekly_satisfaction(state.salary, health, operational, config)

    record = FinancialRecord(
        week=completed_week,
        revenue=revenue,
        expenses=expenses,
        profit=profit,
        treasury=treasury,
        worker_count=worker_count,
        worker_health=health,
        worker_satisfaction=satisfaction,
        mineral_price=average_price(transactions, fallback=state.current_mineral_price),
        production=production,
    )

    return replace(
        state,
        treasury=treasury,
        weekly_revenue=revenue,
        weekly_expenses=expenses,
        building_maintenance=total_maintenance(buildings),
        current_mineral_price=weekly_price(state, state.current_week, config),
        worker_count=worker_count,
        max_worker_capacity=capacity,
        worker_health=health,
        worker_satisfaction=satisfaction,
        weekly_migration=migration,
        buildings=buildings,
        worker_assignments=assignments,
        town_scale=classify_town(worker_count),
        financial_history=bounded_append(state.financial_history, record, limit=config.financial_history_weeks),
        is_ceremony_active=True,
    )


__all__ = ["process_weekly_ceremony"]
