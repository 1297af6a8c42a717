from __future__ import annotations

from typing import Iterable, Optional, Sequence, Tuple, TypeVar

from minetown.state import DailyExpenses, DailyTransaction, FinancialRecord, GameState

T = TypeVar("T")


def bounded_append(items: Tuple[T, ...], item: T, *, limit: int) -> Tuple[T, ...]:
    """Append and keep only the newest ``limit`` entries."""

    combined = items + (item,)
    if len(combined) > max(1, limit):
        combined = combined[-max(1, limit) :]
    return combined


def daily_transaction(
    *,
    day: int,
    week: int,
    extraction: float,
    revenue: float,
    maintenance: float,
    mineral_price: float,
    salaries: Optional[float] = None,
    upgrades: Optional[float] = None,
    construction: Optional[float] = None,
) -> DailyTransaction:
    expenses = DailyExpenses(
        maintenance=maintenance,
        salaries=salaries,
        upgrades=upgrades or None,
        construction=construction or None,
    )
    return DailyTransaction(
        day=day,
        week=week,
        extraction=extraction,
        revenue=revenue,
        expenses=expenses,
        mineral_price=mineral_price,
        net_change=revenue - expenses.total,
    )


def week_transactions(transactions: Iterable[DailyTransaction], week: int) -> Tuple[DailyTransaction, ...]:
    return tuple(tx for tx in transactions if tx.week == week)


def operating_expenses(tx: DailyTransaction) -> float:
    return tx.expenses.maintenance + (tx.expenses.salaries or 0.0)


def average_price(transactions: Sequence[DailyTransaction], fallback: float = 0.0) -> float:
    if not transactions:
        return fallback
    return sum(tx.mineral_price for tx in transactions) / len(transactions)


def profit_margin(revenue: float, expenses: float) -> float:
    """Profit as a percentage of revenue; zero revenue reports ``0``."""

    if revenue == 0:
        return 0.0
    return (revenue - expenses) / revenue * 100.0


def profit_per_worker(record: FinancialRecord) -> float:
    if record.worker_count <= 0:
        return 0.0
    return record.profit / record.worker_count


def percent_change(current: float, previous: Optional[float]) -> Optional[float]:
    """Signed change from ``previous``; a zero baseline counts as 100 %."""

    if previous is None:
        return None
    diff = current - previous
    if previous == 0:
        if diff == 0:
            return 0.0
        return 100.0 if diff > 0 else -100.0
    return diff / abs(previous) * 100.0


def latest_record(state: GameState) -> Optional[FinancialRecord]:
    return state.financial_history[-1] if state.financial_history else None


def weekly_change(state: GameState, field_name: str) -> Optional[float]:
    """Percentage change of a ``FinancialRecord`` field across the last two weeks."""

    history = state.financial_history
    if len(history) < 2 or field_name not in FinancialRecord.__dataclass_fields__:
        return None
    return percent_change(float(getattr(history[-1], field_name)), float(getattr(history[-2], field_name)))


__all__ = [
    "average_price",
    "bounded_append",
    "daily_transaction",
    "latest_record",
    "operating_expenses",
    "percent_change",
    "profit_margin",
    "profit_per_worker",
    "week_transactions",
    "weekly_change",
]
