import math
from dataclasses import replace

import pytest

from minetown.engine import (
    Action,
    SET_SALARY,
    TICK,
    acknowledge_intro,
    advance_tick,
    assign_workers,
    close_ceremony,
    construct_building,
    purchase_upgrade,
    reduce,
    reset_game,
    set_game_speed,
    set_salary,
)
from minetown.runtime.buildings import INITIAL_BUILDINGS
from minetown.state import Building, BuildingEffects, BuildingType, GameSpeed, TownScale
from minetown.towngen import new_game_state


def _running_state(**overrides):
    state = new_game_state(seed=7)
    return replace(state, game_speed=GameSpeed.NORMAL, is_paused=False, **overrides)


def _play(state, days):
    for _ in range(days):
        state = advance_tick(state)
        if state.is_ceremony_active:
            state = close_ceremony(state)
    return state


def _lodge(housing=50):
    return Building(
        id="lodge-1",
        type=BuildingType.HOUSE,
        name="Lodge",
        construction_cost=0.0,
        maintenance_cost=0.0,
        worker_capacity=0,
        effects=BuildingEffects(housing=housing),
        is_operational=True,
        construction_progress=100.0,
    )


def test_paused_state_does_not_tick():
    state = new_game_state()
    assert advance_tick(state) is state


def test_tick_charges_daily_maintenance_and_records_transaction():
    state = _running_state()
    ticked = advance_tick(state)
    assert (ticked.current_week, ticked.current_day) == (1, 2)
    assert ticked.treasury == pytest.approx(10_000.0 - 100.0 / 7)
    assert len(ticked.daily_transactions) == 1
    tx = ticked.daily_transactions[0]
    assert tx.day == 1 and tx.week == 1
    assert tx.expenses.salaries is None
    assert tx.net_change == pytest.approx(-100.0 / 7)
    assert ticked.current_mineral_price >= 1.0


def test_payday_pays_salaries_and_settles_week():
    state = _running_state(current_day=7, worker_count=10)
    settled = advance_tick(state)
    assert (settled.current_week, settled.current_day) == (2, 1)
    assert settled.is_ceremony_active
    assert settled.daily_transactions[-1].expenses.salaries == pytest.approx(500.0)
    assert settled.treasury == pytest.approx(10_000.0 - 100.0 / 7 - 500.0)

    record = settled.financial_history[-1]
    assert record.week == 1
    assert record.expenses == pytest.approx(100.0 / 7 + 500.0)
    assert record.worker_health == pytest.approx(85.0)
    assert record.worker_satisfaction == pytest.approx(100.0)

    assert advance_tick(settled) is settled
    resumed = advance_tick(close_ceremony(settled))
    assert resumed.current_day == 2


def test_treasury_never_goes_negative():
    state = _running_state(current_day=7, worker_count=100, treasury=10.0)
    assert advance_tick(state).treasury == 0.0


def test_arrivals_fill_available_housing():
    state = _running_state(current_day=7, buildings=INITIAL_BUILDINGS + (_lodge(),))
    settled = advance_tick(state)
    assert settled.weekly_migration.arrivals == 22
    assert settled.worker_count == 22
    assert settled.max_worker_capacity == 50
    assert settled.town_scale is TownScale.SETTLEMENT


def test_low_satisfaction_drives_departures():
    state = _running_state(current_day=7, worker_count=100, worker_satisfaction=20.0)
    settled = advance_tick(state)
    assert settled.weekly_migration.departures == 10
    assert settled.worker_count == 90


def test_departures_trim_assignments():
    state = _running_state(
        current_day=7,
        worker_count=40,
        worker_satisfaction=0.0,
        worker_assignments={"mine-1": 40},
    )
    state = replace(state, buildings=tuple(
        replace(b, assigned_workers=40) if b.id == "mine-1" else b for b in state.buildings
    ))
    settled = advance_tick(state)
    assert settled.worker_count == 28
    assert settled.worker_assignments == {"mine-1": 28}
    assert settled.building("mine-1").assigned_workers == 28


def test_health_and_satisfaction_stay_bounded():
    state = _running_state(salary=100.0, buildings=INITIAL_BUILDINGS + (_lodge(200),))
    for _ in range(20):
        state = _play(state, 7)
        assert 0.0 <= state.worker_health <= 100.0
        assert 0.0 <= state.worker_satisfaction <= 100.0
    assert state.worker_health == 0.0


@pytest.mark.parametrize(
    "value, expected",
    [(500, 100.0), (-5, 10.0), (75, 75.0), ("60", 60.0), (float("inf"), 100.0)],
)
def test_set_salary_clamps(value, expected):
    assert set_salary(new_game_state(), value).salary == expected


@pytest.mark.parametrize("value", ["lots", None, float("nan"), object()])
def test_set_salary_rejects_non_numbers(value):
    state = new_game_state()
    assert set_salary(state, value) is state


def test_set_game_speed_accepts_enum_name_and_value():
    state = new_game_state()
    fast = set_game_speed(state, "FAST")
    assert fast.game_speed is GameSpeed.FAST and not fast.is_paused
    paused = set_game_speed(fast, 0)
    assert paused.game_speed is GameSpeed.PAUSED and paused.is_paused
    assert set_game_speed(state, GameSpeed.NORMAL).game_speed is GameSpeed.NORMAL
    assert set_game_speed(state, "warp") is state
    assert set_game_speed(state, 2) is state


def test_construct_without_funds_is_a_noop():
    state = replace(new_game_state(), treasury=400.0)
    assert construct_building(state, BuildingType.BARRACKS) is state


def test_construct_barracks_adds_housing_and_queues_cost():
    state = construct_building(_running_state(), "Barracks")
    assert state.treasury == 9_500.0
    assert state.pending_construction == 500.0
    assert state.building("barracks-1").is_operational
    assert state.building("barracks-2") is not None
    assert not state.building("barracks-2").is_operational
    assert state.max_worker_capacity == 20
    assert state.building_maintenance == 200.0

    ticked = advance_tick(state)
    tx = ticked.daily_transactions[-1]
    assert tx.expenses.construction == 500.0
    assert tx.net_change == pytest.approx(-(200.0 / 7) - 500.0)
    assert ticked.treasury == pytest.approx(9_500.0 - 200.0 / 7)
    assert ticked.pending_construction == 0.0


def test_barracks_cap_at_five():
    state = replace(new_game_state(), treasury=100_000.0)
    for _ in range(5):
        built = construct_building(state, BuildingType.BARRACKS)
        assert built is not state
        state = built
    assert sum(1 for b in state.buildings if b.type is BuildingType.BARRACKS and b.is_operational) == 5
    assert construct_building(state, BuildingType.BARRACKS) is state
    assert state.max_worker_capacity == 100


def test_unknown_building_type_is_a_noop():
    state = new_game_state()
    assert construct_building(state, "Castle") is state


def test_assign_workers_respects_pool_and_capacity():
    state = new_game_state()
    state = replace(state, worker_count=10)
    assigned = assign_workers(state, "mine-1", 8)
    assert assigned.worker_assignments == {"mine-1": 8}
    assert assigned.building("mine-1").assigned_workers == 8
    assert assign_workers(assigned, "mine-1", 12) is assigned
    assert assign_workers(assigned, "barracks-1", 1) is assigned
    assert assign_workers(assigned, "nowhere", 1) is assigned

    crowded = replace(state, worker_count=100)
    clamped = assign_workers(crowded, "mine-1", 80)
    assert clamped.worker_assignments["mine-1"] == 50


@pytest.mark.parametrize("count", [float("inf"), float("nan"), "x"])
def test_assign_workers_rejects_unusable_counts(count):
    state = replace(new_game_state(), worker_count=10)
    assert assign_workers(state, "mine-1", count) is state
    assert reduce(state, Action("ASSIGN_WORKERS", {"building_id": "mine-1", "count": count})) is state


def test_worker_assignments_are_not_shared_between_states():
    assigned = assign_workers(_running_state(worker_count=10), "mine-1", 8)
    ticked = advance_tick(assigned)
    with pytest.raises(TypeError):
        ticked.worker_assignments["mine-1"] = 0
    assert assigned.worker_assignments == {"mine-1": 8}
    assert assigned.building("mine-1").assigned_workers == 8

    source = {"mine-1": 3}
    copied = replace(assigned, worker_assignments=source)
    source["mine-1"] = 99
    assert copied.worker_assignments == {"mine-1": 3}
    with pytest.raises(TypeError):
        new_game_state().worker_assignments["mine-1"] = 1


def test_mine_workers_produce_revenue():
    state = assign_workers(_running_state(worker_count=10), "mine-1", 10)
    ticked = advance_tick(state)
    tx = ticked.daily_transactions[-1]
    # health 100, satisfaction 100, mine +100 %
    assert tx.extraction == pytest.approx(20.0)
    assert tx.revenue == pytest.approx(20.0 * tx.mineral_price)
    assert ticked.total_mineral_extraction == pytest.approx(20.0)


def test_purchase_upgrade_deducts_cost_and_raises_mine_capacity():
    state = purchase_upgrade(new_game_state(), "mine-capacity")
    assert state.treasury == 9_000.0
    assert state.pending_upgrades == 1_000.0
    assert state.upgrade("mine-capacity").current_level == 1
    assert state.building("mine-1").worker_capacity == 60


def test_purchase_upgrade_rejections():
    poor = replace(new_game_state(), treasury=500.0)
    assert purchase_upgrade(poor, "mine-capacity") is poor

    state = new_game_state()
    maxed = replace(
        state,
        upgrades=tuple(
            replace(u, current_level=u.max_level) if u.id == "mine-capacity" else u for u in state.upgrades
        ),
    )
    assert purchase_upgrade(maxed, "mine-capacity") is maxed
    assert purchase_upgrade(state, "teleporter") is state


def test_close_ceremony_and_intro_are_idempotent():
    state = new_game_state()
    assert close_ceremony(state) is state
    ceremony = replace(state, is_ceremony_active=True)
    closed = close_ceremony(ceremony)
    assert not closed.is_ceremony_active
    assert close_ceremony(closed) is closed

    seen = acknowledge_intro(state)
    assert seen.has_seen_intro
    assert acknowledge_intro(seen) is seen


def test_reset_keeps_seed_and_intro_flag():
    state = _play(acknowledge_intro(_running_state()), 10)
    fresh = reset_game(state)
    assert fresh == new_game_state(seed=7, has_seen_intro=True)


def test_same_seed_gives_identical_runs():
    first = _play(_running_state(), 21)
    second = _play(_running_state(), 21)
    assert first == second

    other = _play(replace(_running_state(), seed=8), 21)
    prices = [tx.mineral_price for tx in first.daily_transactions]
    other_prices = [tx.mineral_price for tx in other.daily_transactions]
    assert prices != other_prices


def test_history_windows_are_bounded():
    state = _play(_running_state(), 7 * 12)
    assert len(state.daily_transactions) == 28
    assert len(state.financial_history) == 10
    assert state.financial_history[-1].week == 12
    assert state.financial_history[0].week == 3


def test_weekly_record_averages_daily_prices():
    state = _play(_running_state(), 7)
    record = state.financial_history[-1]
    week_prices = [tx.mineral_price for tx in state.daily_transactions if tx.week == 1]
    assert len(week_prices) == 7
    assert record.mineral_price == pytest.approx(sum(week_prices) / 7)
    assert not math.isnan(record.profit)


def test_reduce_dispatches_actions():
    state = new_game_state()
    assert reduce(state, Action(SET_SALARY, {"salary": 80})).salary == 80.0
    assert reduce(state, Action("EXPLODE")) is state
    assert reduce(state, Action(TICK)) is state
