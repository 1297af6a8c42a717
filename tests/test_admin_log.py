from minetown.admin_log import ACTION_REJECTED, WEEK_SETTLED, TownEventLog
from minetown.state import FinancialRecord, Migration


def test_town_event_log_filters_and_capacity():
    log = TownEventLog(capacity=2)
    log.record(week=1, day=1, event_type="A", payload={"value": 1})
    log.record(week=1, day=2, event_type="B", payload={"value": 2})
    log.record(week=1, day=3, event_type="B", payload={"value": 3})
    events = log.get_recent()
    assert len(events) == 2
    assert events[0].day == 2 and events[1].day == 3
    assert all(event.event_type == "B" for event in log.get_recent(event_type="B"))
    log.clear()
    assert len(log) == 0


def test_town_event_helpers_create_payloads():
    log = TownEventLog()
    record = FinancialRecord(
        week=3,
        revenue=900.0,
        expenses=400.0,
        profit=500.0,
        treasury=12_000.0,
        worker_count=20,
        worker_health=80.0,
        worker_satisfaction=90.0,
        mineral_price=51.0,
        production=18.0,
    )
    settled = log.log_week_settled(week=4, record=record, migration=Migration(arrivals=5, departures=1))
    assert settled.event_type == WEEK_SETTLED
    assert settled.payload["arrivals"] == 5
    assert settled.summary() == "week 3: profit 500.00, 20 workers"

    rejected = log.log_action(
        week=4, day=2, action="CONSTRUCT_BUILDING", applied=False, details={"building_type": "School"}
    )
    assert rejected.event_type == ACTION_REJECTED
    assert rejected.payload["building_type"] == "School"
    assert rejected.tags == ("CONSTRUCT_BUILDING",)
    assert [e.event_type for e in log.iter_all()] == [WEEK_SETTLED, ACTION_REJECTED]


def test_action_details_cannot_shadow_event_fields():
    log = TownEventLog()
    event = log.log_action(week=2, day=5, action="SET_SALARY", applied=True, details={"day": 3, "action": "X"})
    assert event.day == 5
    assert event.payload == {"day": 3, "action": "SET_SALARY"}
    assert len(log) == 1
