from minetown.runtime.telemetry import Metrics
from minetown.towngen import new_game_state


def test_metrics_signature_is_canonical():
    first = Metrics()
    first.inc("ticks.applied")
    first.inc("ticks.applied", 2)
    first.set_gauge("treasury", 9_500.0)
    second = Metrics()
    second.set_gauge("treasury", 9_500.0)
    second.inc("ticks.applied", 3)
    assert first.get("ticks.applied") == 3.0
    assert first.get("missing") == 0.0
    assert first.snapshot_signature() == second.snapshot_signature()


def test_observe_state_refreshes_town_gauges():
    metrics = Metrics()
    metrics.inc("actions.applied.SET_SALARY")
    metrics.inc("actions.rejected.SET_SALARY")
    metrics.observe_state(new_game_state())
    assert metrics.gauges["treasury"] == 10_000.0
    assert metrics.gauges["calendar"] == {"week": 1, "day": 1}
    assert metrics.with_prefix("actions.applied.") == {"actions.applied.SET_SALARY": 1.0}
