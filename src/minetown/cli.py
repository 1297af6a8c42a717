"""Headless harness that plays the mining town for a number of weeks."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Optional, Sequence

from minetown.runtime.buildings import unassigned_workers
from minetown.runtime.snapshot import DEFAULT_SAVE_KEY, SaveStore
from minetown.runtime.timebase import DAYS_PER_WEEK
from minetown.session import GameSession
from minetown.state import BuildingType, GameSpeed, GameState
from minetown.towngen import new_game_state


def _staff_mines(session: GameSession) -> None:
    """Send every idle worker to the mines, filling them in catalog order."""

    for building in session.state.buildings:
        if building.type is not BuildingType.MINE or not building.is_operational:
            continue
        idle = unassigned_workers(session.state)
        if idle <= 0:
            return
        current = session.state.worker_assignments.get(building.id, 0)
        target = min(building.worker_capacity, current + idle)
        if target > current:
            session.assign_workers(building.id, target)


def format_week(state: GameState) -> str:
    record = state.financial_history[-1]
    migration = state.weekly_migration
    return (
        f"week {record.week:>3}  revenue {record.revenue:>10.2f}  expenses {record.expenses:>9.2f}  "
        f"profit {record.profit:>10.2f}  treasury {record.treasury:>10.2f}  "
        f"workers {record.worker_count:>4} (+{migration.arrivals}/-{migration.departures})  "
        f"health {record.worker_health:>5.1f}  satisfaction {record.worker_satisfaction:>5.1f}  "
        f"price {record.mineral_price:>6.2f}  {state.town_scale.value}"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the mining town simulation headless")
    parser.add_argument("--seed", type=int, default=0, help="Seed for the mineral price streams")
    parser.add_argument("--weeks", type=int, default=4, help="Number of weeks to simulate")
    parser.add_argument("--salary", type=float, help="Weekly salary per worker")
    parser.add_argument(
        "--build",
        action="append",
        default=[],
        metavar="TYPE",
        help="Building type to construct before the run (repeatable)",
    )
    parser.add_argument(
        "--upgrade",
        action="append",
        default=[],
        metavar="ID",
        help="Upgrade id to purchase before the run (repeatable)",
    )
    parser.add_argument(
        "--auto-assign",
        action="store_true",
        help="Assign idle workers to the mine after every week",
    )
    parser.add_argument("--save-dir", type=Path, help="Directory for the JSON save store")
    parser.add_argument("--key", default=DEFAULT_SAVE_KEY, help="Save key inside the store")
    parser.add_argument(
        "--load",
        action="store_true",
        help="Continue from the stored save instead of a new game",
    )
    parser.add_argument("--export", type=Path, help="Write the final save envelope to this file")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.load and args.save_dir is None:
        parser.error("--load needs --save-dir")

    store = SaveStore(args.save_dir) if args.save_dir is not None else None
    session = GameSession(
        new_game_state(seed=args.seed, has_seen_intro=True),
        store=store,
        save_key=args.key,
        autosave=store is not None,
    )
    if args.load and not session.load():
        parser.error(f"no usable save under key {args.key!r}")

    if args.salary is not None:
        session.set_salary(args.salary)
    for building_type in args.build:
        before = session.state
        if session.construct_building(building_type) is before:
            print(f"could not build {building_type}")
    for upgrade_id in args.upgrade:
        before = session.state
        if session.purchase_upgrade(upgrade_id) is before:
            print(f"could not buy {upgrade_id}")

    session.set_game_speed(GameSpeed.NORMAL)
    for _ in range(max(0, args.weeks)):
        if args.auto_assign:
            _staff_mines(session)
        session.run_days(DAYS_PER_WEEK - session.state.current_day + 1)
        if session.state.financial_history:
            print(format_week(session.state))

    if args.export is not None:
        args.export.write_text(json.dumps(session.export(), indent=2, sort_keys=True), encoding="utf-8")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
