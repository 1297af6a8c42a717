"""Save-game encoding and schema-tolerant decoding.

A save is the whole :class:`GameState` as one JSON document, optionally
wrapped in an envelope ``{"version", "timestamp", "state"}``.  Decoding
overlays whatever the save carries onto a structurally complete default
state: buildings are merged against their catalog template and upgrades
against the upgrade track with the same id, so saves written before a field
existed still load.  Anything that is present but malformed raises
:class:`CorruptSaveError`.
"""

from __future__ import annotations

import json
import math
import time
from dataclasses import MISSING, fields, is_dataclass, replace
from enum import Enum
from hashlib import sha256
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Tuple, Type, TypeVar

from minetown.runtime.buildings import BUILDING_TEMPLATES, reconcile_assignments
from minetown.runtime.config import DEFAULT_CONFIG, BalanceConfig
from minetown.runtime.timebase import DAYS_PER_WEEK
from minetown.runtime.upgrades import INITIAL_UPGRADES
from minetown.state import (
    Building,
    BuildingEffects,
    BuildingType,
    DailyExpenses,
    DailyTransaction,
    FinancialRecord,
    GameSpeed,
    GameState,
    Migration,
    TownScale,
    UnlockRequirement,
    Upgrade,
    UpgradeType,
    freeze_assignments,
)

SAVE_VERSION = "1.0.0"
DEFAULT_SAVE_KEY = "thisTownIsMine_save"

T = TypeVar("T")
Decoder = Callable[[Any, str], Any]


class CorruptSaveError(RuntimeError):
    """Raised when save data is not valid JSON or does not fit the state schema."""


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------
def _to_jsonable(value: Any) -> Any:
    if is_dataclass(value):
        return {f.name: _to_jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Mapping):
        return {str(k): _to_jsonable(v) for k, v in sorted(value.items(), key=lambda item: str(item[0]))}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(item) for item in value]
    return value


def export_state(state: GameState) -> Dict[str, Any]:
    """Plain JSON-compatible dict of the full state."""

    return _to_jsonable(state)


def save_envelope(state: GameState, *, timestamp: Optional[int] = None) -> Dict[str, Any]:
    return {
        "version": SAVE_VERSION,
        "timestamp": int(time.time() * 1000) if timestamp is None else int(timestamp),
        "state": export_state(state),
    }


def dumps_save(state: GameState, *, timestamp: Optional[int] = None) -> str:
    return json.dumps(save_envelope(state, timestamp=timestamp), indent=2, sort_keys=True)


# ---------------------------------------------------------------------------
# Scalar decoders
# ---------------------------------------------------------------------------
def _fail(path: str, expected: str, value: Any) -> CorruptSaveError:
    return CorruptSaveError(f"{path}: expected {expected}, got {value!r}")


def _float(value: Any, path: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _fail(path, "number", value)
    if not math.isfinite(value):
        raise _fail(path, "finite number", value)
    return float(value)


def _int(value: Any, path: str) -> int:
    if isinstance(value, bool):
        raise _fail(path, "integer", value)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise _fail(path, "integer", value)


def _bool(value: Any, path: str) -> bool:
    if not isinstance(value, bool):
        raise _fail(path, "boolean", value)
    return value


def _str(value: Any, path: str) -> str:
    if not isinstance(value, str):
        raise _fail(path, "string", value)
    return value


def _enum(enum_cls: Type[Enum]) -> Decoder:
    def decode(value: Any, path: str) -> Any:
        if isinstance(value, str) and value in enum_cls.__members__:
            return enum_cls[value]
        try:
            return enum_cls(value)
        except ValueError:
            raise _fail(path, enum_cls.__name__, value) from None

    return decode


def _optional(decoder: Decoder) -> Decoder:
    def decode(value: Any, path: str) -> Any:
        if value is None:
            return None
        return decoder(value, path)

    return decode


def _mapping(value: Any, path: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise _fail(path, "object", value)
    return value


def _sequence(value: Any, path: str) -> list:
    if not isinstance(value, list):
        raise _fail(path, "array", value)
    return value


# ---------------------------------------------------------------------------
# Record decoders
# ---------------------------------------------------------------------------
def _decode_record(cls: Type[T], raw: Any, path: str, base: Optional[T] = None) -> T:
    """Build ``cls`` from ``raw``, filling gaps from ``base`` then field defaults."""

    data = _mapping(raw, path)
    codecs = _CODECS[cls]
    kwargs: Dict[str, Any] = {}
    for f in fields(cls):
        if f.name in data:
            kwargs[f.name] = codecs[f.name](data[f.name], f"{path}.{f.name}")
        elif base is not None:
            kwargs[f.name] = getattr(base, f.name)
        elif f.default is MISSING and f.default_factory is MISSING:
            raise CorruptSaveError(f"{path}: missing required field {f.name!r}")
    return cls(**kwargs)


def _record(cls: Type[Any]) -> Decoder:
    return lambda value, path: _decode_record(cls, value, path)


_EFFECT_CHANNELS = ("health", "satisfaction", "productivity", "housing")


def _effects(value: Any, path: str) -> BuildingEffects:
    # older saves keep effects as [{"type": "Housing", "value": 20}, ...]
    if isinstance(value, list):
        totals: Dict[str, float] = {}
        for index, entry in enumerate(value):
            entry_path = f"{path}[{index}]"
            entry = _mapping(entry, entry_path)
            key = str(entry.get("type", "")).lower()
            if key not in _EFFECT_CHANNELS:
                raise _fail(f"{entry_path}.type", "effect type", entry.get("type"))
            totals[key] = totals.get(key, 0.0) + _float(entry.get("value"), f"{entry_path}.value")
        housing = totals.pop("housing", 0.0)
        return BuildingEffects(housing=int(housing), **totals)
    return _decode_record(BuildingEffects, value, path)


def _building(value: Any, path: str) -> Building:
    data = _mapping(value, path)
    if "type" not in data:
        raise CorruptSaveError(f"{path}: missing required field 'type'")
    building_type = _enum(BuildingType)(data["type"], f"{path}.type")
    return _decode_record(Building, data, path, base=BUILDING_TEMPLATES[building_type])


def _buildings(value: Any, path: str) -> Tuple[Building, ...]:
    decoded = tuple(_building(item, f"{path}[{i}]") for i, item in enumerate(_sequence(value, path)))
    seen = set()
    for building in decoded:
        if building.id in seen:
            raise CorruptSaveError(f"{path}: duplicate building id {building.id!r}")
        seen.add(building.id)
    return decoded


def _upgrades(value: Any, path: str) -> Tuple[Upgrade, ...]:
    saved: Dict[str, Upgrade] = {}
    for index, item in enumerate(_sequence(value, path)):
        item_path = f"{path}[{index}]"
        data = _mapping(item, item_path)
        upgrade_id = _str(data.get("id"), f"{item_path}.id")
        base = next((u for u in INITIAL_UPGRADES if u.id == upgrade_id), None)
        upgrade = _decode_record(Upgrade, data, item_path, base=base)
        saved[upgrade_id] = replace(upgrade, current_level=max(0, min(upgrade.current_level, upgrade.max_level)))
    merged = [saved.pop(u.id, u) for u in INITIAL_UPGRADES]
    merged.extend(saved.values())
    return tuple(merged)


def _tuple_of(decoder: Decoder) -> Decoder:
    def decode(value: Any, path: str) -> tuple:
        return tuple(decoder(item, f"{path}[{i}]") for i, item in enumerate(_sequence(value, path)))

    return decode


def _assignments(value: Any, path: str) -> Mapping[str, int]:
    data = _mapping(value, path)
    return freeze_assignments({str(k): _int(v, f"{path}.{k}") for k, v in data.items()})


_CODECS: Dict[type, Dict[str, Decoder]] = {
    BuildingEffects: {
        "health": _float,
        "satisfaction": _float,
        "productivity": _float,
        "housing": _int,
    },
    UnlockRequirement: {
        "town_scale": _enum(TownScale),
        "treasury": _optional(_float),
    },
    Building: {
        "id": _str,
        "type": _enum(BuildingType),
        "name": _str,
        "construction_cost": _float,
        "maintenance_cost": _float,
        "worker_capacity": _int,
        "effects": _effects,
        "assigned_workers": _int,
        "is_operational": _bool,
        "construction_progress": _float,
        "max_count": _optional(_int),
        "unlock_requirement": _optional(_record(UnlockRequirement)),
        "description": _str,
    },
    Upgrade: {
        "id": _str,
        "type": _enum(UpgradeType),
        "name": _str,
        "max_level": _int,
        "base_cost": _float,
        "cost_multiplier": _float,
        "value_per_level": _float,
        "current_level": _int,
        "description": _str,
    },
    FinancialRecord: {
        "week": _int,
        "revenue": _float,
        "expenses": _float,
        "profit": _float,
        "treasury": _float,
        "worker_count": _int,
        "worker_health": _float,
        "worker_satisfaction": _float,
        "mineral_price": _float,
        "production": _float,
    },
    DailyExpenses: {
        "maintenance": _float,
        "salaries": _optional(_float),
        "upgrades": _optional(_float),
        "construction": _optional(_float),
    },
    DailyTransaction: {
        "day": _int,
        "week": _int,
        "extraction": _float,
        "revenue": _float,
        "expenses": _record(DailyExpenses),
        "mineral_price": _float,
        "net_change": _float,
    },
    Migration: {
        "arrivals": _int,
        "departures": _int,
    },
    GameState: {
        "current_week": _int,
        "current_day": _int,
        "game_speed": _enum(GameSpeed),
        "town_scale": _enum(TownScale),
        "treasury": _float,
        "weekly_revenue": _float,
        "weekly_expenses": _float,
        "salary": _float,
        "building_maintenance": _float,
        "debt": _float,
        "financial_history": _tuple_of(_record(FinancialRecord)),
        "daily_transactions": _tuple_of(_record(DailyTransaction)),
        "pending_construction": _float,
        "pending_upgrades": _float,
        "mine_production_rate": _float,
        "total_mineral_extraction": _float,
        "current_mineral_price": _float,
        "base_production_per_worker": _float,
        "worker_count": _int,
        "max_worker_capacity": _int,
        "worker_satisfaction": _float,
        "worker_health": _float,
        "weekly_migration": _record(Migration),
        "worker_assignments": _assignments,
        "buildings": _buildings,
        "upgrades": _upgrades,
        "is_game_over": _bool,
        "is_paused": _bool,
        "is_ceremony_active": _bool,
        "has_seen_intro": _bool,
        "seed": _int,
    },
}


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------
def _unwrap(saved: Any) -> Mapping[str, Any]:
    if isinstance(saved, (bytes, bytearray)):
        try:
            saved = saved.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CorruptSaveError(f"save is not valid UTF-8: {exc}") from exc
    if isinstance(saved, str):
        try:
            saved = json.loads(saved)
        except json.JSONDecodeError as exc:
            raise CorruptSaveError(f"save is not valid JSON: {exc}") from exc
    if not isinstance(saved, Mapping):
        raise CorruptSaveError("save root must be an object")
    inner = saved.get("state")
    if isinstance(inner, Mapping) and "version" in saved:
        return inner
    return saved


def _normalise(state: GameState, config: BalanceConfig) -> GameState:
    buildings, assignments = reconcile_assignments(state.buildings, state.worker_assignments, state.worker_count)
    return replace(
        state,
        current_week=max(1, state.current_week),
        current_day=max(1, min(DAYS_PER_WEEK, state.current_day)),
        treasury=max(0.0, state.treasury),
        salary=max(config.min_wage, min(config.max_wage, state.salary)),
        worker_count=max(0, state.worker_count),
        max_worker_capacity=max(0, state.max_worker_capacity),
        worker_health=max(0.0, min(100.0, state.worker_health)),
        worker_satisfaction=max(0.0, min(100.0, state.worker_satisfaction)),
        current_mineral_price=max(1.0, state.current_mineral_price),
        financial_history=state.financial_history[-config.financial_history_weeks :],
        daily_transactions=state.daily_transactions[-config.daily_transaction_days :],
        buildings=buildings,
        worker_assignments=assignments,
        is_paused=state.game_speed is GameSpeed.PAUSED,
    )


def load_state(saved: Any, defaults: GameState, config: BalanceConfig = DEFAULT_CONFIG) -> GameState:
    """Decode ``saved`` on top of ``defaults``.

    Accepts a JSON string or bytes, a state mapping, or a save envelope.
    """

    payload = _unwrap(saved)
    codecs = _CODECS[GameState]
    overrides: Dict[str, Any] = {}
    for f in fields(GameState):
        if f.name in payload:
            overrides[f.name] = codecs[f.name](payload[f.name], f"state.{f.name}")
    return _normalise(replace(defaults, **overrides), config)


# ---------------------------------------------------------------------------
# Key-value store
# ---------------------------------------------------------------------------
class SaveStore:
    """String-keyed JSON documents under one directory."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        return self.root / f"{key}.json"

    def save(self, key: str, state: GameState, *, timestamp: Optional[int] = None) -> str:
        """Write the envelope and return the sha256 of the written payload."""

        payload = dumps_save(state, timestamp=timestamp).encode("utf-8")
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as fp:
            fp.write(payload)
        return sha256(payload).hexdigest()

    def load(self, key: str, defaults: GameState, config: BalanceConfig = DEFAULT_CONFIG) -> Optional[GameState]:
        path = self.path_for(key)
        if not path.exists():
            return None
        with open(path, "rb") as fp:
            raw = fp.read()
        return load_state(raw, defaults, config)

    def delete(self, key: str) -> bool:
        path = self.path_for(key)
        if not path.exists():
            return False
        path.unlink()
        return True

    def keys(self) -> Iterator[str]:
        if not self.root.exists():
            return iter(())
        return iter(sorted(p.stem for p in self.root.glob("*.json")))


__all__ = [
    "CorruptSaveError",
    "DEFAULT_SAVE_KEY",
    "SAVE_VERSION",
    "SaveStore",
    "dumps_save",
    "export_state",
    "load_state",
    "save_envelope",
]
