"""Mining company-town simulation: public façade."""

from .admin_log import TownEvent, TownEventLog
from .engine import (
    Action,
    acknowledge_intro,
    advance_tick,
    assign_workers,
    close_ceremony,
    construct_building,
    export_state,
    import_save,
    purchase_upgrade,
    reduce,
    reset_game,
    set_game_speed,
    set_salary,
)
from .runtime.config import DEFAULT_CONFIG, BalanceConfig
from .runtime.snapshot import CorruptSaveError, SaveStore
from .session import GameSession
from .state import (
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
    Upgrade,
    UpgradeType,
)
from .towngen import new_game_state

__all__ = [
    "Action",
    "BalanceConfig",
    "Building",
    "BuildingEffects",
    "BuildingType",
    "CorruptSaveError",
    "DEFAULT_CONFIG",
    "DailyExpenses",
    "DailyTransaction",
    "FinancialRecord",
    "GameSession",
    "GameSpeed",
    "GameState",
    "Migration",
    "SaveStore",
    "TownEvent",
    "TownEventLog",
    "TownScale",
    "Upgrade",
    "UpgradeType",
    "acknowledge_intro",
    "advance_tick",
    "assign_workers",
    "close_ceremony",
    "construct_building",
    "export_state",
    "import_save",
    "new_game_state",
    "purchase_upgrade",
    "reduce",
    "reset_game",
    "set_game_speed",
    "set_salary",
]
