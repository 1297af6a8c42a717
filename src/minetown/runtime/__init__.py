"""Formula modules behind the simulation engine."""

from .config import DEFAULT_CONFIG, BalanceConfig
from .snapshot import CorruptSaveError, SaveStore

__all__ = [
    "BalanceConfig",
    "CorruptSaveError",
    "DEFAULT_CONFIG",
    "SaveStore",
]
