"""Services package.

Keep this module lightweight: importing `services` should not open the
statistics database or pull in aiosqlite before it is needed.
"""

from __future__ import annotations

import importlib

from .logger import get_logger, setup_logging
from .player_stats import PlayerStats, compute_hand_participation, merge_hand

__all__ = [
    "PlayerStats",
    "compute_hand_participation",
    "get_logger",
    "merge_hand",
    "setup_logging",
]


_LAZY_EXPORTS = {
    # Ledger implementations (SqliteLedger imports aiosqlite)
    "Ledger": ("services.ledger", "Ledger"),
    "InMemoryLedger": ("services.ledger", "InMemoryLedger"),
    "SqliteLedger": ("services.ledger", "SqliteLedger"),
    "PerformanceLogger": ("services.logger", "PerformanceLogger"),
}


def __getattr__(name: str):
    if name in _LAZY_EXPORTS:
        module_name, attr = _LAZY_EXPORTS[name]
        module = importlib.import_module(module_name)
        value = getattr(module, attr)
        globals()[name] = value
        if name not in __all__:
            __all__.append(name)
        return value
    raise AttributeError(f"module 'services' has no attribute {name!r}")
