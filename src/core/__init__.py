"""Core module - Game aggregate and error taxonomy

Keep this module lightweight: `utils.value_conversion` imports `core.errors`,
so the aggregate is exported lazily to keep the import graph acyclic.
"""

from __future__ import annotations

import importlib

from .errors import (
    ActionValidationError,
    AdvisorError,
    ConfigurationError,
    DecisionUnavailable,
    IncompleteMappingError,
    IngestionError,
    ObserverTimeout,
    ParseError,
    SeatingError,
)

__all__ = [
    "AdvisorError",
    "ActionValidationError",
    "ConfigurationError",
    "DecisionUnavailable",
    "IncompleteMappingError",
    "IngestionError",
    "ObserverTimeout",
    "ParseError",
    "SeatingError",
]


_LAZY_EXPORTS = {
    "Game": ("core.game_state", "Game"),
    "GameEvents": ("core.game_state", "GameEvents"),
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
    raise AttributeError(f"module 'core' has no attribute {name!r}")
