"""
Utility modules for the PokerNow advisor
"""

from .timing import NUM_STREETS, Backoff, compute_timeout
from .value_conversion import (
    BB_PRECISION,
    HUNDRED,
    ROUND_TRIP_TOLERANCE,
    ZERO,
    bb_equal,
    format_bb,
    format_chips,
    pot_percentage,
    require_big_blind,
    round_bb,
    to_big_blinds,
    to_chips,
    to_decimal,
)

__all__ = [
    "to_decimal",
    "to_big_blinds",
    "to_chips",
    "require_big_blind",
    "round_bb",
    "bb_equal",
    "pot_percentage",
    "format_bb",
    "format_chips",
    "ZERO",
    "HUNDRED",
    "BB_PRECISION",
    "ROUND_TRIP_TOLERANCE",
    "compute_timeout",
    "Backoff",
    "NUM_STREETS",
]
