"""
Value Conversion Module - chip amounts <-> big-blind units
Keeps every amount as Decimal so BB math never mixes with floats
"""

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from core.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Type alias for numeric types
Numeric = Union[Decimal, float, str, int]

__all__ = [
    "BB_PRECISION",
    "HUNDRED",
    "ROUND_TRIP_TOLERANCE",
    "ZERO",
    "bb_equal",
    "format_bb",
    "format_chips",
    "pot_percentage",
    "require_big_blind",
    "round_bb",
    "to_big_blinds",
    "to_chips",
    "to_decimal",
]

ZERO = Decimal("0")
HUNDRED = Decimal("100")
BB_PRECISION = 2
ROUND_TRIP_TOLERANCE = Decimal("0.000001")

_QUANTIZER_CACHE = {
    2: Decimal("0.01"),
}


def _get_quantizer(precision: int) -> Decimal:
    """Return cached quantizer for given precision."""
    if precision < 0:
        raise ValueError(f"Precision must be non-negative, got {precision}")
    if precision not in _QUANTIZER_CACHE:
        _QUANTIZER_CACHE[precision] = Decimal(10) ** -precision
    return _QUANTIZER_CACHE[precision]


def to_decimal(value: Numeric, default: Decimal | None = None) -> Decimal:
    """
    Safely convert value to Decimal

    Floats go through str() so 0.1 becomes Decimal("0.1"), not its binary
    expansion. Strings may carry thousands separators ("1,250").

    Raises:
        ValueError if conversion fails and no default provided
    """
    if isinstance(value, Decimal):
        return value

    try:
        if isinstance(value, str):
            value = value.replace(",", "").strip()
        result = Decimal(str(value))
        if not result.is_finite():
            raise ValueError(f"{value} is not finite")
        return result
    except (InvalidOperation, ValueError, TypeError) as e:
        if default is not None:
            logger.warning(f"Failed to convert {value} to Decimal: {e}, using default {default}")
            return default
        raise ValueError(f"Cannot convert {value} to Decimal: {e}")


def require_big_blind(big_blind: Numeric) -> Decimal:
    bb = to_decimal(big_blind)
    if bb <= 0:
        raise ConfigurationError(f"big_blind must be positive, got {bb}")
    return bb


def to_big_blinds(chips: Numeric, big_blind: Numeric) -> Decimal:
    """
    Convert a chip amount to big blinds

    Args:
        chips: Amount in chips
        big_blind: Big blind size in chips

    Returns:
        chips / big_blind

    Raises:
        ConfigurationError: If big_blind <= 0
    """
    bb = require_big_blind(big_blind)
    return to_decimal(chips) / bb


def to_chips(big_blinds: Numeric, big_blind: Numeric) -> Decimal:
    """
    Convert a big-blind amount back to chips

    Raises:
        ConfigurationError: If big_blind <= 0
    """
    bb = require_big_blind(big_blind)
    return to_decimal(big_blinds) * bb


def round_bb(value: Numeric, precision: int = BB_PRECISION) -> Decimal:
    """Round a BB amount for display (default 2 decimal places)"""
    quantizer = _get_quantizer(precision)
    return to_decimal(value).quantize(quantizer, rounding=ROUND_HALF_UP)


def bb_equal(a: Numeric, b: Numeric, tolerance: Decimal = ROUND_TRIP_TOLERANCE) -> bool:
    """Check if two amounts are equal within tolerance"""
    return abs(to_decimal(a) - to_decimal(b)) <= tolerance


def pot_percentage(size_bb: Numeric, pot_bb: Numeric) -> Decimal | None:
    """Bet size as a percentage of the pot, None for an empty pot"""
    pot = to_decimal(pot_bb)
    if pot <= 0:
        return None
    return round_bb(to_decimal(size_bb) / pot * HUNDRED, 1)


def format_bb(value: Numeric) -> str:
    """Format BB amount for display (e.g. "12.5 BB")"""
    rounded = round_bb(value).normalize()
    # normalize() turns 100 into 1E+2
    text = f"{rounded:f}"
    return f"{text} BB"


def format_chips(value: Numeric) -> str:
    """Format chip amount for display, dropping trailing zeros"""
    rounded = round_bb(value).normalize()
    return f"{rounded:f}"
