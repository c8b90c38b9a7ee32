"""
Tests for chip <-> big-blind conversion
"""

from decimal import Decimal

import pytest

from core.errors import ConfigurationError
from utils.value_conversion import (
    bb_equal,
    format_bb,
    format_chips,
    pot_percentage,
    round_bb,
    to_big_blinds,
    to_chips,
    to_decimal,
)


class TestToDecimal:
    """Tests for to_decimal coercion"""

    def test_float_goes_through_str(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_thousands_separator(self):
        assert to_decimal("1,250") == Decimal("1250")

    def test_invalid_raises(self):
        with pytest.raises(ValueError):
            to_decimal("abc")

    def test_invalid_with_default(self):
        assert to_decimal("abc", default=Decimal("0")) == Decimal("0")

    def test_infinity_rejected(self):
        with pytest.raises(ValueError):
            to_decimal("Infinity")


class TestBigBlindConversion:
    """Tests for to_big_blinds / to_chips"""

    def test_chips_to_big_blinds(self):
        assert to_big_blinds(Decimal("60"), Decimal("20")) == Decimal("3")

    def test_fractional_big_blinds(self):
        assert to_big_blinds(Decimal("30"), Decimal("20")) == Decimal("1.5")

    def test_big_blinds_to_chips(self):
        assert to_chips(Decimal("2.5"), Decimal("20")) == Decimal("50")

    @pytest.mark.parametrize("chips", ["0", "1", "37", "1234.5", "99999"])
    @pytest.mark.parametrize("big_blind", ["1", "3", "20", "0.25"])
    def test_round_trip(self, chips, big_blind):
        """chips -> BB -> chips comes back within tolerance"""
        back = to_chips(to_big_blinds(chips, big_blind), big_blind)
        assert bb_equal(back, Decimal(chips))

    @pytest.mark.parametrize("big_blind", [0, -20, "0"])
    def test_non_positive_big_blind_rejected(self, big_blind):
        with pytest.raises(ConfigurationError):
            to_big_blinds(100, big_blind)
        with pytest.raises(ConfigurationError):
            to_chips(5, big_blind)


class TestDisplayHelpers:
    """Tests for rounding and formatting"""

    def test_round_bb_half_up(self):
        assert round_bb(Decimal("1.005")) == Decimal("1.01")

    def test_format_bb_drops_trailing_zeros(self):
        assert format_bb(Decimal("12.50")) == "12.5 BB"

    def test_format_bb_whole_hundreds(self):
        assert format_bb(Decimal("100")) == "100 BB"

    def test_format_chips(self):
        assert format_chips(Decimal("1200.00")) == "1200"

    def test_pot_percentage(self):
        assert pot_percentage(Decimal("3"), Decimal("6")) == Decimal("50.0")

    def test_pot_percentage_empty_pot(self):
        assert pot_percentage(Decimal("3"), Decimal("0")) is None
