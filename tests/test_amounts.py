"""
tests/test_amounts.py

Display formatting and text parsing of token amounts.

Run:
    pytest tests/test_amounts.py -v --tb=short
"""

import pytest

from allowguard.core.amounts import (
    UINT256_MAX,
    UNLIMITED,
    ZERO_DISPLAY,
    format_units,
    from_text,
    is_negligible,
    to_display,
)
from allowguard.core.exceptions import ValidationError


E18 = 10 ** 18


# ─────────────────────────────────────────────────────────────
# DISPLAY
# ─────────────────────────────────────────────────────────────

class TestFormatUnits:

    def test_three_fractional_digits(self):
        """Whole amounts still render exactly three fractional digits."""
        assert format_units(7 * E18, 18) == "7.000"

    def test_rounds_not_truncates(self):
        """1234.5678 renders as 1234.568, not 1234.567."""
        assert format_units(1234 * E18 + 567_800_000_000_000_000, 18) == "1234.568"

    def test_exact_half_rounds_up(self):
        """0.0625 is an exact binary tie; half-up gives 0.063."""
        assert format_units(625 * 10 ** 14, 18) == "0.063"

    def test_zero_decimals(self):
        """Tokens without decimals display whole units."""
        assert format_units(42, 0) == "42.000"

    def test_zero(self):
        assert format_units(0, 18) == ZERO_DISPLAY


class TestToDisplay:

    def test_above_total_supply_is_unlimited(self):
        """total_supply + 1 displays as Unlimited."""
        supply = 1000 * E18
        assert to_display(supply + 1, 18, supply) == UNLIMITED

    def test_equal_to_total_supply_is_numeric(self):
        """Exactly total_supply displays its value."""
        supply = 1000 * E18
        assert to_display(supply, 18, supply) == "1000.000"

    def test_max_uint_is_unlimited(self):
        assert to_display(UINT256_MAX, 18, 10 ** 27) == UNLIMITED


class TestNegligible:

    def test_one_wei_is_negligible(self):
        """1e-18 tokens rounds to 0.000."""
        assert is_negligible(1, 18, 10 ** 30)

    def test_half_of_display_unit_survives(self):
        """0.0005 tokens rounds up to 0.001 and is kept."""
        assert format_units(5 * 10 ** 14, 18) == "0.001"
        assert not is_negligible(5 * 10 ** 14, 18, 10 ** 30)

    def test_below_half_of_display_unit_is_negligible(self):
        """0.0004 tokens rounds to 0.000 and is dropped."""
        assert is_negligible(4 * 10 ** 14, 18, 10 ** 30)

    def test_low_decimal_token_keeps_unit_amounts(self):
        """With 2 decimals, a single base unit (0.01) is visible."""
        assert not is_negligible(1, 2, 10 ** 10)

    def test_unlimited_is_never_negligible(self):
        """An amount above a zero total supply shows as Unlimited, not 0.000."""
        assert not is_negligible(1, 18, 0)


# ─────────────────────────────────────────────────────────────
# PARSING
# ─────────────────────────────────────────────────────────────

class TestFromText:

    def test_integer_is_padded_to_full_precision(self):
        assert from_text("10", 18) == 10 * E18

    def test_fraction_is_padded(self):
        assert from_text("1.5", 6) == 1_500_000

    def test_excess_fraction_is_truncated(self):
        """Digits beyond `decimals` are dropped, never rounded."""
        assert from_text("1.1234569", 6) == 1_123_456

    def test_multiple_points_coerce_to_zero(self):
        assert from_text("1.2.3", 18) == 0

    def test_leading_point(self):
        assert from_text(".5", 2) == 50

    def test_empty_is_zero(self):
        assert from_text("", 18) == 0

    def test_whitespace_is_ignored(self):
        assert from_text("  3 ", 1) == 30

    def test_zero_decimal_token_truncates_fraction(self):
        assert from_text("7.9", 0) == 7

    @pytest.mark.parametrize("text", ["abc", "-1", "1e5", "1,000", "١٢"])
    def test_non_numeric_rejected(self, text):
        with pytest.raises(ValidationError):
            from_text(text, 18)

    def test_above_uint256_rejected(self):
        with pytest.raises(ValidationError):
            from_text("9" * 80, 0)


class TestRoundTrip:

    @pytest.mark.parametrize("amount", [
        1234567890123456789,
        E18,
        999_999_999_999_999_999,
        5 * 10 ** 14,
        42 * E18 + 1,
    ])
    def test_display_text_display_is_stable(self, amount):
        """Formatting the parsed display string reproduces the same display."""
        supply = 10 ** 30
        shown = to_display(amount, 18, supply)
        assert to_display(from_text(shown, 18), 18, supply) == shown
