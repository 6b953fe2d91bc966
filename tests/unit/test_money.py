"""
Unit tests for Money and minor-unit handling.

Verifies:
- Minor-unit conversion in both directions
- Rounding determinism (half up)
- Currency validation and precision
- Float inputs never leak binary error
"""

from decimal import Decimal

import pytest

from rental_kernel.domain.currency import CurrencyRegistry
from rental_kernel.domain.values import (
    Currency,
    Money,
    from_minor_units,
    to_minor_units,
)
from rental_kernel.exceptions import InvalidCurrencyError


class TestToMinorUnits:
    """Tests for to_minor_units."""

    def test_whole_rupees(self):
        assert to_minor_units(Decimal("5"), 2) == 500

    def test_paise(self):
        assert to_minor_units(Decimal("10.55"), 2) == 1055

    def test_rounds_half_up(self):
        assert to_minor_units(Decimal("10.555"), 2) == 1056
        assert to_minor_units(Decimal("10.554"), 2) == 1055

    def test_string_and_int_inputs(self):
        assert to_minor_units("2.50", 2) == 250
        assert to_minor_units(7, 2) == 700

    def test_zero_decimal_currency(self):
        assert to_minor_units(Decimal("1000.4"), 0) == 1000

    def test_three_decimal_currency(self):
        assert to_minor_units(Decimal("1.2345"), 3) == 1235

    def test_negative_amount(self):
        assert to_minor_units(Decimal("-10.50"), 2) == -1050


class TestFromMinorUnits:
    """Tests for from_minor_units."""

    def test_paise_to_rupees(self):
        assert from_minor_units(1050, 2) == Decimal("10.50")

    def test_keeps_currency_precision(self):
        assert str(from_minor_units(775000, 2)) == "7750.00"

    def test_zero_decimal_places(self):
        assert from_minor_units(1000, 0) == Decimal("1000")

    def test_three_decimal_places(self):
        assert from_minor_units(1000, 3) == Decimal("1.000")


class TestMoney:
    """Tests for the Money value object."""

    def test_of_from_string(self):
        money = Money.of("10.50", "INR")
        assert money.amount == Decimal("10.50")
        assert money.currency == Currency("INR")

    def test_float_goes_through_str(self):
        assert Money.of(0.1, "INR").amount == Decimal("0.1")

    def test_minor_units_round_trip(self):
        money = Money.from_minor_units(123456, "INR")
        assert money.amount == Decimal("1234.56")
        assert money.minor_units == 123456

    def test_minor_units_rounds_sub_paise(self):
        assert Money.of("0.005", "INR").minor_units == 1

    def test_equal_regardless_of_exponent(self):
        assert Money.of("7750", "INR") == Money.of("7750.00", "INR")

    def test_add_same_currency(self):
        total = Money.of("1.10", "INR") + Money.of("2.20", "INR")
        assert total.amount == Decimal("3.30")

    def test_add_mixed_currency_rejected(self):
        with pytest.raises(ValueError, match="different currencies"):
            Money.of("1", "INR") + Money.of("1", "USD")

    def test_scalar_multiply(self):
        assert (Money.of("2.50", "INR") * 4).amount == Decimal("10.00")

    def test_invalid_amount_rejected(self):
        with pytest.raises(ValueError):
            Money.of("abc", "INR")

    def test_non_finite_amount_rejected(self):
        with pytest.raises(ValueError):
            Money.of("NaN", "INR")

    def test_invalid_currency_rejected(self):
        with pytest.raises(InvalidCurrencyError) as exc_info:
            Money.of("1", "XYZ")
        assert exc_info.value.code == "INVALID_CURRENCY"

    def test_round(self):
        assert Money.of("10.555", "INR").round().amount == Decimal("10.56")

    def test_comparisons(self):
        assert Money.of("1", "INR") < Money.of("2", "INR")
        assert Money.zero("INR").is_zero
        assert Money.of("-1", "INR").is_negative


class TestCurrencyRegistry:
    """Tests for the CurrencyRegistry class."""

    def test_inr_has_two_places(self):
        assert CurrencyRegistry.get_decimal_places("INR") == 2

    def test_jpy_has_zero_places(self):
        assert CurrencyRegistry.get_decimal_places("JPY") == 0

    def test_kwd_has_three_places(self):
        assert CurrencyRegistry.get_decimal_places("KWD") == 3

    def test_lowercase_is_valid(self):
        assert CurrencyRegistry.is_valid("inr")

    def test_validate_normalizes(self):
        assert CurrencyRegistry.validate(" usd ") == "USD"

    def test_validate_rejects_unknown(self):
        with pytest.raises(ValueError):
            CurrencyRegistry.validate("ABC")

    def test_minor_unit(self):
        assert CurrencyRegistry.get_info("INR").minor_unit == Decimal("0.01")
