"""Tests for the from-date Window Clamp."""

from datetime import date
from decimal import Decimal

import pytest

from rental_engines.events import normalize_events
from rental_engines.periods import calculate_billing_periods
from rental_engines.window import clamp_periods, clamp_to_window
from rental_kernel.domain.values import Money
from rental_kernel.exceptions import InvalidDateError


@pytest.fixture
def rate():
    return Money.of("5", "INR")


@pytest.fixture
def month_of_fifty(udhar, rate):
    """50 plates held from Jan 1, billed through Jan 31."""
    events = normalize_events([udhar("2025-01-01", 50)], []).events
    return calculate_billing_periods(events, "2025-01-31", rate)


@pytest.fixture
def two_rentals(udhar, jama, rate):
    """10 plates Jan 1-5, then 5 plates from Jan 20 to the Jan 31 bill date."""
    events = normalize_events(
        [udhar("2025-01-01", 10, "U-1"), udhar("2025-01-20", 5, "U-2")],
        [jama("2025-01-05", 10, "J-1")],
    ).events
    return calculate_billing_periods(events, "2025-01-31", rate)


class TestTruncation:
    """A period spanning the from date is cut to start there."""

    def test_mid_period_from_date(self, month_of_fifty):
        clamped = clamp_to_window(month_of_fifty, "2025-01-16")

        assert len(clamped.periods) == 1
        period = clamped.periods[0]
        assert period.start_date == date(2025, 1, 16)
        assert period.end_date == date(2025, 2, 1)
        assert period.days == 16
        assert period.quantity == 50
        assert period.inclusive_end is True
        assert period.rent.amount == Decimal("4000")
        assert clamped.total_rent.amount == Decimal("4000")
        assert clamped.from_date == date(2025, 1, 16)

    def test_keeps_cause_and_reference(self, month_of_fifty):
        original = month_of_fifty.periods[0]
        truncated = clamp_to_window(month_of_fifty, date(2025, 1, 20)).periods[0]
        assert truncated.cause_type is original.cause_type
        assert truncated.reference_id == original.reference_id

    def test_from_date_on_bill_date_bills_one_day(self, month_of_fifty):
        clamped = clamp_to_window(month_of_fifty, "2025-01-31")
        assert clamped.periods[0].days == 1
        assert clamped.total_rent.amount == Decimal("250")


class TestDropAndKeep:
    """Periods wholly before or after the from date."""

    def test_period_before_window_dropped(self, two_rentals):
        clamped = clamp_to_window(two_rentals, "2025-01-10")

        assert len(clamped.periods) == 1
        assert clamped.periods[0] == two_rentals.periods[1]
        assert clamped.total_rent.amount == Decimal("300")

    def test_period_ending_on_from_date_dropped(self, two_rentals):
        # first period covers Jan 1-5 and ends (exclusive) on Jan 6
        clamped = clamp_to_window(two_rentals, "2025-01-06")
        assert [p.reference_id for p in clamped.periods] == ["U-2"]

    def test_period_starting_on_from_date_unchanged(self, two_rentals):
        clamped = clamp_to_window(two_rentals, "2025-01-20")
        assert clamped.periods == (two_rentals.periods[1],)

    def test_from_date_before_first_event_is_noop(self, two_rentals):
        clamped = clamp_to_window(two_rentals, "2024-12-01")
        assert clamped.periods == two_rentals.periods
        assert clamped.total_rent == two_rentals.total_rent

    def test_from_date_after_bill_date_empties_bill(self, two_rentals):
        clamped = clamp_to_window(two_rentals, "2025-02-01")
        assert clamped.periods == ()
        assert clamped.total_rent.is_zero


class TestPurity:
    """The clamp returns a new result."""

    def test_input_not_mutated(self, month_of_fifty):
        before = month_of_fifty.periods
        clamp_to_window(month_of_fifty, "2025-01-16")
        assert month_of_fifty.periods == before
        assert month_of_fifty.from_date is None

    def test_ledger_and_diagnostics_carried(self, two_rentals):
        clamped = clamp_to_window(two_rentals, "2025-01-10")
        assert clamped.ledger == two_rentals.ledger
        assert clamped.diagnostics == two_rentals.diagnostics
        assert clamped.closing_balance == two_rentals.closing_balance

    def test_clamp_periods_directly(self, two_rentals, rate):
        periods = clamp_periods(two_rentals.periods, date(2025, 1, 3), rate)
        assert [p.days for p in periods] == [3, 12]

    def test_invalid_from_date(self, month_of_fifty):
        with pytest.raises(InvalidDateError) as exc_info:
            clamp_to_window(month_of_fifty, "sometime")
        assert exc_info.value.field == "from_date"
