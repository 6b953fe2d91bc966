"""Tests for the per-size outstanding balance snapshot."""

import dataclasses
from datetime import date

import pytest

from rental_config.loader import get_default_config
from rental_engines.balances import CategoryBalance, calculate_category_balances
from rental_engines.diagnostics import DiagnosticCode
from rental_kernel.exceptions import InvalidDateError


class TestCategoryBalances:
    """Main and borrowed stock per size."""

    def test_main_and_borrowed_split(self, udhar, jama):
        report = calculate_category_balances(
            [udhar("2025-01-01", 10, size=1, borrowed=3)],
            [jama("2025-01-05", 4, size=1, borrowed=1)],
            "2025-01-10",
        )

        size_one = report.for_category("1")
        assert size_one == CategoryBalance(category="1", main=6, borrowed=2, total=8)
        assert size_one.total == 8
        assert report.total == 8
        assert report.as_of == date(2025, 1, 10)

    def test_every_category_reported(self, udhar):
        report = calculate_category_balances([udhar("2025-01-01", 2, size=9)], [], "2025-01-01")

        assert [b.category for b in report.balances] == [str(i) for i in range(1, 10)]
        assert report.for_category("9").main == 2
        assert report.for_category("3").total == 0

    def test_sizes_tracked_separately(self, udhar, jama):
        report = calculate_category_balances(
            [udhar("2025-01-01", 10, "U-1", size=1), udhar("2025-01-02", 7, "U-2", size=4)],
            [jama("2025-01-03", 5, size=4)],
            "2025-01-31",
        )
        assert report.for_category("1").main == 10
        assert report.for_category("4").main == 2
        assert report.total == 12

    def test_as_of_is_inclusive(self, udhar, jama):
        report = calculate_category_balances(
            [udhar("2025-01-01", 10), udhar("2025-01-11", 5, "U-2")],
            [jama("2025-01-10", 3)],
            "2025-01-10",
        )
        assert report.for_category("1").main == 7

    def test_unknown_category(self, udhar):
        report = calculate_category_balances([udhar("2025-01-01", 1)], [], "2025-01-01")
        with pytest.raises(KeyError):
            report.for_category("10")


class TestRecordShapes:
    """Items given as a list, a single mapping, or missing."""

    def test_single_item_mapping(self):
        record = {
            "udhar_date": "2025-01-01",
            "udhar_challan_number": "U-1",
            "items": {"size_2_qty": 4, "size_2_borrowed": None},
        }
        report = calculate_category_balances([record], [], "2025-01-01")
        assert report.for_category("2") == CategoryBalance("2", main=4, borrowed=0, total=4)

    def test_several_items(self):
        record = {
            "udhar_date": "2025-01-01",
            "udhar_challan_number": "U-1",
            "items": [{"size_1_qty": 3}, {"size_1_qty": 2, "size_5_borrowed": "6"}],
        }
        report = calculate_category_balances([record], [], "2025-01-01")
        assert report.for_category("1").main == 5
        assert report.for_category("5").borrowed == 6

    def test_record_without_date_skipped(self, udhar, captured_logs):
        report = calculate_category_balances(
            [udhar(None, 10, "U-1"), udhar("2025-01-01", 2, "U-2")], [], "2025-01-01",
        )
        assert report.total == 2
        warnings = [r for r in captured_logs() if r["message"] == "balance_record_without_date"]
        assert warnings[0]["reference_id"] == "U-1"


class TestNegativeBalances:
    """More returned than issued."""

    def test_clamped_with_diagnostic(self, udhar, jama):
        report = calculate_category_balances(
            [udhar("2025-01-01", 2, size=2)],
            [jama("2025-01-02", 5, size=2)],
            "2025-01-31",
        )

        assert report.for_category("2").main == 0
        assert len(report.diagnostics) == 1
        diag = report.diagnostics[0]
        assert diag.code is DiagnosticCode.NEGATIVE_CATEGORY_BALANCE
        assert diag.on_date == date(2025, 1, 31)

    def test_total_nets_kinds_before_clamping(self, udhar, jama):
        report = calculate_category_balances(
            [udhar("2025-01-01", 3, size=1, borrowed=5)],
            [jama("2025-01-02", 5, size=1)],
            "2025-01-31",
        )

        size_one = report.for_category("1")
        assert (size_one.main, size_one.borrowed, size_one.total) == (0, 5, 3)
        assert report.total == 3

    def test_total_clamped_when_net_negative(self, jama):
        report = calculate_category_balances([], [jama("2025-01-02", 4, size=3)], "2025-01-31")
        assert report.for_category("3").total == 0

    def test_invalid_as_of(self):
        with pytest.raises(InvalidDateError):
            calculate_category_balances([], [], "end of month")


class TestLayoutKinds:
    """Own and borrowed stock follow the configured kinds."""

    def test_renamed_own_kind(self):
        layout = dataclasses.replace(
            get_default_config().layout,
            field_template="{kind}_{category}",
            kinds=("own", "hired", "partner"),
            own_kind="own",
        )
        record = {
            "udhar_date": "2025-01-01",
            "udhar_challan_number": "U-1",
            "items": [{"own_1": 7, "hired_1": 2, "partner_1": 1}],
        }

        report = calculate_category_balances([record], [], "2025-01-01", layout)

        assert report.for_category("1") == CategoryBalance("1", main=7, borrowed=3, total=10)
