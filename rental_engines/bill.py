"""
Rental Bill Aggregator.

Pure functions with deterministic behavior. No I/O.

Combines the rent of a client's billing periods with extra charges
(transport, damage), discounts, payments and a flat per-unit service
charge into the totals printed on a rent invoice:

    grand_total = total_rent + extra_charges + service_charge - discounts
    due_amount  = grand_total - payments

Every sum is taken over integer minor units and converted to Money once.

Usage:
    from rental_engines.bill import calculate_bill

    bill = calculate_bill(
        udhar_challans,
        jama_challans,
        bill_date="2025-01-31",
        daily_rate="5",
        extra_charges=[{"amount": 1000}, {"amount": 500}],
        discounts=[{"amount": 100}],
        payments=[{"amount": 5000}, {"amount": 3000}],
        service_rate=0,
    )
    bill.grand_total  # Money('9150.00', 'INR')
    bill.due_amount   # Money('1150.00', 'INR')
"""

from __future__ import annotations

import dataclasses
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from rental_config.loader import BillingConfig, get_default_config
from rental_engines.diagnostics import BillingDiagnostic
from rental_engines.events import coerce_date, normalize_events
from rental_engines.ledger import LedgerEntry
from rental_engines.periods import (
    BillingPeriod,
    BillingPeriodResult,
    calculate_billing_periods,
    coerce_rate,
)
from rental_engines.tracer import traced_engine
from rental_engines.window import clamp_to_window
from rental_kernel.domain.values import Currency, Money
from rental_kernel.exceptions import InvalidAmountError
from rental_kernel.logging_config import get_logger

logger = get_logger("engines.bill")


# ============================================================================
# Value Objects
# ============================================================================


@dataclass(frozen=True)
class ChargeLine:
    """
    An extra charge, discount, or payment already expressed as an amount.

    Attributes:
        amount: Line total in the bill currency.
        description: Free-text note ("Transport", "Advance").
        on_date: Date the charge or payment was recorded.
    """

    amount: Decimal | int | str
    description: str = ""
    on_date: date | None = None


ChargeInput = ChargeLine | Mapping[str, Any]


@dataclass(frozen=True)
class BillResult:
    """
    Complete bill for one client.

    Attributes:
        billing: Period calculation (already window-clamped when a from
            date was given).
        service_rate: Service charge per unit per period.
        extra_charges_total: Sum of extra charge lines.
        discounts_total: Sum of discount lines.
        payments_total: Sum of payment lines.
        service_charge_total: Sum over periods of quantity * service_rate.
        grand_total: rent + extra charges + service charge - discounts.
        due_amount: grand_total - payments.
        extra_charges: The extra charge lines as given.
        discounts: The discount lines as given.
        payments: The payment lines as given.
    """

    billing: BillingPeriodResult
    service_rate: Money
    extra_charges_total: Money
    discounts_total: Money
    payments_total: Money
    service_charge_total: Money
    grand_total: Money
    due_amount: Money
    extra_charges: tuple[ChargeInput, ...] = ()
    discounts: tuple[ChargeInput, ...] = ()
    payments: tuple[ChargeInput, ...] = ()

    @property
    def periods(self) -> tuple[BillingPeriod, ...]:
        return self.billing.periods

    @property
    def ledger(self) -> tuple[LedgerEntry, ...]:
        return self.billing.ledger

    @property
    def total_rent(self) -> Money:
        return self.billing.total_rent

    @property
    def diagnostics(self) -> tuple[BillingDiagnostic, ...]:
        return self.billing.diagnostics


# ============================================================================
# Line item totals
# ============================================================================


def _line_amount(line: ChargeInput) -> Any:
    if isinstance(line, Mapping):
        return line.get("amount")
    return getattr(line, "amount", None)


def line_minor_units(line: ChargeInput, field: str, currency: Currency) -> int:
    """
    Amount of one charge line in minor units.

    A missing amount counts as 0.

    Raises:
        InvalidAmountError: If the amount is not a finite number.
    """
    raw = _line_amount(line)
    if raw is None:
        return 0
    if isinstance(raw, Money):
        if raw.currency != currency:
            logger.error("billing_currency_mismatch", extra={
                "field": field,
                "value": str(raw),
                "expected_currency": currency.code,
            })
            raise InvalidAmountError(field, str(raw))
        return raw.minor_units
    try:
        return Money.of(raw, currency).minor_units
    except (ValueError, InvalidOperation) as e:
        logger.error("billing_invalid_amount", extra={"field": field, "value": repr(raw)})
        raise InvalidAmountError(field, raw) from e


def total_minor_units(lines: Sequence[ChargeInput], field: str, currency: Currency) -> int:
    """Sum a list of charge lines in minor units."""
    return sum(line_minor_units(line, field, currency) for line in lines)


def service_charge_minor_units(periods: Sequence[BillingPeriod], service_rate: Money) -> int:
    """Service charge: quantity * service_rate for every billed period."""
    return sum(p.quantity for p in periods) * service_rate.minor_units


# ============================================================================
# Aggregation
# ============================================================================


def aggregate_bill(
    billing: BillingPeriodResult,
    extra_charges: Sequence[ChargeInput] = (),
    discounts: Sequence[ChargeInput] = (),
    payments: Sequence[ChargeInput] = (),
    service_rate: Money | Decimal | str | int | None = None,
    config: BillingConfig | None = None,
) -> BillResult:
    """
    Combine period rent with charges, discounts, payments and service charge.

    Pure function.

    Args:
        billing: Period calculation, clamped to the bill window if needed.
        extra_charges: Extra charge lines (ChargeLine or {"amount": ...}).
        discounts: Discount lines.
        payments: Payment lines.
        service_rate: Per-unit service charge; configured default when None.
        config: Billing configuration; packaged defaults when None.

    Raises:
        InvalidRateError: If service_rate is unparseable, negative, or
            Money in a currency other than the billing currency.
        InvalidAmountError: If a line amount is unparseable.
    """
    config = config or get_default_config()
    currency = billing.daily_rate.currency
    if service_rate is None:
        service_rate = config.service_rate
    service_rate = coerce_rate(service_rate, "service_rate", currency)

    rent = billing.total_rent.minor_units
    extra = total_minor_units(extra_charges, "extra_charges", currency)
    discount = total_minor_units(discounts, "discounts", currency)
    paid = total_minor_units(payments, "payments", currency)
    service = service_charge_minor_units(billing.periods, service_rate)

    grand = rent + extra + service - discount
    due = grand - paid

    return BillResult(
        billing=billing,
        service_rate=service_rate,
        extra_charges_total=Money.from_minor_units(extra, currency),
        discounts_total=Money.from_minor_units(discount, currency),
        payments_total=Money.from_minor_units(paid, currency),
        service_charge_total=Money.from_minor_units(service, currency),
        grand_total=Money.from_minor_units(grand, currency),
        due_amount=Money.from_minor_units(due, currency),
        extra_charges=tuple(extra_charges),
        discounts=tuple(discounts),
        payments=tuple(payments),
    )


@traced_engine(
    "rental_bill",
    "1.0",
    fingerprint_fields=("issues", "returns", "bill_date", "daily_rate", "from_date", "service_rate"),
)
def calculate_bill(
    issues: Sequence[Mapping[str, Any]],
    returns: Sequence[Mapping[str, Any]],
    bill_date: date | str,
    daily_rate: Money | Decimal | str | int,
    *,
    extra_charges: Sequence[ChargeInput] = (),
    discounts: Sequence[ChargeInput] = (),
    payments: Sequence[ChargeInput] = (),
    service_rate: Money | Decimal | str | int | None = None,
    from_date: date | str | None = None,
    config: BillingConfig | None = None,
) -> BillResult:
    """
    Run the full billing pipeline for one client.

    normalize -> periods (with ledger) -> optional window clamp -> totals.

    Pure function - no side effects, no I/O, deterministic output.

    Args:
        issues: Raw issue (udhar) challan records.
        returns: Raw return (jama) challan records.
        bill_date: Last billed day, inclusive.
        daily_rate: Rent per unit per day.
        extra_charges: Extra charge lines.
        discounts: Discount lines.
        payments: Payment lines.
        service_rate: Per-unit service charge; configured default when None.
        from_date: Bill only from this day on (re-billing a sub-range).
        config: Billing configuration; packaged defaults when None.

    Returns:
        BillResult with periods, ledger, diagnostics and all totals.

    Raises:
        InvalidDateError: If bill_date or from_date is not a calendar date.
        InvalidRateError: If a rate is unparseable, negative, or Money in a
            currency other than ``config.currency``.
        InvalidAmountError: If a charge, discount or payment is unparseable.
    """
    t0 = time.monotonic()
    config = config or get_default_config()

    bill_date = coerce_date(bill_date, "bill_date")
    if from_date is not None:
        from_date = coerce_date(from_date, "from_date")
    daily_rate = coerce_rate(daily_rate, "daily_rate", config.currency)

    logger.info("bill_calculation_started", extra={
        "bill_date": bill_date,
        "from_date": from_date,
        "daily_rate": str(daily_rate.amount),
        "currency": daily_rate.currency.code,
        "issue_count": len(issues),
        "return_count": len(returns),
    })

    normalized = normalize_events(issues, returns, config.layout)
    billing = calculate_billing_periods(normalized.events, bill_date, daily_rate)
    billing = dataclasses.replace(
        billing,
        diagnostics=normalized.diagnostics + billing.diagnostics,
    )
    if from_date is not None:
        billing = clamp_to_window(billing, from_date)

    bill = aggregate_bill(
        billing,
        extra_charges=extra_charges,
        discounts=discounts,
        payments=payments,
        service_rate=service_rate,
        config=config,
    )

    duration_ms = round((time.monotonic() - t0) * 1000, 2)
    logger.info("bill_calculation_completed", extra={
        "bill_date": bill_date,
        "period_count": len(bill.periods),
        "total_rent": str(bill.total_rent.amount),
        "service_charge_total": str(bill.service_charge_total.amount),
        "grand_total": str(bill.grand_total.amount),
        "due_amount": str(bill.due_amount.amount),
        "diagnostic_count": len(bill.diagnostics),
        "duration_ms": duration_ms,
    })

    return bill


def verify_bill(bill: BillResult) -> bool:
    """
    Re-derive a bill's totals from its own periods and lines.

    Returns True when every stored total matches; otherwise logs
    ``bill_verification_failed`` with expected and actual figures and
    returns False.
    """
    currency = bill.billing.daily_rate.currency
    rent = sum(p.rent.minor_units for p in bill.periods)
    extra = total_minor_units(bill.extra_charges, "extra_charges", currency)
    discount = total_minor_units(bill.discounts, "discounts", currency)
    paid = total_minor_units(bill.payments, "payments", currency)
    service = service_charge_minor_units(bill.periods, bill.service_rate)
    grand = rent + extra + service - discount

    expected = {
        "total_rent": rent,
        "extra_charges_total": extra,
        "discounts_total": discount,
        "payments_total": paid,
        "service_charge_total": service,
        "grand_total": grand,
        "due_amount": grand - paid,
    }
    actual = {
        "total_rent": bill.total_rent.minor_units,
        "extra_charges_total": bill.extra_charges_total.minor_units,
        "discounts_total": bill.discounts_total.minor_units,
        "payments_total": bill.payments_total.minor_units,
        "service_charge_total": bill.service_charge_total.minor_units,
        "grand_total": bill.grand_total.minor_units,
        "due_amount": bill.due_amount.minor_units,
    }
    mismatched = sorted(k for k in expected if expected[k] != actual[k])
    if mismatched:
        logger.error("bill_verification_failed", extra={
            "mismatched": mismatched,
            "expected_minor_units": expected,
            "actual_minor_units": actual,
        })
        return False
    return True
