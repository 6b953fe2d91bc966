"""
Rental Billing Period Engine.

Pure functions with deterministic behavior. No I/O.

Walks a client's issue/return events in effective-date order, keeps the
true on-hand balance, and emits the contiguous billing periods during which
that balance is constant and positive.  Each period carries its quantity,
day count, and rent.

Period dates are half-open: a period covers start_date up to, but not
including, end_date.  The last period is closed by the bill date, which is
billed inclusively, so its end_date is bill_date + 1 day and it is flagged
``inclusive_end``.

Rent is quantity * days * daily_rate computed in integer minor units
(paise, cents) so totals never drift.

Usage:
    from rental_engines.events import normalize_events
    from rental_engines.periods import calculate_billing_periods

    normalized = normalize_events(udhar_challans, jama_challans)
    result = calculate_billing_periods(
        normalized.events,
        bill_date=date(2025, 1, 31),
        daily_rate=Money.of("5", "INR"),
    )
    result.total_rent  # Money('7750.00', 'INR') for 50 plates from Jan 1
"""

from __future__ import annotations

import time
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from rental_config.loader import get_default_config
from rental_engines.diagnostics import BillingDiagnostic, DiagnosticCode, report
from rental_engines.events import (
    ONE_DAY,
    InventoryEvent,
    MovementKind,
    coerce_date,
    sort_by_effective_date,
)
from rental_engines.ledger import LedgerEntry, build_ledger
from rental_engines.tracer import traced_engine
from rental_kernel.domain.values import Currency, Money
from rental_kernel.exceptions import InvalidRateError
from rental_kernel.logging_config import get_logger

logger = get_logger("engines.periods")


# ============================================================================
# Value Objects
# ============================================================================


@dataclass(frozen=True)
class BillingPeriod:
    """
    A maximal date range with a constant, positive on-hand quantity.

    Attributes:
        start_date: First billed day.
        end_date: First day NOT billed (exclusive).
        quantity: Units held throughout the period.
        days: Billed days, always (end_date - start_date).days and > 0.
        rent: quantity * days * daily rate.
        cause_type: Kind of the first event on start_date.
        reference_id: Challan number of that event.
        inclusive_end: True when the period is closed by the bill date.
        issue_qty: Units issued on start_date, when both kinds moved that day.
        return_qty: Units returned on start_date, when both kinds moved that day.
    """

    start_date: date
    end_date: date
    quantity: int
    days: int
    rent: Money
    cause_type: MovementKind
    reference_id: str
    inclusive_end: bool = False
    issue_qty: int | None = None
    return_qty: int | None = None


@dataclass(frozen=True)
class BillingPeriodResult:
    """
    Complete period calculation for one client and one bill date.

    Attributes:
        bill_date: Last billed day (inclusive).
        daily_rate: Rent per unit per day.
        events: Events dated on or before bill_date, effective-date order.
        ledger: Transaction-date running-balance trail of those events.
        periods: Billing periods in date order.
        total_rent: Sum of period rents.
        closing_balance: On-hand quantity after every included event.
        diagnostics: Recoverable data problems found on the way.
        from_date: Start of the billing window when one was applied.
    """

    bill_date: date
    daily_rate: Money
    events: tuple[InventoryEvent, ...]
    ledger: tuple[LedgerEntry, ...]
    periods: tuple[BillingPeriod, ...]
    total_rent: Money
    closing_balance: int
    diagnostics: tuple[BillingDiagnostic, ...] = ()
    from_date: date | None = None


# ============================================================================
# Money helpers
# ============================================================================


def coerce_rate(value: Any, field: str, currency: str | Currency) -> Money:
    """
    Turn a caller-supplied rate into Money in ``currency``.

    Plain numbers are read in ``currency``; a Money rate must already be in it.

    Raises:
        InvalidRateError: if the value is not a finite, non-negative number,
            or is Money in another currency.
    """
    if isinstance(currency, str):
        currency = Currency(currency)
    if isinstance(value, Money):
        if value.currency != currency:
            logger.error("billing_rate_currency_mismatch", extra={
                "field": field,
                "value": str(value),
                "expected_currency": currency.code,
            })
            raise InvalidRateError(field, value, reason="currency")
        rate = value
    else:
        try:
            rate = Money.of(value, currency)
        except (ValueError, InvalidOperation) as e:
            logger.error("billing_invalid_rate", extra={"field": field, "value": repr(value)})
            raise InvalidRateError(field, value) from e
    if rate.is_negative:
        logger.error("billing_invalid_rate", extra={"field": field, "value": str(rate.amount)})
        raise InvalidRateError(field, value, reason="negative")
    return rate


def compute_rent(quantity: int, days: int, daily_rate: Money) -> Money:
    """quantity * days * daily_rate, exact in minor units."""
    return Money.from_minor_units(
        daily_rate.minor_units * quantity * days,
        daily_rate.currency,
    )


def sum_money(amounts: Sequence[Money], currency: Currency) -> Money:
    """Sum Money values through integer minor units."""
    return Money.from_minor_units(sum(m.minor_units for m in amounts), currency)


# ============================================================================
# Core Period Calculation
# ============================================================================


def _apply_bucket(
    balance: int,
    bucket: Sequence[InventoryEvent],
    diagnostics: list[BillingDiagnostic],
) -> int:
    """Apply one effective date's events, issues first; clamp at zero."""
    for event in bucket:
        if event.kind is MovementKind.ISSUE:
            balance += event.quantity
        elif event.quantity > balance:
            diagnostics.append(report(
                logger,
                DiagnosticCode.NEGATIVE_BALANCE_CLAMPED,
                f"return of {event.quantity} exceeds balance {balance}; clamped to 0",
                reference_id=event.reference_id,
                on_date=event.effective_date,
                balance_before=balance,
                quantity=event.quantity,
            ))
            balance = 0
        else:
            balance -= event.quantity
    return balance


def _opening_quantities(bucket: Sequence[InventoryEvent]) -> tuple[int | None, int | None]:
    issued = sum(e.quantity for e in bucket if e.kind is MovementKind.ISSUE)
    returned = sum(e.quantity for e in bucket if e.kind is MovementKind.RETURN)
    if issued and returned:
        return issued, returned
    return None, None


@traced_engine("rental_periods", "1.0", fingerprint_fields=("events", "bill_date", "daily_rate"))
def calculate_billing_periods(
    events: Sequence[InventoryEvent],
    bill_date: date | str,
    daily_rate: Money | Decimal | str | int,
    currency: str | Currency | None = None,
) -> BillingPeriodResult:
    """
    Build the billing periods for one client up to and including bill_date.

    Pure function - no side effects, no I/O, deterministic output.

    Args:
        events: Normalized events (any order).
        bill_date: Last billed day, inclusive.
        daily_rate: Rent per unit per day (Money, or a number in ``currency``).
        currency: Currency of the bill.  When None it is the Money rate's own
            currency, or the configured default for a plain-number rate.

    Returns:
        BillingPeriodResult with periods, ledger and total rent.

    Raises:
        InvalidDateError: If bill_date is not a calendar date.
        InvalidRateError: If daily_rate is negative, or is Money in a
            currency other than ``currency``.
    """
    t0 = time.monotonic()
    bill_date = coerce_date(bill_date, "bill_date")
    if currency is None:
        currency = (
            daily_rate.currency if isinstance(daily_rate, Money)
            else get_default_config().currency
        )
    daily_rate = coerce_rate(daily_rate, "daily_rate", currency)
    window_end = bill_date + ONE_DAY

    included = sort_by_effective_date(e for e in events if e.date <= bill_date)
    ledger = build_ledger(included)

    logger.info("period_calculation_started", extra={
        "bill_date": bill_date,
        "daily_rate": str(daily_rate.amount),
        "currency": daily_rate.currency.code,
        "event_count": len(included),
        "excluded_count": len(events) - len(included),
    })

    buckets: dict[date, list[InventoryEvent]] = defaultdict(list)
    for event in included:
        buckets[event.effective_date].append(event)
    bucket_dates = sorted(buckets)

    diagnostics: list[BillingDiagnostic] = []
    periods: list[BillingPeriod] = []
    balance = 0

    for index, start in enumerate(bucket_dates):
        bucket = buckets[start]
        balance = _apply_bucket(balance, bucket, diagnostics)
        if balance <= 0:
            continue

        is_last = index == len(bucket_dates) - 1
        end = window_end if is_last else bucket_dates[index + 1]
        days = (end - start).days
        if days <= 0:
            diagnostics.append(report(
                logger,
                DiagnosticCode.NON_POSITIVE_PERIOD,
                f"period starting {start.isoformat()} has {days} days; dropped",
                reference_id=bucket[0].reference_id,
                on_date=start,
                quantity=balance,
            ))
            continue

        issue_qty, return_qty = _opening_quantities(bucket)
        periods.append(BillingPeriod(
            start_date=start,
            end_date=end,
            quantity=balance,
            days=days,
            rent=compute_rent(balance, days, daily_rate),
            cause_type=bucket[0].kind,
            reference_id=bucket[0].reference_id,
            inclusive_end=end == window_end,
            issue_qty=issue_qty,
            return_qty=return_qty,
        ))

    total_rent = sum_money([p.rent for p in periods], daily_rate.currency)

    duration_ms = round((time.monotonic() - t0) * 1000, 2)
    logger.info("period_calculation_completed", extra={
        "bill_date": bill_date,
        "period_count": len(periods),
        "total_rent": str(total_rent.amount),
        "closing_balance": balance,
        "diagnostic_count": len(diagnostics),
        "duration_ms": duration_ms,
    })

    return BillingPeriodResult(
        bill_date=bill_date,
        daily_rate=daily_rate,
        events=tuple(included),
        ledger=ledger,
        periods=tuple(periods),
        total_rent=total_rent,
        closing_balance=balance,
        diagnostics=tuple(diagnostics),
    )
