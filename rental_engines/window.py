"""
Module: rental_engines.window
Responsibility:
    Window Clamp.  Restricts an already-computed period list to a billing
    window that starts at an explicit from date, for re-billing a
    sub-range of a client's history.

    - Periods ending on or before from_date are dropped.
    - Periods starting on or after from_date are kept unchanged.
    - A period spanning from_date is truncated to start there; its days
      and rent are recomputed, and its quantity, cause and reference are
      kept.  ``inclusive_end`` is carried through, so a truncated final
      period still bills the bill date itself.

Invariants enforced:
    - Pure: returns a new BillingPeriodResult, never mutates the input.
    - total_rent is re-summed in minor units from the surviving periods.
"""

from __future__ import annotations

import dataclasses
from datetime import date

from rental_engines.events import coerce_date
from rental_engines.periods import (
    BillingPeriod,
    BillingPeriodResult,
    compute_rent,
    sum_money,
)
from rental_engines.tracer import traced_engine
from rental_kernel.domain.values import Money
from rental_kernel.logging_config import get_logger

logger = get_logger("engines.window")


def truncate_period(period: BillingPeriod, from_date: date, daily_rate: Money) -> BillingPeriod:
    """Move a period's start forward to from_date, recomputing days and rent."""
    days = (period.end_date - from_date).days
    return dataclasses.replace(
        period,
        start_date=from_date,
        days=days,
        rent=compute_rent(period.quantity, days, daily_rate),
    )


def clamp_periods(
    periods: tuple[BillingPeriod, ...],
    from_date: date,
    daily_rate: Money,
) -> tuple[BillingPeriod, ...]:
    """Apply the from-date window to a period list."""
    clamped: list[BillingPeriod] = []
    for period in periods:
        if period.end_date <= from_date:
            continue
        if period.start_date >= from_date:
            clamped.append(period)
        else:
            clamped.append(truncate_period(period, from_date, daily_rate))
    return tuple(clamped)


@traced_engine("rental_window", "1.0", fingerprint_fields=("from_date",))
def clamp_to_window(
    result: BillingPeriodResult,
    from_date: date | str,
) -> BillingPeriodResult:
    """
    Restrict a period calculation to periods on or after from_date.

    Args:
        result: Output of calculate_billing_periods.
        from_date: First day of the billing window.

    Returns:
        A new BillingPeriodResult with clamped periods and re-summed rent.

    Raises:
        InvalidDateError: If from_date is not a calendar date.
    """
    from_date = coerce_date(from_date, "from_date")
    periods = clamp_periods(result.periods, from_date, result.daily_rate)
    total_rent = sum_money([p.rent for p in periods], result.daily_rate.currency)

    logger.info("window_clamp_applied", extra={
        "from_date": from_date,
        "bill_date": result.bill_date,
        "periods_before": len(result.periods),
        "periods_after": len(periods),
        "total_rent_before": str(result.total_rent.amount),
        "total_rent_after": str(total_rent.amount),
    })

    return dataclasses.replace(
        result,
        periods=periods,
        total_rent=total_rent,
        from_date=from_date,
    )
