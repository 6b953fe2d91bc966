"""
Module: rental_engines.balances
Responsibility:
    Per-category outstanding balance snapshot.  For every plate size
    category, counts how many units a client still holds as of a date,
    split into the depot's own stock (the layout's ``own_kind`` fields,
    ``qty`` by default) and stock the depot borrowed from others (every
    other kind).

    This is the per-size breakdown shown next to a bill.  It uses real
    transaction dates (a record dated on or before ``as_of`` counts) and
    is independent of the effective-date logic of the period engine.

Invariants enforced:
    - Pure: no I/O, deterministic.
    - Balances never go below zero in the output; a negative running
      result is clamped to 0 and reported as NEGATIVE_CATEGORY_BALANCE.
    - ``total`` is the net of all kinds taken before clamping, then
      clamped, so over-returned own stock offsets borrowed stock still
      out.  It can therefore be less than ``main + borrowed``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from typing import Any

from rental_config.loader import RecordFields, RecordLayout, get_default_config
from rental_engines.diagnostics import BillingDiagnostic, DiagnosticCode, report
from rental_engines.events import coerce_date, count_value, parse_calendar_date, record_items
from rental_kernel.logging_config import get_logger

logger = get_logger("engines.balances")


@dataclass(frozen=True)
class CategoryBalance:
    """Outstanding units of one size category."""

    category: str
    main: int
    borrowed: int
    total: int


@dataclass(frozen=True)
class CategoryBalanceReport:
    """Snapshot of every category's outstanding units as of one date."""

    as_of: date
    balances: tuple[CategoryBalance, ...]
    diagnostics: tuple[BillingDiagnostic, ...] = ()

    @property
    def total(self) -> int:
        return sum(b.total for b in self.balances)

    def for_category(self, category: str) -> CategoryBalance:
        for balance in self.balances:
            if balance.category == category:
                return balance
        raise KeyError(category)


def _accumulate(
    totals: dict[tuple[str, str], int],
    records: Sequence[Mapping[str, Any]],
    fields: RecordFields,
    layout: RecordLayout,
    as_of: date,
    sign: int,
) -> None:
    for record in records:
        on_date = parse_calendar_date(record.get(fields.date_field))
        if on_date is None:
            logger.warning("balance_record_without_date", extra={
                "reference_id": record.get(fields.reference_field),
            })
            continue
        if on_date > as_of:
            continue
        for item in record_items(record, fields):
            for category in layout.categories:
                for kind in layout.kinds:
                    totals[(category, kind)] += sign * count_value(
                        item.get(layout.field_name(category, kind))
                    )


def calculate_category_balances(
    issues: Sequence[Mapping[str, Any]],
    returns: Sequence[Mapping[str, Any]],
    as_of: date | str,
    layout: RecordLayout | None = None,
) -> CategoryBalanceReport:
    """
    Outstanding units per size category as of a date (inclusive).

    Raises:
        InvalidDateError: If as_of is not a calendar date.
    """
    as_of = coerce_date(as_of, "as_of")
    layout = layout or get_default_config().layout

    totals = {(category, kind): 0 for category in layout.categories for kind in layout.kinds}
    _accumulate(totals, issues, layout.issue, layout, as_of, 1)
    _accumulate(totals, returns, layout.returns, layout, as_of, -1)

    diagnostics: list[BillingDiagnostic] = []
    balances: list[CategoryBalance] = []
    for category in layout.categories:
        held: dict[str, int] = {}
        net = sum(totals[(category, kind)] for kind in layout.kinds)
        for kind in layout.kinds:
            value = totals[(category, kind)]
            if value < 0:
                diagnostics.append(report(
                    logger,
                    DiagnosticCode.NEGATIVE_CATEGORY_BALANCE,
                    f"size {category} {kind} balance is {value}; clamped to 0",
                    on_date=as_of,
                    category=category,
                    balance=value,
                ))
                value = 0
            held[kind] = value
        balances.append(CategoryBalance(
            category=category,
            main=held[layout.own_kind],
            borrowed=sum(v for k, v in held.items() if k != layout.own_kind),
            total=max(net, 0),
        ))

    result = CategoryBalanceReport(
        as_of=as_of,
        balances=tuple(balances),
        diagnostics=tuple(diagnostics),
    )
    logger.debug("category_balances_calculated", extra={
        "as_of": as_of,
        "category_count": len(balances),
        "total_outstanding": result.total,
    })
    return result
