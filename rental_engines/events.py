"""
Module: rental_engines.events
Responsibility:
    Event Normalizer.  Turns raw issue (udhar) and return (jama) challan
    records into a uniform list of dated InventoryEvents, each with an
    effective date and a tie-break priority.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  First stage of the
    billing pipeline; feeds rental_engines.ledger and
    rental_engines.periods.

Invariants enforced:
    - quantity > 0 for every emitted event; records summing to zero or
      less are skipped with a NON_POSITIVE_QUANTITY diagnostic.
    - An issue takes effect on its own date.  A return takes effect the
      next day, unless an issue exists on the same date, in which case it
      takes effect the same day so the two can net out.
    - Output order is (effective_date, priority) with issues first on a tie.

Failure modes:
    - Records whose date cannot be parsed are skipped with an
      INVALID_EVENT_DATE diagnostic; the rest of the batch is normalized.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from rental_config.loader import RecordFields, RecordLayout, get_default_config
from rental_engines.diagnostics import BillingDiagnostic, DiagnosticCode, report
from rental_kernel.exceptions import InvalidDateError
from rental_kernel.logging_config import get_logger

logger = get_logger("engines.events")

ONE_DAY = timedelta(days=1)


class MovementKind(str, Enum):
    """Direction of a plate movement relative to the client."""

    ISSUE = "issue"  # udhar
    RETURN = "return"  # jama

    @property
    def priority(self) -> int:
        """Tie-break order on a shared effective date: issues first."""
        return 1 if self is MovementKind.ISSUE else 2

    @property
    def sign(self) -> int:
        return 1 if self is MovementKind.ISSUE else -1


@dataclass(frozen=True)
class InventoryEvent:
    """One issue or return transaction, normalized."""

    date: date
    effective_date: date
    kind: MovementKind
    quantity: int
    reference_id: str

    @property
    def priority(self) -> int:
        return self.kind.priority

    @property
    def signed_quantity(self) -> int:
        return self.kind.sign * self.quantity


@dataclass(frozen=True)
class NormalizedEvents:
    """Normalizer output: events in effective-date order plus skipped-record diagnostics."""

    events: tuple[InventoryEvent, ...]
    diagnostics: tuple[BillingDiagnostic, ...] = ()


# ============================================================================
# Parsing helpers
# ============================================================================


def parse_calendar_date(value: Any) -> date | None:
    """
    Parse a calendar date from a date, datetime, or ISO-format string.

    Returns None when the value is missing or unparseable.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            return None
    return None


def coerce_date(value: Any, field: str) -> date:
    """Parse a required top-level date; raise InvalidDateError if it is not one."""
    parsed = parse_calendar_date(value)
    if parsed is None:
        logger.error("billing_invalid_date", extra={
            "field": field,
            "value": repr(value),
        })
        raise InvalidDateError(field, value)
    return parsed


def count_value(value: Any) -> int:
    """Read one sub-quantity field; missing or non-numeric counts as 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        return 0
    if not number.is_finite():
        return 0
    return int(number)


def record_items(record: Mapping[str, Any], fields: RecordFields) -> list[Mapping[str, Any]]:
    """Items attached to a record: a list, a single mapping, or the record itself."""
    if fields.items_field not in record:
        return [record]
    items = record[fields.items_field]
    if items is None:
        return []
    if isinstance(items, Mapping):
        return [items]
    return [item for item in items if item]


def record_quantity(
    record: Mapping[str, Any],
    fields: RecordFields,
    quantity_fields: Sequence[str],
) -> int:
    """Sum every sub-quantity field across all items of a record."""
    return sum(
        count_value(item.get(name))
        for item in record_items(record, fields)
        for name in quantity_fields
    )


# ============================================================================
# Normalization
# ============================================================================


def sort_by_effective_date(events: Iterable[InventoryEvent]) -> list[InventoryEvent]:
    """Billing view: (effective_date, priority). Returns a new list."""
    return sorted(events, key=lambda e: (e.effective_date, e.priority))


def sort_by_transaction_date(events: Iterable[InventoryEvent]) -> list[InventoryEvent]:
    """Audit view: (real transaction date, priority). Returns a new list."""
    return sorted(events, key=lambda e: (e.date, e.priority))


def _read_records(
    records: Sequence[Mapping[str, Any]],
    kind: MovementKind,
    fields: RecordFields,
    quantity_fields: Sequence[str],
    diagnostics: list[BillingDiagnostic],
) -> list[tuple[date, int, str]]:
    rows: list[tuple[date, int, str]] = []
    for index, record in enumerate(records):
        reference_id = str(record.get(fields.reference_field) or f"{kind.value}#{index}")
        raw_date = record.get(fields.date_field)
        on_date = parse_calendar_date(raw_date)
        if on_date is None:
            diagnostics.append(report(
                logger,
                DiagnosticCode.INVALID_EVENT_DATE,
                f"{kind.value} record has unparseable date {raw_date!r}; skipped",
                reference_id=reference_id,
                kind=kind.value,
            ))
            continue

        quantity = record_quantity(record, fields, quantity_fields)
        if quantity <= 0:
            diagnostics.append(report(
                logger,
                DiagnosticCode.NON_POSITIVE_QUANTITY,
                f"{kind.value} record has quantity {quantity}; skipped",
                reference_id=reference_id,
                on_date=on_date,
                kind=kind.value,
                quantity=quantity,
            ))
            continue

        rows.append((on_date, quantity, reference_id))
    return rows


def normalize_events(
    issues: Sequence[Mapping[str, Any]],
    returns: Sequence[Mapping[str, Any]],
    layout: RecordLayout | None = None,
) -> NormalizedEvents:
    """
    Convert raw issue/return records into effective-date-ordered events.

    Pure function.

    Args:
        issues: Raw issue (udhar) records.
        returns: Raw return (jama) records.
        layout: Record field names; packaged defaults when None.

    Returns:
        NormalizedEvents with events sorted by (effective_date, priority).
    """
    layout = layout or get_default_config().layout
    quantity_fields = layout.quantity_fields
    diagnostics: list[BillingDiagnostic] = []

    issue_rows = _read_records(
        issues, MovementKind.ISSUE, layout.issue, quantity_fields, diagnostics,
    )
    return_rows = _read_records(
        returns, MovementKind.RETURN, layout.returns, quantity_fields, diagnostics,
    )

    issue_dates = frozenset(on_date for on_date, _, _ in issue_rows)

    events = [
        InventoryEvent(
            date=on_date,
            effective_date=on_date,
            kind=MovementKind.ISSUE,
            quantity=quantity,
            reference_id=reference_id,
        )
        for on_date, quantity, reference_id in issue_rows
    ]
    same_day_returns = 0
    for on_date, quantity, reference_id in return_rows:
        nets_same_day = on_date in issue_dates
        same_day_returns += nets_same_day
        events.append(InventoryEvent(
            date=on_date,
            effective_date=on_date if nets_same_day else on_date + ONE_DAY,
            kind=MovementKind.RETURN,
            quantity=quantity,
            reference_id=reference_id,
        ))

    logger.debug("events_normalized", extra={
        "issue_count": len(issue_rows),
        "return_count": len(return_rows),
        "same_day_returns": same_day_returns,
        "skipped_count": len(diagnostics),
    })

    return NormalizedEvents(
        events=tuple(sort_by_effective_date(events)),
        diagnostics=tuple(diagnostics),
    )


def earliest_issue_date(
    issues: Sequence[Mapping[str, Any]],
    layout: RecordLayout | None = None,
) -> date | None:
    """
    Earliest parseable issue date, used to pre-fill a bill's from date.

    Records without a usable date are ignored.  Returns None when no
    issue record has one.
    """
    layout = layout or get_default_config().layout
    dates = []
    for record in issues:
        on_date = parse_calendar_date(record.get(layout.issue.date_field))
        if on_date is None:
            logger.warning("issue_record_without_date", extra={
                "reference_id": record.get(layout.issue.reference_field),
            })
            continue
        dates.append(on_date)
    if not dates:
        logger.info("no_issue_dates_found", extra={"record_count": len(issues)})
        return None
    return min(dates)
