"""
Module: rental_engines.ledger
Responsibility:
    Ledger Builder.  Replays events in real transaction-date order and
    records a running balance trail for audit and display.

    The ledger is informational only.  The period calculator keeps its own
    balance in effective-date order and never reads this trail; the two
    orderings differ whenever a return takes effect the day after it was
    recorded.  The trail is not clamped, so a negative balance_after shows
    exactly where the records disagree.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from rental_engines.events import InventoryEvent, MovementKind, sort_by_transaction_date
from rental_kernel.logging_config import get_logger

logger = get_logger("engines.ledger")


@dataclass(frozen=True)
class LedgerEntry:
    """One append-only line of the running-balance audit trail."""

    transaction_date: date
    effective_date: date
    balance_before: int
    signed_quantity: int
    balance_after: int
    kind: MovementKind
    reference_id: str


def build_ledger(events: Iterable[InventoryEvent]) -> tuple[LedgerEntry, ...]:
    """Replay events by (transaction date, priority) into a running-balance trail."""
    balance = 0
    entries: list[LedgerEntry] = []
    for event in sort_by_transaction_date(events):
        balance_before = balance
        balance += event.signed_quantity
        entries.append(LedgerEntry(
            transaction_date=event.date,
            effective_date=event.effective_date,
            balance_before=balance_before,
            signed_quantity=event.signed_quantity,
            balance_after=balance,
            kind=event.kind,
            reference_id=event.reference_id,
        ))

    logger.debug("ledger_built", extra={
        "entry_count": len(entries),
        "closing_balance": balance,
    })
    return tuple(entries)
