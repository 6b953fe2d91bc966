"""
Module: rental_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the rental
    billing pipeline:

        events   -> normalize raw udhar/jama challans into dated events
        ledger   -> transaction-date running-balance audit trail
        periods  -> effective-date billing periods and rent
        window   -> clamp periods to a from date for partial re-billing
        bill     -> charges, discounts, payments, service charge, totals
        balances -> per-size outstanding snapshot

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      The bill date is always an explicit parameter.
    - Money is summed in integer minor units; floats never carry amounts.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from rental_engines import calculate_bill

    bill = calculate_bill(udhar_challans, jama_challans, "2025-01-31", "5")
"""

from rental_kernel.logging_config import get_logger

logger = get_logger("engines")

from rental_engines.balances import (
    CategoryBalance,
    CategoryBalanceReport,
    calculate_category_balances,
)
from rental_engines.bill import (
    BillResult,
    ChargeLine,
    aggregate_bill,
    calculate_bill,
    verify_bill,
)
from rental_engines.diagnostics import BillingDiagnostic, DiagnosticCode
from rental_engines.events import (
    InventoryEvent,
    MovementKind,
    NormalizedEvents,
    earliest_issue_date,
    normalize_events,
    sort_by_effective_date,
    sort_by_transaction_date,
)
from rental_engines.ledger import LedgerEntry, build_ledger
from rental_engines.periods import (
    BillingPeriod,
    BillingPeriodResult,
    calculate_billing_periods,
    compute_rent,
)
from rental_engines.window import clamp_to_window

__all__ = [
    # Events
    "InventoryEvent",
    "MovementKind",
    "NormalizedEvents",
    "earliest_issue_date",
    "normalize_events",
    "sort_by_effective_date",
    "sort_by_transaction_date",
    # Ledger
    "LedgerEntry",
    "build_ledger",
    # Periods
    "BillingPeriod",
    "BillingPeriodResult",
    "calculate_billing_periods",
    "compute_rent",
    # Window
    "clamp_to_window",
    # Bill
    "BillResult",
    "ChargeLine",
    "aggregate_bill",
    "calculate_bill",
    "verify_bill",
    # Balances
    "CategoryBalance",
    "CategoryBalanceReport",
    "calculate_category_balances",
    # Diagnostics
    "BillingDiagnostic",
    "DiagnosticCode",
]
