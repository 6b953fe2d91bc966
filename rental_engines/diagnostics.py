"""
Module: rental_engines.diagnostics
Responsibility:
    Data-integrity warnings raised while billing.  A bad record never
    aborts a bill: the engine skips or clamps it, logs a WARNING, and
    returns a BillingDiagnostic on the result so the caller can show it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum


class DiagnosticCode(str, Enum):
    """Kinds of recoverable data-integrity problems."""

    NON_POSITIVE_QUANTITY = "NON_POSITIVE_QUANTITY"
    INVALID_EVENT_DATE = "INVALID_EVENT_DATE"
    NEGATIVE_BALANCE_CLAMPED = "NEGATIVE_BALANCE_CLAMPED"
    NON_POSITIVE_PERIOD = "NON_POSITIVE_PERIOD"
    NEGATIVE_CATEGORY_BALANCE = "NEGATIVE_CATEGORY_BALANCE"


@dataclass(frozen=True)
class BillingDiagnostic:
    """One recoverable problem found in the input records."""

    code: DiagnosticCode
    message: str
    reference_id: str | None = None
    on_date: date | None = None


def report(
    logger: logging.Logger,
    code: DiagnosticCode,
    message: str,
    *,
    reference_id: str | None = None,
    on_date: date | None = None,
    **fields: object,
) -> BillingDiagnostic:
    """Log a data-integrity warning and return it as a diagnostic."""
    logger.warning(code.value.lower(), extra={
        "diagnostic_code": code.value,
        "detail": message,
        "reference_id": reference_id,
        "on_date": on_date,
        **fields,
    })
    return BillingDiagnostic(
        code=code,
        message=message,
        reference_id=reference_id,
        on_date=on_date,
    )
