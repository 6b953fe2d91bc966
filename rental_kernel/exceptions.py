"""
Typed Exception Hierarchy for the Rental Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (invoice screens, batch re-billing jobs) must be able to tell a bad
bill date from a bad rate without parsing messages:

    try:
        bill = calculate_bill(issues, returns, bill_date, daily_rate)
    except InvalidDateError as e:
        show_field_error(e.field, e.value)     # Structured data
        api_response(code=e.code)              # Machine-readable

Every exception has a CODE class attribute and carries the offending field
and value as attributes.

Only whole-call problems raise. A single bad record (zero quantity, return
larger than the balance on hand, unparseable record date) is skipped and
reported as a BillingDiagnostic instead; see rental_engines.diagnostics.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    RentalKernelError (base)
    |
    +-- BillingInputError
    |   +-- InvalidDateError
    |   +-- InvalidRateError
    |   +-- InvalidAmountError
    |
    +-- ConfigurationError
    |
    +-- CurrencyError
        +-- InvalidCurrencyError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                    | When Raised
----------------|-------------------------|-----------------------------------------
Billing input   | INVALID_DATE            | bill_date / from_date not a calendar date
                | INVALID_RATE            | daily/service rate unparseable or negative
                | INVALID_AMOUNT          | charge/discount/payment amount unparseable
----------------|-------------------------|-----------------------------------------
Configuration   | INVALID_CONFIGURATION   | Billing config value missing or malformed
----------------|-------------------------|-----------------------------------------
Currency        | INVALID_CURRENCY        | Not a known ISO 4217 code
"""

from typing import Any


class RentalKernelError(Exception):
    """
    Base exception for all rental kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "RENTAL_KERNEL_ERROR"


# Billing input exceptions


class BillingInputError(RentalKernelError):
    """Base exception for malformed top-level billing inputs."""

    code: str = "INVALID_BILLING_INPUT"


class InvalidDateError(BillingInputError):
    """A required calendar date could not be parsed."""

    code: str = "INVALID_DATE"

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"Invalid date for {field}: {value!r}")


class InvalidRateError(BillingInputError):
    """A rate is unparseable or negative."""

    code: str = "INVALID_RATE"

    def __init__(self, field: str, value: Any, reason: str = "not a number"):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid rate for {field}: {value!r} ({reason})")


class InvalidAmountError(BillingInputError):
    """A charge, discount, or payment amount is unparseable."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"Invalid amount for {field}: {value!r}")


# Configuration exceptions


class ConfigurationError(RentalKernelError):
    """Billing configuration is missing a key or holds a bad value."""

    code: str = "INVALID_CONFIGURATION"

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(f"Invalid billing configuration '{key}': {message}")


# Currency exceptions


class CurrencyError(RentalKernelError):
    """Base exception for currency-related errors."""

    code: str = "CURRENCY_ERROR"


class InvalidCurrencyError(CurrencyError):
    """Unknown ISO 4217 currency code provided."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Invalid ISO 4217 currency code: '{currency}'")
