"""
Pure domain layer.

Value objects with NO dependencies on:
- Storage
- Time/clock
- I/O

All domain objects are immutable and deterministic.
"""

from rental_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from rental_kernel.domain.values import (
    Currency,
    Money,
    from_minor_units,
    to_minor_units,
)

__all__ = [
    "Currency",
    "CurrencyInfo",
    "CurrencyRegistry",
    "Money",
    "from_minor_units",
    "to_minor_units",
]
