"""
Pytest fixtures for the rental billing test suite.

Provides:
- Structured logging configuration and log capture
- Raw challan record factories shaped like the application's records
"""

import json
import logging
from io import StringIO

import pytest

from rental_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture rental_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            calculate_bill(...)
            logs = captured_logs()
            assert any(r["message"] == "bill_calculation_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("rental_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Challan record factories
# =============================================================================


def _items(qty, size, borrowed):
    item = {f"size_{size}_qty": qty}
    if borrowed:
        item[f"size_{size}_borrowed"] = borrowed
    return [item]


@pytest.fixture
def udhar():
    """Factory for raw issue (udhar) challan records."""

    def _make(on_date, qty, number="U-1", size=1, borrowed=0):
        return {
            "udhar_date": on_date,
            "udhar_challan_number": number,
            "items": _items(qty, size, borrowed),
        }

    return _make


@pytest.fixture
def jama():
    """Factory for raw return (jama) challan records."""

    def _make(on_date, qty, number="J-1", size=1, borrowed=0):
        return {
            "jama_date": on_date,
            "jama_challan_number": number,
            "items": _items(qty, size, borrowed),
        }

    return _make
