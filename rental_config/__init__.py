"""
Billing configuration (``rental_config``).

Packaged defaults live in ``defaults.yaml``; callers load them with
``get_default_config()`` or point ``load_billing_config()`` at their own
file.
"""

from rental_config.loader import (
    BillingConfig,
    RecordFields,
    RecordLayout,
    get_default_config,
    load_billing_config,
)

__all__ = [
    "BillingConfig",
    "RecordFields",
    "RecordLayout",
    "get_default_config",
    "load_billing_config",
]
