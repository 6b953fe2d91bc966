"""
Billing Configuration Loader (``rental_config.loader``).

Responsibility
--------------
Loads a billing YAML file and parses it into the typed, frozen
``BillingConfig`` / ``RecordLayout`` dataclasses consumed by the engines.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys -> ``KeyError`` propagates.
* Bad values (unknown currency, negative service rate, zero categories)
  -> ``ConfigurationError``.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from rental_kernel.domain.currency import CurrencyRegistry
from rental_kernel.exceptions import ConfigurationError
from rental_kernel.logging_config import get_logger

logger = get_logger("config.loader")

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"


@dataclass(frozen=True)
class RecordFields:
    """Field names of one kind of raw challan record."""

    date_field: str
    reference_field: str
    items_field: str = "items"


@dataclass(frozen=True)
class RecordLayout:
    """
    Shape of the raw issue (udhar) and return (jama) records.

    ``quantity_fields`` lists every sub-quantity field summed into an
    event's quantity; ``categories`` and ``kinds`` say how those fields
    split into size categories and stock kinds.  ``own_kind`` is the kind
    counting the depot's own stock; every other kind is borrowed stock.
    """

    issue: RecordFields
    returns: RecordFields
    field_template: str
    categories: tuple[str, ...]
    kinds: tuple[str, ...]
    own_kind: str

    def field_name(self, category: str, kind: str) -> str:
        return self.field_template.format(category=category, kind=kind)

    @property
    def quantity_fields(self) -> tuple[str, ...]:
        return tuple(
            self.field_name(category, kind)
            for category in self.categories
            for kind in self.kinds
        )


@dataclass(frozen=True)
class BillingConfig:
    """Billing defaults: currency, service rate, and record layout."""

    currency: str
    service_rate: Decimal
    layout: RecordLayout


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_record_fields(data: dict[str, Any]) -> RecordFields:
    """Parse RecordFields from a dict."""
    return RecordFields(
        date_field=data["date_field"],
        reference_field=data["reference_field"],
        items_field=data.get("items_field", "items"),
    )


def parse_layout(records: dict[str, Any], quantities: dict[str, Any]) -> RecordLayout:
    """
    Parse a RecordLayout from the ``records`` and ``quantities`` sections.

    ``quantities.categories`` is either a count (categories 1..N) or an
    explicit list of category labels.
    """
    raw_categories = quantities["categories"]
    if isinstance(raw_categories, int):
        if raw_categories <= 0:
            raise ConfigurationError("quantities.categories", "must be positive")
        categories = tuple(str(i) for i in range(1, raw_categories + 1))
    else:
        categories = tuple(str(c) for c in raw_categories)
        if not categories:
            raise ConfigurationError("quantities.categories", "must not be empty")

    kinds = tuple(str(k) for k in quantities["kinds"])
    if not kinds:
        raise ConfigurationError("quantities.kinds", "must not be empty")

    own_kind = str(quantities["own_kind"])
    if own_kind not in kinds:
        raise ConfigurationError("quantities.own_kind", f"{own_kind!r} is not one of the kinds")

    template = quantities["field_template"]
    if "{category}" not in template or "{kind}" not in template:
        raise ConfigurationError(
            "quantities.field_template",
            "must contain {category} and {kind} placeholders",
        )

    return RecordLayout(
        issue=parse_record_fields(records["issue"]),
        returns=parse_record_fields(records["return"]),
        field_template=template,
        categories=categories,
        kinds=kinds,
        own_kind=own_kind,
    )


def parse_config(data: dict[str, Any]) -> BillingConfig:
    """
    Parse a BillingConfig from a dict.

    Raises:
        KeyError: if required keys are missing.
        ConfigurationError: if a value is malformed.
    """
    currency = str(data["currency"]).upper().strip()
    if not CurrencyRegistry.is_valid(currency):
        known = ", ".join(sorted(CurrencyRegistry.all_codes()))
        raise ConfigurationError("currency", f"unknown currency {currency!r}; known: {known}")

    try:
        service_rate = Decimal(str(data["service_rate"]))
    except InvalidOperation as e:
        raise ConfigurationError("service_rate", "not a number") from e
    if not service_rate.is_finite() or service_rate < 0:
        raise ConfigurationError("service_rate", "must be a non-negative number")

    return BillingConfig(
        currency=currency,
        service_rate=service_rate,
        layout=parse_layout(data["records"], data["quantities"]),
    )


def load_billing_config(path: Path | str | None = None) -> BillingConfig:
    """Load a BillingConfig from ``path`` (packaged defaults when None)."""
    config_path = Path(path) if path is not None else DEFAULTS_PATH
    config = parse_config(load_yaml_file(config_path))
    logger.debug("billing_config_loaded", extra={
        "path": str(config_path),
        "currency": config.currency,
        "service_rate": str(config.service_rate),
        "quantity_field_count": len(config.layout.quantity_fields),
    })
    return config


@functools.lru_cache(maxsize=1)
def get_default_config() -> BillingConfig:
    """Return the packaged default configuration (loaded once)."""
    return load_billing_config()
