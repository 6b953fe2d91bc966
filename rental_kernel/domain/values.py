"""
Values -- Immutable, self-validating money value objects.

Responsibility:
    Provides Currency and Money, plus the minor-unit boundary used by every
    rent and bill calculation. Engines do their arithmetic on integer minor
    units (paise, cents) and only build Money at the edges, so a sum of
    rents is always the exact sum of its parts.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    No outward dependencies except rental_kernel.domain.currency and
    rental_kernel.exceptions.

Failure modes:
    - InvalidCurrencyError on construction with an unknown currency code
    - ValueError on construction with an unparseable amount
    - ValueError when arithmetic mixes different currencies
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from rental_kernel.domain.currency import CurrencyRegistry
from rental_kernel.exceptions import InvalidCurrencyError


def to_minor_units(amount: Decimal | int | str, decimal_places: int) -> int:
    """
    Convert a major-unit amount to an integer count of minor units.

    Rounds half up to the nearest minor unit.

    Example:
        to_minor_units(Decimal("10.505"), 2) -> 1051
    """
    if not isinstance(amount, Decimal):
        amount = Decimal(str(amount))
    scaled = amount.scaleb(decimal_places)
    return int(scaled.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def from_minor_units(units: int, decimal_places: int) -> Decimal:
    """
    Convert an integer count of minor units back to a major-unit Decimal.

    Example:
        from_minor_units(1050, 2) -> Decimal("10.50")
    """
    return Decimal(units).scaleb(-decimal_places)


@dataclass(frozen=True, slots=True)
class Currency:
    """
    ISO 4217 currency code value object.

    Wraps a three-letter code, uppercased and validated against
    CurrencyRegistry on construction.
    """

    code: str

    def __post_init__(self) -> None:
        normalized = self.code.upper().strip() if isinstance(self.code, str) else ""
        if not CurrencyRegistry.is_valid(normalized):
            raise InvalidCurrencyError(str(self.code))
        object.__setattr__(self, "code", normalized)

    @property
    def decimal_places(self) -> int:
        """Number of minor-unit digits for this currency."""
        return CurrencyRegistry.get_decimal_places(self.code)

    @property
    def name(self) -> str:
        info = CurrencyRegistry.get_info(self.code)
        return info.name if info else self.code

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Currency({self.code!r})"


@dataclass(frozen=True, slots=True)
class Money:
    """
    Monetary amount value object.

    Contract:
        Pairs a Decimal amount with its Currency. Never holds a float; float
        and int inputs are converted through ``str`` so 0.1 stays 0.1.

    Guarantees:
        - Immutable and hashable
        - Arithmetic operations enforce same-currency constraint

    Non-goals:
        - Does NOT perform currency conversion
        - Does NOT auto-round -- use ``round()`` or the minor-unit helpers
    """

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            try:
                object.__setattr__(self, "amount", Decimal(str(self.amount)))
            except (InvalidOperation, ValueError) as e:
                raise ValueError(f"Invalid amount: {self.amount}") from e
        if not self.amount.is_finite():
            raise ValueError(f"Invalid amount: {self.amount}")

        if isinstance(self.currency, str):
            object.__setattr__(self, "currency", Currency(self.currency))
        elif not isinstance(self.currency, Currency):
            raise TypeError(f"currency must be Currency or str, got {type(self.currency)}")

    @classmethod
    def of(cls, amount: Decimal | str | int | float, currency: str | Currency) -> Money:
        """Factory method for creating Money."""
        if not isinstance(amount, Decimal):
            try:
                amount = Decimal(str(amount))
            except InvalidOperation as e:
                raise ValueError(f"Invalid amount: {amount!r}") from e
        if isinstance(currency, str):
            currency = Currency(currency)
        return cls(amount=amount, currency=currency)

    @classmethod
    def zero(cls, currency: str | Currency) -> Money:
        """Create a zero amount in the given currency."""
        if isinstance(currency, str):
            currency = Currency(currency)
        return cls(amount=Decimal("0"), currency=currency)

    @classmethod
    def from_minor_units(cls, units: int, currency: str | Currency) -> Money:
        """Build Money from an integer count of minor units."""
        if isinstance(currency, str):
            currency = Currency(currency)
        return cls(
            amount=from_minor_units(units, currency.decimal_places),
            currency=currency,
        )

    @property
    def minor_units(self) -> int:
        """Amount as an integer count of minor units, rounded half up."""
        return to_minor_units(self.amount, self.currency.decimal_places)

    @property
    def is_zero(self) -> bool:
        return self.amount == Decimal("0")

    @property
    def is_positive(self) -> bool:
        return self.amount > Decimal("0")

    @property
    def is_negative(self) -> bool:
        return self.amount < Decimal("0")

    def round(self, rounding: str = ROUND_HALF_UP) -> Money:
        """Round to the currency's decimal places. Returns a new Money."""
        info = CurrencyRegistry.get_info(self.currency.code)
        quantize_str = info.quantize_string if info else "0.01"
        rounded = self.amount.quantize(Decimal(quantize_str), rounding=rounding)
        return Money(amount=rounded, currency=self.currency)

    def _check_currency(self, other: Money, operation: str) -> None:
        if self.currency != other.currency:
            raise ValueError(
                f"Cannot {operation} Money with different currencies: "
                f"{self.currency} and {other.currency}"
            )

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "add")
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "subtract")
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def __neg__(self) -> Money:
        return Money(amount=-self.amount, currency=self.currency)

    def __mul__(self, factor: Decimal | int | str) -> Money:
        """Multiply by a scalar."""
        if isinstance(factor, (int, str)):
            factor = Decimal(str(factor))
        if not isinstance(factor, Decimal):
            return NotImplemented
        return Money(amount=self.amount * factor, currency=self.currency)

    def __rmul__(self, factor: Decimal | int | str) -> Money:
        return self.__mul__(factor)

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount <= other.amount

    def __gt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount > other.amount

    def __ge__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount >= other.amount

    def __str__(self) -> str:
        return f"{self.amount} {self.currency.code}"

    def __repr__(self) -> str:
        return f"Money({self.amount!r}, {self.currency!r})"
