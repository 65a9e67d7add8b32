"""Mini README: Exact two-decimal money values.

Structure:
    * Money - signed amount stored as integer minor units (cents).
    * parse_amount - Outcome-returning wrapper around ``Money.parse``.

Money never holds fractions of a cent. User input with more precision than
two decimals is rejected instead of rounded; values received from the card
service are rounded half-up to the cent because the server is authoritative.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, DecimalException, InvalidOperation, localcontext
from typing import Union

from .errors import ArithmeticOverflow, InvalidAmount
from .outcome import Outcome

MAX_CENTS = 10**15
_CENT = Decimal("0.01")
_MAX_UNITS = Decimal(MAX_CENTS).scaleb(-2)

Number = Union[int, float, str, Decimal]


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, float):
        value = repr(value)
    try:
        decimal_value = Decimal(str(value).strip())
    except InvalidOperation as error:
        raise InvalidAmount(f"'{value}' is not a valid amount.") from error
    if not decimal_value.is_finite():
        raise InvalidAmount(f"'{value}' is not a valid amount.")
    if decimal_value.copy_abs() > _MAX_UNITS:
        raise ArithmeticOverflow("Amount exceeds the supported range.")
    return decimal_value


def _to_cent(value: Decimal) -> Decimal:
    """Quantise an in-range value to the cent; tiny exponents round to zero."""

    try:
        return value.quantize(_CENT, rounding=ROUND_HALF_UP)
    except DecimalException as error:
        raise InvalidAmount(f"'{value}' is not a valid amount.") from error


@dataclass(frozen=True, slots=True, order=True)
class Money:
    """Signed amount in minor units."""

    cents: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.cents, int) or isinstance(self.cents, bool):
            raise TypeError("Money must be built from an integer number of cents")
        if abs(self.cents) > MAX_CENTS:
            raise ArithmeticOverflow("Amount exceeds the supported range.")

    @classmethod
    def zero(cls) -> "Money":
        return cls(0)

    @classmethod
    def parse(cls, text: str) -> "Money":
        """Parse free-text user input such as ``"12.50"`` or ``"12,5"``.

        Raises ``InvalidAmount`` for empty, non-numeric or over-precise input
        and ``ArithmeticOverflow`` for values outside the supported range.
        """

        if text is None or not str(text).strip():
            raise InvalidAmount("Please enter an amount.")
        cleaned = str(text).strip().replace(" ", "")
        if "," in cleaned and "." not in cleaned:
            cleaned = cleaned.replace(",", ".")
        value = _to_decimal(cleaned)
        quantised = _to_cent(value)
        if quantised != value:
            raise InvalidAmount("Amounts can have at most two decimal places.")
        return cls._from_cents(quantised)

    @classmethod
    def coerce(cls, value: Number) -> "Money":
        """Convert a service-provided number, rounding half-up to the cent."""

        return cls._from_cents(_to_cent(_to_decimal(value)))

    @classmethod
    def _from_cents(cls, quantised: Decimal) -> "Money":
        return cls(int(quantised.scaleb(2)))

    def __add__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.cents + other.cents)

    def __sub__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.cents - other.cents)

    def __neg__(self) -> "Money":
        return Money(-self.cents)

    def is_positive(self) -> bool:
        return self.cents > 0

    def is_non_negative(self) -> bool:
        return self.cents >= 0

    def per_unit(self, unit_price: "Money") -> Decimal:
        """Return how many units this amount buys, rounded half-up to 0.01."""

        if not unit_price.is_positive():
            raise InvalidAmount("Unit price must be greater than zero.")
        with localcontext() as context:
            context.prec = 34
            ratio = Decimal(self.cents) / Decimal(unit_price.cents)
            return ratio.quantize(_CENT, rounding=ROUND_HALF_UP)

    def format(self) -> str:
        """Render with exactly two fraction digits, e.g. ``-20.00``."""

        sign = "-" if self.cents < 0 else ""
        whole, fraction = divmod(abs(self.cents), 100)
        return f"{sign}{whole}.{fraction:02d}"

    def __str__(self) -> str:
        return self.format()


def parse_amount(text: str) -> Outcome[Money]:
    """Parse user input, reporting failures as an ``Outcome``."""

    try:
        return Outcome.success(Money.parse(text))
    except (InvalidAmount, ArithmeticOverflow) as error:
        return Outcome.failure(error)
