"""
Values -- Immutable, self-validating monetary value object.

Responsibility:
    Provides ``Money``, the fixed-precision decimal type used for every
    monetary field of an invoice (line quantities, rates and amounts,
    subtotal, tax amount, total).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every other domain module.  No outward dependencies.

Invariants enforced:
    - Amounts are ``Decimal`` quantized to exactly 2 fractional digits.
      Binary floats never take part in arithmetic.
    - Every rounding step uses ROUND_HALF_UP (half away from zero), so
      ``19.995`` becomes ``20.00`` and ``-19.995`` becomes ``-20.00``.
    - ``str(money)`` always renders exactly 2 fractional digits with no
      thousands separators, and parses back to an equal Money.

Failure modes:
    - InvalidAmountError on non-numeric, non-finite, boolean, or (when
      not allowed) negative input.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from invoice_kernel.exceptions import InvalidAmountError

DECIMAL_PLACES = 2
ROUNDING = ROUND_HALF_UP
_QUANTUM = Decimal(1).scaleb(-DECIMAL_PLACES)
_MINOR_UNIT_FACTOR = Decimal(10) ** DECIMAL_PLACES
_HUNDRED = Decimal(100)


def to_decimal(value: Any, field: str = "amount") -> Decimal:
    """
    Convert boundary input into a finite Decimal without rounding.

    Floats go through ``repr`` (shortest round-trip string), so ``33.33``
    becomes ``Decimal("33.33")`` rather than its binary expansion.

    Raises:
        InvalidAmountError: If value is not a finite number.
    """
    if isinstance(value, bool):
        raise InvalidAmountError(value, "must be a number", field)
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(repr(value)) if isinstance(value, float) else Decimal(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidAmountError(value, "must not be empty", field)
        try:
            result = Decimal(text)
        except InvalidOperation as exc:
            raise InvalidAmountError(value, "must be a number", field) from exc
    else:
        raise InvalidAmountError(value, "must be a number", field)

    if not result.is_finite():
        raise InvalidAmountError(value, "must be finite", field)
    return result


def quantize(value: Decimal) -> Decimal:
    """Round a Decimal to 2 places with the single sanctioned rounding mode."""
    return value.quantize(_QUANTUM, rounding=ROUNDING)


@dataclass(frozen=True, slots=True)
class Money:
    """
    Monetary amount value object.

    Contract:
        Wraps a Decimal rounded to 2 fractional digits.  The same rounding
        rule is applied at construction and after every multiplication, so
        every call site produces identical results.

    Guarantees:
        - Immutable and hashable (frozen dataclass with slots)
        - amount is always a 2-place Decimal (never float)

    Non-goals:
        - Does NOT carry a currency (single-currency system)
    """

    amount: Decimal

    def __post_init__(self) -> None:
        amount = self.amount
        if not isinstance(amount, Decimal):
            amount = to_decimal(amount)
        if not amount.is_finite():
            raise InvalidAmountError(amount, "must be finite")
        rounded = quantize(amount)
        # No negative zero: "-0.00" must never be rendered
        object.__setattr__(self, "amount", abs(rounded) if rounded == 0 else rounded)

    @classmethod
    def from_input(
        cls,
        value: Any,
        *,
        field: str = "amount",
        allow_negative: bool = False,
    ) -> Money:
        """
        Parse a boundary value (string or number) into Money.

        Preconditions:
            - value is a str, int, float or Decimal.

        Postconditions:
            - Returns Money rounded to 2 places (ROUND_HALF_UP).

        Raises:
            InvalidAmountError: If value is not a finite number, or is
                negative while ``allow_negative`` is False.
        """
        amount = to_decimal(value, field)
        if amount < 0 and not allow_negative:
            raise InvalidAmountError(value, "must not be negative", field)
        return cls(amount)

    @classmethod
    def zero(cls) -> Money:
        return cls(Decimal(0))

    @classmethod
    def from_minor_units(cls, units: int) -> Money:
        """Build Money from an integer count of cents."""
        return cls(Decimal(units) / _MINOR_UNIT_FACTOR)

    @property
    def minor_units(self) -> int:
        """Amount as an integer count of cents."""
        return int(self.amount * _MINOR_UNIT_FACTOR)

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    @property
    def is_positive(self) -> bool:
        return self.amount > 0

    @property
    def is_negative(self) -> bool:
        return self.amount < 0

    def add(self, other: Money) -> Money:
        """Add two Money values."""
        if not isinstance(other, Money):
            raise TypeError(f"Cannot add Money and {type(other).__name__}")
        return Money(self.amount + other.amount)

    def multiply(self, factor: Money | Decimal | int | str) -> Money:
        """Multiply by a plain number, rounding the product to 2 places."""
        if isinstance(factor, Money):
            factor = factor.amount
        elif not isinstance(factor, Decimal):
            factor = to_decimal(factor, "factor")
        return Money(self.amount * factor)

    def percentage_of(self, pct: Decimal | int | str) -> Money:
        """Return ``pct`` percent of this amount, rounded to 2 places."""
        if not isinstance(pct, Decimal):
            pct = to_decimal(pct, "percentage")
        return Money(self.amount * pct / _HUNDRED)

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return self.add(other)

    def __radd__(self, other: Any) -> Money:
        # Lets sum() start from the int 0
        if other == 0:
            return self
        return NotImplemented

    def __mul__(self, factor: Decimal | int | str) -> Money:
        if not isinstance(factor, (Decimal, int, str)) or isinstance(factor, bool):
            return NotImplemented
        return self.multiply(factor)

    def __rmul__(self, factor: Decimal | int | str) -> Money:
        return self.__mul__(factor)

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.amount <= other.amount

    def __gt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.amount > other.amount

    def __ge__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.amount >= other.amount

    def __str__(self) -> str:
        return f"{self.amount:f}"

    def __repr__(self) -> str:
        return f"Money({str(self)!r})"
