"""
Line items -- normalization of raw billable entries.

Responsibility:
    Turns raw ``{description, quantity, rate}`` mappings into validated
    ``LineItem`` values whose ``amount`` is always recomputed as
    ``quantity x rate``.  Any ``amount`` supplied by the caller is ignored.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Failure modes:
    - NoLineItemsError when the input sequence is empty.
    - InvalidLineItemError (with item index and field) when a description
      is blank, quantity <= 0, rate < 0 or either is not a number.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from invoice_kernel.domain.values import Money
from invoice_kernel.exceptions import (
    InvalidAmountError,
    InvalidLineItemError,
    NoLineItemsError,
)


@dataclass(frozen=True, slots=True)
class LineItem:
    """One billable entry on an invoice."""

    description: str
    quantity: Money
    rate: Money
    amount: Money

    @classmethod
    def of(cls, description: str, quantity: Money, rate: Money) -> LineItem:
        """Build a line item, deriving ``amount`` from quantity and rate."""
        return cls(
            description=description,
            quantity=quantity,
            rate=rate,
            amount=rate.multiply(quantity),
        )


def process_item(index: int, raw: Mapping[str, Any]) -> LineItem:
    """Validate a single raw entry.  ``index`` is used for error reporting."""
    if not isinstance(raw, Mapping):
        raise InvalidLineItemError(index, "item", "must be an object")

    description = raw.get("description")
    if not isinstance(description, str) or not description.strip():
        raise InvalidLineItemError(index, "description", "Item description is required")

    try:
        quantity = Money.from_input(raw.get("quantity"), field="quantity", allow_negative=True)
    except InvalidAmountError as exc:
        raise InvalidLineItemError(index, "quantity", exc.reason) from exc
    if not quantity.is_positive:
        raise InvalidLineItemError(index, "quantity", "Quantity must be greater than 0")

    try:
        rate = Money.from_input(raw.get("rate"), field="rate", allow_negative=True)
    except InvalidAmountError as exc:
        raise InvalidLineItemError(index, "rate", exc.reason) from exc
    if rate.is_negative:
        raise InvalidLineItemError(index, "rate", "Rate must be 0 or greater")

    return LineItem.of(description.strip(), quantity, rate)


def process_items(raw_items: Sequence[Mapping[str, Any]]) -> tuple[LineItem, ...]:
    """
    Normalize raw item input into line items, preserving order.

    Raises:
        NoLineItemsError: If ``raw_items`` is empty.
        InvalidLineItemError: On the first invalid entry.
    """
    if not raw_items:
        raise NoLineItemsError()
    return tuple(process_item(index, raw) for index, raw in enumerate(raw_items))
