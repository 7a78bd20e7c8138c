"""
Totals -- subtotal, tax and total derivation.

Responsibility:
    Derives the three computed monetary fields of an invoice from its line
    items and tax rate:

        subtotal   = sum(item.amount)
        tax_amount = subtotal x tax_rate / 100   (rounded half-up to cents)
        total      = subtotal + tax_amount

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Failure modes:
    - InvalidAmountError when the tax rate is not a number in 0..100.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from invoice_kernel.domain.line_items import LineItem
from invoice_kernel.domain.values import Money, quantize, to_decimal
from invoice_kernel.exceptions import InvalidAmountError

MIN_TAX_RATE = Decimal(0)
MAX_TAX_RATE = Decimal(100)


@dataclass(frozen=True, slots=True)
class InvoiceTotals:
    subtotal: Money
    tax_amount: Money
    total: Money


def parse_tax_rate(value: Any) -> Decimal:
    """
    Normalize a tax rate to a 2-place Decimal within 0..100.

    Raises:
        InvalidAmountError: If value is not numeric or out of range.
    """
    rate = quantize(to_decimal(value, "tax_rate"))
    if rate < MIN_TAX_RATE or rate > MAX_TAX_RATE:
        raise InvalidAmountError(value, "Tax rate must be between 0 and 100", "tax_rate")
    return rate


def compute_totals(items: Iterable[LineItem], tax_rate: Decimal | int | str) -> InvoiceTotals:
    """Compute subtotal, tax amount and total.  Pure and deterministic."""
    rate = parse_tax_rate(tax_rate)
    subtotal = Money.zero()
    for item in items:
        subtotal = subtotal + item.amount
    tax_amount = subtotal.percentage_of(rate)
    return InvoiceTotals(
        subtotal=subtotal,
        tax_amount=tax_amount,
        total=subtotal + tax_amount,
    )
