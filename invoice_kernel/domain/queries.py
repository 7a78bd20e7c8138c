"""
Queries -- read-side DTOs exchanged with the invoice store.

``InvoiceQuery`` describes a filtered, sorted, paginated listing;
``InvoicePage`` and ``InvoiceStatistics`` are what the store returns.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from invoice_kernel.domain.invoice import Invoice
from invoice_kernel.domain.lifecycle import InvoiceStatus
from invoice_kernel.domain.values import Money


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


# Wire sort key -> Invoice attribute
SORTABLE_FIELDS: dict[str, str] = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "invoiceDate": "invoice_date",
    "dueDate": "due_date",
    "invoiceNumber": "invoice_number",
    "clientName": "client_name",
    "status": "status",
    "total": "total",
}


@dataclass(frozen=True)
class InvoiceQuery:
    """
    Listing criteria.

    ``search`` is a case-insensitive literal substring matched against
    client name, client email and invoice number.
    """

    status: InvoiceStatus | None = None
    search: str | None = None
    page: int = 1
    limit: int = 10
    sort_by: str = "createdAt"
    order: SortOrder = SortOrder.DESC

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if self.limit < 1:
            raise ValueError(f"limit must be >= 1, got {self.limit}")
        if self.sort_by not in SORTABLE_FIELDS:
            raise ValueError(f"Unsupported sort field: {self.sort_by}")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def sort_attribute(self) -> str:
        return SORTABLE_FIELDS[self.sort_by]


@dataclass(frozen=True)
class InvoicePage:
    invoices: tuple[Invoice, ...]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit)


@dataclass(frozen=True)
class InvoiceStatistics:
    """Counts per status plus revenue (sum of ``total`` over paid invoices)."""

    total: int
    draft: int
    pending: int
    paid: int
    revenue: Money
