"""
Module: invoice_kernel.store.memory_store
Responsibility: Thread-safe in-memory InvoiceStore for tests and local runs.
Architecture position: Kernel > Store.  May import from domain/ and exceptions.

Invariants enforced:
    - Same unique index as the SQL store: invoice_number and id.
    - One lock guards every read and write, so concurrent allocators see
      exactly the race the unique index resolves in the database.
    - Ordering ties are broken by id, matching SqlInvoiceStore.
"""

import threading
from uuid import UUID

from invoice_kernel.domain.invoice import Invoice
from invoice_kernel.domain.lifecycle import InvoiceStatus
from invoice_kernel.domain.queries import (
    InvoicePage,
    InvoiceQuery,
    InvoiceStatistics,
    SortOrder,
)
from invoice_kernel.domain.values import Money
from invoice_kernel.exceptions import DuplicateKeyError
from invoice_kernel.store.base import InvoiceStore


def _matches(invoice: Invoice, criteria: InvoiceQuery) -> bool:
    if criteria.status is not None and invoice.status != criteria.status:
        return False
    if criteria.search:
        needle = criteria.search.lower()
        haystacks = (invoice.client_name, invoice.client_email, invoice.invoice_number)
        if not any(needle in text.lower() for text in haystacks):
            return False
    return True


class InMemoryInvoiceStore(InvoiceStore):
    """Dictionary-backed store keyed by invoice id."""

    def __init__(self, invoices: list[Invoice] | None = None):
        self._lock = threading.Lock()
        self._invoices: dict[UUID, Invoice] = {}
        for invoice in invoices or ():
            self.insert(invoice)

    def __len__(self) -> int:
        with self._lock:
            return len(self._invoices)

    def find_max_invoice_number_with_prefix(self, prefix: str) -> str | None:
        with self._lock:
            numbers = [
                invoice.invoice_number
                for invoice in self._invoices.values()
                if invoice.invoice_number.startswith(prefix)
            ]
        return max(numbers, default=None)

    def insert(self, invoice: Invoice) -> Invoice:
        with self._lock:
            if invoice.id in self._invoices:
                raise DuplicateKeyError("id", str(invoice.id))
            if any(
                existing.invoice_number == invoice.invoice_number
                for existing in self._invoices.values()
            ):
                raise DuplicateKeyError("invoice_number", invoice.invoice_number)
            self._invoices[invoice.id] = invoice
        return invoice

    def get(self, invoice_id: UUID) -> Invoice | None:
        with self._lock:
            return self._invoices.get(invoice_id)

    def replace(self, invoice: Invoice) -> Invoice | None:
        with self._lock:
            if invoice.id not in self._invoices:
                return None
            self._invoices[invoice.id] = invoice
        return invoice

    def remove(self, invoice_id: UUID) -> Invoice | None:
        with self._lock:
            return self._invoices.pop(invoice_id, None)

    def query(self, criteria: InvoiceQuery) -> InvoicePage:
        with self._lock:
            selected = [inv for inv in self._invoices.values() if _matches(inv, criteria)]

        selected.sort(key=lambda inv: str(inv.id))
        selected.sort(
            key=lambda inv: getattr(inv, criteria.sort_attribute),
            reverse=criteria.order == SortOrder.DESC,
        )
        window = selected[criteria.offset : criteria.offset + criteria.limit]

        return InvoicePage(
            invoices=tuple(window),
            page=criteria.page,
            limit=criteria.limit,
            total=len(selected),
        )

    def statistics(self) -> InvoiceStatistics:
        with self._lock:
            invoices = list(self._invoices.values())

        def count(status: InvoiceStatus) -> int:
            return sum(1 for inv in invoices if inv.status == status)

        revenue = sum(
            (inv.total for inv in invoices if inv.status == InvoiceStatus.PAID),
            Money.zero(),
        )
        return InvoiceStatistics(
            total=len(invoices),
            draft=count(InvoiceStatus.DRAFT),
            pending=count(InvoiceStatus.PENDING),
            paid=count(InvoiceStatus.PAID),
            revenue=revenue,
        )
