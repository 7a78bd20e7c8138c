"""
Module: invoice_kernel.store.base
Responsibility: The persistence contract the invoice services depend on.
Architecture position: Kernel > Store.  May import from domain/ and
    exceptions.  Concrete stores (sql_store, memory_store) implement it.

Invariants enforced:
    - invoice_number is unique.  ``insert`` reports a collision as
      DuplicateKeyError(field="invoice_number") and leaves nothing behind,
      which is what the allocator's retry loop relies on.
    - Stores persist exactly what they are given.  They never compute
      totals, statuses or timestamps.
    - Stores return frozen ``Invoice`` records, never live ORM objects.

Failure modes:
    - DuplicateKeyError from insert() on a unique index violation.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from invoice_kernel.domain.invoice import Invoice
from invoice_kernel.domain.queries import (
    SORTABLE_FIELDS,
    InvoicePage,
    InvoiceQuery,
    InvoiceStatistics,
    SortOrder,
)


class InvoiceStore(ABC):
    """
    Abstract invoice persistence.

    Contract:
        One store instance serves one unit of work.  SQL stores share the
        caller's session and never commit; the caller owns the transaction.
    """

    @abstractmethod
    def find_max_invoice_number_with_prefix(self, prefix: str) -> str | None:
        """Highest invoice number starting with ``prefix``, or None."""

    @abstractmethod
    def insert(self, invoice: Invoice) -> Invoice:
        """
        Persist a new invoice.

        Raises:
            DuplicateKeyError: If a unique index (invoice_number) is violated.
        """

    @abstractmethod
    def get(self, invoice_id: UUID) -> Invoice | None:
        """Fetch one invoice by id."""

    @abstractmethod
    def replace(self, invoice: Invoice) -> Invoice | None:
        """Overwrite the stored invoice with the same id.  None if absent."""

    @abstractmethod
    def remove(self, invoice_id: UUID) -> Invoice | None:
        """Hard-delete an invoice, returning what was removed.  None if absent."""

    @abstractmethod
    def query(self, criteria: InvoiceQuery) -> InvoicePage:
        """Filtered, sorted, paginated listing."""

    @abstractmethod
    def statistics(self) -> InvoiceStatistics:
        """Counts per status and revenue over paid invoices."""


__all__ = [
    "InvoiceStore",
    "InvoiceQuery",
    "InvoicePage",
    "InvoiceStatistics",
    "SortOrder",
    "SORTABLE_FIELDS",
]
