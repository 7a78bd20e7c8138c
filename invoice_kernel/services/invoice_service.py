"""
InvoiceService -- the invoice use cases behind the HTTP surface.

Responsibility:
    Orchestrates one invoice operation per call: reads the clock, runs the
    pure domain functions, persists through the InvoiceStore and logs the
    outcome.  Every business rule lives in ``invoice_kernel.domain``; this
    class only sequences I/O around it.

Architecture position:
    Kernel > Services -- imperative shell.  Receives parsed inputs
    (InvoiceDraft, InvoiceChanges, InvoiceStatus, InvoiceQuery) from the
    API layer.

Invariants enforced:
    - Timestamps come from the injected Clock, read at the moment of
      persistence.
    - A no-op status change writes nothing and keeps updated_at.
    - Paid invoices are never modified (enforced by the domain layer).

Failure modes:
    - InvoiceNotFoundError: unknown id on get/update/change_status/delete.
    - InvoiceLockedError / InvalidTransitionError: lifecycle rejections.
    - InvalidDateRangeError / NoLineItemsError: invalid merged state.
    - AllocationExhaustedError: invoice number could not be allocated.

Audit relevance:
    Each successful mutation logs one INFO event (invoice_created,
    invoice_updated, invoice_status_changed, invoice_deleted) carrying the
    invoice id and number.
"""

from uuid import UUID

from invoice_kernel.domain.clock import Clock, SystemClock
from invoice_kernel.domain.invoice import (
    Invoice,
    InvoiceChanges,
    InvoiceDraft,
    apply_changes,
    apply_status,
    new_invoice,
)
from invoice_kernel.domain.lifecycle import InvoiceStatus
from invoice_kernel.domain.queries import InvoicePage, InvoiceQuery, InvoiceStatistics
from invoice_kernel.exceptions import InvoiceNotFoundError
from invoice_kernel.logging_config import LogContext, get_logger
from invoice_kernel.services.invoice_number_allocator import (
    DEFAULT_MAX_ATTEMPTS,
    InvoiceNumberAllocator,
)
from invoice_kernel.store.base import InvoiceStore

logger = get_logger("services.invoice")


class InvoiceService:
    """
    Invoice use cases over an InvoiceStore.

    Contract:
        All public methods return frozen ``Invoice`` records or read DTOs.
        The service never commits; with a SQL store the caller wraps the
        call in ``session_scope()``.
    """

    def __init__(
        self,
        store: InvoiceStore,
        clock: Clock | None = None,
        allocator: InvoiceNumberAllocator | None = None,
        max_allocation_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._allocator = allocator or InvoiceNumberAllocator(
            store, self._clock, max_attempts=max_allocation_attempts
        )

    def _require(self, invoice_id: UUID) -> Invoice:
        invoice = self._store.get(invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(str(invoice_id))
        return invoice

    def _replace(self, invoice: Invoice) -> Invoice:
        stored = self._store.replace(invoice)
        if stored is None:
            # Deleted between read and write.
            raise InvoiceNotFoundError(str(invoice.id))
        return stored

    def create(self, draft: InvoiceDraft) -> Invoice:
        """
        Create an invoice with a freshly allocated number.

        Raises:
            NoLineItemsError, InvalidDateRangeError, InvalidTransitionError,
            AllocationExhaustedError.
        """
        invoice = self._allocator.allocate_and_insert(
            lambda number, now: new_invoice(draft, number, now)
        )
        with LogContext.bind(
            invoice_id=str(invoice.id), invoice_number=invoice.invoice_number
        ):
            logger.info(
                "invoice_created",
                extra={
                    "status": invoice.status.value,
                    "total": invoice.total,
                    "item_count": len(invoice.items),
                },
            )
        return invoice

    def list(self, criteria: InvoiceQuery) -> InvoicePage:
        return self._store.query(criteria)

    def get(self, invoice_id: UUID) -> Invoice:
        """
        Raises:
            InvoiceNotFoundError: If no invoice has this id.
        """
        return self._require(invoice_id)

    def update(self, invoice_id: UUID, changes: InvoiceChanges) -> Invoice:
        """
        Apply a partial update.  Totals are recomputed when items or the
        tax rate change.

        Raises:
            InvoiceNotFoundError, InvoiceLockedError, InvalidDateRangeError.
        """
        current = self._require(invoice_id)
        with LogContext.bind(
            invoice_id=str(current.id), invoice_number=current.invoice_number
        ):
            updated = self._replace(
                apply_changes(current, changes, self._clock.now_utc())
            )
            logger.info(
                "invoice_updated",
                extra={
                    "totals_changed": updated.total != current.total,
                    "total": updated.total,
                },
            )
        return updated

    def change_status(self, invoice_id: UUID, status: InvoiceStatus) -> Invoice:
        """
        Move an invoice along draft -> pending -> paid.

        Re-applying the current status is a successful no-op.

        Raises:
            InvoiceNotFoundError, InvalidTransitionError, InvoiceLockedError.
        """
        current = self._require(invoice_id)
        with LogContext.bind(
            invoice_id=str(current.id), invoice_number=current.invoice_number
        ):
            moved = apply_status(current, status, self._clock.now_utc())
            if moved is current:
                logger.debug(
                    "invoice_status_unchanged", extra={"status": status.value}
                )
                return current

            updated = self._replace(moved)
            logger.info(
                "invoice_status_changed",
                extra={
                    "from_status": current.status.value,
                    "to_status": updated.status.value,
                },
            )
        return updated

    def delete(self, invoice_id: UUID) -> Invoice:
        """
        Hard-delete an invoice.

        Raises:
            InvoiceNotFoundError: If no invoice has this id.
        """
        removed = self._store.remove(invoice_id)
        if removed is None:
            raise InvoiceNotFoundError(str(invoice_id))
        with LogContext.bind(
            invoice_id=str(removed.id), invoice_number=removed.invoice_number
        ):
            logger.info("invoice_deleted", extra={"status": removed.status.value})
        return removed

    def statistics(self) -> InvoiceStatistics:
        return self._store.statistics()
