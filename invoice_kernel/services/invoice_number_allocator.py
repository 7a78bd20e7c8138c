"""
InvoiceNumberAllocator -- sequential ``INV-YYYYMM-XXXX`` numbers with
bounded retry.

Responsibility:
    Produces the next invoice number for the current calendar month and
    inserts the invoice that carries it.  The store's unique index on
    invoice_number is the arbiter: two concurrent allocators may read the
    same maximum, but only one insert wins; the loser re-reads the maximum
    and tries again.

Architecture position:
    Kernel > Services -- imperative shell.  Called by InvoiceService.create.

Invariants enforced:
    - Numbers within a partition are unique and strictly increasing from
      0001.  The partition is the clock's UTC year/month at the moment of
      each attempt, so a retry that crosses a month boundary lands in the
      new month.
    - At most ``max_attempts`` inserts per call.
    - Only a DuplicateKeyError on invoice_number is retried.  Any other
      failure propagates untouched.

Failure modes:
    - AllocationExhaustedError: retries used up, or the partition already
      holds 9999 invoices.
"""

from collections.abc import Callable
from datetime import datetime

from invoice_kernel.domain.clock import Clock
from invoice_kernel.domain.invoice import Invoice
from invoice_kernel.domain.invoice_number import (
    MAX_SEQUENCE,
    format_number,
    parse_sequence,
    partition_prefix,
)
from invoice_kernel.exceptions import AllocationExhaustedError, DuplicateKeyError
from invoice_kernel.logging_config import get_logger
from invoice_kernel.store.base import InvoiceStore

logger = get_logger("services.invoice_number_allocator")

DEFAULT_MAX_ATTEMPTS = 5

InvoiceBuilder = Callable[[str, datetime], Invoice]


class InvoiceNumberAllocator:
    """
    Allocates invoice numbers against an InvoiceStore.

    Contract:
        ``next()`` is a read-only proposal.  ``allocate_and_insert()`` is
        the only path that makes a number permanent.

    Non-goals:
        - Does NOT reserve numbers; gaps are impossible because nothing is
          consumed until an insert succeeds.
        - Does NOT commit; the store shares the caller's transaction.
    """

    def __init__(
        self,
        store: InvoiceStore,
        clock: Clock,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self._store = store
        self._clock = clock
        self.max_attempts = max_attempts

    def _next_for(self, now: datetime) -> str:
        prefix = partition_prefix(now)
        current = self._store.find_max_invoice_number_with_prefix(prefix)
        if current is None:
            return format_number(prefix, 1)

        try:
            sequence = parse_sequence(current) + 1
        except ValueError as exc:
            raise AllocationExhaustedError(
                prefix, 0, f"unparseable existing number {current!r}"
            ) from exc
        if sequence > MAX_SEQUENCE:
            raise AllocationExhaustedError(
                prefix, 0, f"sequence space exhausted at {current}"
            )
        return format_number(prefix, sequence)

    def next(self) -> str:
        """
        Propose the next invoice number for the current month.

        Raises:
            AllocationExhaustedError: If the month already holds 9999 numbers.
        """
        return self._next_for(self._clock.now_utc())

    def allocate_and_insert(self, build: InvoiceBuilder) -> Invoice:
        """
        Allocate a number, build the invoice with it and insert it.

        ``build(number, now)`` is called once per attempt with a fresh
        number and the clock reading taken for that attempt.

        Returns:
            The invoice as persisted by the store.

        Raises:
            AllocationExhaustedError: If every attempt collided.
            DuplicateKeyError: If the collision is on a key other than
                invoice_number.
        """
        prefix = None
        for attempt in range(1, self.max_attempts + 1):
            now = self._clock.now_utc()
            prefix = partition_prefix(now)
            number = self._next_for(now)
            try:
                return self._store.insert(build(number, now))
            except DuplicateKeyError as exc:
                if exc.field != "invoice_number":
                    raise
                logger.debug(
                    "invoice_number_conflict_retry",
                    extra={"invoice_number": number, "attempt": attempt},
                )

        logger.warning(
            "invoice_number_exhausted",
            extra={"prefix": prefix, "attempts": self.max_attempts},
        )
        raise AllocationExhaustedError(
            prefix, self.max_attempts, "every attempt collided with a concurrent insert"
        )
