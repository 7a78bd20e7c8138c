"""
Tests for InvoiceNumberAllocator.

Covers the sequence within a month, the monthly reset, the bounded retry
on duplicate keys and the exhausted partition.
"""

from datetime import datetime, timezone

import pytest

from invoice_kernel.domain.invoice import new_invoice
from invoice_kernel.exceptions import AllocationExhaustedError, DuplicateKeyError
from invoice_kernel.services.invoice_number_allocator import InvoiceNumberAllocator
from invoice_kernel.store.memory_store import InMemoryInvoiceStore
from tests.factories import make_draft


def _build(number, now):
    return new_invoice(make_draft(), number, now)


class StaleMaxStore(InMemoryInvoiceStore):
    """
    Simulates a concurrent writer: the first ``stale_reads`` lookups
    return the maximum as it was before a competing insert landed.
    """

    def __init__(self, stale_reads: int, stale_value: str | None):
        super().__init__()
        self.stale_reads = stale_reads
        self.stale_value = stale_value
        self.lookups = 0
        self.insert_attempts: list[str] = []

    def find_max_invoice_number_with_prefix(self, prefix):
        self.lookups += 1
        if self.lookups <= self.stale_reads:
            return self.stale_value
        return super().find_max_invoice_number_with_prefix(prefix)

    def insert(self, invoice):
        self.insert_attempts.append(invoice.invoice_number)
        return super().insert(invoice)


class AlwaysConflictingStore(InMemoryInvoiceStore):
    def __init__(self, field="invoice_number"):
        super().__init__()
        self.field = field
        self.attempts = 0

    def insert(self, invoice):
        self.attempts += 1
        raise DuplicateKeyError(self.field, invoice.invoice_number)


class TestNext:
    def test_first_number_of_month(self, memory_store, clock):
        assert InvoiceNumberAllocator(memory_store, clock).next() == "INV-202401-0001"

    def test_increments_existing_maximum(self, memory_store, clock):
        allocator = InvoiceNumberAllocator(memory_store, clock)
        for _ in range(3):
            allocator.allocate_and_insert(_build)
        assert allocator.next() == "INV-202401-0004"

    def test_next_does_not_consume(self, memory_store, clock):
        allocator = InvoiceNumberAllocator(memory_store, clock)
        assert allocator.next() == allocator.next()
        assert len(memory_store) == 0

    def test_monthly_reset(self, memory_store, clock):
        allocator = InvoiceNumberAllocator(memory_store, clock)
        allocator.allocate_and_insert(_build)
        allocator.allocate_and_insert(_build)
        clock.set_time(datetime(2024, 2, 1, 0, 0, 1, tzinfo=timezone.utc))
        assert allocator.next() == "INV-202402-0001"

    def test_other_months_do_not_interfere(self, clock):
        store = InMemoryInvoiceStore(
            [new_invoice(make_draft(), "INV-202312-0042", clock.now())]
        )
        assert InvoiceNumberAllocator(store, clock).next() == "INV-202401-0001"

    def test_exhausted_partition(self, clock):
        store = InMemoryInvoiceStore(
            [new_invoice(make_draft(), "INV-202401-9999", clock.now())]
        )
        with pytest.raises(AllocationExhaustedError) as exc_info:
            InvoiceNumberAllocator(store, clock).next()
        assert exc_info.value.prefix == "INV-202401-"
        assert exc_info.value.code == "ALLOCATION_EXHAUSTED"


class TestAllocateAndInsert:
    def test_sequence(self, memory_store, clock):
        allocator = InvoiceNumberAllocator(memory_store, clock)
        numbers = [allocator.allocate_and_insert(_build).invoice_number for _ in range(3)]
        assert numbers == ["INV-202401-0001", "INV-202401-0002", "INV-202401-0003"]

    def test_build_receives_clock_reading(self, memory_store, clock):
        seen = []

        def build(number, now):
            seen.append((number, now))
            return _build(number, now)

        InvoiceNumberAllocator(memory_store, clock).allocate_and_insert(build)
        assert seen == [("INV-202401-0001", clock.now())]

    def test_retries_after_duplicate(self, clock):
        store = StaleMaxStore(stale_reads=1, stale_value=None)
        # A competing writer already took 0001.
        store.insert(_build("INV-202401-0001", clock.now()))
        store.insert_attempts.clear()

        invoice = InvoiceNumberAllocator(store, clock).allocate_and_insert(_build)

        assert store.insert_attempts == ["INV-202401-0001", "INV-202401-0002"]
        assert invoice.invoice_number == "INV-202401-0002"

    def test_retry_crossing_month_boundary(self, clock):
        clock.set_time(datetime(2024, 1, 31, 23, 59, 59, tzinfo=timezone.utc))
        store = StaleMaxStore(stale_reads=1, stale_value=None)
        store.insert(_build("INV-202401-0001", clock.now()))

        class AdvancingClock:
            def now_utc(self_inner):
                value = clock.now_utc()
                clock.advance(1)
                return value

        invoice = InvoiceNumberAllocator(store, AdvancingClock()).allocate_and_insert(_build)
        assert invoice.invoice_number == "INV-202402-0001"

    def test_exhausts_after_max_attempts(self, clock):
        store = AlwaysConflictingStore()
        allocator = InvoiceNumberAllocator(store, clock, max_attempts=3)
        with pytest.raises(AllocationExhaustedError) as exc_info:
            allocator.allocate_and_insert(_build)
        assert store.attempts == 3
        assert exc_info.value.attempts == 3

    def test_other_duplicate_keys_propagate(self, clock):
        store = AlwaysConflictingStore(field="id")
        with pytest.raises(DuplicateKeyError):
            InvoiceNumberAllocator(store, clock).allocate_and_insert(_build)
        assert store.attempts == 1

    def test_logs_exhaustion(self, clock, captured_logs):
        with pytest.raises(AllocationExhaustedError):
            InvoiceNumberAllocator(
                AlwaysConflictingStore(), clock, max_attempts=2
            ).allocate_and_insert(_build)
        logs = captured_logs()
        retries = [r for r in logs if r["message"] == "invoice_number_conflict_retry"]
        exhausted = [r for r in logs if r["message"] == "invoice_number_exhausted"]
        assert len(retries) == 2
        assert exhausted[0]["attempts"] == 2

    def test_rejects_zero_attempts(self, memory_store, clock):
        with pytest.raises(ValueError):
            InvoiceNumberAllocator(memory_store, clock, max_attempts=0)
