"""
Pure domain layer.

This module contains immutable value objects and domain logic with NO
dependencies on:
- ORM (SQLAlchemy)
- Database
- Time/clock reads (``now`` is always passed in)
- I/O or logging

All domain objects are immutable and deterministic.
"""

from invoice_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from invoice_kernel.domain.invoice import (
    Invoice,
    InvoiceChanges,
    InvoiceDraft,
    apply_changes,
    apply_status,
    new_invoice,
)
from invoice_kernel.domain.lifecycle import (
    VALID_TRANSITIONS,
    InvoiceStatus,
    LifecycleState,
    ensure_mutable,
    initial_state,
    transition,
)
from invoice_kernel.domain.line_items import LineItem, process_items
from invoice_kernel.domain.queries import (
    InvoicePage,
    InvoiceQuery,
    InvoiceStatistics,
    SortOrder,
)
from invoice_kernel.domain.totals import InvoiceTotals, compute_totals, parse_tax_rate
from invoice_kernel.domain.values import Money

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "Invoice",
    "InvoiceChanges",
    "InvoiceDraft",
    "apply_changes",
    "apply_status",
    "new_invoice",
    "VALID_TRANSITIONS",
    "InvoiceStatus",
    "LifecycleState",
    "ensure_mutable",
    "initial_state",
    "transition",
    "LineItem",
    "process_items",
    "InvoicePage",
    "InvoiceQuery",
    "InvoiceStatistics",
    "SortOrder",
    "InvoiceTotals",
    "compute_totals",
    "parse_tax_rate",
    "Money",
]
