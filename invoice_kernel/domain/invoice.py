"""
Invoice -- immutable invoice entity and its pure state transitions.

Responsibility:
    Defines the ``Invoice`` record that flows between the service layer
    and the store, the ``InvoiceDraft`` / ``InvoiceChanges`` inputs produced
    by request parsing, and the three pure functions that build and evolve
    an invoice:

        new_invoice(draft, number, now)   -> Invoice
        apply_changes(invoice, changes, now) -> Invoice
        apply_status(invoice, status, now)   -> Invoice

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Every timestamp is
    passed in by the caller.

Invariants enforced:
    - Derived money fields are recomputed from items and tax rate whenever
      either changes; they are never accepted from input.
    - due_date >= invoice_date (InvalidDateRangeError).
    - Paid invoices are locked (InvoiceLockedError).
    - invoice_number and created_at never change after creation.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from invoice_kernel.domain.lifecycle import (
    InvoiceStatus,
    LifecycleState,
    ensure_mutable,
    initial_state,
    transition,
)
from invoice_kernel.domain.line_items import LineItem
from invoice_kernel.domain.totals import compute_totals
from invoice_kernel.domain.values import Money
from invoice_kernel.exceptions import InvalidDateRangeError, NoLineItemsError


@dataclass(frozen=True)
class Invoice:
    id: UUID
    invoice_number: str
    client_name: str
    client_email: str
    client_address: str
    invoice_date: date
    due_date: date
    items: tuple[LineItem, ...]
    subtotal: Money
    tax_rate: Decimal
    tax_amount: Money
    total: Money
    status: InvoiceStatus
    created_at: datetime
    updated_at: datetime
    notes: str = ""
    sent_at: datetime | None = None
    paid_at: datetime | None = None

    @property
    def lifecycle(self) -> LifecycleState:
        return LifecycleState(
            status=self.status, sent_at=self.sent_at, paid_at=self.paid_at
        )


@dataclass(frozen=True)
class InvoiceDraft:
    """Validated input for creating an invoice."""

    client_name: str
    client_email: str
    client_address: str
    invoice_date: date
    due_date: date
    items: tuple[LineItem, ...]
    tax_rate: Decimal = Decimal("0.00")
    notes: str = ""
    status: InvoiceStatus | None = None


@dataclass(frozen=True)
class InvoiceChanges:
    """Validated partial update.  ``None`` means "leave unchanged"."""

    client_name: str | None = None
    client_email: str | None = None
    client_address: str | None = None
    invoice_date: date | None = None
    due_date: date | None = None
    items: tuple[LineItem, ...] | None = None
    tax_rate: Decimal | None = None
    notes: str | None = None

    @property
    def is_empty(self) -> bool:
        return all(
            getattr(self, name) is None for name in self.__dataclass_fields__
        )


def _check_dates(invoice_date: date, due_date: date) -> None:
    if due_date < invoice_date:
        raise InvalidDateRangeError(invoice_date.isoformat(), due_date.isoformat())


def new_invoice(
    draft: InvoiceDraft,
    invoice_number: str,
    now: datetime,
    invoice_id: UUID | None = None,
) -> Invoice:
    """
    Build a brand new invoice from a validated draft.

    Raises:
        NoLineItemsError: If the draft carries no items.
        InvalidDateRangeError: If due_date precedes invoice_date.
        InvalidTransitionError: If the draft requests status ``paid``.
    """
    if not draft.items:
        raise NoLineItemsError()
    _check_dates(draft.invoice_date, draft.due_date)

    totals = compute_totals(draft.items, draft.tax_rate)
    lifecycle = initial_state(draft.status, now)

    return Invoice(
        id=invoice_id or uuid4(),
        invoice_number=invoice_number,
        client_name=draft.client_name,
        client_email=draft.client_email,
        client_address=draft.client_address,
        invoice_date=draft.invoice_date,
        due_date=draft.due_date,
        items=tuple(draft.items),
        subtotal=totals.subtotal,
        tax_rate=draft.tax_rate,
        tax_amount=totals.tax_amount,
        total=totals.total,
        notes=draft.notes,
        status=lifecycle.status,
        sent_at=lifecycle.sent_at,
        paid_at=lifecycle.paid_at,
        created_at=now,
        updated_at=now,
    )


def apply_changes(invoice: Invoice, changes: InvoiceChanges, now: datetime) -> Invoice:
    """
    Merge a partial update into an invoice.

    Raises:
        InvoiceLockedError: If the invoice is paid.
        InvalidDateRangeError: If the merged dates are inconsistent.
        NoLineItemsError: If ``changes.items`` is an empty tuple.
    """
    ensure_mutable(invoice.status)

    updates: dict[str, object] = {
        name: value
        for name, value in (
            ("client_name", changes.client_name),
            ("client_email", changes.client_email),
            ("client_address", changes.client_address),
            ("invoice_date", changes.invoice_date),
            ("due_date", changes.due_date),
            ("notes", changes.notes),
            ("tax_rate", changes.tax_rate),
        )
        if value is not None
    }
    if changes.items is not None:
        if not changes.items:
            raise NoLineItemsError()
        updates["items"] = tuple(changes.items)

    _check_dates(
        updates.get("invoice_date", invoice.invoice_date),
        updates.get("due_date", invoice.due_date),
    )

    if "items" in updates or "tax_rate" in updates:
        totals = compute_totals(
            updates.get("items", invoice.items),
            updates.get("tax_rate", invoice.tax_rate),
        )
        updates.update(
            subtotal=totals.subtotal,
            tax_amount=totals.tax_amount,
            total=totals.total,
        )

    return replace(invoice, **updates, updated_at=now)


def apply_status(invoice: Invoice, status: InvoiceStatus, now: datetime) -> Invoice:
    """
    Move an invoice to ``status`` following the lifecycle rules.

    A no-op transition returns the invoice unchanged (``updated_at``
    included).
    """
    next_state = transition(invoice.lifecycle, status, now)
    if next_state == invoice.lifecycle:
        return invoice
    return replace(
        invoice,
        status=next_state.status,
        sent_at=next_state.sent_at,
        paid_at=next_state.paid_at,
        updated_at=now,
    )
