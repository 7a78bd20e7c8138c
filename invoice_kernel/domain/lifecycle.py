"""
Lifecycle -- forward-only invoice status machine.

Responsibility:
    Decides whether a status change is allowed, and which timestamps it
    sets, as a pure function of (current state, requested status, now).
    Also gates field mutation: paid invoices are locked.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  The caller supplies
    ``now``; this module never reads a clock.

Transition table:

    from \\ to | draft              | pending            | paid
    ----------|--------------------|--------------------|--------------------
    draft     | no-op              | sets sent_at       | InvalidTransition
    pending   | InvalidTransition  | no-op              | sets paid_at
    paid      | InvoiceLocked      | InvoiceLocked      | no-op

    ``sent_at`` and ``paid_at`` are only ever set when unset, never cleared.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from invoice_kernel.exceptions import InvalidTransitionError, InvoiceLockedError


class InvoiceStatus(str, Enum):
    """Lifecycle status of an invoice."""

    DRAFT = "draft"
    PENDING = "pending"
    PAID = "paid"


VALID_TRANSITIONS: dict[InvoiceStatus, frozenset[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: frozenset({InvoiceStatus.DRAFT, InvoiceStatus.PENDING}),
    InvoiceStatus.PENDING: frozenset({InvoiceStatus.PENDING, InvoiceStatus.PAID}),
    # Terminal; re-asserting paid is accepted as a no-op
    InvoiceStatus.PAID: frozenset({InvoiceStatus.PAID}),
}


@dataclass(frozen=True, slots=True)
class LifecycleState:
    """The status-related slice of an invoice."""

    status: InvoiceStatus = InvoiceStatus.DRAFT
    sent_at: datetime | None = None
    paid_at: datetime | None = None


def transition(
    state: LifecycleState,
    target: InvoiceStatus,
    now: datetime,
) -> LifecycleState:
    """
    Apply a requested status to the current lifecycle state.

    Raises:
        InvoiceLockedError: current status is paid and target is not.
        InvalidTransitionError: draft -> paid, or any move back to draft.
    """
    target = InvoiceStatus(target)
    current = state.status

    if target not in VALID_TRANSITIONS[current]:
        if current is InvoiceStatus.PAID:
            raise InvoiceLockedError(current.value, "change status of paid invoices")
        if current is InvoiceStatus.DRAFT and target is InvoiceStatus.PAID:
            raise InvalidTransitionError(
                current.value, target.value, "must send before marking paid"
            )
        raise InvalidTransitionError(
            current.value, target.value, "status cannot move backwards"
        )

    next_state = replace(state, status=target)
    if target is InvoiceStatus.PENDING and next_state.sent_at is None:
        next_state = replace(next_state, sent_at=now)
    if target is InvoiceStatus.PAID and next_state.paid_at is None:
        next_state = replace(next_state, paid_at=now)
    return next_state


def initial_state(requested: InvoiceStatus | None, now: datetime) -> LifecycleState:
    """
    Lifecycle state of a newly created invoice.

    Every invoice is born a draft; a requested status is then applied
    through the normal transition rules, so creating as ``pending`` stamps
    ``sent_at`` and creating as ``paid`` is rejected.
    """
    state = LifecycleState()
    if requested is None:
        return state
    return transition(state, requested, now)


def ensure_mutable(status: InvoiceStatus) -> None:
    """Raise InvoiceLockedError if fields of an invoice in ``status`` may not change."""
    if InvoiceStatus(status) is InvoiceStatus.PAID:
        raise InvoiceLockedError(InvoiceStatus.PAID.value, "edit paid invoices")
