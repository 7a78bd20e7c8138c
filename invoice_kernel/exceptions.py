"""
Typed Exception Hierarchy for the Invoice Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (the HTTP layer, scripts, tests) must react to failures by type,
never by parsing message strings.  Every exception therefore:
  1. Has its own class (catch by type, not message)
  2. Carries a CODE class attribute (machine-readable, API-safe)
  3. Stores its context as attributes (not just a message string)

Example:
    try:
        service.change_status(invoice_id, InvoiceStatus.PAID)
    except InvalidTransitionError as e:
        api_response(code=e.code, current=e.from_status, requested=e.to_status)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InvoiceKernelError (base)
    |
    +-- MoneyError
    |   +-- InvalidAmountError
    |
    +-- LineItemError
    |   +-- InvalidLineItemError
    |   +-- NoLineItemsError
    |
    +-- LifecycleError
    |   +-- InvalidTransitionError
    |   +-- InvoiceLockedError
    |
    +-- AllocationError
    |   +-- AllocationExhaustedError
    |
    +-- StoreError
    |   +-- DuplicateKeyError
    |   +-- InvoiceNotFoundError
    |
    +-- ValidationError
        +-- RequestValidationError
        +-- InvalidDateRangeError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category    | Code                  | When Raised
------------|-----------------------|---------------------------------------------
Money       | INVALID_AMOUNT        | Non-numeric, non-finite or negative amount
------------|-----------------------|---------------------------------------------
Line item   | INVALID_LINE_ITEM     | Empty description, quantity <= 0, rate < 0
            | NO_LINE_ITEMS         | Invoice without any line item
------------|-----------------------|---------------------------------------------
Lifecycle   | INVALID_TRANSITION    | draft -> paid, any -> draft after sending
            | INVOICE_LOCKED        | Mutating or re-statusing a paid invoice
------------|-----------------------|---------------------------------------------
Allocation  | ALLOCATION_EXHAUSTED  | Retries used up, or partition past 9999
------------|-----------------------|---------------------------------------------
Store       | DUPLICATE_KEY         | Unique index violation (triggers retry)
            | INVOICE_NOT_FOUND     | No invoice with the given id
------------|-----------------------|---------------------------------------------
Validation  | VALIDATION_ERROR      | Request payload failed field checks
            | INVALID_DATE_RANGE    | due_date earlier than invoice_date

AllocationExhaustedError is terminal for the request.  InvoiceLockedError
and InvalidTransitionError are deterministic rejections and never retried.
"""

from __future__ import annotations

from typing import Any


class InvoiceKernelError(Exception):
    """
    Base exception for all invoice kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "INVOICE_KERNEL_ERROR"


# Money-related exceptions


class MoneyError(InvoiceKernelError):
    """Base exception for monetary value errors."""

    code: str = "MONEY_ERROR"


class InvalidAmountError(MoneyError):
    """Value cannot be used as a monetary amount."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, value: Any, reason: str, field: str = "amount"):
        self.value = str(value)
        self.reason = reason
        self.field = field
        super().__init__(f"Invalid {field} {value!r}: {reason}")


# Line item exceptions


class LineItemError(InvoiceKernelError):
    """Base exception for line item errors."""

    code: str = "LINE_ITEM_ERROR"


class InvalidLineItemError(LineItemError):
    """A raw line item failed validation."""

    code: str = "INVALID_LINE_ITEM"

    def __init__(self, index: int, field: str, reason: str):
        self.index = index
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid line item {index} ({field}): {reason}")


class NoLineItemsError(LineItemError):
    """An invoice must carry at least one line item."""

    code: str = "NO_LINE_ITEMS"

    def __init__(self):
        super().__init__("At least one item is required")


# Lifecycle exceptions


class LifecycleError(InvoiceKernelError):
    """Base exception for invoice status errors."""

    code: str = "LIFECYCLE_ERROR"


class InvalidTransitionError(LifecycleError):
    """Requested status change is not part of the forward-only machine."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, from_status: str, to_status: str, reason: str):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        super().__init__(
            f"Invalid transition {from_status} -> {to_status}: {reason}"
        )


class InvoiceLockedError(LifecycleError):
    """Paid invoices accept neither field updates nor status changes."""

    code: str = "INVOICE_LOCKED"

    def __init__(self, status: str, action: str):
        self.status = status
        self.action = action
        super().__init__(f"Cannot {action}: invoice is {status}")


# Allocation exceptions


class AllocationError(InvoiceKernelError):
    """Base exception for invoice number allocation errors."""

    code: str = "ALLOCATION_ERROR"


class AllocationExhaustedError(AllocationError):
    """No invoice number could be allocated."""

    code: str = "ALLOCATION_EXHAUSTED"

    def __init__(self, prefix: str, attempts: int, reason: str):
        self.prefix = prefix
        self.attempts = attempts
        self.reason = reason
        super().__init__(
            f"Could not allocate invoice number for {prefix} "
            f"after {attempts} attempt(s): {reason}"
        )


# Store exceptions


class StoreError(InvoiceKernelError):
    """Base exception for store collaborator errors."""

    code: str = "STORE_ERROR"


class DuplicateKeyError(StoreError):
    """Insert violated a unique index."""

    code: str = "DUPLICATE_KEY"

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"Duplicate value for {field}: {value}")


class InvoiceNotFoundError(StoreError):
    """Invoice with given ID was not found."""

    code: str = "INVOICE_NOT_FOUND"

    def __init__(self, invoice_id: str):
        self.invoice_id = str(invoice_id)
        super().__init__("Invoice not found")


# Validation exceptions


class ValidationError(InvoiceKernelError):
    """Base exception for boundary validation errors."""

    code: str = "VALIDATION_ERROR"


class RequestValidationError(ValidationError):
    """
    A request payload failed field-level checks.

    All violations are collected before raising so that the caller sees
    every bad field at once.
    """

    code: str = "VALIDATION_ERROR"

    def __init__(self, field_errors: list[dict[str, str]]):
        self.field_errors = field_errors
        super().__init__(
            f"Validation failed: {len(field_errors)} error(s)"
        )


class InvalidDateRangeError(ValidationError):
    """Due date precedes invoice date."""

    code: str = "INVALID_DATE_RANGE"

    def __init__(self, invoice_date: str, due_date: str):
        self.invoice_date = str(invoice_date)
        self.due_date = str(due_date)
        super().__init__("Due date must be after invoice date")
