"""
Requests -- typed parse step for inbound invoice payloads.

Responsibility:
    Converts loosely-typed JSON payloads and query strings into the
    validated domain inputs (``InvoiceDraft``, ``InvoiceChanges``,
    ``InvoiceStatus``, ``InvoiceQuery``).  Every field is checked and all
    violations are collected into a single ``RequestValidationError``
    whose ``field_errors`` lists ``{"field", "message"}`` pairs.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Called once at the
    HTTP boundary; services receive only parsed values.

Field names in error reports use the wire (camelCase) names so that a
client can map them straight back onto its form.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from invoice_kernel.domain.invoice import InvoiceChanges, InvoiceDraft
from invoice_kernel.domain.lifecycle import InvoiceStatus
from invoice_kernel.domain.line_items import LineItem, process_item
from invoice_kernel.domain.queries import SORTABLE_FIELDS, InvoiceQuery, SortOrder
from invoice_kernel.domain.totals import parse_tax_rate
from invoice_kernel.exceptions import (
    InvalidAmountError,
    InvalidLineItemError,
    RequestValidationError,
)

_EMAIL_RE = re.compile(r"^\S+@\S+\.\S+$")


class _Errors:
    """Accumulates field errors while a payload is parsed."""

    def __init__(self) -> None:
        self.items: list[dict[str, str]] = []

    def add(self, field: str, message: str) -> None:
        self.items.append({"field": field, "message": message})

    def raise_if_any(self) -> None:
        if self.items:
            raise RequestValidationError(self.items)


def _parse_text(
    payload: Mapping[str, Any],
    key: str,
    message: str,
    errors: _Errors,
    *,
    required: bool,
) -> str | None:
    if key not in payload or payload[key] is None:
        if required:
            errors.add(key, message)
        return None
    value = payload[key]
    if not isinstance(value, str) or not value.strip():
        errors.add(key, message)
        return None
    return value.strip()


def _parse_email(
    payload: Mapping[str, Any], errors: _Errors, *, required: bool
) -> str | None:
    email = _parse_text(
        payload, "clientEmail", "Valid email is required", errors, required=required
    )
    if email is None:
        return None
    if not _EMAIL_RE.match(email):
        errors.add("clientEmail", "Valid email is required")
        return None
    return email.lower()


def parse_iso_date(value: Any) -> date:
    """
    Parse an ISO 8601 date or datetime string into a date.

    Raises:
        ValueError: If value is not an ISO 8601 string.
    """
    if not isinstance(value, str):
        raise ValueError(f"Not an ISO 8601 string: {value!r}")
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        return datetime.fromisoformat(text).date()


def _parse_date(
    payload: Mapping[str, Any],
    key: str,
    message: str,
    errors: _Errors,
    *,
    required: bool,
) -> date | None:
    if key not in payload or payload[key] is None:
        if required:
            errors.add(key, message)
        return None
    try:
        return parse_iso_date(payload[key])
    except ValueError:
        errors.add(key, message)
        return None


def _parse_items(
    payload: Mapping[str, Any], errors: _Errors, *, required: bool
) -> tuple[LineItem, ...] | None:
    if "items" not in payload or payload["items"] is None:
        if required:
            errors.add("items", "At least one item is required")
        return None
    raw_items = payload["items"]
    if not isinstance(raw_items, list) or not raw_items:
        errors.add("items", "At least one item is required")
        return None

    items: list[LineItem] = []
    failed = False
    for index, raw in enumerate(raw_items):
        try:
            items.append(process_item(index, raw))
        except InvalidLineItemError as exc:
            failed = True
            errors.add(f"items[{index}].{exc.field}", exc.reason)
    return None if failed else tuple(items)


def _parse_tax_rate(
    payload: Mapping[str, Any], errors: _Errors, *, required: bool
) -> Decimal | None:
    if "taxRate" not in payload or payload["taxRate"] is None:
        if required:
            errors.add("taxRate", "Tax rate must be between 0 and 100")
        return None
    try:
        return parse_tax_rate(payload["taxRate"])
    except InvalidAmountError:
        errors.add("taxRate", "Tax rate must be between 0 and 100")
        return None


def _parse_notes(payload: Mapping[str, Any], errors: _Errors) -> str | None:
    if "notes" not in payload or payload["notes"] is None:
        return None
    notes = payload["notes"]
    if not isinstance(notes, str):
        errors.add("notes", "Notes must be a string")
        return None
    return notes.strip()


def _parse_status_value(value: Any, errors: _Errors) -> InvoiceStatus | None:
    try:
        return InvoiceStatus(value)
    except ValueError:
        errors.add("status", "Invalid status")
        return None


def _require_object(payload: Any) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise RequestValidationError(
            [{"field": "body", "message": "Request body must be a JSON object"}]
        )
    return payload


def parse_create_request(payload: Any) -> InvoiceDraft:
    """
    Parse the body of a create request.

    ``taxRate`` and ``status`` are optional (0 and draft respectively).

    Raises:
        RequestValidationError: Listing every invalid field.
    """
    payload = _require_object(payload)
    errors = _Errors()

    client_name = _parse_text(
        payload, "clientName", "Client name is required", errors, required=True
    )
    client_email = _parse_email(payload, errors, required=True)
    client_address = _parse_text(
        payload, "clientAddress", "Client address is required", errors, required=True
    )
    invoice_date = _parse_date(
        payload, "invoiceDate", "Valid invoice date is required", errors, required=True
    )
    due_date = _parse_date(
        payload, "dueDate", "Valid due date is required", errors, required=True
    )
    if invoice_date and due_date and due_date < invoice_date:
        errors.add("dueDate", "Due date must be after invoice date")
    items = _parse_items(payload, errors, required=True)
    tax_rate = _parse_tax_rate(payload, errors, required=False)
    notes = _parse_notes(payload, errors)
    status = None
    if payload.get("status") is not None:
        status = _parse_status_value(payload["status"], errors)

    errors.raise_if_any()
    return InvoiceDraft(
        client_name=client_name,
        client_email=client_email,
        client_address=client_address,
        invoice_date=invoice_date,
        due_date=due_date,
        items=items,
        tax_rate=tax_rate if tax_rate is not None else Decimal("0.00"),
        notes=notes or "",
        status=status,
    )


def parse_update_request(payload: Any) -> InvoiceChanges:
    """
    Parse the body of an update request.  Every field is optional, but a
    present field must be valid.  Status is not updatable here.

    Raises:
        RequestValidationError: Listing every invalid field.
    """
    payload = _require_object(payload)
    errors = _Errors()

    changes = InvoiceChanges(
        client_name=_parse_text(
            payload, "clientName", "Client name cannot be empty", errors, required=False
        ),
        client_email=_parse_email(payload, errors, required=False),
        client_address=_parse_text(
            payload, "clientAddress", "Client address cannot be empty", errors, required=False
        ),
        invoice_date=_parse_date(
            payload, "invoiceDate", "Valid invoice date is required", errors, required=False
        ),
        due_date=_parse_date(
            payload, "dueDate", "Valid due date is required", errors, required=False
        ),
        items=_parse_items(payload, errors, required=False),
        tax_rate=_parse_tax_rate(payload, errors, required=False),
        notes=_parse_notes(payload, errors),
    )
    errors.raise_if_any()
    return changes


def parse_status_request(payload: Any) -> InvoiceStatus:
    """Parse ``{"status": ...}``."""
    payload = _require_object(payload)
    errors = _Errors()
    status = _parse_status_value(payload.get("status"), errors)
    errors.raise_if_any()
    return status


def _parse_positive_int(
    raw: Any, field: str, message: str, errors: _Errors, *, maximum: int | None = None
) -> int | None:
    try:
        value = int(str(raw).strip())
    except ValueError:
        errors.add(field, message)
        return None
    if value < 1 or (maximum is not None and value > maximum):
        errors.add(field, message)
        return None
    return value


def parse_list_query(
    args: Mapping[str, Any],
    *,
    default_limit: int = 10,
    max_limit: int = 100,
) -> InvoiceQuery:
    """
    Parse list query-string arguments.

    Accepted keys: status (draft|pending|paid|all), search, page (>=1),
    limit (1..max_limit), sortBy, order (asc|desc).
    """
    errors = _Errors()

    status = None
    raw_status = args.get("status")
    if raw_status and raw_status != "all":
        status = _parse_status_value(raw_status, errors)

    search = (args.get("search") or "").strip() or None

    page = 1
    if args.get("page") not in (None, ""):
        page = _parse_positive_int(
            args["page"], "page", "Page must be a positive integer", errors
        )

    limit = default_limit
    if args.get("limit") not in (None, ""):
        limit = _parse_positive_int(
            args["limit"],
            "limit",
            f"Limit must be between 1 and {max_limit}",
            errors,
            maximum=max_limit,
        )

    sort_by = args.get("sortBy") or "createdAt"
    if sort_by not in SORTABLE_FIELDS:
        errors.add("sortBy", f"Sort field must be one of {', '.join(sorted(SORTABLE_FIELDS))}")

    order = args.get("order") or SortOrder.DESC.value
    try:
        sort_order = SortOrder(order)
    except ValueError:
        errors.add("order", "Order must be asc or desc")
        sort_order = None

    errors.raise_if_any()
    return InvoiceQuery(
        status=status,
        search=search,
        page=page,
        limit=limit,
        sort_by=sort_by,
        order=sort_order,
    )


def parse_invoice_id(raw: Any) -> UUID:
    """Parse an invoice id path parameter."""
    try:
        return UUID(str(raw))
    except ValueError as exc:
        raise RequestValidationError(
            [{"field": "id", "message": "Invalid invoice ID"}]
        ) from exc
