"""
JSON shapes of the HTTP surface.

Invoices are rendered with camelCase keys.  Money and tax rates are fixed
2-decimal strings, dates are ISO 8601 dates and timestamps ISO 8601
datetimes in UTC.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from invoice_kernel.domain.invoice import Invoice
from invoice_kernel.domain.line_items import LineItem
from invoice_kernel.domain.queries import InvoicePage, InvoiceStatistics
from invoice_kernel.domain.values import quantize


def _timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _decimal(value: Decimal) -> str:
    return f"{quantize(value):f}"


def line_item_to_json(item: LineItem) -> dict[str, Any]:
    return {
        "description": item.description,
        "quantity": str(item.quantity),
        "rate": str(item.rate),
        "amount": str(item.amount),
    }


def invoice_to_json(invoice: Invoice) -> dict[str, Any]:
    return {
        "id": str(invoice.id),
        "invoiceNumber": invoice.invoice_number,
        "clientName": invoice.client_name,
        "clientEmail": invoice.client_email,
        "clientAddress": invoice.client_address,
        "invoiceDate": invoice.invoice_date.isoformat(),
        "dueDate": invoice.due_date.isoformat(),
        "items": [line_item_to_json(item) for item in invoice.items],
        "subtotal": str(invoice.subtotal),
        "taxRate": _decimal(invoice.tax_rate),
        "taxAmount": str(invoice.tax_amount),
        "total": str(invoice.total),
        "notes": invoice.notes,
        "status": invoice.status.value,
        "sentAt": _timestamp(invoice.sent_at),
        "paidAt": _timestamp(invoice.paid_at),
        "createdAt": _timestamp(invoice.created_at),
        "updatedAt": _timestamp(invoice.updated_at),
    }


def page_to_json(page: InvoicePage) -> dict[str, Any]:
    return {
        "invoices": [invoice_to_json(invoice) for invoice in page.invoices],
        "pagination": {
            "page": page.page,
            "limit": page.limit,
            "total": page.total,
            "pages": page.pages,
        },
    }


def statistics_to_json(stats: InvoiceStatistics) -> dict[str, Any]:
    return {
        "statistics": {
            "total": stats.total,
            "draft": stats.draft,
            "pending": stats.pending,
            "paid": stats.paid,
            "revenue": str(stats.revenue),
        }
    }
