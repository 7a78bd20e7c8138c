"""ORM models for the invoice kernel."""

from invoice_kernel.models.invoice import InvoiceLineModel, InvoiceModel

__all__ = [
    "InvoiceModel",
    "InvoiceLineModel",
]
