"""HTTP/JSON surface of the invoice service (Flask)."""

from invoice_api.app import InvoiceBackend, create_app

__all__ = [
    "create_app",
    "InvoiceBackend",
]
