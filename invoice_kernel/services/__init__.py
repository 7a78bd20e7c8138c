"""
Kernel services -- the imperative shell around the pure domain.

Services read the clock, call the store and log.  They never commit.
"""

from invoice_kernel.services.invoice_number_allocator import InvoiceNumberAllocator
from invoice_kernel.services.invoice_service import InvoiceService

__all__ = [
    "InvoiceNumberAllocator",
    "InvoiceService",
]
