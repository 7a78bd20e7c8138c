"""
Invoice Kernel

Invoice lifecycle and monetary computation core with:
- Fixed-precision Money (never binary float)
- Forward-only status machine (draft -> pending -> paid)
- Sequential, month-partitioned invoice numbers with retry on conflict
- Pluggable persistence behind the InvoiceStore interface
"""

__version__ = "0.1.0"
