"""Invoice persistence: the store contract and its implementations."""

from invoice_kernel.store.base import (
    InvoicePage,
    InvoiceQuery,
    InvoiceStatistics,
    InvoiceStore,
    SortOrder,
)
from invoice_kernel.store.memory_store import InMemoryInvoiceStore
from invoice_kernel.store.sql_store import SqlInvoiceStore, sql_store_scope

__all__ = [
    "InvoiceStore",
    "InvoiceQuery",
    "InvoicePage",
    "InvoiceStatistics",
    "SortOrder",
    "InMemoryInvoiceStore",
    "SqlInvoiceStore",
    "sql_store_scope",
]
