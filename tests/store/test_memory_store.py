"""InMemoryInvoiceStore specifics: seeding, size and record identity."""

import pytest

from invoice_kernel.domain.invoice import new_invoice
from invoice_kernel.exceptions import DuplicateKeyError
from invoice_kernel.store.memory_store import InMemoryInvoiceStore
from tests.factories import FIXED_NOW, make_draft


def test_seeded_from_list():
    invoices = [
        new_invoice(make_draft(), f"INV-202401-000{n}", FIXED_NOW) for n in (1, 2)
    ]
    store = InMemoryInvoiceStore(invoices)
    assert len(store) == 2
    assert store.get(invoices[1].id) is invoices[1]


def test_seed_rejects_duplicates():
    invoice = new_invoice(make_draft(), "INV-202401-0001", FIXED_NOW)
    with pytest.raises(DuplicateKeyError):
        InMemoryInvoiceStore([invoice, invoice])


def test_duplicate_id_reported_before_number():
    store = InMemoryInvoiceStore()
    invoice = store.insert(new_invoice(make_draft(), "INV-202401-0001", FIXED_NOW))
    with pytest.raises(DuplicateKeyError) as exc_info:
        store.insert(invoice)
    assert exc_info.value.field == "id"


def test_failed_insert_leaves_store_unchanged():
    store = InMemoryInvoiceStore()
    store.insert(new_invoice(make_draft(), "INV-202401-0001", FIXED_NOW))
    with pytest.raises(DuplicateKeyError):
        store.insert(new_invoice(make_draft(), "INV-202401-0001", FIXED_NOW))
    assert len(store) == 1
