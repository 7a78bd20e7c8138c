"""
Module: invoice_kernel.store.sql_store
Responsibility: SQLAlchemy implementation of InvoiceStore.
Architecture position: Kernel > Store.  May import from models/, db/,
    domain/ and exceptions.

Invariants enforced:
    - Each insert runs inside a SAVEPOINT.  A unique violation rolls back
      only that insert, so the caller's transaction stays usable and the
      allocator can retry with a fresh number.
    - Never calls session.commit(); the caller owns the transaction.
    - Search is a literal, case-insensitive substring match.  LIKE
      wildcards in user input are escaped.
    - Sums and sorts on money columns run on integer minor units.

Failure modes:
    - DuplicateKeyError when the invoices unique index is violated.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from uuid import UUID

from sqlalchemy import BigInteger, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from invoice_kernel.db.engine import session_scope
from invoice_kernel.domain.invoice import Invoice
from invoice_kernel.domain.lifecycle import InvoiceStatus
from invoice_kernel.domain.queries import (
    InvoicePage,
    InvoiceQuery,
    InvoiceStatistics,
    SortOrder,
)
from invoice_kernel.domain.values import Money
from invoice_kernel.exceptions import DuplicateKeyError
from invoice_kernel.logging_config import get_logger
from invoice_kernel.models.invoice import InvoiceModel
from invoice_kernel.store.base import InvoiceStore

logger = get_logger("store.sql")


def _duplicate_field(exc: IntegrityError) -> str:
    # SQLite names the column, PostgreSQL names the constraint; both contain it.
    if "invoice_number" in str(exc.orig):
        return "invoice_number"
    return "id"


class SqlInvoiceStore(InvoiceStore):
    """
    Invoice store backed by a SQLAlchemy session.

    Contract:
        Accepts a Session from the caller and performs all reads and
        writes through it.  Returns frozen Invoice records.

    Non-goals:
        - Does NOT call ``session.commit()``.
        - Does NOT validate invoices; the domain layer already has.
    """

    def __init__(self, session: Session):
        self.session = session

    def _load(self, invoice_id: UUID) -> InvoiceModel | None:
        return self.session.get(InvoiceModel, invoice_id, populate_existing=True)

    def find_max_invoice_number_with_prefix(self, prefix: str) -> str | None:
        # Fixed-width numbers: lexicographic max is the numeric max.
        return self.session.scalar(
            select(InvoiceModel.invoice_number)
            .where(InvoiceModel.invoice_number.startswith(prefix, autoescape=True))
            .order_by(InvoiceModel.invoice_number.desc())
            .limit(1)
        )

    def insert(self, invoice: Invoice) -> Invoice:
        model = InvoiceModel.from_dto(invoice)
        savepoint = self.session.begin_nested()
        try:
            self.session.add(model)
            self.session.flush()
            savepoint.commit()
        except IntegrityError as exc:
            savepoint.rollback()
            field = _duplicate_field(exc)
            value = invoice.invoice_number if field == "invoice_number" else str(invoice.id)
            logger.debug(
                "invoice_insert_conflict",
                extra={"field": field, "value": value},
            )
            raise DuplicateKeyError(field, value) from exc
        return model.to_dto()

    def get(self, invoice_id: UUID) -> Invoice | None:
        model = self._load(invoice_id)
        return model.to_dto() if model is not None else None

    def replace(self, invoice: Invoice) -> Invoice | None:
        model = self._load(invoice.id)
        if model is None:
            return None
        model.apply_dto(invoice)
        self.session.flush()
        return model.to_dto()

    def remove(self, invoice_id: UUID) -> Invoice | None:
        model = self._load(invoice_id)
        if model is None:
            return None
        removed = model.to_dto()
        self.session.delete(model)
        self.session.flush()
        return removed

    def query(self, criteria: InvoiceQuery) -> InvoicePage:
        conditions = []
        if criteria.status is not None:
            conditions.append(InvoiceModel.status == criteria.status.value)
        if criteria.search:
            conditions.append(
                or_(
                    InvoiceModel.client_name.icontains(criteria.search, autoescape=True),
                    InvoiceModel.client_email.icontains(criteria.search, autoescape=True),
                    InvoiceModel.invoice_number.icontains(criteria.search, autoescape=True),
                )
            )

        total = self.session.scalar(
            select(func.count()).select_from(InvoiceModel).where(*conditions)
        )

        sort_column = getattr(InvoiceModel, criteria.sort_attribute)
        ordering = (
            sort_column.asc() if criteria.order == SortOrder.ASC else sort_column.desc()
        )
        models = self.session.scalars(
            select(InvoiceModel)
            .where(*conditions)
            .order_by(ordering, InvoiceModel.id.asc())
            .offset(criteria.offset)
            .limit(criteria.limit)
        ).all()

        return InvoicePage(
            invoices=tuple(model.to_dto() for model in models),
            page=criteria.page,
            limit=criteria.limit,
            total=total or 0,
        )

    def statistics(self) -> InvoiceStatistics:
        counts = {
            status: count
            for status, count in self.session.execute(
                select(InvoiceModel.status, func.count()).group_by(InvoiceModel.status)
            )
        }
        revenue_minor = self.session.scalar(
            select(func.sum(InvoiceModel.total, type_=BigInteger)).where(
                InvoiceModel.status == InvoiceStatus.PAID.value
            )
        )
        return InvoiceStatistics(
            total=sum(counts.values()),
            draft=counts.get(InvoiceStatus.DRAFT.value, 0),
            pending=counts.get(InvoiceStatus.PENDING.value, 0),
            paid=counts.get(InvoiceStatus.PAID.value, 0),
            revenue=Money.from_minor_units(int(revenue_minor or 0)),
        )


@contextmanager
def sql_store_scope() -> Iterator[SqlInvoiceStore]:
    """
    One SqlInvoiceStore per unit of work.

    Commits on normal exit and rolls back on exception (see
    ``session_scope``).  Requires ``init_engine_from_url()`` first.
    """
    with session_scope() as session:
        yield SqlInvoiceStore(session)
