"""
Module: invoice_kernel.models.invoice
Responsibility: ORM persistence for invoices and their line items.  Maps the
    frozen ``Invoice`` domain record to the ``invoices`` and
    ``invoice_lines`` tables and back.
Architecture position: Kernel > Models.  May import from db/ and domain/.

Invariants enforced:
    - invoice_number is unique (uq_invoices_invoice_number).  This index is
      what turns a racing allocation into a DuplicateKeyError.
    - Monetary columns are integer minor units (MoneyMinorUnits).
    - Lines are ordered by ``position`` and deleted with their invoice.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from invoice_kernel.db.base import Base, TrackedBase, UUIDString
from invoice_kernel.db.types import DecimalMinorUnits, MoneyMinorUnits, UTCDateTime
from invoice_kernel.domain.invoice import Invoice
from invoice_kernel.domain.lifecycle import InvoiceStatus
from invoice_kernel.domain.line_items import LineItem
from invoice_kernel.domain.values import Money


class InvoiceModel(TrackedBase):
    """
    ORM model for invoices.

    Guarantees:
        - invoice_number is unique.
        - status stored as string enum value.
        - Derived money columns are written exactly as computed by the
          domain layer; nothing is recomputed here.
    """

    __tablename__ = "invoices"

    __table_args__ = (
        UniqueConstraint("invoice_number", name="uq_invoices_invoice_number"),
        Index("idx_invoices_status_created_at", "status", "created_at"),
        Index("idx_invoices_client_name", "client_name"),
        Index("idx_invoices_client_email", "client_email"),
    )

    invoice_number: Mapped[str] = mapped_column(String(20), nullable=False)
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_email: Mapped[str] = mapped_column(String(255), nullable=False)
    client_address: Mapped[str] = mapped_column(Text, nullable=False)
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    subtotal: Mapped[Money] = mapped_column(MoneyMinorUnits(), nullable=False)
    tax_rate: Mapped[Decimal] = mapped_column(DecimalMinorUnits(), nullable=False)
    tax_amount: Mapped[Money] = mapped_column(MoneyMinorUnits(), nullable=False)
    total: Mapped[Money] = mapped_column(MoneyMinorUnits(), nullable=False)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=InvoiceStatus.DRAFT.value
    )
    sent_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    lines: Mapped[list["InvoiceLineModel"]] = relationship(
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceLineModel.position",
        lazy="selectin",
    )

    def to_dto(self) -> Invoice:
        """Convert ORM model to the frozen domain record."""
        return Invoice(
            id=self.id,
            invoice_number=self.invoice_number,
            client_name=self.client_name,
            client_email=self.client_email,
            client_address=self.client_address,
            invoice_date=self.invoice_date,
            due_date=self.due_date,
            items=tuple(line.to_dto() for line in self.lines),
            subtotal=self.subtotal,
            tax_rate=self.tax_rate,
            tax_amount=self.tax_amount,
            total=self.total,
            notes=self.notes,
            status=InvoiceStatus(self.status),
            sent_at=self.sent_at,
            paid_at=self.paid_at,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_dto(cls, dto: Invoice) -> "InvoiceModel":
        """Create ORM model from the frozen domain record."""
        model = cls(id=dto.id, invoice_number=dto.invoice_number, created_at=dto.created_at)
        model.apply_dto(dto)
        return model

    def apply_dto(self, dto: Invoice) -> None:
        """Overwrite every mutable column with the values of ``dto``."""
        self.client_name = dto.client_name
        self.client_email = dto.client_email
        self.client_address = dto.client_address
        self.invoice_date = dto.invoice_date
        self.due_date = dto.due_date
        self.subtotal = dto.subtotal
        self.tax_rate = dto.tax_rate
        self.tax_amount = dto.tax_amount
        self.total = dto.total
        self.notes = dto.notes
        self.status = InvoiceStatus(dto.status).value
        self.sent_at = dto.sent_at
        self.paid_at = dto.paid_at
        self.updated_at = dto.updated_at
        self.lines = [
            InvoiceLineModel.from_dto(item, position)
            for position, item in enumerate(dto.items)
        ]

    def __repr__(self) -> str:
        return f"<InvoiceModel {self.invoice_number}: {self.status}>"


class InvoiceLineModel(Base):
    """ORM model for one line item of an invoice."""

    __tablename__ = "invoice_lines"

    __table_args__ = (
        Index("idx_invoice_lines_invoice_id", "invoice_id"),
    )

    invoice_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[Money] = mapped_column(MoneyMinorUnits(), nullable=False)
    rate: Mapped[Money] = mapped_column(MoneyMinorUnits(), nullable=False)
    amount: Mapped[Money] = mapped_column(MoneyMinorUnits(), nullable=False)

    invoice: Mapped[InvoiceModel] = relationship(back_populates="lines")

    def to_dto(self) -> LineItem:
        return LineItem(
            description=self.description,
            quantity=self.quantity,
            rate=self.rate,
            amount=self.amount,
        )

    @classmethod
    def from_dto(cls, item: LineItem, position: int) -> "InvoiceLineModel":
        return cls(
            position=position,
            description=item.description,
            quantity=item.quantity,
            rate=item.rate,
            amount=item.amount,
        )

    def __repr__(self) -> str:
        return f"<InvoiceLineModel {self.position}: {self.description}>"
