from datetime import date
from decimal import Decimal

from sqlalchemy import Column, String, Text, ForeignKey, Enum, Date, Integer, Numeric, Index, UniqueConstraint
from sqlalchemy.orm import relationship
import enum
from .base import TimestampedModel, UUIDBaseModel, enum_values


class InvoiceStatus(str, enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    PAID = "paid"


class Invoice(TimestampedModel):
    """Invoice issued by an organization to one of its clients"""
    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint("organization_id", "invoice_number", name="uq_invoices_org_number"),
        Index("idx_invoices_revenue_query", "organization_id", "status", "issue_date"),
    )

    organization_id = Column(String, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(String, ForeignKey("clients.id", ondelete="SET NULL"), index=True)

    invoice_number = Column(Text, nullable=False)
    total_amount = Column(Numeric(12, 2), default=Decimal("0"))
    status = Column(
        Enum(InvoiceStatus, name="invoice_status", values_callable=enum_values),
        nullable=False,
        default=InvoiceStatus.PENDING,
    )
    issue_date = Column(Date, default=date.today)
    due_date = Column(Date)
    notes = Column(Text)

    organization = relationship("Organization")
    client = relationship("Client")
    line_items = relationship(
        "InvoiceLineItem",
        back_populates="invoice",
        order_by="InvoiceLineItem.position",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<Invoice(number='{self.invoice_number}', status='{self.status}')>"


class InvoiceLineItem(UUIDBaseModel):
    """Line item of an invoice; total is quantity * unit_price"""
    __tablename__ = "invoice_line_items"

    invoice_id = Column(String, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(Text, nullable=False)
    quantity = Column(Numeric(12, 2), default=Decimal("1"))
    unit_price = Column(Numeric(12, 2), nullable=False)
    position = Column(Integer, default=0)

    invoice = relationship("Invoice", back_populates="line_items")

    @property
    def total(self) -> Decimal:
        return Decimal(self.quantity or 0) * Decimal(self.unit_price or 0)
