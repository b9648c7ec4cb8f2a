from typing import Optional, List
from decimal import Decimal
from pydantic import BaseModel, field_validator, ValidationInfo
from datetime import date, datetime

from ..models.invoice import InvoiceStatus
from .client import ClientSummary

DUE_BEFORE_ISSUE_MESSAGE = "Due date cannot be before issue date"


class InvoiceLineItemIn(BaseModel):
    """Line item as submitted from the invoice form"""
    id: Optional[str] = None
    description: str
    quantity: Decimal = Decimal("1")
    unit_price: Decimal

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        if not v or not v.strip():
            raise ValueError("Description is required")
        return v.strip()

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v):
        if v < Decimal("0.01"):
            raise ValueError("Quantity must be positive")
        return v

    @field_validator("unit_price")
    @classmethod
    def validate_unit_price(cls, v):
        if v < 0:
            raise ValueError("Price must be non-negative")
        return v


class InvoiceCreate(BaseModel):
    """Schema for creating an invoice"""
    client_id: str
    invoice_number: Optional[str] = None
    status: InvoiceStatus = InvoiceStatus.PENDING
    issue_date: date
    due_date: Optional[date] = None
    notes: Optional[str] = None
    organization_id: Optional[str] = None
    items: List[InvoiceLineItemIn]

    @field_validator("client_id")
    @classmethod
    def validate_client(cls, v):
        if not v or not v.strip():
            raise ValueError("Client is required")
        return v

    @field_validator("invoice_number")
    @classmethod
    def validate_invoice_number(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Invoice number is required")
        return v.strip() if v is not None else v

    @field_validator("due_date", mode="before")
    @classmethod
    def empty_due_date(cls, v):
        return None if v == "" else v

    @field_validator("due_date")
    @classmethod
    def due_after_issue(cls, v, info: ValidationInfo):
        issue_date = info.data.get("issue_date")
        if v is not None and issue_date is not None and v < issue_date:
            raise ValueError(DUE_BEFORE_ISSUE_MESSAGE)
        return v

    @field_validator("items")
    @classmethod
    def validate_items(cls, v):
        if not v:
            raise ValueError("At least one line item is required")
        return v


class InvoiceUpdate(BaseModel):
    """Schema for updating an invoice; dates are re-checked against the stored row"""
    client_id: Optional[str] = None
    invoice_number: Optional[str] = None
    status: Optional[InvoiceStatus] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None
    items: Optional[List[InvoiceLineItemIn]] = None

    @field_validator("invoice_number")
    @classmethod
    def validate_invoice_number(cls, v):
        if v is None or not v.strip():
            raise ValueError("Invoice number is required")
        return v.strip()

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v is None:
            raise ValueError("Status is required")
        return v

    @field_validator("issue_date")
    @classmethod
    def validate_issue_date(cls, v):
        if v is None:
            raise ValueError("Issue date is required")
        return v

    @field_validator("due_date", mode="before")
    @classmethod
    def empty_due_date(cls, v):
        return None if v == "" else v

    @field_validator("due_date")
    @classmethod
    def due_after_issue(cls, v, info: ValidationInfo):
        issue_date = info.data.get("issue_date")
        if v is not None and issue_date is not None and v < issue_date:
            raise ValueError(DUE_BEFORE_ISSUE_MESSAGE)
        return v

    @field_validator("items")
    @classmethod
    def validate_items(cls, v):
        if v is not None and not v:
            raise ValueError("At least one line item is required")
        return v


class InvoiceStatusUpdate(BaseModel):
    status: InvoiceStatus


class InvoiceLineItem(BaseModel):
    id: str
    invoice_id: str
    description: str
    quantity: float
    unit_price: float
    total: float
    position: int = 0

    class Config:
        from_attributes = True


class InvoiceOrganization(BaseModel):
    id: str
    name: str
    legal_name: Optional[str] = None
    tax_id: Optional[str] = None

    class Config:
        from_attributes = True


class InvoiceClient(ClientSummary):
    email: Optional[str] = None
    address: Optional[str] = None
    vat_number: Optional[str] = None


class Invoice(BaseModel):
    """Invoice schema for responses"""
    id: str
    organization_id: str
    client_id: Optional[str] = None
    invoice_number: str
    total_amount: float = 0
    status: InvoiceStatus
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    line_items: List[InvoiceLineItem] = []
    client: Optional[InvoiceClient] = None
    organization: Optional[InvoiceOrganization] = None

    class Config:
        from_attributes = True


class InvoiceList(BaseModel):
    data: List[Invoice]
    total: int


class NextInvoiceNumber(BaseModel):
    invoice_number: str


class SendInvoiceRequest(BaseModel):
    recipient_email: Optional[str] = None
