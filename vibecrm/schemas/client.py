from typing import Optional, List
from pydantic import BaseModel, EmailStr, Field, field_validator, ValidationInfo
from datetime import datetime

from ..models.client import ClientStatus


def _blank_to_none(v):
    if isinstance(v, str) and v.strip() == "":
        return None
    return v


class ClientBase(BaseModel):
    """Base client schema"""
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    vat_number: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def empty_email(cls, v):
        return _blank_to_none(v)


class ClientCreate(ClientBase):
    """Schema for creating a client"""
    name: str
    status: ClientStatus = ClientStatus.ACTIVE
    organization_id: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v.strip()


class ClientUpdate(ClientBase):
    """Schema for updating a client"""
    name: Optional[str] = None
    status: Optional[ClientStatus] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is None or not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator("status")
    @classmethod
    def not_null(cls, v, info: ValidationInfo):
        if v is None:
            raise ValueError(f"{info.field_name.capitalize()} is required")
        return v


class Client(BaseModel):
    """Client schema for responses"""
    id: str
    organization_id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    vat_number: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    status: ClientStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ClientSummary(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True


class ClientList(BaseModel):
    data: List[Client]
    total: int
