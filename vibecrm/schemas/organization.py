from typing import Optional
from urllib.parse import urlparse
from pydantic import BaseModel, Field, field_validator
from datetime import datetime

from ..models.user import AppRole


def _validate_website(v: Optional[str]) -> Optional[str]:
    if v is None or v == "":
        return None
    parsed = urlparse(v)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("Enter a valid URL")
    return v


class OrganizationBase(BaseModel):
    """Base organization schema"""
    logo_url: Optional[str] = None
    legal_name: Optional[str] = None
    tax_id: Optional[str] = None
    website: Optional[str] = None
    industry: Optional[str] = None

    @field_validator("legal_name")
    @classmethod
    def validate_legal_name(cls, v):
        if v is not None and len(v) > 255:
            raise ValueError("Legal name must be 255 characters or fewer")
        return v

    @field_validator("tax_id")
    @classmethod
    def validate_tax_id(cls, v):
        if v is not None and len(v) > 100:
            raise ValueError("Tax ID must be 100 characters or fewer")
        return v

    @field_validator("industry")
    @classmethod
    def validate_industry(cls, v):
        if v is not None and len(v) > 255:
            raise ValueError("Industry must be 255 characters or fewer")
        return v

    @field_validator("website")
    @classmethod
    def validate_website(cls, v):
        return _validate_website(v)


class OrganizationCreate(OrganizationBase):
    """Schema for creating an organization"""
    name: str = Field(..., min_length=1)
    slug: Optional[str] = None
    plan: str = "free"


class OrganizationUpdate(OrganizationBase):
    """Schema for updating an organization"""
    name: Optional[str] = None
    slug: Optional[str] = None
    plan: Optional[str] = None


class Organization(BaseModel):
    """Organization schema for responses"""
    id: str
    name: str
    slug: Optional[str] = None
    logo_url: Optional[str] = None
    plan: Optional[str] = None
    legal_name: Optional[str] = None
    tax_id: Optional[str] = None
    website: Optional[str] = None
    industry: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OrganizationWithCount(Organization):
    member_count: int = 0


class Membership(BaseModel):
    """Current user's membership with its organization"""
    id: str
    organization_id: str
    role: AppRole
    organization: Organization

    class Config:
        from_attributes = True


class MemberRoleUpdate(BaseModel):
    role: AppRole
