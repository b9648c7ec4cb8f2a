from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator, computed_field, ValidationInfo
from datetime import datetime

from ..models.user import AppRole

INVITABLE_ROLES = (AppRole.OWNER, AppRole.ADMIN, AppRole.MEMBER)


class Profile(BaseModel):
    """Profile schema for responses"""
    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar_url: Optional[str] = None
    biography: Optional[str] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: EmailStr
    avatar_url: Optional[str] = None
    biography: Optional[str] = None

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def strip_names(cls, v):
        return v.strip() if isinstance(v, str) else v


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=8)
    new_password: str = Field(..., min_length=8)
    confirm_password: str = Field(..., min_length=8)

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, v, info: ValidationInfo):
        new_password = info.data.get("new_password")
        if new_password is not None and v != new_password:
            raise ValueError("Passwords don't match")
        return v


class InviteUser(BaseModel):
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    organization_id: Optional[str] = None
    role: AppRole = AppRole.MEMBER

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        if v not in INVITABLE_ROLES:
            raise ValueError("Role must be one of: owner, admin, member")
        return v


class InviteResult(BaseModel):
    user_id: str


class UserDetail(BaseModel):
    """A membership row joined with its user, profile and organization"""
    id: str
    user_id: str
    organization_id: str
    organization_name: Optional[str] = None
    role: AppRole
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    created_at: datetime

    @computed_field
    @property
    def full_name(self) -> Optional[str]:
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or None
