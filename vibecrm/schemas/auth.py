from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from .organization import Membership
from .user import Profile


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class Me(BaseModel):
    """Authenticated user with overlay role and membership"""
    id: str
    email: str
    is_superadmin: bool = False
    profile: Optional[Profile] = None
    membership: Optional[Membership] = None
