from typing import Any
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from ....db.database import get_db
from ....core.rate_limit import limiter
from ....core.security import (
    create_access_token,
    create_refresh_token,
    verify_password,
    verify_refresh_token,
)
from ....models.user import User
from ....schemas.auth import Token, LoginRequest, RefreshTokenRequest, SignupRequest, Me
from ....services import organization_service, user_service
from ...deps import get_current_user, get_is_superadmin

router = APIRouter()


def _tokens_for(user: User) -> dict:
    return {
        "access_token": create_access_token(subject=user.id),
        "refresh_token": create_refresh_token(subject=user.id),
        "token_type": "bearer",
    }


@router.post("/signup", response_model=Token, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: SignupRequest,
    db: AsyncSession = Depends(get_db)
) -> Any:
    """Create an account (with an empty-name profile) and log it in"""
    user = await user_service.create_user(
        db, payload.email, payload.password, payload.first_name, payload.last_name
    )
    return _tokens_for(user)


@router.post("/login", response_model=Token)
@limiter.limit("10/minute")
async def login(
    request: Request,
    login_data: LoginRequest,
    db: AsyncSession = Depends(get_db)
) -> Any:
    """Exchange e-mail and password for an access/refresh token pair"""
    user = await user_service.get_user_by_email(db, login_data.email)

    if not user or not verify_password(login_data.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user"
        )

    return _tokens_for(user)


@router.post("/refresh", response_model=Token)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    db: AsyncSession = Depends(get_db)
) -> Any:
    """Refresh access token using refresh token"""
    user_id = verify_refresh_token(refresh_data.refresh_token)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        )

    user = await db.get(User, user_id)
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )

    return _tokens_for(user)


@router.get("/me", response_model=Me)
async def read_me(
    current_user: User = Depends(get_current_user),
    is_superadmin: bool = Depends(get_is_superadmin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    profile = await user_service.get_profile(db, current_user.id)
    membership = await organization_service.get_membership(db, current_user.id)
    return {
        "id": current_user.id,
        "email": current_user.email,
        "is_superadmin": is_superadmin,
        "profile": profile,
        "membership": membership,
    }
