from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ....core.errors import ValidationFailedError
from ....db.database import get_db
from ....models.user import User
from ....schemas.user import UserDetail, InviteUser, InviteResult, Profile, ProfileUpdate, PasswordChange
from ....services import user_service, access_service
from ...deps import get_current_user

router = APIRouter()


@router.get("/", response_model=List[UserDetail])
async def list_users(
    organization_id: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Members of one organization, or every membership for a superadmin"""
    if organization_id:
        return await user_service.get_organization_members(db, current_user.id, organization_id)
    return await user_service.get_all_users(db, current_user.id)


@router.post("/invite", response_model=InviteResult, status_code=status.HTTP_201_CREATED)
async def invite_user(
    payload: InviteUser,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    organization_id = payload.organization_id or await access_service.get_primary_org_id(db, current_user.id)
    if not organization_id:
        raise ValidationFailedError("Organization is required")
    user_id = await user_service.invite_user_to_organization(
        db,
        current_user.id,
        str(payload.email),
        payload.first_name,
        payload.last_name,
        organization_id,
        payload.role,
    )
    return {"user_id": user_id}


@router.get("/me/profile", response_model=Profile)
async def get_profile(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await user_service.get_profile(db, current_user.id)


@router.put("/me/profile", response_model=Profile)
async def update_profile(
    payload: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await user_service.update_profile(db, current_user.id, payload)


@router.post("/me/password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(
    payload: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> None:
    await user_service.change_password(db, current_user.id, payload)
