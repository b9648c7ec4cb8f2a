from typing import Any, List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ....db.database import get_db
from ....models.user import User
from ....schemas.organization import (
    Organization, OrganizationCreate, OrganizationUpdate, OrganizationWithCount,
    Membership, MemberRoleUpdate,
)
from ....schemas.user import UserDetail
from ....services import access_service, organization_service, user_service
from ....services.access_service import AccessScope
from ...deps import get_current_user, get_scope

router = APIRouter()


@router.get("/", response_model=List[OrganizationWithCount])
async def list_organizations(
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """All organizations with member counts (superadmin only, empty otherwise)"""
    return await organization_service.list_organizations(db, scope)


@router.get("/current", response_model=Optional[Membership])
async def current_membership(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await organization_service.get_membership(db, current_user.id)


@router.post("/", response_model=Organization, status_code=status.HTTP_201_CREATED)
async def create_organization(
    payload: OrganizationCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Create an organization; a regular user becomes its owner"""
    superadmin = await access_service.is_superadmin(db, current_user.id)
    return await organization_service.create_organization(
        db, current_user.id, payload, add_owner=not superadmin
    )


@router.put("/{organization_id}", response_model=Organization)
async def update_organization(
    organization_id: str,
    payload: OrganizationUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await organization_service.update_organization(db, current_user.id, organization_id, payload)


@router.delete("/{organization_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_organization(
    organization_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> None:
    await organization_service.delete_organization(db, current_user.id, organization_id)


@router.get("/{organization_id}/members", response_model=List[UserDetail])
async def list_members(
    organization_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await user_service.get_organization_members(db, current_user.id, organization_id)


@router.patch("/members/{member_id}", response_model=dict)
async def update_member_role(
    member_id: str,
    payload: MemberRoleUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    member = await organization_service.update_member_role(db, current_user.id, member_id, payload.role)
    return {"id": member.id, "organization_id": member.organization_id, "user_id": member.user_id, "role": member.role}


@router.delete("/members/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    member_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> None:
    await organization_service.remove_member(db, current_user.id, member_id)
