"""
Tenant access rules.

Every read and write in the services goes through these checks: a superadmin
may touch any organization, everyone else only the organizations they belong
to, with the allowed actions depending on their membership role.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import PermissionDeniedError, ValidationFailedError
from ..models.user import AppRole, OrganizationMember, UserRole, RECORD_MANAGER_ROLES, ORG_ADMIN_ROLES

logger = logging.getLogger(__name__)


async def is_superadmin(db: AsyncSession, user_id: Optional[str]) -> bool:
    if not user_id:
        return False
    result = await db.execute(
        select(UserRole.id).where(UserRole.user_id == user_id, UserRole.role == AppRole.SUPERADMIN)
    )
    return result.first() is not None


async def get_user_org_role(db: AsyncSession, user_id: str, org_id: str) -> Optional[AppRole]:
    result = await db.execute(
        select(OrganizationMember.role).where(
            OrganizationMember.user_id == user_id,
            OrganizationMember.organization_id == org_id,
        )
    )
    return result.scalar_one_or_none()


async def is_org_member(db: AsyncSession, user_id: str, org_id: str) -> bool:
    return await get_user_org_role(db, user_id, org_id) is not None


async def has_org_access(db: AsyncSession, user_id: str, org_id: str) -> bool:
    if await is_superadmin(db, user_id):
        return True
    return await is_org_member(db, user_id, org_id)


async def _has_role(db: AsyncSession, user_id: str, org_id: Optional[str], roles) -> bool:
    if await is_superadmin(db, user_id):
        return True
    if not org_id:
        return False
    role = await get_user_org_role(db, user_id, org_id)
    return role in roles


async def can_manage_records(db: AsyncSession, user_id: str, org_id: Optional[str]) -> bool:
    """Clients, projects, tasks and attachments"""
    return await _has_role(db, user_id, org_id, RECORD_MANAGER_ROLES)


async def can_manage_invoices(db: AsyncSession, user_id: str, org_id: Optional[str]) -> bool:
    return await _has_role(db, user_id, org_id, ORG_ADMIN_ROLES)


async def can_manage_members(db: AsyncSession, user_id: str, org_id: Optional[str]) -> bool:
    return await _has_role(db, user_id, org_id, ORG_ADMIN_ROLES)


async def require_org_access(db: AsyncSession, user_id: str, org_id: str) -> None:
    if not await has_org_access(db, user_id, org_id):
        raise PermissionDeniedError("Access denied")


async def require_manage_records(db: AsyncSession, user_id: str, org_id: Optional[str]) -> None:
    if not await can_manage_records(db, user_id, org_id):
        logger.warning("User %s may not manage records of organization %s", user_id, org_id)
        raise PermissionDeniedError("You do not have permission to modify records in this organization")


async def require_manage_invoices(db: AsyncSession, user_id: str, org_id: Optional[str]) -> None:
    if not await can_manage_invoices(db, user_id, org_id):
        logger.warning("User %s may not manage invoices of organization %s", user_id, org_id)
        raise PermissionDeniedError("Only organization owners and admins can manage invoices")


async def require_manage_members(db: AsyncSession, user_id: str, org_id: Optional[str]) -> None:
    if not await can_manage_members(db, user_id, org_id):
        raise PermissionDeniedError("Only organization owners and admins can manage members")


async def require_superadmin(db: AsyncSession, user_id: str) -> None:
    if not await is_superadmin(db, user_id):
        raise PermissionDeniedError("Superadmin access required")


async def get_primary_org_id(db: AsyncSession, user_id: str) -> Optional[str]:
    """Organization of the user's first membership"""
    result = await db.execute(
        select(OrganizationMember.organization_id)
        .where(OrganizationMember.user_id == user_id)
        .order_by(OrganizationMember.created_at.asc())
        .limit(1)
    )
    return result.scalar_one_or_none()


@dataclass(frozen=True)
class AccessScope:
    """Who is asking and which tenant slice they are looking at"""
    user_id: str
    organization_id: Optional[str] = None
    is_superadmin: bool = False

    @property
    def is_global(self) -> bool:
        return self.is_superadmin and not self.organization_id

    @property
    def is_empty(self) -> bool:
        return not self.is_superadmin and not self.organization_id

    def apply(self, query, column):
        if self.organization_id:
            return query.where(column == self.organization_id)
        return query

    def allows(self, org_id: Optional[str]) -> bool:
        if self.is_superadmin:
            return True
        return bool(org_id) and org_id == self.organization_id


async def resolve_scope(db: AsyncSession, user_id: str, organization_id: Optional[str] = None) -> AccessScope:
    """
    Superadmins get the requested organization or the global view.
    Other users get the requested organization if they belong to it,
    otherwise their own membership organization.
    """
    superadmin = await is_superadmin(db, user_id)
    if superadmin:
        return AccessScope(user_id=user_id, organization_id=organization_id, is_superadmin=True)
    if organization_id:
        if not await is_org_member(db, user_id, organization_id):
            raise PermissionDeniedError("Access denied")
        return AccessScope(user_id=user_id, organization_id=organization_id)
    return AccessScope(user_id=user_id, organization_id=await get_primary_org_id(db, user_id))


def resolve_target_org(scope: AccessScope, organization_id: Optional[str] = None) -> str:
    """Organization a new record is created in"""
    target = organization_id or scope.organization_id
    if not target:
        raise ValidationFailedError("Organization is required")
    return target
