import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationFailedError
from ..core.security import get_password_hash, verify_password, generate_temp_password
from ..models.organization import Organization
from ..models.user import AppRole, OrganizationMember, Profile, User, UserRole
from ..schemas.user import PasswordChange, ProfileUpdate
from . import access_service
from .organization_service import list_members, _member_row

logger = logging.getLogger(__name__)


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email.lower().strip()))
    return result.scalar_one_or_none()


async def create_user(
    db: AsyncSession,
    email: str,
    password: str,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
) -> User:
    """Create a user together with its profile"""
    email = email.lower().strip()
    if await get_user_by_email(db, email):
        raise ConflictError("A user with this email already exists")
    user = User(email=email, hashed_password=get_password_hash(password), is_active=True)
    db.add(user)
    await db.flush()
    db.add(Profile(id=user.id, first_name=first_name or "", last_name=last_name or ""))
    await db.flush()
    return user


async def get_all_users(db: AsyncSession, caller_id: str) -> List[Dict[str, Any]]:
    """Every membership across organizations, newest first (superadmin only)"""
    if not await access_service.is_superadmin(db, caller_id):
        return []
    result = await db.execute(
        select(OrganizationMember, User.email, Profile.first_name, Profile.last_name, Organization.name)
        .join(User, User.id == OrganizationMember.user_id)
        .join(Organization, Organization.id == OrganizationMember.organization_id)
        .outerjoin(Profile, Profile.id == OrganizationMember.user_id)
        .order_by(OrganizationMember.created_at.desc())
    )
    return [_member_row(*row) for row in result.all()]


async def get_organization_members(db: AsyncSession, caller_id: str, org_id: str) -> List[Dict[str, Any]]:
    if not await access_service.has_org_access(db, caller_id, org_id):
        raise PermissionDeniedError("Access denied")
    return await list_members(db, org_id)


async def invite_user_to_organization(
    db: AsyncSession,
    caller_id: str,
    email: str,
    first_name: Optional[str],
    last_name: Optional[str],
    org_id: str,
    role: AppRole = AppRole.MEMBER,
) -> str:
    """
    Add a user to an organization, creating the account if it does not exist.

    New accounts get a random temporary password. An existing membership has
    its role updated. Returns the user id.
    """
    if not await access_service.can_manage_members(db, caller_id, org_id):
        raise PermissionDeniedError("Not authorized to invite users")
    if await db.get(Organization, org_id) is None:
        raise NotFoundError("Organization not found")

    user = await get_user_by_email(db, email)
    if user is None:
        user = await create_user(db, email, generate_temp_password(), first_name, last_name)
        logger.info("Created invited user %s", user.id)

    result = await db.execute(
        select(OrganizationMember).where(
            OrganizationMember.organization_id == org_id,
            OrganizationMember.user_id == user.id,
        )
    )
    member = result.scalar_one_or_none()
    if member is None:
        db.add(OrganizationMember(organization_id=org_id, user_id=user.id, role=role))
    else:
        member.role = role
    await db.flush()
    logger.info("User %s invited to %s as %s by %s", user.id, org_id, role.value, caller_id)
    return user.id


async def get_user(db: AsyncSession, user_id: str) -> User:
    result = await db.execute(
        select(User).options(selectinload(User.profile)).where(User.id == user_id)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found")
    return user


async def get_profile(db: AsyncSession, user_id: str) -> Dict[str, Any]:
    user = await get_user(db, user_id)
    profile = user.profile
    return {
        "id": user.id,
        "email": user.email,
        "first_name": profile.first_name if profile else None,
        "last_name": profile.last_name if profile else None,
        "avatar_url": profile.avatar_url if profile else None,
        "biography": profile.biography if profile else None,
        "updated_at": profile.updated_at if profile else user.updated_at,
    }


async def update_profile(db: AsyncSession, user_id: str, data: ProfileUpdate) -> Dict[str, Any]:
    user = await get_user(db, user_id)
    email = str(data.email).lower()
    if email != user.email:
        other = await get_user_by_email(db, email)
        if other is not None and other.id != user.id:
            raise ConflictError("A user with this email already exists")
        user.email = email

    profile = user.profile
    if profile is None:
        profile = Profile(id=user.id)
        db.add(profile)
    profile.first_name = data.first_name
    profile.last_name = data.last_name
    if data.avatar_url is not None:
        profile.avatar_url = data.avatar_url
    if data.biography is not None:
        profile.biography = data.biography
    await db.flush()
    return await get_profile(db, user_id)


async def change_password(db: AsyncSession, user_id: str, data: PasswordChange) -> None:
    user = await get_user(db, user_id)
    if not verify_password(data.current_password, user.hashed_password):
        raise ValidationFailedError("Current password is incorrect")
    if data.new_password != data.confirm_password:
        raise ValidationFailedError("Passwords don't match")
    user.hashed_password = get_password_hash(data.new_password)
    await db.flush()
    logger.info("Password changed for user %s", user_id)


async def grant_superadmin(db: AsyncSession, email: str, password: Optional[str] = None) -> User:
    """Create the user if needed and give it the superadmin role"""
    user = await get_user_by_email(db, email)
    if user is None:
        user = await create_user(db, email, password or generate_temp_password())
    elif password:
        user.hashed_password = get_password_hash(password)

    if not await access_service.is_superadmin(db, user.id):
        db.add(UserRole(user_id=user.id, role=AppRole.SUPERADMIN))
    await db.flush()
    logger.info("Superadmin role granted to %s", user.email)
    return user
