import logging
import re
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.errors import ConflictError, NotFoundError, ValidationFailedError
from ..models.organization import Organization
from ..models.user import AppRole, OrganizationMember, User, Profile
from ..models.client import Client
from ..models.project import Project
from ..models.task import Task
from ..models.invoice import Invoice, InvoiceLineItem
from ..models.attachment import Attachment
from ..schemas.organization import OrganizationCreate, OrganizationUpdate
from . import access_service
from .access_service import AccessScope

logger = logging.getLogger(__name__)

DUPLICATE_NAME_MESSAGE = "An organization with this name already exists"


def slugify(text: str) -> str:
    """Lower-case, dash-separated, url-safe form of an organization name."""
    slug = (text or "").lower().strip()
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^a-z0-9_-]", "", slug)
    slug = re.sub(r"-{2,}", "-", slug)
    return slug.strip("-")


async def list_organizations(db: AsyncSession, scope: AccessScope) -> List[Dict[str, Any]]:
    """All organizations with their member counts (superadmin only)"""
    if not scope.is_superadmin:
        return []
    member_count = (
        select(func.count(OrganizationMember.id))
        .where(OrganizationMember.organization_id == Organization.id)
        .correlate(Organization)
        .scalar_subquery()
    )
    result = await db.execute(
        select(Organization, member_count.label("member_count")).order_by(Organization.created_at.desc())
    )
    organizations = []
    for org, count in result.all():
        organizations.append({**_org_to_dict(org), "member_count": count or 0})
    return organizations


def _org_to_dict(org: Organization) -> Dict[str, Any]:
    return {
        "id": org.id,
        "name": org.name,
        "slug": org.slug,
        "logo_url": org.logo_url,
        "plan": org.plan,
        "legal_name": org.legal_name,
        "tax_id": org.tax_id,
        "website": org.website,
        "industry": org.industry,
        "created_at": org.created_at,
        "updated_at": org.updated_at,
    }


async def get_organization(db: AsyncSession, org_id: str) -> Organization:
    org = await db.get(Organization, org_id)
    if org is None:
        raise NotFoundError("Organization not found")
    return org


async def get_membership(db: AsyncSession, user_id: str) -> Optional[OrganizationMember]:
    """The user's first membership, with its organization loaded"""
    result = await db.execute(
        select(OrganizationMember)
        .options(selectinload(OrganizationMember.organization))
        .where(OrganizationMember.user_id == user_id)
        .order_by(OrganizationMember.created_at.asc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def _slug_taken(db: AsyncSession, slug: str, exclude_id: Optional[str] = None) -> bool:
    query = select(Organization.id).where(Organization.slug == slug)
    if exclude_id:
        query = query.where(Organization.id != exclude_id)
    return (await db.execute(query)).first() is not None


async def create_organization(
    db: AsyncSession,
    user_id: str,
    data: OrganizationCreate,
    add_owner: bool = True,
) -> Organization:
    name = data.name.strip()
    if not name:
        raise ValidationFailedError("Organization name cannot be empty")
    slug = data.slug.strip() if data.slug else slugify(name)
    if not slug:
        raise ValidationFailedError("Organization name must contain letters or digits")
    if await _slug_taken(db, slug):
        raise ConflictError(DUPLICATE_NAME_MESSAGE)

    org = Organization(
        name=name,
        slug=slug,
        logo_url=data.logo_url,
        plan=data.plan or "free",
        legal_name=data.legal_name,
        tax_id=data.tax_id,
        website=data.website,
        industry=data.industry,
    )
    db.add(org)
    try:
        await db.flush()
        if add_owner:
            db.add(OrganizationMember(organization_id=org.id, user_id=user_id, role=AppRole.OWNER))
            await db.flush()
    except IntegrityError as e:
        await db.rollback()
        logger.error("Failed to create organization %r: %s", name, e)
        raise ConflictError(DUPLICATE_NAME_MESSAGE) from e

    logger.info("Organization %s (%s) created by %s", org.id, org.slug, user_id)
    return org


async def update_organization(
    db: AsyncSession,
    caller_id: str,
    org_id: str,
    updates: OrganizationUpdate,
) -> Organization:
    await access_service.require_superadmin(db, caller_id)
    org = await get_organization(db, org_id)
    data = updates.model_dump(exclude_unset=True)

    if "name" in data:
        name = (data["name"] or "").strip()
        if not name:
            raise ValidationFailedError("Organization name cannot be empty")
        clash = await db.execute(
            select(Organization.id).where(
                func.lower(Organization.name) == name.lower(), Organization.id != org_id
            )
        )
        if clash.first() is not None:
            raise ConflictError(DUPLICATE_NAME_MESSAGE)
        data["name"] = name

    if data.get("slug"):
        if await _slug_taken(db, data["slug"], exclude_id=org_id):
            raise ConflictError("An organization with this slug already exists")

    for field, value in data.items():
        setattr(org, field, value)
    await db.flush()
    return org


async def delete_organization(db: AsyncSession, caller_id: str, org_id: str) -> None:
    """Delete an organization and all of its tenant data (superadmin only)"""
    await access_service.require_superadmin(db, caller_id)
    await get_organization(db, org_id)

    invoice_ids = select(Invoice.id).where(Invoice.organization_id == org_id)
    await db.execute(delete(Attachment).where(Attachment.organization_id == org_id))
    await db.execute(delete(InvoiceLineItem).where(InvoiceLineItem.invoice_id.in_(invoice_ids)))
    await db.execute(delete(Invoice).where(Invoice.organization_id == org_id))
    await db.execute(delete(Task).where(Task.organization_id == org_id))
    await db.execute(delete(Project).where(Project.organization_id == org_id))
    await db.execute(delete(Client).where(Client.organization_id == org_id))
    await db.execute(delete(OrganizationMember).where(OrganizationMember.organization_id == org_id))
    await db.execute(delete(Organization).where(Organization.id == org_id))
    logger.info("Organization %s deleted by %s", org_id, caller_id)


async def list_members(db: AsyncSession, org_id: str) -> List[Dict[str, Any]]:
    """Members of an organization with e-mail and names, oldest first"""
    result = await db.execute(
        select(OrganizationMember, User.email, Profile.first_name, Profile.last_name, Organization.name)
        .join(User, User.id == OrganizationMember.user_id)
        .join(Organization, Organization.id == OrganizationMember.organization_id)
        .outerjoin(Profile, Profile.id == OrganizationMember.user_id)
        .where(OrganizationMember.organization_id == org_id)
        .order_by(OrganizationMember.created_at.asc())
    )
    return [_member_row(*row) for row in result.all()]


def _member_row(member: OrganizationMember, email, first_name, last_name, org_name) -> Dict[str, Any]:
    return {
        "id": member.id,
        "user_id": member.user_id,
        "organization_id": member.organization_id,
        "organization_name": org_name,
        "role": member.role,
        "email": email,
        "first_name": first_name,
        "last_name": last_name,
        "created_at": member.created_at,
    }


async def _get_member(db: AsyncSession, member_id: str) -> OrganizationMember:
    member = await db.get(OrganizationMember, member_id)
    if member is None:
        raise NotFoundError("Member not found")
    return member


async def update_member_role(db: AsyncSession, caller_id: str, member_id: str, role: AppRole) -> OrganizationMember:
    member = await _get_member(db, member_id)
    await access_service.require_manage_members(db, caller_id, member.organization_id)
    if role == AppRole.SUPERADMIN:
        raise ValidationFailedError("Superadmin is not an organization role")
    member.role = role
    await db.flush()
    logger.info("Member %s of %s is now %s", member.user_id, member.organization_id, role.value)
    return member


async def remove_member(db: AsyncSession, caller_id: str, member_id: str) -> None:
    member = await _get_member(db, member_id)
    await access_service.require_manage_members(db, caller_id, member.organization_id)
    await db.delete(member)
    await db.flush()
