import logging
from datetime import date
from typing import Any, Dict, Optional

from sqlalchemy import select, or_, func, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.errors import NotFoundError, ValidationFailedError
from ..models.attachment import Attachment
from ..models.client import Client
from ..models.project import Project, ProjectStatus, Priority
from ..models.task import Task
from ..schemas.project import ProjectCreate, ProjectUpdate
from . import access_service
from .access_service import AccessScope

logger = logging.getLogger(__name__)


async def list_projects(
    db: AsyncSession,
    scope: AccessScope,
    search: Optional[str] = None,
    client_id: Optional[str] = None,
    status: Optional[ProjectStatus] = None,
    priority: Optional[Priority] = None,
    start_date: Optional[date] = None,
    due_date: Optional[date] = None,
    page: Optional[int] = None,
    page_size: Optional[int] = None,
) -> Dict[str, Any]:
    """Projects newest first, each with its client; returns {"data", "total"}"""
    if scope.is_empty:
        return {"data": [], "total": 0}

    query = scope.apply(select(Project), Project.organization_id)
    if search:
        query = query.where(
            or_(Project.name.ilike(f"%{search}%"), Project.description.ilike(f"%{search}%"))
        )
    if client_id:
        query = query.where(Project.client_id == client_id)
    if status:
        query = query.where(Project.status == status)
    if priority:
        query = query.where(Project.priority == priority)
    if start_date:
        query = query.where(Project.start_date >= start_date)
    if due_date:
        query = query.where(Project.due_date <= due_date)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0

    query = query.options(selectinload(Project.client)).order_by(Project.created_at.desc())
    if page and page_size:
        query = query.offset((page - 1) * page_size).limit(page_size)

    result = await db.execute(query)
    return {"data": list(result.scalars().all()), "total": total}


async def get_project(db: AsyncSession, scope: AccessScope, project_id: str) -> Project:
    result = await db.execute(
        select(Project).options(selectinload(Project.client)).where(Project.id == project_id)
    )
    project = result.scalar_one_or_none()
    if project is None or not scope.allows(project.organization_id):
        raise NotFoundError("Project not found")
    return project


async def _check_client(db: AsyncSession, org_id: str, client_id: Optional[str]) -> None:
    if not client_id:
        return
    client = await db.get(Client, client_id)
    if client is None or client.organization_id != org_id:
        raise ValidationFailedError("Client does not belong to this organization")


async def create_project(db: AsyncSession, scope: AccessScope, data: ProjectCreate) -> Project:
    org_id = access_service.resolve_target_org(scope, data.organization_id)
    await access_service.require_manage_records(db, scope.user_id, org_id)
    await _check_client(db, org_id, data.client_id)

    project = Project(organization_id=org_id, **data.model_dump(exclude={"organization_id"}))
    db.add(project)
    await db.flush()
    logger.info("Project %s created in %s", project.id, org_id)
    return await get_project(db, scope, project.id)


async def update_project(db: AsyncSession, scope: AccessScope, project_id: str, data: ProjectUpdate) -> Project:
    project = await get_project(db, scope, project_id)
    await access_service.require_manage_records(db, scope.user_id, project.organization_id)
    updates = data.model_dump(exclude_unset=True)
    if "client_id" in updates:
        await _check_client(db, project.organization_id, updates["client_id"])

    for field, value in updates.items():
        setattr(project, field, value)
    await db.flush()
    # Reload so the client relationship reflects a changed client_id
    await db.refresh(project, attribute_names=["client", "updated_at"])
    return project


async def delete_project(db: AsyncSession, scope: AccessScope, project_id: str) -> None:
    """Delete a project with its tasks and attachments"""
    project = await get_project(db, scope, project_id)
    await access_service.require_manage_records(db, scope.user_id, project.organization_id)

    task_ids = select(Task.id).where(Task.project_id == project_id)
    await db.execute(
        delete(Attachment).where(or_(Attachment.project_id == project_id, Attachment.task_id.in_(task_ids)))
    )
    await db.execute(delete(Task).where(Task.project_id == project_id))
    await db.execute(delete(Project).where(Project.id == project_id))
    logger.info("Project %s deleted", project_id)
