import logging
from typing import Dict, List, Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.errors import NotFoundError, ValidationFailedError
from ..models.attachment import Attachment
from ..models.project import Project
from ..models.task import Task, TaskStatus, BOARD_COLUMNS
from ..schemas.task import TaskCreate, TaskUpdate
from . import access_service
from .access_service import AccessScope

logger = logging.getLogger(__name__)


async def list_tasks(
    db: AsyncSession,
    scope: AccessScope,
    project_id: Optional[str] = None,
    client_id: Optional[str] = None,
    status: Optional[TaskStatus] = None,
    assignee_id: Optional[str] = None,
) -> List[Task]:
    """Tasks in board order (position, then newest), each with its project"""
    if scope.is_empty:
        return []
    query = scope.apply(select(Task), Task.organization_id)
    if project_id:
        query = query.where(Task.project_id == project_id)
    if client_id:
        query = query.join(Project, Project.id == Task.project_id).where(Project.client_id == client_id)
    if status:
        query = query.where(Task.status == status)
    if assignee_id:
        query = query.where(Task.assignee_id == assignee_id)

    query = query.options(selectinload(Task.project)).order_by(Task.position.asc(), Task.created_at.desc())
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_board(db: AsyncSession, scope: AccessScope, **filters) -> Dict[TaskStatus, List[Task]]:
    """Tasks grouped into Kanban columns"""
    columns: Dict[TaskStatus, List[Task]] = {status: [] for status in BOARD_COLUMNS}
    for task in await list_tasks(db, scope, **filters):
        columns[TaskStatus(task.status)].append(task)
    return columns


async def get_task(db: AsyncSession, scope: AccessScope, task_id: str) -> Task:
    result = await db.execute(
        select(Task).options(selectinload(Task.project)).where(Task.id == task_id)
    )
    task = result.scalar_one_or_none()
    if task is None or not scope.allows(task.organization_id):
        raise NotFoundError("Task not found")
    return task


async def _check_project(db: AsyncSession, org_id: str, project_id: Optional[str]) -> None:
    if not project_id:
        return
    project = await db.get(Project, project_id)
    if project is None or project.organization_id != org_id:
        raise ValidationFailedError("Project does not belong to this organization")


async def create_task(db: AsyncSession, scope: AccessScope, data: TaskCreate) -> Task:
    org_id = access_service.resolve_target_org(scope, data.organization_id)
    await access_service.require_manage_records(db, scope.user_id, org_id)
    await _check_project(db, org_id, data.project_id)

    values = data.model_dump(exclude={"organization_id"})
    if values.get("position") is None:
        values["position"] = 0
    task = Task(organization_id=org_id, **values)
    db.add(task)
    await db.flush()
    logger.info("Task %s created in %s", task.id, org_id)
    return await get_task(db, scope, task.id)


async def update_task(db: AsyncSession, scope: AccessScope, task_id: str, data: TaskUpdate) -> Task:
    task = await get_task(db, scope, task_id)
    await access_service.require_manage_records(db, scope.user_id, task.organization_id)
    updates = data.model_dump(exclude_unset=True)
    if "project_id" in updates:
        await _check_project(db, task.organization_id, updates["project_id"])

    for field, value in updates.items():
        setattr(task, field, value)
    await db.flush()
    await db.refresh(task, attribute_names=["project", "updated_at"])
    return task


async def update_status(
    db: AsyncSession,
    scope: AccessScope,
    task_id: str,
    status: TaskStatus,
    position: Optional[int] = None,
) -> Task:
    """Move a task to another board column"""
    task = await get_task(db, scope, task_id)
    await access_service.require_manage_records(db, scope.user_id, task.organization_id)
    task.status = status
    if position is not None:
        task.position = position
    await db.flush()
    return task


async def delete_task(db: AsyncSession, scope: AccessScope, task_id: str) -> None:
    task = await get_task(db, scope, task_id)
    await access_service.require_manage_records(db, scope.user_id, task.organization_id)
    await db.execute(delete(Attachment).where(Attachment.task_id == task_id))
    await db.execute(delete(Task).where(Task.id == task_id))
    logger.info("Task %s deleted", task_id)
