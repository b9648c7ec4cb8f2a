from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ....db.database import get_db
from ....models.task import TaskStatus
from ....schemas.task import Task, TaskCreate, TaskUpdate, TaskStatusUpdate, TaskBoard
from ....services import task_service
from ....services.access_service import AccessScope
from ...deps import get_scope

router = APIRouter()


@router.get("/", response_model=List[Task])
async def list_tasks(
    project_id: Optional[str] = None,
    client_id: Optional[str] = None,
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    assignee_id: Optional[str] = None,
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await task_service.list_tasks(
        db, scope, project_id=project_id, client_id=client_id, status=status_filter, assignee_id=assignee_id
    )


@router.get("/board", response_model=TaskBoard)
async def get_board(
    project_id: Optional[str] = None,
    client_id: Optional[str] = None,
    assignee_id: Optional[str] = None,
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Tasks grouped by Kanban column"""
    columns = await task_service.get_board(
        db, scope, project_id=project_id, client_id=client_id, assignee_id=assignee_id
    )
    return {"columns": columns}


@router.get("/{task_id}", response_model=Task)
async def get_task(
    task_id: str,
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await task_service.get_task(db, scope, task_id)


@router.post("/", response_model=Task, status_code=status.HTTP_201_CREATED)
async def create_task(
    payload: TaskCreate,
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await task_service.create_task(db, scope, payload)


@router.put("/{task_id}", response_model=Task)
async def update_task(
    task_id: str,
    payload: TaskUpdate,
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await task_service.update_task(db, scope, task_id, payload)


@router.patch("/{task_id}/status", response_model=Task)
async def update_task_status(
    task_id: str,
    payload: TaskStatusUpdate,
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Move a task on the board"""
    return await task_service.update_status(db, scope, task_id, payload.status, payload.position)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: str,
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> None:
    await task_service.delete_task(db, scope, task_id)
