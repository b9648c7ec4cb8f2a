from typing import Any, Optional
from datetime import date
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ....db.database import get_db
from ....models.project import ProjectStatus, Priority
from ....schemas.project import Project, ProjectCreate, ProjectUpdate, ProjectList
from ....services import project_service
from ....services.access_service import AccessScope
from ...deps import get_scope

router = APIRouter()


@router.get("/", response_model=ProjectList)
async def list_projects(
    search: Optional[str] = None,
    client_id: Optional[str] = None,
    status_filter: Optional[ProjectStatus] = Query(None, alias="status"),
    priority: Optional[Priority] = None,
    start_date: Optional[date] = None,
    due_date: Optional[date] = None,
    page: Optional[int] = Query(None, ge=1),
    page_size: Optional[int] = Query(None, ge=1, le=100),
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Projects newest first with their client"""
    return await project_service.list_projects(
        db,
        scope,
        search=search,
        client_id=client_id,
        status=status_filter,
        priority=priority,
        start_date=start_date,
        due_date=due_date,
        page=page,
        page_size=page_size,
    )


@router.get("/{project_id}", response_model=Project)
async def get_project(
    project_id: str,
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await project_service.get_project(db, scope, project_id)


@router.post("/", response_model=Project, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await project_service.create_project(db, scope, payload)


@router.put("/{project_id}", response_model=Project)
async def update_project(
    project_id: str,
    payload: ProjectUpdate,
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await project_service.update_project(db, scope, project_id, payload)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: str,
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> None:
    await project_service.delete_project(db, scope, project_id)
