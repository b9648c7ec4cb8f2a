from typing import Any, List, Optional
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ....core.config import settings
from ....db.database import get_db
from ....schemas.attachment import Attachment, DownloadLink
from ....services import attachment_service
from ....services.access_service import AccessScope
from ...deps import get_scope

router = APIRouter()


@router.post("/", response_model=Attachment, status_code=status.HTTP_201_CREATED)
async def upload_attachment(
    file: UploadFile = File(...),
    project_id: Optional[str] = Form(None),
    task_id: Optional[str] = Form(None),
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Upload a file for a project or a task"""
    content = await file.read()
    return await attachment_service.upload_attachment(
        db,
        scope,
        file_name=file.filename or "file",
        content=content,
        content_type=file.content_type,
        project_id=project_id or None,
        task_id=task_id or None,
    )


@router.get("/", response_model=List[Attachment])
async def list_attachments(
    project_id: Optional[str] = None,
    task_id: Optional[str] = None,
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await attachment_service.list_attachments(db, scope, project_id=project_id, task_id=task_id)


@router.delete("/{attachment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_attachment(
    attachment_id: str,
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> None:
    await attachment_service.delete_attachment(db, scope, attachment_id)


@router.post("/{attachment_id}/download-link", response_model=DownloadLink)
async def create_download_link(
    attachment_id: str,
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Short-lived link that can be opened without credentials"""
    token = await attachment_service.create_download_link(db, scope, attachment_id)
    return {
        "url": f"{settings.API_V1_STR}/attachments/download?token={token}",
        "token": token,
        "expires_in": settings.SIGNED_URL_TTL_SECONDS,
    }


@router.get("/download")
async def download_attachment(token: str = Query(...)) -> FileResponse:
    path, file_name = attachment_service.resolve_download(token)
    return FileResponse(path, filename=file_name)
