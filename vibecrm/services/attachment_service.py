import logging
import os
import time
from pathlib import Path, PurePosixPath
from typing import List, Optional, Tuple

import aiofiles
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.crypto import InvalidSignedToken, create_signed_token, read_signed_token
from ..core.errors import NotFoundError, ValidationFailedError, PermissionDeniedError
from ..models.attachment import Attachment
from ..models.project import Project
from ..models.task import Task
from . import access_service
from .access_service import AccessScope

logger = logging.getLogger(__name__)

ALLOWED_FILE_TYPES = [
    # Documents
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
    # Images
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/svg+xml",
]
UNSUPPORTED_TYPE_MESSAGE = "Unsupported file type. Allowed: PDF, DOC, DOCX, XLS, XLSX, TXT, JPG, PNG, GIF, SVG"


def max_file_size() -> int:
    return settings.MAX_FILE_SIZE_MB * 1024 * 1024


def validate_file(size: int, content_type: Optional[str]) -> None:
    if size > max_file_size():
        raise ValidationFailedError(f"File size must be under {settings.MAX_FILE_SIZE_MB}MB")
    if content_type not in ALLOWED_FILE_TYPES:
        raise ValidationFailedError(UNSUPPORTED_TYPE_MESSAGE)


def safe_file_name(file_name: str) -> str:
    """Last path component of a client-supplied name"""
    name = PurePosixPath(file_name.replace("\\", "/")).name
    if name in ("", ".", ".."):
        return "file"
    return name


def build_storage_path(
    organization_id: str,
    file_name: str,
    project_id: Optional[str] = None,
    task_id: Optional[str] = None,
    timestamp_ms: Optional[int] = None,
) -> str:
    """{org}/{projects|tasks}/{entity}/{base}-{timestamp}.{ext}"""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    entity_type = "projects" if project_id else "tasks"
    entity_id = project_id or task_id
    file_name = safe_file_name(file_name)
    base, dot, extension = file_name.rpartition(".")
    if not dot:
        unique_name = f"{file_name}-{timestamp_ms}"
    else:
        unique_name = f"{base}-{timestamp_ms}.{extension}"
    return f"{organization_id}/{entity_type}/{entity_id}/{unique_name}"


def _absolute_path(storage_path: str) -> Path:
    root = Path(settings.UPLOAD_DIR).resolve()
    path = (root / storage_path).resolve()
    if root not in path.parents:
        raise ValidationFailedError("Invalid storage path")
    return path


def _remove_stored_file(storage_path: str) -> None:
    path = _absolute_path(storage_path)
    if path.exists():
        os.remove(path)


async def _resolve_parent(db: AsyncSession, scope: AccessScope, project_id: Optional[str], task_id: Optional[str]) -> str:
    """Organization of the project or task the file is attached to"""
    if project_id:
        parent = await db.get(Project, project_id)
    elif task_id:
        parent = await db.get(Task, task_id)
    else:
        raise ValidationFailedError("An attachment needs a project or a task")
    if parent is None or not scope.allows(parent.organization_id):
        raise NotFoundError("Project not found" if project_id else "Task not found")
    return parent.organization_id


async def upload_attachment(
    db: AsyncSession,
    scope: AccessScope,
    file_name: str,
    content: bytes,
    content_type: Optional[str],
    project_id: Optional[str] = None,
    task_id: Optional[str] = None,
) -> Attachment:
    validate_file(len(content), content_type)
    org_id = await _resolve_parent(db, scope, project_id, task_id)
    await access_service.require_manage_records(db, scope.user_id, org_id)

    file_name = safe_file_name(file_name)
    storage_path = build_storage_path(org_id, file_name, project_id, task_id)
    path = _absolute_path(storage_path)
    if (Path(settings.UPLOAD_DIR).resolve() / org_id) not in path.parents:
        raise ValidationFailedError("Invalid storage path")
    path.parent.mkdir(parents=True, exist_ok=True)
    async with aiofiles.open(path, "wb") as f:
        await f.write(content)

    attachment = Attachment(
        organization_id=org_id,
        project_id=project_id,
        task_id=None if project_id else task_id,
        file_name=file_name,
        file_url=storage_path,
        file_type=content_type,
        file_size=len(content),
        uploaded_by=scope.user_id,
    )
    db.add(attachment)
    try:
        await db.flush()
    except Exception:
        logger.error("Failed to save attachment record for %s, removing stored file", storage_path)
        try:
            _remove_stored_file(storage_path)
        except OSError as e:
            logger.warning("Could not remove %s: %s", storage_path, e)
        raise

    logger.info("Attachment %s uploaded to %s", attachment.id, storage_path)
    return attachment


async def list_attachments(
    db: AsyncSession,
    scope: AccessScope,
    project_id: Optional[str] = None,
    task_id: Optional[str] = None,
) -> List[Attachment]:
    if scope.is_empty or not (project_id or task_id):
        return []
    query = scope.apply(select(Attachment), Attachment.organization_id)
    if project_id:
        query = query.where(Attachment.project_id == project_id)
    else:
        query = query.where(Attachment.task_id == task_id)
    result = await db.execute(query.order_by(Attachment.created_at.desc()))
    return list(result.scalars().all())


async def get_attachment(db: AsyncSession, scope: AccessScope, attachment_id: str) -> Attachment:
    attachment = await db.get(Attachment, attachment_id)
    if attachment is None or not scope.allows(attachment.organization_id):
        raise NotFoundError("Attachment not found")
    return attachment


async def delete_attachment(db: AsyncSession, scope: AccessScope, attachment_id: str) -> None:
    """Remove the stored file, then the record"""
    attachment = await get_attachment(db, scope, attachment_id)
    await access_service.require_manage_records(db, scope.user_id, attachment.organization_id)
    _remove_stored_file(attachment.file_url)
    await db.delete(attachment)
    await db.flush()
    logger.info("Attachment %s deleted", attachment_id)


async def create_download_link(db: AsyncSession, scope: AccessScope, attachment_id: str) -> str:
    attachment = await get_attachment(db, scope, attachment_id)
    return create_signed_token({"id": attachment.id, "path": attachment.file_url, "name": attachment.file_name})


def resolve_download(token: str) -> Tuple[Path, str]:
    """Stored file path and original name for a signed download token"""
    try:
        payload = read_signed_token(token, max_age_seconds=settings.SIGNED_URL_TTL_SECONDS)
    except InvalidSignedToken as e:
        raise PermissionDeniedError("Download link is invalid or has expired") from e
    path = _absolute_path(payload["path"])
    if not path.exists():
        raise NotFoundError("File not found")
    return path, payload.get("name") or path.name
