from typing import Optional
from pydantic import BaseModel
from datetime import datetime


class Attachment(BaseModel):
    id: str
    organization_id: str
    project_id: Optional[str] = None
    task_id: Optional[str] = None
    file_name: str
    file_url: str
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    uploaded_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class DownloadLink(BaseModel):
    url: str
    token: str
    expires_in: int
