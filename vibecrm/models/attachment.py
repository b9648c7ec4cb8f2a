from sqlalchemy import Column, String, Text, Integer, ForeignKey, Index
from .base import UUIDBaseModel


class Attachment(UUIDBaseModel):
    """File attached to a project or a task"""
    __tablename__ = "attachments"
    __table_args__ = (
        Index("idx_attachments_org_project", "organization_id", "project_id"),
        Index("idx_attachments_org_task", "organization_id", "task_id"),
    )

    organization_id = Column(String, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(String, ForeignKey("projects.id", ondelete="CASCADE"), index=True)
    task_id = Column(String, ForeignKey("tasks.id", ondelete="CASCADE"), index=True)

    file_name = Column(Text, nullable=False)
    file_url = Column(Text, nullable=False)  # storage path relative to UPLOAD_DIR
    file_type = Column(String(255))
    file_size = Column(Integer)  # bytes

    uploaded_by = Column(String, ForeignKey("users.id", ondelete="SET NULL"))
