from sqlalchemy import Column, String, Text, ForeignKey, Enum, Date, Numeric, Index
from sqlalchemy.orm import relationship
import enum
from .base import TimestampedModel, enum_values


class ProjectStatus(str, enum.Enum):
    PLANNING = "planning"
    ACTIVE = "active"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Priority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class Project(TimestampedModel):
    """Project model"""
    __tablename__ = "projects"
    __table_args__ = (
        Index("idx_projects_org_client", "organization_id", "client_id"),
        Index("idx_projects_org_status_priority_created", "organization_id", "status", "priority", "created_at"),
    )

    organization_id = Column(String, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(String, ForeignKey("clients.id", ondelete="SET NULL"), index=True)

    name = Column(Text, nullable=False)
    description = Column(Text)
    status = Column(
        Enum(ProjectStatus, name="project_status", values_callable=enum_values),
        nullable=False,
        default=ProjectStatus.PLANNING,
    )
    priority = Column(
        Enum(Priority, name="project_priority", values_callable=enum_values),
        nullable=False,
        default=Priority.MEDIUM,
    )
    budget = Column(Numeric(12, 2))

    start_date = Column(Date)
    due_date = Column(Date)

    client = relationship("Client")
    tasks = relationship("Task", back_populates="project", passive_deletes=True)

    def __repr__(self):
        return f"<Project(name='{self.name}', status='{self.status}')>"
