from sqlalchemy import Column, String, Text, ForeignKey, Enum, Date, Integer, Index
from sqlalchemy.orm import relationship
import enum
from .base import TimestampedModel, enum_values
from .project import Priority


class TaskStatus(str, enum.Enum):
    BACKLOG = "backlog"
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"


# Kanban column order
BOARD_COLUMNS = [
    TaskStatus.BACKLOG,
    TaskStatus.TODO,
    TaskStatus.IN_PROGRESS,
    TaskStatus.REVIEW,
    TaskStatus.DONE,
]


class Task(TimestampedModel):
    """Task model"""
    __tablename__ = "tasks"
    __table_args__ = (
        Index("idx_tasks_org_project_status", "organization_id", "project_id", "status"),
    )

    organization_id = Column(String, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(String, ForeignKey("projects.id", ondelete="CASCADE"), index=True)
    assignee_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), index=True)

    title = Column(Text, nullable=False)
    description = Column(Text)
    status = Column(
        Enum(TaskStatus, name="task_status", values_callable=enum_values),
        nullable=False,
        default=TaskStatus.BACKLOG,
    )
    priority = Column(
        Enum(Priority, name="task_priority", values_callable=enum_values),
        nullable=False,
        default=Priority.MEDIUM,
    )
    position = Column(Integer, default=0)
    due_date = Column(Date)

    project = relationship("Project", back_populates="tasks")

    def __repr__(self):
        return f"<Task(title='{self.title}', status='{self.status}')>"
