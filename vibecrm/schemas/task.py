from typing import Optional, List, Dict
from pydantic import BaseModel, field_validator, ValidationInfo
from datetime import date, datetime

from ..models.project import Priority
from ..models.task import TaskStatus
from .project import ProjectSummary


class TaskBase(BaseModel):
    """Base task schema"""
    description: Optional[str] = None
    project_id: Optional[str] = None
    assignee_id: Optional[str] = None
    due_date: Optional[date] = None
    position: Optional[int] = None

    @field_validator("project_id", "assignee_id", "due_date", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        if isinstance(v, str) and v.strip() == "":
            return None
        return v


class TaskCreate(TaskBase):
    """Schema for creating a task"""
    title: str
    status: TaskStatus = TaskStatus.BACKLOG
    priority: Priority = Priority.MEDIUM
    organization_id: Optional[str] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if not v or not v.strip():
            raise ValueError("Title is required")
        return v.strip()


class TaskUpdate(TaskBase):
    """Schema for updating a task"""
    title: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[Priority] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if v is None or not v.strip():
            raise ValueError("Title is required")
        return v.strip()

    @field_validator("status", "priority")
    @classmethod
    def not_null(cls, v, info: ValidationInfo):
        if v is None:
            raise ValueError(f"{info.field_name.capitalize()} is required")
        return v


class TaskStatusUpdate(BaseModel):
    """Kanban move"""
    status: TaskStatus
    position: Optional[int] = None


class Task(BaseModel):
    """Task schema for responses"""
    id: str
    organization_id: str
    project_id: Optional[str] = None
    assignee_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: Priority
    position: int = 0
    due_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime
    project: Optional[ProjectSummary] = None

    class Config:
        from_attributes = True


class TaskBoard(BaseModel):
    columns: Dict[TaskStatus, List[Task]]
