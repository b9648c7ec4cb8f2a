from typing import Optional, List
from decimal import Decimal
from pydantic import BaseModel, field_validator, ValidationInfo
from datetime import date, datetime

from ..models.project import ProjectStatus, Priority
from .client import ClientSummary


class ProjectBase(BaseModel):
    """Base project schema"""
    description: Optional[str] = None
    client_id: Optional[str] = None
    budget: Optional[Decimal] = None
    start_date: Optional[date] = None
    due_date: Optional[date] = None

    @field_validator("client_id", "budget", "start_date", "due_date", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        if isinstance(v, str) and v.strip() == "":
            return None
        return v


class ProjectCreate(ProjectBase):
    """Schema for creating a project"""
    name: str
    status: ProjectStatus = ProjectStatus.PLANNING
    priority: Priority = Priority.MEDIUM
    organization_id: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v.strip()


class ProjectUpdate(ProjectBase):
    """Schema for updating a project"""
    name: Optional[str] = None
    status: Optional[ProjectStatus] = None
    priority: Optional[Priority] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is None or not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator("status", "priority")
    @classmethod
    def not_null(cls, v, info: ValidationInfo):
        if v is None:
            raise ValueError(f"{info.field_name.capitalize()} is required")
        return v


class Project(BaseModel):
    """Project schema for responses"""
    id: str
    organization_id: str
    client_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    status: ProjectStatus
    priority: Priority
    budget: Optional[float] = None
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime
    client: Optional[ClientSummary] = None

    class Config:
        from_attributes = True


class ProjectSummary(BaseModel):
    id: str
    name: str
    client_id: Optional[str] = None

    class Config:
        from_attributes = True


class ProjectList(BaseModel):
    data: List[Project]
    total: int
