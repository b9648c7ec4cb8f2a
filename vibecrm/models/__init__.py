from .organization import Organization
from .user import User, Profile, UserRole, OrganizationMember, AppRole
from .client import Client, ClientStatus
from .project import Project, ProjectStatus, Priority
from .task import Task, TaskStatus
from .invoice import Invoice, InvoiceLineItem, InvoiceStatus
from .attachment import Attachment

__all__ = [
    "Organization",
    "User", "Profile", "UserRole", "OrganizationMember", "AppRole",
    "Client", "ClientStatus",
    "Project", "ProjectStatus", "Priority",
    "Task", "TaskStatus",
    "Invoice", "InvoiceLineItem", "InvoiceStatus",
    "Attachment",
]
