from fastapi import APIRouter

from .endpoints import (
    auth,
    organizations,
    users,
    clients,
    projects,
    tasks,
    invoices,
    attachments,
    dashboard,
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(organizations.router, prefix="/organizations", tags=["organizations"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(clients.router, prefix="/clients", tags=["clients"])
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
api_router.include_router(invoices.router, prefix="/invoices", tags=["invoices"])
api_router.include_router(attachments.router, prefix="/attachments", tags=["attachments"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
