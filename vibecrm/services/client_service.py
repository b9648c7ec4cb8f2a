import logging
from typing import List, Optional

from sqlalchemy import select, or_, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import NotFoundError
from ..models.client import Client, ClientStatus
from ..models.invoice import Invoice
from ..models.project import Project
from ..schemas.client import ClientCreate, ClientUpdate
from . import access_service
from .access_service import AccessScope

logger = logging.getLogger(__name__)


async def list_clients(
    db: AsyncSession,
    scope: AccessScope,
    search: Optional[str] = None,
    status: Optional[ClientStatus] = None,
) -> List[Client]:
    if scope.is_empty:
        return []
    query = scope.apply(select(Client), Client.organization_id)
    if search:
        query = query.where(or_(Client.name.ilike(f"%{search}%"), Client.email.ilike(f"%{search}%")))
    if status:
        query = query.where(Client.status == status)
    result = await db.execute(query.order_by(Client.name.asc()))
    return list(result.scalars().all())


async def get_client(db: AsyncSession, scope: AccessScope, client_id: str) -> Client:
    client = await db.get(Client, client_id)
    if client is None or not scope.allows(client.organization_id):
        raise NotFoundError("Client not found")
    return client


async def create_client(db: AsyncSession, scope: AccessScope, data: ClientCreate) -> Client:
    org_id = access_service.resolve_target_org(scope, data.organization_id)
    await access_service.require_manage_records(db, scope.user_id, org_id)
    client = Client(organization_id=org_id, **data.model_dump(exclude={"organization_id"}))
    db.add(client)
    await db.flush()
    logger.info("Client %s created in %s", client.id, org_id)
    return client


async def update_client(db: AsyncSession, scope: AccessScope, client_id: str, data: ClientUpdate) -> Client:
    client = await get_client(db, scope, client_id)
    await access_service.require_manage_records(db, scope.user_id, client.organization_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(client, field, value)
    await db.flush()
    return client


async def delete_client(db: AsyncSession, scope: AccessScope, client_id: str) -> None:
    client = await get_client(db, scope, client_id)
    await access_service.require_manage_records(db, scope.user_id, client.organization_id)
    # Projects and invoices outlive their client
    await db.execute(update(Project).where(Project.client_id == client_id).values(client_id=None))
    await db.execute(update(Invoice).where(Invoice.client_id == client_id).values(client_id=None))
    await db.delete(client)
    await db.flush()
    logger.info("Client %s deleted", client_id)
