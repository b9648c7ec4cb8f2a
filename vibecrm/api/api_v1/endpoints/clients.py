from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ....db.database import get_db
from ....models.client import ClientStatus
from ....schemas.client import Client, ClientCreate, ClientUpdate
from ....services import client_service
from ....services.access_service import AccessScope
from ...deps import get_scope

router = APIRouter()


@router.get("/", response_model=List[Client])
async def list_clients(
    search: Optional[str] = None,
    status_filter: Optional[ClientStatus] = Query(None, alias="status"),
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Clients ordered by name"""
    return await client_service.list_clients(db, scope, search=search, status=status_filter)


@router.get("/{client_id}", response_model=Client)
async def get_client(
    client_id: str,
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await client_service.get_client(db, scope, client_id)


@router.post("/", response_model=Client, status_code=status.HTTP_201_CREATED)
async def create_client(
    payload: ClientCreate,
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await client_service.create_client(db, scope, payload)


@router.put("/{client_id}", response_model=Client)
async def update_client(
    client_id: str,
    payload: ClientUpdate,
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await client_service.update_client(db, scope, client_id, payload)


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(
    client_id: str,
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> None:
    await client_service.delete_client(db, scope, client_id)
