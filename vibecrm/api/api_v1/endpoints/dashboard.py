from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ....db.database import get_db
from ....schemas.dashboard import MonthlyRevenue, OrganizationStats, RevenuePoint
from ....services import dashboard_service
from ....services.access_service import AccessScope
from ...deps import get_scope

router = APIRouter()


@router.get("/stats", response_model=Optional[OrganizationStats])
async def get_stats(
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Record counts for the caller's organization, or for every tenant for a superadmin"""
    return await dashboard_service.get_organization_stats(db, scope.organization_id, scope.is_superadmin)


@router.get("/revenue", response_model=List[MonthlyRevenue])
async def get_revenue(
    months: int = Query(12, ge=1, le=120),
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Paid revenue per month, newest first"""
    return await dashboard_service.get_revenue_data(
        db, scope.organization_id, months=months, is_superadmin=scope.is_superadmin
    )


@router.get("/revenue/chart", response_model=List[RevenuePoint])
async def get_revenue_chart(
    months: int = Query(12, ge=1, le=120),
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Paid revenue per month, oldest first, labelled for display"""
    rows = await dashboard_service.get_revenue_data(
        db, scope.organization_id, months=months, is_superadmin=scope.is_superadmin
    )
    return dashboard_service.to_chart_series(rows)
