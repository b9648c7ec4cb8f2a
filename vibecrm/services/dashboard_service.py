"""
Dashboard aggregates.

Both aggregates share the same scoping rule: a superadmin without an
organization sees every tenant, anyone with an organization sees only that
organization, and everyone else gets nothing.
"""
import calendar
import logging
from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import List, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..models.client import Client
from ..models.invoice import Invoice, InvoiceStatus
from ..models.project import Project
from ..models.task import Task
from ..schemas.dashboard import MonthlyRevenue, OrganizationStats, RevenuePoint

logger = logging.getLogger(__name__)

ALL_ORGANIZATIONS = "all"


async def _count(db: AsyncSession, model, organization_id: Optional[str]) -> int:
    query = select(func.count(model.id))
    if organization_id:
        query = query.where(model.organization_id == organization_id)
    return (await db.execute(query)).scalar() or 0


async def get_organization_stats(
    db: AsyncSession,
    organization_id: Optional[str],
    is_superadmin: bool = False,
) -> Optional[OrganizationStats]:
    """Client, project, task and invoice counts for the dashboard cards"""
    if not organization_id and not is_superadmin:
        return None

    try:
        clients = await _count(db, Client, organization_id)
        projects = await _count(db, Project, organization_id)
        tasks = await _count(db, Task, organization_id)
        invoices = await _count(db, Invoice, organization_id)
    except Exception as e:
        logger.error("Failed to load organization stats for %s: %s", organization_id or ALL_ORGANIZATIONS, e)
        raise

    return OrganizationStats(
        organization_id=organization_id or ALL_ORGANIZATIONS,
        clients=clients,
        projects=projects,
        tasks=tasks,
        invoices=invoices,
    )


async def get_revenue_data(
    db: AsyncSession,
    organization_id: Optional[str],
    months: Optional[int] = None,
    is_superadmin: bool = False,
    today: Optional[date] = None,
) -> List[MonthlyRevenue]:
    """
    Paid invoice revenue per month over a trailing window.

    Returns one entry per YYYY-MM that has revenue, newest month first.
    """
    if months is None:
        months = settings.REVENUE_WINDOW_MONTHS
    if not organization_id and not is_superadmin:
        return []

    cutoff = (today or date.today()) - relativedelta(months=months)
    query = (
        select(Invoice.issue_date, Invoice.total_amount)
        .where(Invoice.status == InvoiceStatus.PAID, Invoice.issue_date >= cutoff)
        .order_by(Invoice.issue_date.desc())
    )
    if organization_id:
        query = query.where(Invoice.organization_id == organization_id)

    try:
        rows = (await db.execute(query)).all()
    except Exception as e:
        logger.error("Failed to load revenue data for %s: %s", organization_id or ALL_ORGANIZATIONS, e)
        raise

    by_month = OrderedDict()
    for issue_date, total_amount in rows:
        if not issue_date or not total_amount:
            continue
        key = issue_date.strftime("%Y-%m")
        revenue, count = by_month.get(key, (Decimal("0"), 0))
        by_month[key] = (revenue + Decimal(total_amount), count + 1)

    return [
        MonthlyRevenue(month=month, revenue=float(revenue), invoice_count=count)
        for month, (revenue, count) in sorted(by_month.items(), key=lambda kv: kv[0], reverse=True)
    ]


def format_month_label(month: str) -> str:
    """'2024-01' -> 'Jan 2024'"""
    year, month_number = month.split("-")
    return f"{calendar.month_abbr[int(month_number)]} {year}"


def to_chart_series(rows: List[MonthlyRevenue]) -> List[RevenuePoint]:
    """Chart points from oldest to newest"""
    return [
        RevenuePoint(month=format_month_label(row.month), revenue=row.revenue, invoice_count=row.invoice_count)
        for row in reversed(rows)
    ]
