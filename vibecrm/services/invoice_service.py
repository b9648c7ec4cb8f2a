import logging
import re
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional

from sqlalchemy import select, func, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.errors import ConflictError, NotFoundError, ValidationFailedError
from ..models.client import Client
from ..models.invoice import Invoice, InvoiceLineItem, InvoiceStatus
from ..schemas.invoice import InvoiceCreate, InvoiceUpdate, InvoiceLineItemIn, DUE_BEFORE_ISSUE_MESSAGE
from . import access_service
from .access_service import AccessScope

logger = logging.getLogger(__name__)

INVOICE_NUMBER_PATTERN = re.compile(r"^INV-(\d{4})-(\d+)$")


async def generate_invoice_number(db: AsyncSession, org_id: str, today: Optional[date] = None) -> str:
    """Next number in the INV-YYYY-NNNN sequence of an organization"""
    year = (today or date.today()).year
    prefix = f"INV-{year}-"
    result = await db.execute(
        select(Invoice.invoice_number).where(
            Invoice.organization_id == org_id,
            Invoice.invoice_number.like(f"{prefix}%"),
        )
    )
    highest = 0
    for number in result.scalars().all():
        match = INVOICE_NUMBER_PATTERN.match(number or "")
        if match and int(match.group(1)) == year:
            highest = max(highest, int(match.group(2)))
    return f"{prefix}{highest + 1:04d}"


def calculate_total(items: Iterable[InvoiceLineItemIn]) -> Decimal:
    return sum((Decimal(item.quantity) * Decimal(item.unit_price) for item in items), Decimal("0"))


def _with_relations(query):
    return query.options(
        selectinload(Invoice.line_items),
        selectinload(Invoice.client),
        selectinload(Invoice.organization),
    )


async def list_invoices(
    db: AsyncSession,
    scope: AccessScope,
    status: Optional[InvoiceStatus] = None,
    client_id: Optional[str] = None,
    search: Optional[str] = None,
    page: Optional[int] = None,
    page_size: Optional[int] = None,
) -> Dict[str, Any]:
    if scope.is_empty:
        return {"data": [], "total": 0}

    query = scope.apply(select(Invoice), Invoice.organization_id)
    if status:
        query = query.where(Invoice.status == status)
    if client_id:
        query = query.where(Invoice.client_id == client_id)
    if search:
        query = query.where(Invoice.invoice_number.ilike(f"%{search}%"))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0

    query = _with_relations(query).order_by(Invoice.created_at.desc())
    if page and page_size:
        query = query.offset((page - 1) * page_size).limit(page_size)
    result = await db.execute(query)
    return {"data": list(result.scalars().all()), "total": total}


async def find_invoice(db: AsyncSession, scope: AccessScope, invoice_id: str) -> Optional[Invoice]:
    """Invoice with its relations, or None when missing or out of reach"""
    result = await db.execute(
        _with_relations(select(Invoice))
        .where(Invoice.id == invoice_id)
        .execution_options(populate_existing=True)
    )
    invoice = result.scalar_one_or_none()
    if invoice is None or not scope.allows(invoice.organization_id):
        return None
    return invoice


async def get_invoice(db: AsyncSession, scope: AccessScope, invoice_id: str) -> Invoice:
    invoice = await find_invoice(db, scope, invoice_id)
    if invoice is None:
        raise NotFoundError("Invoice not found")
    return invoice


async def _check_client(db: AsyncSession, org_id: str, client_id: Optional[str]) -> None:
    if not client_id:
        return
    client = await db.get(Client, client_id)
    if client is None or client.organization_id != org_id:
        raise ValidationFailedError("Client does not belong to this organization")


async def _number_taken(db: AsyncSession, org_id: str, number: str, exclude_id: Optional[str] = None) -> bool:
    query = select(Invoice.id).where(Invoice.organization_id == org_id, Invoice.invoice_number == number)
    if exclude_id:
        query = query.where(Invoice.id != exclude_id)
    return (await db.execute(query)).first() is not None


async def create_invoice(db: AsyncSession, scope: AccessScope, data: InvoiceCreate) -> Invoice:
    org_id = access_service.resolve_target_org(scope, data.organization_id)
    await access_service.require_manage_invoices(db, scope.user_id, org_id)
    await _check_client(db, org_id, data.client_id)

    number = data.invoice_number or await generate_invoice_number(db, org_id)
    if await _number_taken(db, org_id, number):
        raise ConflictError(f"Invoice number {number} already exists")

    invoice = Invoice(
        organization_id=org_id,
        client_id=data.client_id,
        invoice_number=number,
        total_amount=calculate_total(data.items),
        status=data.status,
        issue_date=data.issue_date,
        due_date=data.due_date,
        notes=data.notes,
    )
    db.add(invoice)
    try:
        await db.flush()
        for position, item in enumerate(data.items):
            db.add(InvoiceLineItem(
                invoice_id=invoice.id,
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                position=position,
            ))
        await db.flush()
    except IntegrityError as e:
        logger.error("Failed to create invoice %s: %s", number, e)
        raise ConflictError(f"Invoice number {number} already exists") from e

    logger.info("Invoice %s (%s) created in %s", invoice.id, number, org_id)
    return await get_invoice(db, scope, invoice.id)


async def update_invoice(db: AsyncSession, scope: AccessScope, invoice_id: str, data: InvoiceUpdate) -> Invoice:
    invoice = await get_invoice(db, scope, invoice_id)
    await access_service.require_manage_invoices(db, scope.user_id, invoice.organization_id)
    updates = data.model_dump(exclude_unset=True, exclude={"items"})

    issue_date = updates.get("issue_date", invoice.issue_date)
    due_date = updates.get("due_date", invoice.due_date)
    if issue_date and due_date and due_date < issue_date:
        raise ValidationFailedError(DUE_BEFORE_ISSUE_MESSAGE)

    if "client_id" in updates:
        await _check_client(db, invoice.organization_id, updates["client_id"])
    if updates.get("invoice_number") and updates["invoice_number"] != invoice.invoice_number:
        if await _number_taken(db, invoice.organization_id, updates["invoice_number"], exclude_id=invoice.id):
            raise ConflictError(f"Invoice number {updates['invoice_number']} already exists")

    for field, value in updates.items():
        setattr(invoice, field, value)

    if data.items is not None:
        existing = {item.id: item for item in invoice.line_items}
        submitted_ids = set()
        for position, item in enumerate(data.items):
            current = existing.get(item.id) if item.id else None
            if current is not None:
                submitted_ids.add(current.id)
                current.description = item.description
                current.quantity = item.quantity
                current.unit_price = item.unit_price
                current.position = position
            else:
                db.add(InvoiceLineItem(
                    invoice_id=invoice.id,
                    description=item.description,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    position=position,
                ))
        for item_id, item in existing.items():
            if item_id not in submitted_ids:
                await db.delete(item)
        invoice.total_amount = calculate_total(data.items)

    await db.flush()
    return await get_invoice(db, scope, invoice.id)


async def mark_status(db: AsyncSession, scope: AccessScope, invoice_id: str, status: InvoiceStatus) -> Invoice:
    invoice = await get_invoice(db, scope, invoice_id)
    await access_service.require_manage_invoices(db, scope.user_id, invoice.organization_id)
    invoice.status = status
    await db.flush()
    logger.info("Invoice %s marked %s", invoice.invoice_number, status.value)
    return invoice


async def delete_invoice(db: AsyncSession, scope: AccessScope, invoice_id: str) -> None:
    invoice = await get_invoice(db, scope, invoice_id)
    await access_service.require_manage_invoices(db, scope.user_id, invoice.organization_id)
    await db.execute(delete(InvoiceLineItem).where(InvoiceLineItem.invoice_id == invoice_id))
    await db.execute(delete(Invoice).where(Invoice.id == invoice_id))
    logger.info("Invoice %s deleted", invoice.invoice_number)
