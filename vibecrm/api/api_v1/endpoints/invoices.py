from typing import Any, Optional
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ....core.errors import ValidationFailedError
from ....db.database import get_db
from ....models.invoice import InvoiceStatus
from ....schemas.functions import SendInvoiceResponse
from ....schemas.invoice import (
    Invoice, InvoiceCreate, InvoiceUpdate, InvoiceList, InvoiceStatusUpdate,
    NextInvoiceNumber, SendInvoiceRequest,
)
from ....services import invoice_service, invoice_delivery_service
from ....services.access_service import AccessScope, resolve_target_org
from ....services.pdf_service import pdf_service
from ...deps import get_scope

router = APIRouter()


@router.get("/", response_model=InvoiceList)
async def list_invoices(
    status_filter: Optional[InvoiceStatus] = Query(None, alias="status"),
    client_id: Optional[str] = None,
    search: Optional[str] = None,
    page: Optional[int] = Query(None, ge=1),
    page_size: Optional[int] = Query(None, ge=1, le=100),
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Invoices newest first with line items, client and organization"""
    return await invoice_service.list_invoices(
        db, scope, status=status_filter, client_id=client_id, search=search, page=page, page_size=page_size
    )


@router.get("/next-number", response_model=NextInvoiceNumber)
async def next_invoice_number(
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    org_id = resolve_target_org(scope)
    return {"invoice_number": await invoice_service.generate_invoice_number(db, org_id)}


@router.get("/{invoice_id}", response_model=Invoice)
async def get_invoice(
    invoice_id: str,
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await invoice_service.get_invoice(db, scope, invoice_id)


@router.post("/", response_model=Invoice, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    payload: InvoiceCreate,
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await invoice_service.create_invoice(db, scope, payload)


@router.put("/{invoice_id}", response_model=Invoice)
async def update_invoice(
    invoice_id: str,
    payload: InvoiceUpdate,
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await invoice_service.update_invoice(db, scope, invoice_id, payload)


@router.patch("/{invoice_id}/status", response_model=Invoice)
async def update_invoice_status(
    invoice_id: str,
    payload: InvoiceStatusUpdate,
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    return await invoice_service.mark_status(db, scope, invoice_id, payload.status)


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_invoice(
    invoice_id: str,
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> None:
    await invoice_service.delete_invoice(db, scope, invoice_id)


@router.get("/{invoice_id}/pdf")
async def download_invoice_pdf(
    invoice_id: str,
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Response:
    invoice = await invoice_service.get_invoice(db, scope, invoice_id)
    content = pdf_service.generate_invoice_pdf(invoice)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="Invoice-{invoice.invoice_number}.pdf"'},
    )


@router.post("/{invoice_id}/send", response_model=SendInvoiceResponse)
async def send_invoice(
    invoice_id: str,
    payload: Optional[SendInvoiceRequest] = None,
    scope: AccessScope = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Render the PDF and e-mail it to the client"""
    invoice = await invoice_service.get_invoice(db, scope, invoice_id)
    recipient = (payload.recipient_email if payload else None) or (invoice.client.email if invoice.client else None)
    if not recipient:
        raise ValidationFailedError("Client has no email address")

    pdf_base64 = pdf_service.generate_invoice_pdf_base64(invoice)
    return await invoice_delivery_service.send_invoice(
        db, scope.user_id, invoice.id, recipient, pdf_base64=pdf_base64
    )
