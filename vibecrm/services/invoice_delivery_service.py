import logging
from typing import Any, Dict, Optional

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models.invoice import Invoice, InvoiceStatus
from . import access_service, email_service
from .pdf_service import pdf_service

logger = logging.getLogger(__name__)

SKIPPED_SUFFIX = " Email delivery skipped (RESEND_API_KEY not configured)."


async def _visible_invoice(db: AsyncSession, user_id: str, invoice_id: str) -> Optional[Invoice]:
    result = await db.execute(
        select(Invoice)
        .options(
            selectinload(Invoice.line_items),
            selectinload(Invoice.client),
            selectinload(Invoice.organization),
        )
        .where(Invoice.id == invoice_id)
    )
    invoice = result.scalar_one_or_none()
    if invoice is None or not await access_service.has_org_access(db, user_id, invoice.organization_id):
        return None
    return invoice


async def send_invoice(
    db: AsyncSession,
    user_id: str,
    invoice_id: str,
    recipient_email: str,
    pdf_base64: Optional[str] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, Any]:
    """
    E-mail an invoice on behalf of ``user_id`` and mark it as sent.

    Delivery problems propagate as ``EmailDeliveryError``. Failing to update
    the status does not, since the e-mail has already gone out by then.
    """
    invoice = await _visible_invoice(db, user_id, invoice_id)
    invoice_display = invoice.invoice_number if invoice is not None else invoice_id

    if pdf_base64 is None and invoice is not None:
        pdf_base64 = pdf_service.generate_invoice_pdf_base64(invoice)

    result = await email_service.send_invoice_email(
        recipient_email, invoice_display, pdf_base64, client=http_client
    )
    if result.skipped:
        message = f"Invoice {invoice_display} processed successfully."
    else:
        message = f"Invoice {invoice_display} emailed successfully."

    if invoice is not None and await access_service.can_manage_invoices(db, user_id, invoice.organization_id):
        invoice.status = InvoiceStatus.SENT
        await db.flush()
    else:
        logger.warning("Failed to update invoice status for %s: not permitted", invoice_id)

    if result.skipped:
        message = f"{message}{SKIPPED_SUFFIX}"

    return {"message": message, "id": result.id, "emailSkipped": result.skipped}
