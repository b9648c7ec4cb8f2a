"""
Edge-function style endpoints served under /functions/v1.

Responses use the function conventions ({"error": message} on failure)
rather than the {"detail": ...} shape of the REST API.
"""
import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.rate_limit import limiter
from ..db.database import get_db
from ..models.user import User
from ..schemas.functions import SendInvoicePayload, SendInvoiceResponse
from ..services import invoice_delivery_service
from .deps import get_current_user

logger = logging.getLogger(__name__)

functions_router = APIRouter()


@functions_router.post("/send-invoice", response_model=SendInvoiceResponse)
@limiter.limit("30/minute")
async def send_invoice(
    request: Request,
    payload: SendInvoicePayload,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """E-mail an invoice PDF and mark the invoice as sent"""
    try:
        return await invoice_delivery_service.send_invoice(
            db,
            current_user.id,
            payload.invoice_id,
            str(payload.recipient_email),
            pdf_base64=payload.pdf_base64,
        )
    except Exception as e:
        logger.error("send-invoice failed for %s: %s", payload.invoice_id, e)
        message = getattr(e, "message", None) or str(e)
        return JSONResponse(status_code=500, content={"error": message})
