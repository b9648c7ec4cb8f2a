from typing import Optional
from pydantic import BaseModel, EmailStr


class SendInvoicePayload(BaseModel):
    invoice_id: str
    recipient_email: EmailStr
    pdf_base64: Optional[str] = None


class SendInvoiceResponse(BaseModel):
    message: str
    id: Optional[str] = None
    emailSkipped: bool = False
