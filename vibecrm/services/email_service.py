import asyncio
import base64
import logging
import smtplib
from dataclasses import dataclass
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import parseaddr
from typing import Any, Dict, List, Optional

import httpx

from ..core.config import settings
from ..core.errors import EmailDeliveryError

logger = logging.getLogger(__name__)

RESEND_TIMEOUT_SECONDS = 30.0


@dataclass
class EmailAttachment:
    filename: str
    content_base64: str
    content_type: str = "application/pdf"


@dataclass
class EmailMessage:
    to: List[str]
    subject: str
    html: str
    attachments: List[EmailAttachment]


@dataclass
class EmailResult:
    id: Optional[str] = None
    skipped: bool = False
    transport: Optional[str] = None


def build_invoice_email(to_email: str, invoice_display: str, pdf_base64: Optional[str]) -> EmailMessage:
    html = (
        f"<h1>Invoice {invoice_display}</h1>\n"
        f"<p>Hello,</p>\n"
        f"<p>Please find attached the invoice {invoice_display}.</p>\n"
        f"<p>Best regards,<br/>Vibe CRM Team</p>\n"
    )
    attachments = []
    if pdf_base64:
        attachments.append(EmailAttachment(filename=f"Invoice-{invoice_display}.pdf", content_base64=pdf_base64))
    return EmailMessage(
        to=[to_email],
        subject=f"New Invoice: {invoice_display}",
        html=html,
        attachments=attachments,
    )


def _send_smtp(
    *,
    host: str,
    port: int,
    username: Optional[str],
    password: Optional[str],
    from_email: str,
    from_name: Optional[str] = None,
    to_email: str,
    subject: str,
    body: str,
    html: bool = False,
    security: str = 'starttls',
    attachments: Optional[List[EmailAttachment]] = None,
) -> bool:
    try:
        if html or attachments:
            msg = MIMEMultipart('mixed')
            msg.attach(MIMEText(body, 'html' if html else 'plain', 'utf-8'))
            for attachment in attachments or []:
                part = MIMEApplication(base64.b64decode(attachment.content_base64), _subtype='pdf')
                part.add_header('Content-Disposition', 'attachment', filename=attachment.filename)
                msg.attach(part)
        else:
            msg = MIMEText(body, 'plain', 'utf-8')
        msg['Subject'] = subject
        msg['From'] = f"{from_name} <{from_email}>" if from_name else from_email
        msg['To'] = to_email

        if security == 'ssl':
            with smtplib.SMTP_SSL(host, port) as server:
                if username and password:
                    server.login(username, password)
                server.sendmail(from_email, [to_email], msg.as_string())
        else:
            with smtplib.SMTP(host, port) as server:
                if security == 'starttls':
                    server.starttls()
                if username and password:
                    server.login(username, password)
                server.sendmail(from_email, [to_email], msg.as_string())
        return True
    except Exception as e:
        logger.error("SMTP delivery to %s via %s:%s failed: %s", to_email, host, port, e)
        return False


async def _send_resend(message: EmailMessage, client: Optional[httpx.AsyncClient] = None) -> EmailResult:
    payload: Dict[str, Any] = {
        "from": settings.INVOICE_FROM_EMAIL,
        "to": message.to,
        "subject": message.subject,
        "html": message.html,
    }
    if message.attachments:
        payload["attachments"] = [
            {"filename": a.filename, "content": a.content_base64} for a in message.attachments
        ]
    headers = {"Authorization": f"Bearer {settings.RESEND_API_KEY}"}

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=RESEND_TIMEOUT_SECONDS)
    try:
        response = await client.post(settings.RESEND_API_URL, json=payload, headers=headers)
    except httpx.HTTPError as e:
        logger.error("Resend request failed: %s", e)
        raise EmailDeliveryError(f"Failed to send email: {e}") from e
    finally:
        if owns_client:
            await client.aclose()

    if response.status_code >= 400:
        try:
            detail = response.json().get("message") or response.text
        except ValueError:
            detail = response.text
        logger.error("Resend API error %s: %s", response.status_code, detail)
        raise EmailDeliveryError(f"Failed to send email: {detail}")

    data = response.json() if response.content else {}
    return EmailResult(id=data.get("id"), transport="resend")


async def send_email_message(message: EmailMessage, client: Optional[httpx.AsyncClient] = None) -> EmailResult:
    """Deliver through Resend, else SMTP, else report the message as skipped"""
    if settings.RESEND_API_KEY:
        return await _send_resend(message, client=client)

    if settings.SMTP_HOST:
        from_name, from_email = parseaddr(settings.INVOICE_FROM_EMAIL)
        for to_email in message.to:
            ok = await asyncio.to_thread(
                _send_smtp,
                host=settings.SMTP_HOST,
                port=settings.SMTP_PORT,
                username=settings.SMTP_USERNAME,
                password=settings.SMTP_PASSWORD,
                from_email=from_email or settings.SMTP_USERNAME or "no-reply@example.com",
                from_name=from_name or None,
                to_email=to_email,
                subject=message.subject,
                body=message.html,
                html=True,
                security=settings.SMTP_SECURITY,
                attachments=message.attachments,
            )
            if not ok:
                raise EmailDeliveryError("Failed to send email: SMTP delivery failed")
        return EmailResult(transport="smtp")

    logger.warning("RESEND_API_KEY is not set. Skipping email delivery to %s", ", ".join(message.to))
    return EmailResult(skipped=True)


async def send_invoice_email(
    to_email: str,
    invoice_display: str,
    pdf_base64: Optional[str],
    client: Optional[httpx.AsyncClient] = None,
) -> EmailResult:
    logger.info("Sending invoice %s to %s", invoice_display, to_email)
    message = build_invoice_email(to_email, invoice_display, pdf_base64)
    return await send_email_message(message, client=client)
