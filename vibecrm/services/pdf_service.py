"""
PDF rendering for invoices
"""
import base64
import io
from datetime import date
from decimal import Decimal
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.lib.enums import TA_RIGHT, TA_CENTER

from ..models.invoice import Invoice


def format_currency(value) -> str:
    amount = Decimal(value or 0)
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def format_date(value: Optional[date]) -> str:
    return value.strftime("%b %d, %Y") if value else ""


def _format_quantity(value) -> str:
    quantity = Decimal(value or 0).normalize()
    return f"{quantity:f}"


def _p(text) -> str:
    return escape(str(text)) if text is not None else ""


class PDFService:
    """Renders invoices to PDF documents."""

    def __init__(self):
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        self.styles.add(ParagraphStyle(
            name='InvoiceTitle',
            parent=self.styles['Normal'],
            fontSize=24,
            leading=28,
            textColor=colors.black,
            fontName='Helvetica-Bold',
        ))
        self.styles.add(ParagraphStyle(
            name='InvoiceNumber',
            parent=self.styles['Normal'],
            fontSize=12,
            textColor=colors.grey,
        ))
        self.styles.add(ParagraphStyle(
            name='OrgName',
            parent=self.styles['Normal'],
            fontSize=14,
            fontName='Helvetica-Bold',
            alignment=TA_RIGHT,
        ))
        self.styles.add(ParagraphStyle(
            name='RightAligned',
            parent=self.styles['Normal'],
            alignment=TA_RIGHT,
        ))
        self.styles.add(ParagraphStyle(
            name='SectionHeader',
            parent=self.styles['Normal'],
            fontSize=10,
            textColor=colors.grey,
            spaceAfter=4,
            fontName='Helvetica-Bold',
        ))
        self.styles.add(ParagraphStyle(
            name='Footer',
            parent=self.styles['Normal'],
            fontSize=9,
            textColor=colors.grey,
            alignment=TA_CENTER,
        ))

    def generate_invoice_pdf(self, invoice: Invoice) -> bytes:
        """Render an invoice loaded with its line items, client and organization."""
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer, pagesize=A4, topMargin=0.6*inch, bottomMargin=0.6*inch,
            leftMargin=0.6*inch, rightMargin=0.6*inch,
            title=f"Invoice {invoice.invoice_number}",
        )

        story = []
        story.append(self._build_header(invoice))
        story.append(Spacer(1, 0.3*inch))
        story.append(self._build_info_section(invoice))
        story.append(Spacer(1, 0.3*inch))
        story.append(self._build_items_table(invoice))
        story.append(Spacer(1, 0.2*inch))
        story.append(self._build_totals(invoice))
        if invoice.notes:
            story.append(Spacer(1, 0.3*inch))
            story.append(Paragraph("NOTES", self.styles['SectionHeader']))
            story.append(Paragraph(_p(invoice.notes).replace("\n", "<br/>"), self.styles['Normal']))
        story.append(Spacer(1, 0.5*inch))
        story.append(Paragraph("Thank you for your business.", self.styles['Footer']))

        doc.build(story)
        return buffer.getvalue()

    def generate_invoice_pdf_base64(self, invoice: Invoice) -> str:
        return base64.b64encode(self.generate_invoice_pdf(invoice)).decode("ascii")

    def _build_header(self, invoice: Invoice) -> Table:
        status = invoice.status.value if hasattr(invoice.status, "value") else str(invoice.status)
        org_name = invoice.organization.name if invoice.organization else "Organization Name"
        left = [
            Paragraph("INVOICE", self.styles['InvoiceTitle']),
            Paragraph(_p(invoice.invoice_number), self.styles['InvoiceNumber']),
        ]
        right = [
            Paragraph(_p(org_name), self.styles['OrgName']),
            Paragraph(f"Status: {_p(status.upper())}", self.styles['RightAligned']),
        ]
        header = Table([[left, right]], colWidths=[3.5*inch, 3.5*inch])
        header.setStyle(TableStyle([
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('LEFTPADDING', (0, 0), (-1, -1), 0),
            ('RIGHTPADDING', (0, 0), (-1, -1), 0),
        ]))
        return header

    def _build_info_section(self, invoice: Invoice) -> Table:
        client = invoice.client
        bill_to: List = [Paragraph("BILL TO", self.styles['SectionHeader'])]
        if client is not None:
            bill_to.append(Paragraph(f"<b>{_p(client.name)}</b>", self.styles['Normal']))
            for line in (client.email, client.address):
                if line:
                    bill_to.append(Paragraph(_p(line), self.styles['Normal']))
            if client.vat_number:
                bill_to.append(Paragraph(f"VAT: {_p(client.vat_number)}", self.styles['Normal']))

        details = Table([
            ["Issue Date:", format_date(invoice.issue_date)],
            ["Due Date:", format_date(invoice.due_date) if invoice.due_date else "On Receipt"],
        ], colWidths=[1.2*inch, 1.8*inch])
        details.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
            ('LEFTPADDING', (0, 0), (-1, -1), 0),
        ]))

        info = Table(
            [[bill_to, [Paragraph("DETAILS", self.styles['SectionHeader']), details]]],
            colWidths=[3.8*inch, 3.2*inch],
        )
        info.setStyle(TableStyle([
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('LEFTPADDING', (0, 0), (-1, -1), 0),
        ]))
        return info

    def _build_items_table(self, invoice: Invoice) -> Table:
        rows = [["Description", "Qty", "Price", "Total"]]
        for item in sorted(invoice.line_items, key=lambda li: li.position or 0):
            rows.append([
                Paragraph(_p(item.description), self.styles['Normal']),
                _format_quantity(item.quantity),
                format_currency(item.unit_price),
                format_currency(item.total),
            ])

        items_table = Table(rows, colWidths=[3.6*inch, 0.8*inch, 1.3*inch, 1.3*inch], repeatRows=1)
        items_table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, 0), 9),
            ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#F9FAFB')),
            ('FONTNAME', (0, 1), (-1, -1), 'Helvetica'),
            ('FONTSIZE', (0, 1), (-1, -1), 9),
            ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
            ('LINEBELOW', (0, 0), (-1, -1), 0.5, colors.HexColor('#E5E7EB')),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ]))
        return items_table

    def _build_totals(self, invoice: Invoice) -> Table:
        subtotal = sum((item.total for item in invoice.line_items), Decimal("0"))
        totals = Table([
            ['', 'Subtotal:', format_currency(subtotal)],
            ['', 'Total:', format_currency(invoice.total_amount if invoice.total_amount is not None else subtotal)],
        ], colWidths=[4.4*inch, 1.3*inch, 1.3*inch])
        totals.setStyle(TableStyle([
            ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
            ('FONTNAME', (1, -1), (-1, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (1, 0), (-1, -1), 10),
            ('LINEABOVE', (1, -1), (-1, -1), 1, colors.black),
        ]))
        return totals


pdf_service = PDFService()
