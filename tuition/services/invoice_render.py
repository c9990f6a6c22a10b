"""Invoice renderers: flat HTML (Jinja2) and paginated PDF (reportlab)."""

import io
from functools import partial
from html import escape
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from tuition.core.errors import RenderError
from tuition.schemas.invoice import InvoiceDocument
from tuition.utils.dates import format_date
from tuition.utils.money import format_currency

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)


def render_html(document: InvoiceDocument) -> str:
    """Single-page markup invoice."""
    try:
        template = _env.get_template("invoice.html")
        return template.render(
            doc=document,
            money=partial(format_currency, currency=document.currency),
            date_fmt=partial(format_date, date_format=document.date_format),
        )
    except Exception as exc:
        raise RenderError(f"HTML rendering failed for {document.invoice_number}: {exc}") from exc


def render_pdf(document: InvoiceDocument) -> bytes:
    """Paginated A4 invoice; long fee lists flow onto further pages."""
    try:
        return _build_pdf(document)
    except Exception as exc:
        raise RenderError(f"PDF rendering failed for {document.invoice_number}: {exc}") from exc


def _build_pdf(document: InvoiceDocument) -> bytes:
    money = partial(format_currency, currency=document.currency)
    date_fmt = partial(format_date, date_format=document.date_format)

    buffer = io.BytesIO()
    pdf = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=18 * mm,
        rightMargin=18 * mm,
        topMargin=18 * mm,
        bottomMargin=18 * mm,
        title=f"Invoice {document.invoice_number}",
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle("InvoiceTitle", parent=styles["Heading1"], spaceAfter=4)
    muted = ParagraphStyle("Muted", parent=styles["Normal"], textColor=colors.grey, fontSize=9)

    story = [Paragraph(escape(document.school.name), title_style)]
    for line in (document.school.address, document.school.phone, document.school.email):
        if line:
            story.append(Paragraph(escape(line), muted))
    story.append(Spacer(1, 6 * mm))

    story.append(Paragraph(f"INVOICE {escape(document.invoice_number)}", styles["Heading2"]))
    story.append(Paragraph(f"Date: {escape(date_fmt(document.invoice_date))}", styles["Normal"]))
    story.append(Paragraph(f"Academic year {escape(document.academic_year)}", muted))
    story.append(Spacer(1, 4 * mm))

    student = document.student
    story.append(Paragraph("Bill to", styles["Heading3"]))
    story.append(Paragraph(escape(student.name), styles["Normal"]))
    details = f"Student ID: {student.student_id}"
    if student.grade:
        details += f" | Grade {student.grade}"
    story.append(Paragraph(escape(details), muted))
    if student.contact_email:
        story.append(Paragraph(escape(student.contact_email), muted))
    story.append(Spacer(1, 6 * mm))

    fee_rows = [["Category", "Description", "Due date", "Amount"]]
    for item in document.line_items:
        fee_rows.append([item.category, item.description or "", date_fmt(item.due_date), money(item.amount)])
    if len(fee_rows) == 1:
        fee_rows.append(["No fees assigned", "", "", ""])
    story.append(_table(fee_rows, [40 * mm, 70 * mm, 30 * mm, 34 * mm]))

    if document.payments:
        story.append(Spacer(1, 6 * mm))
        payment_rows = [["Payment date", "Method", "Reference", "Amount"]]
        for payment in document.payments:
            payment_rows.append([date_fmt(payment.date), payment.method, payment.reference or "", money(payment.amount)])
        story.append(_table(payment_rows, [40 * mm, 45 * mm, 55 * mm, 34 * mm]))

    story.append(Spacer(1, 6 * mm))
    totals = document.totals
    totals_table = Table(
        [
            ["Total fees", money(totals.total_fees)],
            ["Total paid", money(totals.total_paid)],
            ["Outstanding", money(totals.outstanding)],
        ],
        colWidths=[140 * mm, 34 * mm],
    )
    totals_table.setStyle(TableStyle([
        ("ALIGN", (1, 0), (1, -1), "RIGHT"),
        ("FONTNAME", (0, 2), (-1, 2), "Helvetica-Bold"),
        ("LINEABOVE", (0, 2), (-1, 2), 0.75, colors.black),
    ]))
    story.append(totals_table)

    pdf.build(story)
    return buffer.getvalue()


def _table(rows, col_widths) -> Table:
    table = Table(rows, colWidths=col_widths, repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#f0f0f0")),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("ALIGN", (-1, 0), (-1, -1), "RIGHT"),
        ("LINEBELOW", (0, 0), (-1, -1), 0.25, colors.lightgrey),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]))
    return table
