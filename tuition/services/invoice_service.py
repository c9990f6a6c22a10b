"""
Invoice composition and invoice number allocation.

Numbers look like ``INV-2025-0042``: ``{prefix}-{year}-{seq:04d}``. The
sequence lives on the settings document and only moves forward. A
number is consumed as soon as it is allocated; if rendering then fails
the number is not reused, leaving a gap in the series.

Bulk runs reserve one block of consecutive numbers and hand them out in
the order the student ids were given, so concurrent single-invoice
requests can never interleave with a batch.
"""

import asyncio
import weakref
from datetime import date
from typing import List, Optional, Sequence

import structlog

from tuition.core.errors import NotFoundError, RenderError
from tuition.db.session import get_database
from tuition.models.payment import Payment
from tuition.models.settings import SchoolSettings
from tuition.models.snapshot import Snapshot
from tuition.models.student import Student, StudentStatus
from tuition.repositories.payment_repo import PaymentRepository
from tuition.repositories.settings_repo import SettingsRepository
from tuition.repositories.snapshot import load_snapshot
from tuition.repositories.student_repo import StudentRepository
from tuition.schemas.invoice import (
    InvoiceDocument,
    InvoiceFormat,
    InvoiceLineItem,
    InvoiceOutcome,
    InvoicePaymentLine,
    InvoiceSchool,
    InvoiceStudent,
    NextInvoiceNumber,
    RenderedInvoice,
)
from tuition.schemas.report import StudentFilter, StudentListView
from tuition.services import balance_service, invoice_render
from tuition.services.report_service import build_student_view

logger = structlog.get_logger(__name__)

_locks: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, asyncio.Lock]" = weakref.WeakKeyDictionary()


def _allocation_lock() -> asyncio.Lock:
    """One allocation lock per running event loop."""
    loop = asyncio.get_running_loop()
    lock = _locks.get(loop)
    if lock is None:
        lock = _locks[loop] = asyncio.Lock()
    return lock


def format_invoice_number(prefix: str, year: int, seq: int) -> str:
    return f"{prefix}-{year}-{seq:04d}"


class InvoiceSequence:
    """Hands out invoice sequence numbers backed by the settings document."""

    def __init__(self, repo: SettingsRepository):
        self.repo = repo

    async def allocate(self, count: int = 1) -> List[int]:
        """Reserve ``count`` consecutive numbers, in order."""
        async with _allocation_lock():
            first = await self.repo.allocate_invoice_numbers(count)
        numbers = list(range(first, first + count))
        logger.info("Invoice numbers allocated", first=numbers[0], count=count)
        return numbers

    async def peek(self, today: Optional[date] = None) -> NextInvoiceNumber:
        """Next number that would be issued, without consuming it."""
        current = await self.repo.get_settings()
        return NextInvoiceNumber(
            invoice_number=self.preview(current, today),
            sequence=current.invoice_seq,
        )

    @staticmethod
    def preview(settings: Optional[SchoolSettings], today: Optional[date] = None) -> str:
        settings = settings or SchoolSettings()
        year = (today or date.today()).year
        return format_invoice_number(settings.invoice_prefix, year, settings.invoice_seq)


def compose_invoice(
    student: Student,
    payments: Sequence[Payment],
    settings: Optional[SchoolSettings],
    invoice_number: str,
    invoice_date: Optional[date] = None,
) -> InvoiceDocument:
    """
    Build the invoice record for one student.

    ``payments`` may be the full collection; only the student's own
    payments are listed and counted. Missing settings fall back to the
    defaults.
    """
    settings = settings or SchoolSettings()
    own_payments = balance_service.payments_for(student, payments)

    return InvoiceDocument(
        invoice_number=invoice_number,
        invoice_date=invoice_date or date.today(),
        academic_year=settings.academic_year,
        currency=settings.currency,
        date_format=settings.date_format,
        school=InvoiceSchool(
            name=settings.school_name,
            address=settings.school_address,
            phone=settings.school_phone,
            email=settings.school_email,
            logo_data_url=settings.logo_data_url,
        ),
        student=InvoiceStudent(
            id=student.id,
            student_id=student.student_id,
            name=student.full_name,
            grade=student.grade,
            contact_email=student.contact_email,
        ),
        line_items=[
            InvoiceLineItem(
                category=fee.category,
                description=fee.description,
                amount=fee.amount,
                due_date=fee.due_date,
            )
            for fee in student.assigned_fees
        ],
        payments=[
            InvoicePaymentLine(
                date=payment.date,
                amount=payment.amount,
                method=payment.method,
                reference=payment.reference,
            )
            for payment in own_payments
        ],
        totals=balance_service.summarize(student, own_payments),
    )


def invoice_filename(document: InvoiceDocument, fmt: InvoiceFormat) -> str:
    return f"invoice-{document.student.student_id}-{document.invoice_number}.{fmt.value}"


def render_invoice(document: InvoiceDocument, fmt: InvoiceFormat) -> RenderedInvoice:
    """Render to html/pdf/json. Renderer failures surface as RenderError."""
    if fmt == InvoiceFormat.HTML:
        content = invoice_render.render_html(document).encode("utf-8")
        content_type = "text/html; charset=utf-8"
    elif fmt == InvoiceFormat.PDF:
        content = invoice_render.render_pdf(document)
        content_type = "application/pdf"
    else:
        content = document.model_dump_json(by_alias=True).encode("utf-8")
        content_type = "application/json"

    return RenderedInvoice(
        document=document,
        filename=invoice_filename(document, fmt),
        content_type=content_type,
        content=content,
    )


def list_invoice_candidates(
    snapshot: Snapshot,
    criteria: Optional[StudentFilter] = None,
    page: int = 1,
    page_size: Optional[int] = None,
) -> StudentListView:
    """Students an invoice can be issued to: active ones only."""
    criteria = (criteria or StudentFilter()).model_copy(update={"status": StudentStatus.ACTIVE})
    return build_student_view(snapshot, criteria, page, page_size)


class InvoiceService:
    @staticmethod
    async def generate(
        student_id: str,
        fmt: InvoiceFormat = InvoiceFormat.PDF,
        invoice_date: Optional[date] = None,
    ) -> RenderedInvoice:
        """
        Issue one invoice.

        Raises NotFoundError for an unknown student (no number consumed)
        and RenderError when rendering fails (number stays consumed).
        """
        db = await get_database()

        student = await StudentRepository(db).get_student(student_id)
        if student is None:
            raise NotFoundError("Student", student_id)

        payments = await PaymentRepository(db).list_for_student(student_id)
        settings_repo = SettingsRepository(db)
        settings = await settings_repo.get_settings()
        invoice_date = invoice_date or date.today()

        (seq,) = await InvoiceSequence(settings_repo).allocate(1)
        number = format_invoice_number(settings.invoice_prefix, invoice_date.year, seq)
        document = compose_invoice(student, payments, settings, number, invoice_date)

        try:
            return render_invoice(document, fmt)
        except RenderError:
            logger.error("Invoice render failed", invoice_number=number, student_id=student_id, exc_info=True)
            raise

    @staticmethod
    async def bulk_generate(
        student_ids: List[str],
        fmt: InvoiceFormat = InvoiceFormat.PDF,
        invoice_date: Optional[date] = None,
    ) -> List[InvoiceOutcome]:
        """
        Issue invoices for several students, strictly in the given order.

        Unknown ids fail without consuming a number. A render failure is
        recorded on that student's outcome and the batch carries on.
        """
        db = await get_database()
        snapshot = await load_snapshot(db)
        settings = snapshot.settings or SchoolSettings()
        invoice_date = invoice_date or date.today()

        outcomes: List[InvoiceOutcome] = []
        resolved = []
        for student_id in student_ids:
            student = snapshot.find_student(student_id)
            if student is None:
                outcomes.append(InvoiceOutcome(student_id=student_id, success=False, error="Student not found"))
            else:
                outcomes.append(InvoiceOutcome(student_id=student_id, success=False))
                resolved.append((len(outcomes) - 1, student))

        if not resolved:
            return outcomes

        numbers = await InvoiceSequence(SettingsRepository(db)).allocate(len(resolved))
        index = balance_service.index_payments(snapshot.payments)

        for (position, student), seq in zip(resolved, numbers):
            number = format_invoice_number(settings.invoice_prefix, invoice_date.year, seq)
            outcome = outcomes[position]
            outcome.invoice_number = number
            document = compose_invoice(student, index.get(student.id, []), settings, number, invoice_date)
            outcome.document = document
            try:
                rendered = render_invoice(document, fmt)
            except RenderError as exc:
                logger.error("Invoice render failed", invoice_number=number, student_id=student.id, exc_info=True)
                outcome.error = str(exc)
                continue
            outcome.success = True
            outcome.filename = rendered.filename
            outcome.content = rendered.content

        return outcomes

    @staticmethod
    async def next_number() -> NextInvoiceNumber:
        db = await get_database()
        return await InvoiceSequence(SettingsRepository(db)).peek()

    @staticmethod
    async def candidates(criteria: StudentFilter, page: int, page_size: int) -> StudentListView:
        db = await get_database()
        snapshot = await load_snapshot(db)
        return list_invoice_candidates(snapshot, criteria, page, page_size)
