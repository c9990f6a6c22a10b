"""
Report builder: filtered student views, dashboard counts and CSV exports.

Nothing here computes a balance itself; every amount comes from
balance_service so the list, the dashboard and the exports agree.
"""

import csv
import io
import math
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from tuition.core.config import settings as app_settings
from tuition.db.session import get_database
from tuition.models.payment import Payment
from tuition.models.settings import SchoolSettings
from tuition.models.snapshot import Snapshot
from tuition.models.student import Student
from tuition.repositories.snapshot import load_snapshot
from tuition.schemas.balance import BalanceSummary, PaymentStatus
from tuition.schemas.report import (
    BalanceState,
    DashboardSummary,
    StudentFilter,
    StudentListView,
    StudentRow,
)
from tuition.services import balance_service
from tuition.utils.dates import format_date
from tuition.utils.money import ZERO, format_currency, money_sum

STUDENT_COLUMNS = [
    "Student ID", "First Name", "Last Name", "Grade", "Status", "Contact Email",
    "Enrollment Date", "Total Fees", "Total Paid", "Outstanding", "Payment Status",
]
PAYMENT_COLUMNS = [
    "Date", "Payment ID", "Student ID", "Student Name", "Amount", "Method", "Reference", "Notes",
]
OUTSTANDING_COLUMNS = [
    "Student ID", "Student Name", "Grade", "Status", "Total Fees", "Total Paid",
    "Outstanding", "Contact Email",
]
FEE_TEMPLATE_COLUMNS = [
    "Name", "Category", "Amount", "Grade", "Description", "Assigned Students",
]

UNKNOWN_STUDENT = "Unknown"


# ===== FILTERING =====

def matches(student: Student, criteria: StudentFilter, outstanding) -> bool:
    """True when the student satisfies every criterion that is set."""
    if criteria.search:
        q = criteria.search.strip().lower()
        haystacks = (student.first_name, student.last_name, student.student_id)
        if q and not any(q in (value or "").lower() for value in haystacks):
            return False

    if criteria.grade is not None and student.grade != criteria.grade:
        return False

    if criteria.status is not None and student.status != criteria.status:
        return False

    if criteria.balance == BalanceState.OUTSTANDING and not outstanding > ZERO:
        return False
    if criteria.balance == BalanceState.PAID and outstanding != ZERO:
        return False

    return True


def filter_rows(
    students: Sequence[Student],
    summaries: Dict[str, BalanceSummary],
    criteria: Optional[StudentFilter] = None,
) -> List[StudentRow]:
    criteria = criteria or StudentFilter()
    rows = []
    for student in students:
        summary = summaries[student.id]
        if matches(student, criteria, summary.outstanding):
            rows.append(StudentRow(student=student, balance=summary))
    return rows


def paginate(items: Sequence, page: int, page_size: int) -> Tuple[list, int, int]:
    """
    Slice one page. Returns (items, page, total_pages); page is clamped
    into [1, total_pages] and total_pages is at least 1.
    """
    page_size = max(1, page_size)
    total_pages = max(1, math.ceil(len(items) / page_size))
    page = min(max(1, page), total_pages)
    start = (page - 1) * page_size
    return list(items[start:start + page_size]), page, total_pages


def build_student_view(
    snapshot: Snapshot,
    criteria: Optional[StudentFilter] = None,
    page: int = 1,
    page_size: Optional[int] = None,
) -> StudentListView:
    """Filtered, paged student list with its summary counts."""
    page_size = page_size or app_settings.DEFAULT_PAGE_SIZE
    summaries = balance_service.summarize_all(snapshot.students, snapshot.payments)
    rows = filter_rows(snapshot.students, summaries, criteria)
    paged, page, total_pages = paginate(rows, page, page_size)

    with_outstanding = [row for row in rows if row.balance.outstanding > ZERO]
    return StudentListView(
        rows=paged,
        total_matched=len(rows),
        with_outstanding=len(with_outstanding),
        outstanding_total=money_sum(row.balance.outstanding for row in with_outstanding),
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


def grade_levels(students: Sequence[Student]) -> List[str]:
    """Distinct non-empty grades, sorted."""
    return sorted({student.grade for student in students if student.grade})


def filter_payments_by_date(
    payments: Sequence[Payment],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[Payment]:
    """Payments dated within [start, end], both ends inclusive and optional."""
    selected = []
    for payment in payments:
        if start is None and end is None:
            selected.append(payment)
            continue
        if payment.date is None:
            continue
        if start is not None and payment.date < start:
            continue
        if end is not None and payment.date > end:
            continue
        selected.append(payment)
    return selected


def build_dashboard(snapshot: Snapshot, next_invoice_number: str = "") -> DashboardSummary:
    students = snapshot.students
    summaries = balance_service.summarize_all(students, snapshot.payments)
    values = list(summaries.values())

    return DashboardSummary(
        total_students=len(students),
        active_students=sum(1 for student in students if student.is_active),
        grade_levels=len(grade_levels(students)),
        unpaid_students=sum(1 for s in values if s.payment_status == PaymentStatus.UNPAID),
        students_with_outstanding=sum(1 for s in values if s.outstanding > ZERO),
        total_fees=money_sum(s.total_fees for s in values),
        total_paid=money_sum(s.total_paid for s in values),
        total_outstanding=money_sum(s.outstanding for s in values),
        orphan_payments=len(balance_service.find_orphan_payments(students, snapshot.payments)),
        next_invoice_number=next_invoice_number,
    )


# ===== CSV EXPORTS =====

def _formatting(settings: Optional[SchoolSettings]) -> Tuple[Optional[str], Optional[str]]:
    """Currency and date format, or (None, None) so the defaults apply."""
    if settings is None:
        return None, None
    return settings.currency, settings.date_format


def _write_csv(header: List[str], rows: List[list]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


def export_students_csv(snapshot: Snapshot) -> str:
    currency, date_format = _formatting(snapshot.settings)
    summaries = balance_service.summarize_all(snapshot.students, snapshot.payments)

    rows = []
    for student in snapshot.students:
        summary = summaries[student.id]
        rows.append([
            student.student_id,
            student.first_name,
            student.last_name,
            student.grade or "",
            student.status.value,
            student.contact_email or "",
            format_date(student.enrollment_date, date_format),
            format_currency(summary.total_fees, currency),
            format_currency(summary.total_paid, currency),
            format_currency(summary.outstanding, currency),
            summary.payment_status.value,
        ])
    return _write_csv(STUDENT_COLUMNS, rows)


def export_payments_csv(
    snapshot: Snapshot,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> str:
    """Payments in the date range, oldest first. Orphans show as Unknown."""
    currency, date_format = _formatting(snapshot.settings)
    students = {student.id: student for student in snapshot.students}
    selected = filter_payments_by_date(snapshot.payments, start, end)
    selected = sorted(selected, key=lambda payment: payment.date or date.min)

    rows = []
    for payment in selected:
        student = students.get(payment.student_id)
        rows.append([
            format_date(payment.date, date_format),
            payment.id,
            student.student_id if student else "",
            student.full_name if student else UNKNOWN_STUDENT,
            format_currency(payment.amount, currency),
            payment.method,
            payment.reference or "",
            payment.notes or "",
        ])
    return _write_csv(PAYMENT_COLUMNS, rows)


def export_outstanding_csv(snapshot: Snapshot) -> str:
    """Only students who still owe something."""
    currency, _ = _formatting(snapshot.settings)
    summaries = balance_service.summarize_all(snapshot.students, snapshot.payments)

    rows = []
    for student in snapshot.students:
        summary = summaries[student.id]
        if not summary.outstanding > ZERO:
            continue
        rows.append([
            student.student_id,
            student.full_name,
            student.grade or "",
            student.status.value,
            format_currency(summary.total_fees, currency),
            format_currency(summary.total_paid, currency),
            format_currency(summary.outstanding, currency),
            student.contact_email or "",
        ])
    return _write_csv(OUTSTANDING_COLUMNS, rows)


def export_fee_templates_csv(snapshot: Snapshot) -> str:
    currency, _ = _formatting(snapshot.settings)

    assigned: Dict[str, int] = {}
    for student in snapshot.students:
        template_ids = {fee.template_id for fee in student.assigned_fees if fee.template_id}
        for template_id in template_ids:
            assigned[template_id] = assigned.get(template_id, 0) + 1

    rows = [
        [
            template.name,
            template.category,
            format_currency(template.amount, currency),
            template.grade or "",
            template.description or "",
            assigned.get(template.id, 0),
        ]
        for template in snapshot.fee_templates
    ]
    return _write_csv(FEE_TEMPLATE_COLUMNS, rows)


def export_filename(kind: str, today: Optional[date] = None,
                    start: Optional[date] = None, end: Optional[date] = None) -> str:
    today = today or date.today()
    if kind == "payments":
        return f"payments-{start.isoformat() if start else 'start'}-to-{(end or today).isoformat()}.csv"
    if kind == "outstanding":
        return f"outstanding-balances-{today.isoformat()}.csv"
    if kind == "backup":
        return f"tfm-backup-{today.isoformat()}.json"
    return f"{kind}-{today.isoformat()}.csv"


class ReportService:
    @staticmethod
    async def student_view(criteria: StudentFilter, page: int, page_size: int) -> StudentListView:
        db = await get_database()
        snapshot = await load_snapshot(db)
        return build_student_view(snapshot, criteria, page, page_size)

    @staticmethod
    async def dashboard() -> DashboardSummary:
        from tuition.services.invoice_service import InvoiceSequence

        db = await get_database()
        snapshot = await load_snapshot(db)
        return build_dashboard(snapshot, InvoiceSequence.preview(snapshot.settings))

    @staticmethod
    async def export_csv(kind: str, start: Optional[date] = None, end: Optional[date] = None) -> str:
        db = await get_database()
        snapshot = await load_snapshot(db)

        if kind == "students":
            return export_students_csv(snapshot)
        if kind == "payments":
            return export_payments_csv(snapshot, start, end)
        if kind == "outstanding":
            return export_outstanding_csv(snapshot)
        if kind == "fee-templates":
            return export_fee_templates_csv(snapshot)
        raise ValueError(f"Unknown report: {kind}")
