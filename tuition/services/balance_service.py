"""
Outstanding-balance calculator.

Every consumer (student list, dashboard, CSV exports, invoices) derives
fees, payments and outstanding amounts through the functions here so the
numbers agree across views for the same snapshot.

    outstanding = max(0, total_fees - total_paid)

Overpayment is absorbed: outstanding clamps at zero and the excess is
reported as ``credit`` but never carried to later invoices. Payments whose
student id matches no student count toward nobody; summarize_all logs them.
Amounts are not validated here. Negative fees or payments go through the
same arithmetic and yield numbers with no defined business meaning.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Dict, Iterable, List

import structlog

from tuition.core.errors import NotFoundError
from tuition.db.session import get_database
from tuition.models.payment import Payment
from tuition.models.student import Student
from tuition.repositories.payment_repo import PaymentRepository
from tuition.repositories.student_repo import StudentRepository
from tuition.schemas.balance import BalanceSummary, PaymentStatus
from tuition.utils.money import ZERO, money_sum

logger = structlog.get_logger(__name__)


def total_fees(student: Student) -> Decimal:
    """Sum of the student's assigned fees."""
    return money_sum(fee.amount for fee in student.assigned_fees)


def payments_for(student: Student, payments: Iterable[Payment]) -> List[Payment]:
    return [payment for payment in payments if payment.student_id == student.id]


def total_paid(student: Student, payments: Iterable[Payment]) -> Decimal:
    """Sum of payments recorded against this student. ``payments`` is the full, unfiltered collection."""
    return money_sum(payment.amount for payment in payments_for(student, payments))


def calculate_outstanding(student: Student, payments: Iterable[Payment]) -> Decimal:
    """Amount still owed, never below zero."""
    return _clamp(total_fees(student) - total_paid(student, payments))


def summarize(student: Student, payments: Iterable[Payment]) -> BalanceSummary:
    """Fees, paid, outstanding, credit and payment status for one student."""
    own_payments = payments_for(student, payments)
    return _summary_from(student, own_payments)


def index_payments(payments: Iterable[Payment]) -> Dict[str, List[Payment]]:
    """Group payments by student id, preserving their order."""
    index: Dict[str, List[Payment]] = defaultdict(list)
    for payment in payments:
        index[payment.student_id].append(payment)
    return dict(index)


def find_orphan_payments(students: Iterable[Student], payments: Iterable[Payment]) -> List[Payment]:
    """Payments that reference no known student."""
    known = {student.id for student in students}
    return [payment for payment in payments if payment.student_id not in known]


def summarize_all(students: List[Student], payments: List[Payment]) -> Dict[str, BalanceSummary]:
    """
    Summaries for many students in one pass over the payments.

    Gives exactly the numbers summarize() gives per student.
    """
    index = index_payments(payments)
    summaries = {
        student.id: _summary_from(student, index.get(student.id, []))
        for student in students
    }

    orphans = [
        payment for student_id, group in index.items()
        if student_id not in summaries
        for payment in group
    ]
    if orphans:
        logger.warning(
            "Payments reference unknown students",
            count=len(orphans),
            payment_ids=[payment.id for payment in orphans],
        )

    return summaries


# ===== PRIVATE HELPERS =====

def _clamp(amount: Decimal) -> Decimal:
    return amount if amount > ZERO else ZERO


def _summary_from(student: Student, own_payments: List[Payment]) -> BalanceSummary:
    fees = total_fees(student)
    paid = money_sum(payment.amount for payment in own_payments)
    net = fees - paid
    outstanding = _clamp(net)

    if outstanding == ZERO:
        status = PaymentStatus.PAID
    elif own_payments:
        status = PaymentStatus.PARTIAL
    else:
        status = PaymentStatus.UNPAID

    return BalanceSummary(
        student_id=student.id,
        total_fees=fees,
        total_paid=paid,
        outstanding=outstanding,
        credit=_clamp(-net),
        payment_status=status,
    )


class BalanceService:
    @staticmethod
    async def get_student_balance(student_id: str) -> BalanceSummary:
        """Load one student and their payments and summarize."""
        db = await get_database()

        student = await StudentRepository(db).get_student(student_id)
        if student is None:
            raise NotFoundError("Student", student_id)

        payments = await PaymentRepository(db).list_for_student(student_id)
        return summarize(student, payments)
