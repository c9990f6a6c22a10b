from enum import Enum
from typing import List, Optional

from tuition.models.base import CamelModel, Grade, Money
from tuition.models.student import Student, StudentStatus
from tuition.schemas.balance import BalanceSummary


class BalanceState(str, Enum):
    OUTSTANDING = "outstanding"
    PAID = "paid"


class StudentFilter(CamelModel):
    """
    Student list criteria. Every field is optional; set fields are
    combined with AND and an empty filter matches everyone.
    """
    search: Optional[str] = None
    grade: Grade = None
    status: Optional[StudentStatus] = None
    balance: Optional[BalanceState] = None


class StudentRow(CamelModel):
    student: Student
    balance: BalanceSummary


class StudentListView(CamelModel):
    rows: List[StudentRow]
    total_matched: int
    with_outstanding: int
    outstanding_total: Money
    page: int
    page_size: int
    total_pages: int


class DashboardSummary(CamelModel):
    total_students: int
    active_students: int
    grade_levels: int
    unpaid_students: int
    students_with_outstanding: int
    total_fees: Money
    total_paid: Money
    total_outstanding: Money
    orphan_payments: int
    next_invoice_number: str


class DataStatistics(CamelModel):
    students: int
    payments: int
    fee_templates: int
    size_kb: int
