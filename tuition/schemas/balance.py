from enum import Enum

from tuition.models.base import CamelModel, Money


class PaymentStatus(str, Enum):
    PAID = "paid"          # nothing outstanding
    PARTIAL = "partial"    # outstanding, some payment received
    UNPAID = "unpaid"      # outstanding, nothing received


class BalanceSummary(CamelModel):
    """Per-student totals shared by every view (table, CSV, invoice)."""
    student_id: str
    total_fees: Money
    total_paid: Money
    outstanding: Money
    credit: Money  # overpayment, informational only; never carried forward
    payment_status: PaymentStatus
