from datetime import date
from typing import Optional

from pydantic import Field

from tuition.models.base import DocumentModel, FlexibleDate, Money, new_id


class Payment(DocumentModel):
    """
    Money received from a student.

    Applied against the student's total, never against a single fee line.
    """
    id: str = Field(default_factory=new_id)
    student_id: str  # Student.id, not the human-readable code
    amount: Money
    date: FlexibleDate = Field(default_factory=date.today)
    method: str = "Cash"
    reference: Optional[str] = None
    notes: Optional[str] = None
