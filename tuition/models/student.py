from enum import Enum
from typing import List, Optional

from pydantic import Field

from tuition.models.base import CamelModel, DocumentModel, FlexibleDate, Grade, Money, new_id


class StudentStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


# Embedded in Student, no separate document
class AssignedFee(CamelModel):
    template_id: Optional[str] = None
    category: str = "Other"
    amount: Money
    description: Optional[str] = None
    due_date: FlexibleDate = None


class Student(DocumentModel):
    id: str = Field(default_factory=new_id)
    student_id: str  # Human-readable student code
    first_name: str
    last_name: str = ""
    grade: Grade = None
    status: StudentStatus = StudentStatus.ACTIVE
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    guardian_name: Optional[str] = None
    enrollment_date: FlexibleDate = None
    assigned_fees: List[AssignedFee] = []
    notes: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_active(self) -> bool:
        return self.status == StudentStatus.ACTIVE
