from typing import List, Optional

from pydantic import BaseModel

from tuition.models.fee_template import FeeTemplate
from tuition.models.payment import Payment
from tuition.models.settings import SchoolSettings
from tuition.models.student import Student


class Snapshot(BaseModel):
    """Everything one calculation pass reads. Treated as immutable."""
    students: List[Student] = []
    payments: List[Payment] = []
    fee_templates: List[FeeTemplate] = []
    settings: Optional[SchoolSettings] = None

    def find_student(self, student_id: str) -> Optional[Student]:
        for student in self.students:
            if student.id == student_id:
                return student
        return None
