from typing import Optional

from pydantic import Field

from tuition.models.base import DocumentModel, Grade, Money, new_id


class FeeTemplate(DocumentModel):
    """Reusable fee definition; assigning it copies it into AssignedFee."""
    id: str = Field(default_factory=new_id)
    name: str
    category: str = "Other"
    amount: Money
    description: Optional[str] = None
    grade: Grade = None
