from typing import Optional

from fastapi import HTTPException, Query

from tuition.core.config import settings
from tuition.models.student import StudentStatus
from tuition.schemas.report import BalanceState, StudentFilter

ALL = "all"


def _optional(value: Optional[str]) -> Optional[str]:
    """The UI sends the literal "all" for an unset filter."""
    if value is None:
        return None
    value = value.strip()
    if not value or value.lower() == ALL:
        return None
    return value


def student_filter(
    search: Optional[str] = None,
    grade: Optional[str] = None,
    student_status: Optional[str] = Query(None, alias="status"),
    balance: Optional[str] = None,
) -> StudentFilter:
    """Build StudentFilter from query parameters."""
    student_status = _optional(student_status)
    balance = _optional(balance)
    try:
        return StudentFilter(
            search=_optional(search),
            grade=_optional(grade),
            status=StudentStatus(student_status) if student_status else None,
            balance=BalanceState(balance) if balance else None,
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=422,
            detail=str(exc)
        )


def pagination(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
) -> dict:
    return {"page": page, "page_size": page_size}
