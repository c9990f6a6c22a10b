from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from pymongo.errors import DuplicateKeyError

from tuition.api.deps import pagination, student_filter
from tuition.core.errors import NotFoundError
from tuition.db.session import get_database
from tuition.models.student import Student
from tuition.repositories.student_repo import StudentRepository
from tuition.schemas.balance import BalanceSummary
from tuition.schemas.report import StudentFilter, StudentListView
from tuition.services.balance_service import BalanceService
from tuition.services.report_service import ReportService, grade_levels

router = APIRouter()

@router.get("/", response_model=StudentListView)
async def list_students(
    criteria: StudentFilter = Depends(student_filter),
    paging: dict = Depends(pagination)
):
    """Filtered, paged student list with balances"""
    return await ReportService.student_view(criteria, paging["page"], paging["page_size"])

@router.get("/grades", response_model=List[str])
async def list_grades():
    """Distinct grades in use, for the grade filter"""
    db = await get_database()
    students = await StudentRepository(db).list_students()
    return grade_levels(students)

@router.post("/", response_model=Student, status_code=status.HTTP_201_CREATED)
async def create_student(student: Student):
    """Create a student"""
    db = await get_database()
    try:
        return await StudentRepository(db).create_student(student)
    except DuplicateKeyError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Student ID '{student.student_id}' already exists"
        )

@router.get("/{student_id}", response_model=Student)
async def get_student(student_id: str):
    db = await get_database()
    student = await StudentRepository(db).get_student(student_id)
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")
    return student

@router.put("/{student_id}", response_model=Student)
async def update_student(student_id: str, student: Student):
    """Replace a student record; the path id wins over the body id"""
    db = await get_database()
    student = student.model_copy(update={"id": student_id})
    try:
        updated = await StudentRepository(db).update_student(student)
    except DuplicateKeyError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Student ID '{student.student_id}' already exists"
        )
    if not updated:
        raise HTTPException(status_code=404, detail="Student not found")
    return updated

@router.get("/{student_id}/balance", response_model=BalanceSummary)
async def get_student_balance(student_id: str):
    """Total fees, total paid and outstanding for one student"""
    try:
        return await BalanceService.get_student_balance(student_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))

@router.delete("/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_student(student_id: str):
    db = await get_database()
    if not await StudentRepository(db).delete_student(student_id):
        raise HTTPException(status_code=404, detail="Student not found")
