from typing import List

from fastapi import APIRouter, HTTPException, status

from tuition.db.session import get_database
from tuition.models.payment import Payment
from tuition.repositories.payment_repo import PaymentRepository
from tuition.repositories.student_repo import StudentRepository

router = APIRouter()

@router.get("/", response_model=List[Payment])
async def list_payments():
    db = await get_database()
    return await PaymentRepository(db).list_payments()

@router.post("/", response_model=Payment, status_code=status.HTTP_201_CREATED)
async def create_payment(payment: Payment):
    """Record a payment against an existing student"""
    db = await get_database()
    if not await StudentRepository(db).get_student(payment.student_id):
        raise HTTPException(status_code=404, detail="Student not found")
    return await PaymentRepository(db).create_payment(payment)

@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_payment(payment_id: str):
    db = await get_database()
    if not await PaymentRepository(db).delete_payment(payment_id):
        raise HTTPException(status_code=404, detail="Payment not found")
