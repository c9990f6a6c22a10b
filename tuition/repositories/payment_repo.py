from typing import List

from motor.motor_asyncio import AsyncIOMotorDatabase

from tuition.models.payment import Payment


class PaymentRepository:
    """Payment database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db.payments

    async def create_payment(self, payment: Payment) -> Payment:
        await self.collection.insert_one(payment.to_document())
        return payment

    async def list_payments(self) -> List[Payment]:
        docs = await self.collection.find({}).to_list(None)
        return [Payment.from_document(doc) for doc in docs]

    async def list_for_student(self, student_id: str) -> List[Payment]:
        docs = await self.collection.find({"studentId": student_id}).to_list(None)
        return [Payment.from_document(doc) for doc in docs]

    async def delete_payment(self, payment_id: str) -> bool:
        result = await self.collection.delete_one({"_id": payment_id})
        return result.deleted_count > 0

    async def replace_all(self, payments: List[Payment], session=None) -> int:
        await self.collection.delete_many({}, session=session)
        if payments:
            await self.collection.insert_many(
                [payment.to_document() for payment in payments], session=session
            )
        return len(payments)
