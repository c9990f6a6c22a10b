from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from tuition.models.student import Student


class StudentRepository:
    """Student database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db.students

    async def create_student(self, student: Student) -> Student:
        """Insert a student; the id is kept as the document _id."""
        await self.collection.insert_one(student.to_document())
        return student

    async def get_student(self, student_id: str) -> Optional[Student]:
        doc = await self.collection.find_one({"_id": student_id})
        if doc:
            return Student.from_document(doc)
        return None

    async def list_students(self) -> List[Student]:
        """All students in insertion order."""
        docs = await self.collection.find({}).to_list(None)
        return [Student.from_document(doc) for doc in docs]

    async def update_student(self, student: Student) -> Optional[Student]:
        result = await self.collection.replace_one({"_id": student.id}, student.to_document())
        if result.matched_count:
            return student
        return None

    async def delete_student(self, student_id: str) -> bool:
        """Delete a student. Their payments are left in place."""
        result = await self.collection.delete_one({"_id": student_id})
        return result.deleted_count > 0

    async def replace_all(self, students: List[Student], session=None) -> int:
        await self.collection.delete_many({}, session=session)
        if students:
            await self.collection.insert_many(
                [student.to_document() for student in students], session=session
            )
        return len(students)
