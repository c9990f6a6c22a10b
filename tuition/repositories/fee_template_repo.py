from typing import List

from motor.motor_asyncio import AsyncIOMotorDatabase

from tuition.models.fee_template import FeeTemplate


class FeeTemplateRepository:
    """Fee template database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db.fee_templates

    async def create_template(self, template: FeeTemplate) -> FeeTemplate:
        await self.collection.insert_one(template.to_document())
        return template

    async def list_templates(self) -> List[FeeTemplate]:
        docs = await self.collection.find({}).to_list(None)
        return [FeeTemplate.from_document(doc) for doc in docs]

    async def delete_template(self, template_id: str) -> bool:
        result = await self.collection.delete_one({"_id": template_id})
        return result.deleted_count > 0

    async def replace_all(self, templates: List[FeeTemplate], session=None) -> int:
        await self.collection.delete_many({}, session=session)
        if templates:
            await self.collection.insert_many(
                [template.to_document() for template in templates], session=session
            )
        return len(templates)
