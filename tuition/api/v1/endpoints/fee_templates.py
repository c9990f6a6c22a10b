from typing import List

from fastapi import APIRouter, HTTPException, status

from tuition.db.session import get_database
from tuition.models.fee_template import FeeTemplate
from tuition.repositories.fee_template_repo import FeeTemplateRepository

router = APIRouter()

@router.get("/", response_model=List[FeeTemplate])
async def list_fee_templates():
    db = await get_database()
    return await FeeTemplateRepository(db).list_templates()

@router.post("/", response_model=FeeTemplate, status_code=status.HTTP_201_CREATED)
async def create_fee_template(template: FeeTemplate):
    db = await get_database()
    return await FeeTemplateRepository(db).create_template(template)

@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_fee_template(template_id: str):
    db = await get_database()
    if not await FeeTemplateRepository(db).delete_template(template_id):
        raise HTTPException(status_code=404, detail="Fee template not found")
