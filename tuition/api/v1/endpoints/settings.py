from fastapi import APIRouter

from tuition.db.session import get_database
from tuition.models.settings import SchoolSettings
from tuition.repositories.settings_repo import SettingsRepository

router = APIRouter()

@router.get("/", response_model=SchoolSettings)
async def get_settings():
    db = await get_database()
    return await SettingsRepository(db).get_settings()

@router.put("/", response_model=SchoolSettings)
async def update_settings(new_settings: SchoolSettings):
    """Save school settings. The invoice counter is not writable here."""
    db = await get_database()
    return await SettingsRepository(db).update_settings(new_settings)
