"""
SettingsRepository - the school settings singleton and the invoice counter.

The counter lives on the settings document (``invoiceSeq``) and is only
ever advanced with an atomic ``$inc``; saving settings from the editor
never writes it, so a stale form cannot move the counter backwards.
"""

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from tuition.models.settings import DEFAULT_SETTINGS_ID, SchoolSettings

SEQUENCE_FIELD = "invoiceSeq"


class SettingsRepository:
    """School settings database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db.settings

    async def get_settings(self) -> SchoolSettings:
        """Stored settings, or defaults when none were saved yet."""
        doc = await self.collection.find_one({"_id": DEFAULT_SETTINGS_ID})
        if doc:
            return SchoolSettings.from_document(doc)
        return SchoolSettings()

    async def ensure_settings(self) -> None:
        """Create the settings document with defaults if it is missing."""
        defaults = SchoolSettings().to_document()
        defaults.pop("_id", None)
        await self.collection.update_one(
            {"_id": DEFAULT_SETTINGS_ID},
            {"$setOnInsert": defaults},
            upsert=True
        )
        await self.collection.update_one(
            {"_id": DEFAULT_SETTINGS_ID, SEQUENCE_FIELD: {"$not": {"$gte": 1}}},
            {"$set": {SEQUENCE_FIELD: 1}}
        )

    async def update_settings(self, new_settings: SchoolSettings) -> SchoolSettings:
        """Save everything except the invoice counter."""
        await self.ensure_settings()
        fields = new_settings.to_document()
        fields.pop("_id", None)
        fields.pop(SEQUENCE_FIELD, None)

        doc = await self.collection.find_one_and_update(
            {"_id": DEFAULT_SETTINGS_ID},
            {"$set": fields},
            return_document=ReturnDocument.AFTER
        )
        return SchoolSettings.from_document(doc)

    async def allocate_invoice_numbers(self, count: int = 1) -> int:
        """
        Reserve ``count`` consecutive sequence numbers.

        Returns the first reserved number. The counter is advanced
        atomically and never decremented.
        """
        if count < 1:
            raise ValueError("count must be at least 1")

        await self.ensure_settings()
        before = await self.collection.find_one_and_update(
            {"_id": DEFAULT_SETTINGS_ID},
            {"$inc": {SEQUENCE_FIELD: count}},
            return_document=ReturnDocument.BEFORE
        )
        return int(before[SEQUENCE_FIELD])

    async def replace_settings(self, new_settings: SchoolSettings, session=None) -> None:
        """Overwrite the whole document, counter included (backup restore)."""
        doc = new_settings.to_document()
        doc["_id"] = DEFAULT_SETTINGS_ID
        await self.collection.replace_one(
            {"_id": DEFAULT_SETTINGS_ID}, doc, upsert=True, session=session
        )

    async def reset_settings(self, session=None) -> SchoolSettings:
        """Back to defaults, keeping the invoice counter where it is."""
        doc = await self.collection.find_one({"_id": DEFAULT_SETTINGS_ID}, session=session)
        current = SchoolSettings.from_document(doc) if doc else SchoolSettings()
        defaults = SchoolSettings(invoice_seq=current.invoice_seq)
        await self.replace_settings(defaults, session=session)
        return defaults
