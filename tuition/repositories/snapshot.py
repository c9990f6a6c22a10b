from motor.motor_asyncio import AsyncIOMotorDatabase

from tuition.models.snapshot import Snapshot
from tuition.repositories.fee_template_repo import FeeTemplateRepository
from tuition.repositories.payment_repo import PaymentRepository
from tuition.repositories.settings_repo import SettingsRepository
from tuition.repositories.student_repo import StudentRepository


async def load_snapshot(db: AsyncIOMotorDatabase) -> Snapshot:
    """Read all four collections into one immutable view."""
    return Snapshot(
        students=await StudentRepository(db).list_students(),
        payments=await PaymentRepository(db).list_payments(),
        fee_templates=await FeeTemplateRepository(db).list_templates(),
        settings=await SettingsRepository(db).get_settings()
    )
