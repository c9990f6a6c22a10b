"""
Full-dataset backup and restore.

Import is all-or-nothing: the payload is parsed and validated in full
before anything is written, and the four collections are then replaced
inside one MongoDB transaction. A rejected payload, or a write that
fails part way, leaves the stored data untouched.

Clearing all data resets the settings to defaults but keeps the invoice
counter, so numbers already issued are never handed out again.
"""

import json
from typing import List, Union

import structlog
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from tuition.core.errors import BackupValidationError
from tuition.db.session import get_database
from tuition.models.settings import SchoolSettings
from tuition.models.snapshot import Snapshot
from tuition.repositories.fee_template_repo import FeeTemplateRepository
from tuition.repositories.payment_repo import PaymentRepository
from tuition.repositories.settings_repo import SettingsRepository
from tuition.repositories.snapshot import load_snapshot
from tuition.repositories.student_repo import StudentRepository
from tuition.schemas.backup import BackupData, ImportResult
from tuition.schemas.report import DataStatistics

logger = structlog.get_logger(__name__)

REQUIRED_KEYS = ("students", "payments")


def build_backup(snapshot: Snapshot) -> BackupData:
    return BackupData(
        students=snapshot.students,
        payments=snapshot.payments,
        fee_templates=snapshot.fee_templates,
        settings=snapshot.settings,
    )


def export_json(snapshot: Snapshot) -> str:
    return build_backup(snapshot).model_dump_json(by_alias=True, indent=2)


def _check_unique(kind: str, ids: List[str]) -> None:
    seen = set()
    for record_id in ids:
        if record_id in seen:
            raise BackupValidationError(f"Duplicate {kind} id: {record_id}")
        seen.add(record_id)


def parse_backup(raw: Union[str, bytes, dict]) -> Snapshot:
    """
    Validate a backup payload completely and return it as a Snapshot.

    Raises BackupValidationError describing the first problem found.
    """
    if isinstance(raw, (str, bytes)):
        try:
            payload = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise BackupValidationError(f"Backup is not valid JSON: {exc}") from exc
    else:
        payload = raw

    if not isinstance(payload, dict):
        raise BackupValidationError("Backup must be a JSON object")

    missing = [key for key in REQUIRED_KEYS if not isinstance(payload.get(key), list)]
    if missing:
        raise BackupValidationError(f"Backup is missing lists: {', '.join(missing)}")

    try:
        backup = BackupData.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise BackupValidationError(f"Invalid backup at {location}: {first['msg']}") from exc

    _check_unique("student", [student.id for student in backup.students])
    _check_unique("student code", [student.student_id for student in backup.students])
    _check_unique("payment", [payment.id for payment in backup.payments])
    _check_unique("fee template", [template.id for template in backup.fee_templates])

    return Snapshot(
        students=backup.students,
        payments=backup.payments,
        fee_templates=backup.fee_templates,
        settings=backup.settings or SchoolSettings(),
    )


class BackupService:
    @staticmethod
    async def export_backup() -> BackupData:
        db = await get_database()
        snapshot = await load_snapshot(db)
        return build_backup(snapshot)

    @staticmethod
    async def import_backup(raw: Union[str, bytes, dict]) -> ImportResult:
        """Replace all data with the backup, or change nothing."""
        try:
            snapshot = parse_backup(raw)
        except BackupValidationError as exc:
            logger.warning("Backup import rejected", reason=str(exc))
            return ImportResult(success=False, message=str(exc))

        db = await get_database()
        try:
            async with await db.client.start_session() as session:
                async with session.start_transaction():
                    counts = {
                        "students": await StudentRepository(db).replace_all(snapshot.students, session=session),
                        "payments": await PaymentRepository(db).replace_all(snapshot.payments, session=session),
                        "feeTemplates": await FeeTemplateRepository(db).replace_all(snapshot.fee_templates, session=session),
                    }
                    await SettingsRepository(db).replace_settings(snapshot.settings, session=session)
        except PyMongoError as exc:
            logger.error("Backup import failed", error=str(exc), exc_info=True)
            return ImportResult(success=False, message=f"Import failed, no data was changed: {exc}")

        logger.info("Backup imported", **counts)
        return ImportResult(success=True, message="Data imported successfully", counts=counts)

    @staticmethod
    async def clear_all_data() -> None:
        """Delete students, payments and fee templates; reset settings, keeping the invoice counter."""
        db = await get_database()
        async with await db.client.start_session() as session:
            async with session.start_transaction():
                await StudentRepository(db).replace_all([], session=session)
                await PaymentRepository(db).replace_all([], session=session)
                await FeeTemplateRepository(db).replace_all([], session=session)
                await SettingsRepository(db).reset_settings(session=session)
        logger.warning("All data cleared")

    @staticmethod
    async def data_statistics() -> DataStatistics:
        db = await get_database()
        snapshot = await load_snapshot(db)
        size = len(export_json(snapshot).encode("utf-8"))
        return DataStatistics(
            students=len(snapshot.students),
            payments=len(snapshot.payments),
            fee_templates=len(snapshot.fee_templates),
            size_kb=round(size / 1024),
        )
