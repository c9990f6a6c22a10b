from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import Field

from tuition.models.base import CamelModel
from tuition.models.fee_template import FeeTemplate
from tuition.models.payment import Payment
from tuition.models.settings import SchoolSettings
from tuition.models.student import Student

BACKUP_VERSION = 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BackupData(CamelModel):
    """Full dataset; the same shape is accepted back by the import."""
    version: int = BACKUP_VERSION
    exported_at: datetime = Field(default_factory=_utcnow)
    students: List[Student] = []
    payments: List[Payment] = []
    fee_templates: List[FeeTemplate] = []
    settings: Optional[SchoolSettings] = None


class ImportResult(CamelModel):
    success: bool
    message: str
    counts: Dict[str, int] = {}
