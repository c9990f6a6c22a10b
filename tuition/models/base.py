import uuid
from datetime import date
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

from tuition.utils.dates import coerce_date
from tuition.utils.money import to_money


def new_id() -> str:
    return uuid.uuid4().hex


# Decimal in Python, plain JSON number on the wire (backup format).
# Floats keep about 15 significant digits, so larger amounts lose
# precision through a JSON backup round trip.
Money = Annotated[
    Decimal,
    BeforeValidator(to_money),
    PlainSerializer(lambda value: float(value), return_type=float, when_used="json"),
]

FlexibleDate = Annotated[Optional[date], BeforeValidator(coerce_date)]


class CamelModel(BaseModel):
    """Records are stored and backed up with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True
    )


class DocumentModel(CamelModel):
    """A record persisted as its own MongoDB document (``id`` <-> ``_id``)."""

    id: str

    def to_document(self) -> dict:
        doc = self.model_dump(by_alias=True, mode="json")
        doc["_id"] = doc.pop("id")
        return doc

    @classmethod
    def from_document(cls, doc: dict):
        data = dict(doc)
        if "_id" in data:
            data["id"] = str(data.pop("_id"))
        return cls.model_validate(data)


def normalize_grade(value) -> Optional[str]:
    """Grades arrive as strings, numbers or null; keep one canonical form."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


Grade = Annotated[Optional[str], BeforeValidator(normalize_grade)]
