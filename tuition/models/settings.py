"""
School-wide settings document.

A singleton (``id = "default"``). Edited from the settings screen and
mutated by invoice generation, which advances ``invoice_seq``.
"""

from datetime import date
from typing import List, Optional

from pydantic import Field, field_validator

from tuition.core.config import settings as app_settings
from tuition.models.base import DocumentModel

DEFAULT_SETTINGS_ID = "default"


def _current_year() -> str:
    return str(date.today().year)


class SchoolSettings(DocumentModel):
    id: str = DEFAULT_SETTINGS_ID
    school_name: str = "Tuition Management System"
    school_address: Optional[str] = None
    school_phone: Optional[str] = None
    school_email: Optional[str] = None
    academic_year: str = Field(default_factory=_current_year)
    currency: str = Field(default_factory=lambda: app_settings.DEFAULT_CURRENCY)
    date_format: str = Field(default_factory=lambda: app_settings.DEFAULT_DATE_FORMAT)
    language: str = "en"
    theme: str = "light"
    timezone: str = "UTC"

    # Invoice numbering: next number handed out is invoice_seq
    invoice_prefix: str = Field(default_factory=lambda: app_settings.DEFAULT_INVOICE_PREFIX)
    invoice_number_start: int = 1000
    invoice_seq: int = 1

    payment_methods: List[str] = ["Cash", "Check", "Bank Transfer", "Online"]
    fee_categories: List[str] = ["Tuition", "Books", "Lab Fee", "Transport", "Exam Fee", "Other"]
    grade_options: List[str] = [
        "K-1", "K-2", "1st", "2nd", "3rd", "4th", "5th", "6th",
        "7th", "8th", "9th", "10th", "11th", "12th",
    ]
    logo_data_url: Optional[str] = None

    @field_validator("invoice_seq", mode="before")
    @classmethod
    def default_invoice_seq(cls, value):
        # Missing or zero counters start at 1
        if not value:
            return 1
        return value
