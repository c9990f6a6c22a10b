from datetime import date
from enum import Enum
from typing import List, Optional

from pydantic import Field

from tuition.models.base import CamelModel, FlexibleDate, Grade, Money
from tuition.schemas.balance import BalanceSummary


class InvoiceFormat(str, Enum):
    HTML = "html"
    PDF = "pdf"
    JSON = "json"


class InvoiceSchool(CamelModel):
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    logo_data_url: Optional[str] = None


class InvoiceStudent(CamelModel):
    id: str
    student_id: str
    name: str
    grade: Grade = None
    contact_email: Optional[str] = None


class InvoiceLineItem(CamelModel):
    category: str
    description: Optional[str] = None
    amount: Money
    due_date: FlexibleDate = None


class InvoicePaymentLine(CamelModel):
    date: FlexibleDate = None
    amount: Money
    method: str
    reference: Optional[str] = None


class InvoiceDocument(CamelModel):
    """Everything a renderer needs; totals come from the balance calculator."""
    invoice_number: str
    invoice_date: date
    academic_year: str
    currency: str
    date_format: str
    school: InvoiceSchool
    student: InvoiceStudent
    line_items: List[InvoiceLineItem] = []
    payments: List[InvoicePaymentLine] = []
    totals: BalanceSummary


class RenderedInvoice(CamelModel):
    document: InvoiceDocument
    filename: str
    content_type: str
    content: bytes = Field(exclude=True)


class InvoiceOutcome(CamelModel):
    student_id: str
    success: bool
    invoice_number: Optional[str] = None
    filename: Optional[str] = None
    error: Optional[str] = None
    document: Optional[InvoiceDocument] = None
    content: Optional[bytes] = Field(default=None, exclude=True)


class BulkInvoiceRequest(CamelModel):
    student_ids: List[str]
    format: InvoiceFormat = InvoiceFormat.PDF


class BulkInvoiceResponse(CamelModel):
    requested: int
    generated: int
    failed: int
    outcomes: List[InvoiceOutcome]


class NextInvoiceNumber(CamelModel):
    invoice_number: str
    sequence: int
