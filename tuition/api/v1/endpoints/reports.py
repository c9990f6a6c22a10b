from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, Response

from tuition.schemas.report import DashboardSummary
from tuition.services.report_service import ReportService, export_filename

router = APIRouter()

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )

@router.get("/dashboard", response_model=DashboardSummary)
async def get_dashboard():
    """Headline counts and totals"""
    return await ReportService.dashboard()

@router.get("/students.csv")
async def export_students():
    content = await ReportService.export_csv("students")
    return _csv_response(content, export_filename("students"))

@router.get("/payments.csv")
async def export_payments(start: Optional[date] = None, end: Optional[date] = None):
    """Payments dated within [start, end], inclusive"""
    if start and end and start > end:
        raise HTTPException(status_code=400, detail="start must not be after end")
    content = await ReportService.export_csv("payments", start, end)
    return _csv_response(content, export_filename("payments", start=start, end=end))

@router.get("/outstanding.csv")
async def export_outstanding():
    content = await ReportService.export_csv("outstanding")
    return _csv_response(content, export_filename("outstanding"))

@router.get("/fee-templates.csv")
async def export_fee_templates():
    content = await ReportService.export_csv("fee-templates")
    return _csv_response(content, export_filename("fee-templates"))
