import io
import json
import zipfile
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Response

from tuition.api.deps import pagination, student_filter
from tuition.core.errors import NotFoundError, RenderError
from tuition.schemas.invoice import (
    BulkInvoiceRequest,
    BulkInvoiceResponse,
    InvoiceFormat,
    NextInvoiceNumber,
)
from tuition.schemas.report import StudentFilter, StudentListView
from tuition.services.invoice_service import InvoiceService

router = APIRouter()

@router.get("/", response_model=StudentListView)
async def list_invoice_candidates(
    criteria: StudentFilter = Depends(student_filter),
    paging: dict = Depends(pagination)
):
    """Active students with their balances"""
    return await InvoiceService.candidates(criteria, paging["page"], paging["page_size"])

@router.get("/next-number", response_model=NextInvoiceNumber)
async def next_invoice_number():
    """Preview the next invoice number without consuming it"""
    return await InvoiceService.next_number()

@router.post("/bulk")
async def bulk_generate_invoices(payload: BulkInvoiceRequest):
    """
    Generate invoices in the given order.

    JSON format returns the outcomes; html/pdf return a zip of the
    rendered files plus a manifest of the outcomes.
    """
    if not payload.student_ids:
        raise HTTPException(status_code=400, detail="No students selected")

    outcomes = await InvoiceService.bulk_generate(payload.student_ids, payload.format)
    generated = sum(1 for outcome in outcomes if outcome.success)
    summary = BulkInvoiceResponse(
        requested=len(outcomes),
        generated=generated,
        failed=len(outcomes) - generated,
        outcomes=outcomes,
    )

    if payload.format == InvoiceFormat.JSON:
        return summary

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for outcome in outcomes:
            if outcome.success:
                archive.writestr(outcome.filename, outcome.content)
        manifest = summary.model_dump(by_alias=True, mode="json", exclude={"outcomes": {"__all__": {"document"}}})
        archive.writestr("manifest.json", json.dumps(manifest, indent=2))

    return Response(
        content=buffer.getvalue(),
        media_type="application/zip",
        headers={
            "Content-Disposition": f'attachment; filename="invoices-{date.today().isoformat()}.zip"',
            "X-Invoices-Failed": str(summary.failed),
        }
    )

@router.post("/{student_id}")
async def generate_invoice(student_id: str, format: InvoiceFormat = InvoiceFormat.PDF):
    """Issue one invoice; consumes one invoice number"""
    try:
        rendered = await InvoiceService.generate(student_id, format)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except RenderError as exc:
        raise HTTPException(status_code=500, detail=str(exc))

    return Response(
        content=rendered.content,
        media_type=rendered.content_type,
        headers={
            "Content-Disposition": f'attachment; filename="{rendered.filename}"',
            "X-Invoice-Number": rendered.document.invoice_number,
        }
    )
