import io
import json
import zipfile
from datetime import date
from unittest.mock import AsyncMock, patch

from tuition.core.errors import NotFoundError, RenderError
from tuition.schemas.invoice import InvoiceFormat, InvoiceOutcome, RenderedInvoice
from tuition.services.invoice_service import compose_invoice


def _rendered(snapshot, number="INV-2024-0007"):
    document = compose_invoice(snapshot.find_student("alice"), snapshot.payments, snapshot.settings,
                               number, date(2024, 9, 1))
    return RenderedInvoice(
        document=document,
        filename=f"invoice-STU-alice-{number}.pdf",
        content_type="application/pdf",
        content=b"%PDF-1.4 fake",
    )


def test_generate_invoice(client, snapshot):
    with patch("tuition.api.v1.endpoints.invoices.InvoiceService.generate",
               new=AsyncMock(return_value=_rendered(snapshot))) as generate:
        response = client.post("/api/v1/invoices/alice", params={"format": "pdf"})

    assert response.status_code == 200
    assert response.content == b"%PDF-1.4 fake"
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["x-invoice-number"] == "INV-2024-0007"
    assert "invoice-STU-alice-INV-2024-0007.pdf" in response.headers["content-disposition"]
    generate.assert_awaited_once_with("alice", InvoiceFormat.PDF)


def test_generate_invoice_errors(client):
    with patch("tuition.api.v1.endpoints.invoices.InvoiceService.generate",
               new=AsyncMock(side_effect=NotFoundError("Student", "x"))):
        assert client.post("/api/v1/invoices/x").status_code == 404

    with patch("tuition.api.v1.endpoints.invoices.InvoiceService.generate",
               new=AsyncMock(side_effect=RenderError("broken"))):
        assert client.post("/api/v1/invoices/x").status_code == 500


def test_bulk_requires_students(client):
    response = client.post("/api/v1/invoices/bulk", json={"studentIds": []})
    assert response.status_code == 400


def test_bulk_zip_contains_rendered_files_and_manifest(client, snapshot):
    rendered = _rendered(snapshot)
    outcomes = [
        InvoiceOutcome(student_id="alice", success=True, invoice_number="INV-2024-0007",
                       filename=rendered.filename, document=rendered.document, content=rendered.content),
        InvoiceOutcome(student_id="ghost", success=False, error="Student not found"),
    ]

    with patch("tuition.api.v1.endpoints.invoices.InvoiceService.bulk_generate",
               new=AsyncMock(return_value=outcomes)):
        response = client.post("/api/v1/invoices/bulk", json={"studentIds": ["alice", "ghost"], "format": "pdf"})

    assert response.status_code == 200
    assert response.headers["x-invoices-failed"] == "1"

    archive = zipfile.ZipFile(io.BytesIO(response.content))
    assert sorted(archive.namelist()) == ["invoice-STU-alice-INV-2024-0007.pdf", "manifest.json"]
    manifest = json.loads(archive.read("manifest.json"))
    assert (manifest["requested"], manifest["generated"], manifest["failed"]) == (2, 1, 1)
    assert manifest["outcomes"][1]["error"] == "Student not found"
    assert "document" not in manifest["outcomes"][0]


def test_bulk_json_returns_outcomes(client, snapshot):
    outcomes = [InvoiceOutcome(student_id="alice", success=True, invoice_number="INV-2024-0007",
                               filename="invoice.json", content=b"{}")]

    with patch("tuition.api.v1.endpoints.invoices.InvoiceService.bulk_generate",
               new=AsyncMock(return_value=outcomes)) as bulk:
        response = client.post("/api/v1/invoices/bulk", json={"studentIds": ["alice"], "format": "json"})

    assert response.status_code == 200
    body = response.json()
    assert body["generated"] == 1
    assert body["outcomes"][0]["invoiceNumber"] == "INV-2024-0007"
    assert "content" not in body["outcomes"][0]
    bulk.assert_awaited_once_with(["alice"], InvoiceFormat.JSON)
