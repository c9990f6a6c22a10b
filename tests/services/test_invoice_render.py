import re
from datetime import date

import pytest

from tuition.core.errors import RenderError
from tuition.models.student import AssignedFee
from tuition.services import invoice_render
from tuition.services.invoice_service import compose_invoice


@pytest.fixture
def document(snapshot):
    alice = snapshot.find_student("alice")
    return compose_invoice(alice, snapshot.payments, snapshot.settings, "INV-2024-0007", date(2024, 9, 1))


def test_html_invoice_contents(document):
    html = invoice_render.render_html(document)

    assert "INV-2024-0007" in html
    assert "Hillside Academy" in html
    assert "Alice Moyo" in html
    assert "2024-09-01" in html
    assert "$650.00" in html
    assert "$300.00" in html
    assert "$350.00" in html


def test_html_escapes_user_text(document):
    document.student.name = "<script>alert(1)</script>"
    html = invoice_render.render_html(document)
    assert "<script>" not in html
    assert "&lt;script&gt;" in html


def test_html_without_fees(snapshot):
    student = snapshot.find_student("bob").model_copy(update={"assigned_fees": []})
    document = compose_invoice(student, [], None, "INV-2024-0001")
    assert "No fees assigned" in invoice_render.render_html(document)


def test_pdf_invoice_is_pdf(document):
    content = invoice_render.render_pdf(document)
    assert content.startswith(b"%PDF")


def test_pdf_long_fee_list_spans_pages(snapshot):
    student = snapshot.find_student("alice").model_copy(update={
        "assigned_fees": [AssignedFee(category="Other", amount=10, description=f"Item {n}") for n in range(120)]
    })
    document = compose_invoice(student, [], snapshot.settings, "INV-2024-0008")

    content = invoice_render.render_pdf(document)

    assert content.startswith(b"%PDF")
    page_counts = [int(count) for count in re.findall(rb"/Count (\d+)", content)]
    assert max(page_counts) >= 2


def test_pdf_failure_is_render_error(document, monkeypatch):
    def explode(_document):
        raise RuntimeError("disk full")

    monkeypatch.setattr(invoice_render, "_build_pdf", explode)
    with pytest.raises(RenderError, match="INV-2024-0007"):
        invoice_render.render_pdf(document)
