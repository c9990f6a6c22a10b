from decimal import Decimal
from unittest.mock import AsyncMock, patch

from pymongo.errors import DuplicateKeyError

from tuition.core.errors import NotFoundError
from tuition.schemas.balance import BalanceSummary, PaymentStatus
from tuition.schemas.report import BalanceState
from tuition.services import report_service


def test_list_students_passes_filters(client, snapshot):
    view = report_service.build_student_view(snapshot)

    with patch("tuition.api.v1.endpoints.students.ReportService.student_view",
               new=AsyncMock(return_value=view)) as student_view:
        response = client.get("/api/v1/students/", params={
            "search": "alice", "grade": "all", "status": "active", "balance": "outstanding",
            "page": 2, "page_size": 10,
        })

    assert response.status_code == 200
    criteria, page, page_size = student_view.call_args.args
    assert criteria.search == "alice"
    assert criteria.grade is None
    assert criteria.status.value == "active"
    assert criteria.balance == BalanceState.OUTSTANDING
    assert (page, page_size) == (2, 10)

    body = response.json()
    assert body["totalMatched"] == 3
    assert body["outstandingTotal"] == 750.0
    assert body["rows"][0]["student"]["studentId"] == "STU-alice"
    assert body["rows"][0]["balance"]["paymentStatus"] == "partial"


def test_list_students_rejects_unknown_status(client):
    response = client.get("/api/v1/students/", params={"status": "graduated"})
    assert response.status_code == 422


def test_create_student_duplicate_code(client, mock_db):
    mock_db.students.insert_one.side_effect = DuplicateKeyError("dup")

    with patch("tuition.api.v1.endpoints.students.get_database", return_value=mock_db):
        response = client.post("/api/v1/students/", json={"studentId": "2024-001", "firstName": "Ama"})

    assert response.status_code == 409


def test_create_student(client, mock_db):
    with patch("tuition.api.v1.endpoints.students.get_database", return_value=mock_db):
        response = client.post("/api/v1/students/", json={
            "studentId": "2024-001",
            "firstName": "Ama",
            "assignedFees": [{"category": "Tuition", "amount": "1200.5"}],
        })

    assert response.status_code == 201
    assert response.json()["assignedFees"][0]["amount"] == 1200.5
    doc = mock_db.students.insert_one.call_args.args[0]
    assert doc["_id"] == response.json()["id"]
    assert doc["studentId"] == "2024-001"


def test_student_balance(client):
    summary = BalanceSummary(
        student_id="s1", total_fees=650, total_paid=300, outstanding=350, credit=0,
        payment_status=PaymentStatus.PARTIAL,
    )
    with patch("tuition.api.v1.endpoints.students.BalanceService.get_student_balance",
               new=AsyncMock(return_value=summary)):
        response = client.get("/api/v1/students/s1/balance")

    assert response.status_code == 200
    assert response.json()["outstanding"] == 350.0
    assert summary.total_fees == Decimal("650.00")


def test_student_balance_unknown(client):
    with patch("tuition.api.v1.endpoints.students.BalanceService.get_student_balance",
               new=AsyncMock(side_effect=NotFoundError("Student", "nope"))):
        response = client.get("/api/v1/students/nope/balance")

    assert response.status_code == 404
    assert response.json()["detail"] == "Student 'nope' not found"


def test_payment_for_unknown_student_is_rejected(client, mock_db):
    with patch("tuition.api.v1.endpoints.payments.get_database", return_value=mock_db):
        response = client.post("/api/v1/payments/", json={"studentId": "ghost", "amount": 10})

    assert response.status_code == 404
    mock_db.payments.insert_one.assert_not_called()


def test_update_student_uses_path_id(client, mock_db):
    with patch("tuition.api.v1.endpoints.students.get_database", return_value=mock_db):
        response = client.put("/api/v1/students/s1", json={
            "id": "other", "studentId": "2024-001", "firstName": "Ama", "grade": 4,
        })

    assert response.status_code == 200
    assert response.json()["id"] == "s1"
    assert response.json()["grade"] == "4"
    filter_, doc = mock_db.students.replace_one.call_args.args
    assert filter_ == {"_id": "s1"}
    assert doc["_id"] == "s1"


def test_update_unknown_student(client, mock_db):
    mock_db.students.replace_one.return_value.matched_count = 0

    with patch("tuition.api.v1.endpoints.students.get_database", return_value=mock_db):
        response = client.put("/api/v1/students/missing", json={"studentId": "X", "firstName": "Y"})

    assert response.status_code == 404


def test_update_student_duplicate_code(client, mock_db):
    mock_db.students.replace_one.side_effect = DuplicateKeyError("dup")

    with patch("tuition.api.v1.endpoints.students.get_database", return_value=mock_db):
        response = client.put("/api/v1/students/s1", json={"studentId": "2024-002", "firstName": "Kofi"})

    assert response.status_code == 409
