from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from tuition.main import app
from tuition.models.fee_template import FeeTemplate
from tuition.models.payment import Payment
from tuition.models.settings import SchoolSettings
from tuition.models.snapshot import Snapshot
from tuition.models.student import AssignedFee, Student, StudentStatus


def _collection():
    """Motor-shaped collection mock: find() is sync, everything else awaits."""
    collection = MagicMock()
    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=[])
    cursor.sort.return_value = cursor
    collection.find.return_value = cursor
    collection.find_one = AsyncMock(return_value=None)
    collection.insert_one = AsyncMock()
    collection.insert_many = AsyncMock()
    collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))
    collection.delete_many = AsyncMock()
    collection.replace_one = AsyncMock(return_value=MagicMock(matched_count=1))
    collection.update_one = AsyncMock()
    collection.find_one_and_update = AsyncMock()
    return collection


@pytest.fixture
def mock_db():
    """Mock database with the four collections and a transaction session."""
    db = MagicMock()
    db.students = _collection()
    db.payments = _collection()
    db.fee_templates = _collection()
    db.settings = _collection()

    session = MagicMock()
    transaction = MagicMock()
    transaction.__aenter__ = AsyncMock(return_value=None)
    transaction.__aexit__ = AsyncMock(return_value=False)
    session.start_transaction.return_value = transaction

    session_cm = MagicMock()
    session_cm.__aenter__ = AsyncMock(return_value=session)
    session_cm.__aexit__ = AsyncMock(return_value=False)
    db.client.start_session = AsyncMock(return_value=session_cm)
    return db


@pytest.fixture
def make_student():
    """Factory: make_student("s1", fees=[500, 150])."""
    def _make(record_id, fees=(), **overrides):
        data = {
            "id": record_id,
            "student_id": f"STU-{record_id}",
            "first_name": "Student",
            "last_name": record_id,
            "grade": "5th",
            "status": StudentStatus.ACTIVE,
            "assigned_fees": [AssignedFee(category="Tuition", amount=amount) for amount in fees],
        }
        data.update(overrides)
        return Student(**data)
    return _make


@pytest.fixture
def make_payment():
    """Factory: make_payment("p1", "s1", 300, date(2024, 1, 5))."""
    def _make(record_id, student_id, amount, paid_on=None, **overrides):
        return Payment(
            id=record_id,
            student_id=student_id,
            amount=amount,
            date=paid_on or date(2024, 1, 15),
            **overrides
        )
    return _make


@pytest.fixture
def school_settings():
    return SchoolSettings(
        school_name="Hillside Academy",
        school_address="12 Main Road",
        academic_year="2024",
        currency="USD",
        date_format="yyyy-MM-dd",
        invoice_prefix="INV",
        invoice_seq=7,
    )


@pytest.fixture
def snapshot(make_student, make_payment, school_settings):
    """
    Three students:
    - alice owes 350 (fees 500 + 150, paid 300)
    - bob overpaid (fees 200, paid 250)
    - cara has paid nothing (fees 400), inactive, grade 6th
    plus one payment for a student that no longer exists.
    """
    alice = make_student("alice", fees=[500, 150], first_name="Alice", last_name="Moyo",
                         contact_email="alice@example.com")
    alice.assigned_fees[0].template_id = "tpl-tuition"
    bob = make_student("bob", fees=[200], first_name="Bob", last_name="Otieno")
    cara = make_student("cara", fees=[400], first_name="Cara", last_name="Mensah",
                        grade="6th", status=StudentStatus.INACTIVE)
    return Snapshot(
        students=[alice, bob, cara],
        payments=[
            make_payment("p1", "alice", 300, date(2024, 2, 1), method="Cash"),
            make_payment("p2", "bob", 250, date(2024, 3, 1), method="Bank Transfer", reference="TRX-9"),
            make_payment("p3", "ghost", 75, date(2024, 3, 15)),
        ],
        fee_templates=[
            FeeTemplate(id="tpl-tuition", name="Term Tuition", category="Tuition", amount=Decimal("500")),
            FeeTemplate(id="tpl-books", name="Books", category="Books", amount=Decimal("150")),
        ],
        settings=school_settings,
    )


@pytest.fixture
def client():
    """Test client without lifespan, so no MongoDB connection is opened."""
    yield TestClient(app)
    app.dependency_overrides.clear()
