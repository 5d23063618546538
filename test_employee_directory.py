from datetime import date
from unittest.mock import MagicMock

import pytest
from google.api_core.exceptions import ServiceUnavailable

from core.deps import to_http_exception
from core.exceptions import ConflictError, InvalidDate, InvalidShift, ShiftNotFound, StoreUnavailable
from models.employee import Employee, EmployeeRole, PayRate
from services.employee_directory import EmployeeDirectory, FirestoreEmployeeDirectory, employee_from_profile


def snapshot(doc_id, data):
    doc = MagicMock()
    doc.id = doc_id
    doc.to_dict.return_value = data
    return doc


def firestore_client(docs):
    client = MagicMock()
    collection = client.collection.return_value
    collection.stream.return_value = docs
    collection.where.return_value.stream.return_value = [d for d in docs if d.to_dict()["role"] == "owner"]
    return client


PROFILES = [
    snapshot("u2", {"displayName": "Zoe Quinn", "role": "employee", "hourlyWage": 16}),
    snapshot("u1", {"displayName": "Ann Lee", "role": "owner", "active": True}),
    snapshot("u3", {"displayName": "Gone Person", "role": "employee", "active": False}),
]


def test_profiles_map_to_employees_sorted_by_name():
    directory = FirestoreEmployeeDirectory(client=firestore_client(PROFILES))

    employees = directory.list_employees()

    assert [e.name for e in employees] == ["Ann Lee", "Zoe Quinn"]
    assert employees[0].role == EmployeeRole.OWNER
    assert employees[1].role == EmployeeRole.STAFF
    assert employees[1].hourly_rate(date(2025, 11, 9)) == 16.0
    assert len(directory.list_employees(active_only=False)) == 3


def test_owner_filter_is_pushed_to_firestore():
    client = firestore_client(PROFILES)
    directory = FirestoreEmployeeDirectory(client=client, collection="staff")

    owners = directory.list_employees(role=EmployeeRole.OWNER)

    client.collection.assert_called_with("staff")
    assert client.collection.return_value.where.called
    assert [e.id for e in owners] == ["u1"]


def test_firestore_failure_is_store_unavailable():
    client = MagicMock()
    client.collection.return_value.stream.side_effect = ServiceUnavailable("firestore down")

    with pytest.raises(StoreUnavailable):
        FirestoreEmployeeDirectory(client=client).list_employees()


def test_effective_dated_pay_rates():
    employee = employee_from_profile(
        "u1",
        {
            "displayName": "  ",
            "payRates": [
                {"rate": 18, "effectiveDate": "2025-01-01"},
                {"rate": 21.5, "effectiveDate": "2025-11-06T00:00:00Z"},
                {"rate": "bad"},
            ],
            "hourlyWage": 99,
        },
    )
    assert employee.name == "Unknown"
    assert employee.hourly_rate(date(2024, 12, 31)) is None
    assert employee.hourly_rate(date(2025, 11, 5)) == 18.0
    assert employee.hourly_rate(date(2025, 11, 6)) == 21.5


def test_latest_rate_wins_regardless_of_order():
    employee = Employee(
        id="E1",
        name="Alice",
        pay_rates=[
            PayRate(rate=22.0, effective_date=date(2025, 6, 1)),
            PayRate(rate=19.0, effective_date=date(2025, 1, 1)),
        ],
    )
    assert employee.hourly_rate(date(2025, 7, 1)) == 22.0


def test_domain_errors_map_to_http_status_codes():
    assert to_http_exception(InvalidDate("bad")).status_code == 400
    assert to_http_exception(InvalidShift("end before start")).status_code == 422
    assert to_http_exception(ShiftNotFound(3)).status_code == 404
    conflict = to_http_exception(ConflictError("E1", date(2025, 11, 5), "Vacation", "Alice"))
    assert conflict.status_code == 409
    assert conflict.detail["message"] == "Alice has time off on 2025-11-05: Vacation"
    unavailable = to_http_exception(StoreUnavailable("load_drafts"))
    assert unavailable.status_code == 503
    assert "load_drafts" not in unavailable.detail


def test_directory_base_cannot_be_instantiated():
    with pytest.raises(TypeError):
        EmployeeDirectory()
