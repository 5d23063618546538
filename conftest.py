import os

# Must be set before the app modules read their configuration
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BUSINESS_TIMEZONE"] = "America/New_York"

from datetime import date, datetime, time
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from core.deps import get_employee_directory
from db.session import get_session
from main import app
from models.employee import Employee, EmployeeRole, PayRate
from services.employee_directory import EmployeeDirectory, filter_employees
from services.publication import PublicationEngine
from services.shift_store import ShiftStore
from services.time_off_service import TimeOffService
from utils.timezone_helpers import local_end_of_day, local_start_of_day, to_utc


class InMemoryEmployeeDirectory(EmployeeDirectory):
    def __init__(self, employees: List[Employee]):
        self.employees = list(employees)

    def list_employees(
        self, active_only: bool = True, role: Optional[EmployeeRole] = None
    ) -> List[Employee]:
        return filter_employees(self.employees, active_only=active_only, role=role)


def local(day: date, hour: int, minute: int = 0) -> datetime:
    """UTC instant of a business-local wall time."""
    return to_utc(datetime.combine(day, time(hour, minute)))


WEEK_START = date(2025, 11, 3)
WEEK_END = date(2025, 11, 9)
WEDNESDAY = date(2025, 11, 5)


@pytest.fixture
def employees():
    return [
        Employee(
            id="E1",
            name="Alice Park",
            pay_rates=[
                PayRate(rate=18.0, effective_date=date(2025, 1, 1)),
                PayRate(rate=20.0, effective_date=date(2025, 11, 1)),
            ],
        ),
        Employee(id="E2", name="Bob Reyes", pay_rates=[PayRate(rate=17.5, effective_date=date.min)]),
        Employee(id="E3", name="Carla Diaz", role=EmployeeRole.OWNER),
        Employee(id="E4", name="Dana Former", active=False),
    ]


@pytest.fixture
def directory(employees):
    return InMemoryEmployeeDirectory(employees)


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(db_engine):
    with Session(db_engine) as session:
        yield session


@pytest.fixture
def store(session, directory):
    return ShiftStore(session, directory)


@pytest.fixture
def publication(store):
    return PublicationEngine(store)


@pytest.fixture
def time_off_service(store):
    return TimeOffService(store)


@pytest.fixture
def day_off(store):
    """Create a whole-day notice for employee_id on a local date."""

    def _create(employee_id: str, day: date, reason: Optional[str] = "Doctor appointment", **kwargs):
        return store.create_time_off(
            employee_id=employee_id,
            start_time=local_start_of_day(day),
            end_time=local_end_of_day(day),
            reason=reason,
            **kwargs,
        )

    return _create


@pytest.fixture
def client(session, directory):
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_employee_directory] = lambda: directory
    yield TestClient(app)
    app.dependency_overrides.clear()
