from __future__ import annotations

from datetime import date, time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hrms.api.deps import get_notification_sink
from hrms.core.notifications import NotificationSink
from hrms.db.session import Base, get_session, get_session_factory
from hrms.main import app
from hrms.models import Calendar, Employee, Holiday, Store
from hrms.models.enums import Profile, Role

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class RecordingSink(NotificationSink):
    def __init__(self) -> None:
        self.events: list[tuple[str, list[int], dict]] = []

    def publish(self, event, recipients, payload) -> None:
        self.events.append((event, list(recipients), dict(payload)))


recording_sink = RecordingSink()


def override_get_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_session] = override_get_session
app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
app.dependency_overrides[get_notification_sink] = lambda: recording_sink


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    recording_sink.events.clear()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def notifications() -> RecordingSink:
    return recording_sink


@pytest.fixture
def make_store(db):
    def _make_store(
        name: str = "Koramangala",
        weekday_off: str | None = "Sunday",
        holidays: tuple[date, ...] = (),
        late_entry_threshold: int | None = 10,
        early_exit_threshold: int | None = 10,
    ) -> Store:
        store = Store(
            name=name,
            late_entry_threshold=late_entry_threshold,
            early_exit_threshold=early_exit_threshold,
            expected_in_time=time(10, 0),
            expected_out_time=time(19, 0),
        )
        if weekday_off is not None:
            store.calendar = Calendar(weekday_off=weekday_off)
            for holiday in holidays:
                store.calendar.holidays.append(Holiday(date=holiday, name=f"Holiday {holiday.isoformat()}"))
        db.add(store)
        db.commit()
        db.refresh(store)
        return store

    return _make_store


@pytest.fixture
def make_employee(db):
    counter = {"value": 0}

    def _make_employee(
        *,
        store: Store | None = None,
        profile: Profile | None = Profile.EMPLOYEE,
        role: Role = Role.BASIC,
        manager: Employee | None = None,
        leave_days: float = 0,
        expected_in: time | None = time(10, 0),
        expected_out: time | None = time(19, 0),
        hr_of: Store | None = None,
        name: str | None = None,
    ) -> Employee:
        counter["value"] += 1
        number = counter["value"]
        employee = Employee(
            email=f"user{number}@example.com",
            username=name or f"User {number}",
            emp_no=f"EMP-{number:03d}",
            role=role.value,
            profile=profile.value if profile else None,
            store_id=store.id if store else None,
            reporting_manager_id=manager.id if manager else None,
            expected_in_time=expected_in,
            expected_out_time=expected_out,
            leave_days=leave_days,
        )
        db.add(employee)
        db.flush()
        if hr_of is not None:
            hr_of.hrs.append(employee)
        db.commit()
        db.refresh(employee)
        return employee

    return _make_employee


def auth(employee: Employee) -> dict[str, str]:
    return {"X-Employee-Id": str(employee.id)}


@pytest.fixture
def headers():
    return auth


@pytest.fixture
def session_factory():
    return TestingSessionLocal
