from datetime import date

import pytest
from sqlalchemy.exc import DBAPIError

from hrms.core.config import settings
from hrms.core.errors import TransientInfraError
from hrms.domains.attendance import job
from hrms.models import Attendance
from hrms.models.enums import AttendanceStatus, NonWorkingDayKind, Profile, Role

SUNDAY = date(2025, 6, 1)


@pytest.fixture
def run(session_factory):
    def _run(target=SUNDAY, kind=None, **options):
        options.setdefault("sleep", lambda seconds: None)
        return job.mark_non_working_day(target, kind, factory=session_factory, **options)

    return _run


def _statuses(db, target=SUNDAY):
    db.expire_all()
    return {row.employee_id: row.status for row in db.query(Attendance).filter(Attendance.date == target)}


@pytest.fixture
def stores(make_store, make_employee):
    sunday_off = make_store(name="Koramangala", weekday_off="Sunday")
    monday_off = make_store(name="Indiranagar", weekday_off="Monday")
    holiday = make_store(name="Whitefield", weekday_off="Saturday", holidays=(SUNDAY,))
    employees = {
        "sunday_a": make_employee(store=sunday_off),
        "sunday_b": make_employee(store=sunday_off),
        "monday": make_employee(store=monday_off),
        "holiday": make_employee(store=holiday),
    }
    return {"sunday_off": sunday_off, "monday_off": monday_off, "holiday": holiday}, employees


def test_marks_only_non_working_stores(run, db, stores):
    _, employees = stores

    result = run()

    assert result.successful == 2
    assert result.failed == 0
    assert result.marked == 3
    statuses = _statuses(db)
    assert statuses == {
        employees["sunday_a"].id: AttendanceStatus.WEEKDAY_OFF.value,
        employees["sunday_b"].id: AttendanceStatus.WEEKDAY_OFF.value,
        employees["holiday"].id: AttendanceStatus.HOLIDAY.value,
    }


def test_rerun_creates_nothing(run, db, stores):
    run()
    before = db.query(Attendance).count()

    again = run()

    assert again.marked == 0
    assert again.successful == 2
    assert db.query(Attendance).count() == before


def test_existing_rows_are_left_alone(run, db, stores):
    _, employees = stores
    db.add(Attendance(employee_id=employees["sunday_a"].id, date=SUNDAY, status=AttendanceStatus.PRESENT.value))
    db.commit()

    result = run()

    assert result.marked == 2
    assert _statuses(db)[employees["sunday_a"].id] == AttendanceStatus.PRESENT.value


def test_weekly_off_wins_over_holiday(run, db, make_store, make_employee):
    store = make_store(weekday_off="Sunday", holidays=(SUNDAY,))
    employee = make_employee(store=store)

    run()

    assert _statuses(db) == {employee.id: AttendanceStatus.WEEKDAY_OFF.value}


def test_explicit_kind_overrides_derived_status(run, db, make_store, make_employee):
    employee = make_employee(store=make_store(weekday_off="Sunday"))

    run(kind=NonWorkingDayKind.HOLIDAY)

    assert _statuses(db) == {employee.id: AttendanceStatus.HOLIDAY.value}


def test_batches_cover_every_employee(run, db, make_store, make_employee):
    store = make_store()
    employees = [make_employee(store=store) for _ in range(5)]

    result = run(batch_size=2)

    assert result.marked == 5
    assert set(_statuses(db)) == {employee.id for employee in employees}


def test_transient_failure_is_retried(run, db, stores, monkeypatch):
    real_mark_store = job.mark_store
    calls = {"count": 0}
    sleeps = []

    def flaky(factory, store_id, target_date, status, batch_size):
        calls["count"] += 1
        if calls["count"] <= 2:
            raise DBAPIError("INSERT INTO attendance", {}, Exception("connection reset"))
        return real_mark_store(factory, store_id, target_date, status, batch_size)

    monkeypatch.setattr(job, "mark_store", flaky)

    result = run(max_retries=3, backoff_seconds=0.5, sleep=sleeps.append)

    assert result.successful == 2
    assert result.failed == 0
    assert sleeps == [0.5, 1.0]


def test_persistent_failure_reports_store_and_continues(run, db, stores, monkeypatch):
    store_map, employees = stores
    broken_id = store_map["sunday_off"].id
    real_mark_store = job.mark_store
    sleeps = []

    def failing(factory, store_id, target_date, status, batch_size):
        if store_id == broken_id:
            raise DBAPIError("INSERT INTO attendance", {}, Exception("deadlock detected"))
        return real_mark_store(factory, store_id, target_date, status, batch_size)

    monkeypatch.setattr(job, "mark_store", failing)

    result = run(max_retries=2, backoff_seconds=1.0, sleep=sleeps.append)

    assert result.successful == 1
    assert result.failed == 1
    assert result.failed_store_ids == [broken_id]
    assert sleeps == [1.0, 2.0]
    assert _statuses(db) == {employees["holiday"].id: AttendanceStatus.HOLIDAY.value}


def test_store_scan_is_retried(run, db, stores, monkeypatch):
    real_find = job.find_target_stores
    calls = {"count": 0}
    sleeps = []

    def flaky(factory, target_date, kind, batch_size):
        calls["count"] += 1
        if calls["count"] == 1:
            raise DBAPIError("SELECT stores", {}, Exception("connection reset"))
        return real_find(factory, target_date, kind, batch_size)

    monkeypatch.setattr(job, "find_target_stores", flaky)

    result = run(max_retries=2, backoff_seconds=0.5, sleep=sleeps.append)

    assert result.successful == 2
    assert result.marked == 3
    assert sleeps == [0.5]


def test_store_scan_gives_up_after_retries(run, db, stores, monkeypatch):
    sleeps = []

    def failing(factory, target_date, kind, batch_size):
        raise DBAPIError("SELECT stores", {}, Exception("connection refused"))

    monkeypatch.setattr(job, "find_target_stores", failing)

    with pytest.raises(TransientInfraError, match="Stores could not be listed"):
        run(max_retries=2, backoff_seconds=1.0, sleep=sleeps.append)

    assert sleeps == [1.0, 2.0]
    assert _statuses(db) == {}


def test_endpoint_accepts_cron_secret(client, stores, monkeypatch):
    monkeypatch.setattr(settings, "cron_secret", "s3cret")

    response = client.post(
        "/attendance/non-working-day",
        json={"date": "2025-06-01"},
        headers={"X-Cron-Secret": "s3cret"},
    )

    assert response.status_code == 200
    assert response.json() == {
        "date": "2025-06-01",
        "successful": 2,
        "failed": 0,
        "marked": 3,
        "failed_store_ids": [],
    }


def test_endpoint_rejects_wrong_secret(client, monkeypatch):
    monkeypatch.setattr(settings, "cron_secret", "s3cret")

    response = client.post(
        "/attendance/non-working-day", json={"date": "2025-06-01"}, headers={"X-Cron-Secret": "nope"}
    )

    assert response.status_code == 401


def test_endpoint_requires_privileged_identity(client, make_store, make_employee, headers):
    employee = make_employee(store=make_store())
    admin = make_employee(role=Role.ADMIN, profile=Profile.MD)

    denied = client.post("/attendance/non-working-day", json={"date": "2025-06-01"}, headers=headers(employee))
    allowed = client.post("/attendance/non-working-day", json={"date": "2025-06-01"}, headers=headers(admin))

    assert denied.status_code == 403
    assert allowed.status_code == 200
    assert allowed.json()["marked"] == 1
