from datetime import date

import pytest

from hrms.core.errors import ConflictError, ForbiddenError, ValidationError
from hrms.domains.expenses import service
from hrms.domains.expenses.service import OdometerReading
from hrms.models import Expense
from hrms.models.enums import Profile


@pytest.fixture
def team(make_store, make_employee):
    store = make_store()
    coordinator = make_employee(store=store, profile=Profile.HR_COORDINATOR, hr_of=store)
    employee = make_employee(store=store)
    return store, coordinator, employee


def test_reading_totals():
    reading = OdometerReading(initial_reading=1200, final_reading=1250, rate=3, miscellaneous_expense=20)

    assert reading.total_distance == 50
    assert reading.fuel_total == 150
    assert reading.amount == 170


@pytest.mark.parametrize(
    "reading",
    [
        OdometerReading(initial_reading=100, final_reading=90, rate=3),
        OdometerReading(initial_reading=100, final_reading=120, rate=0),
        OdometerReading(initial_reading=100, final_reading=120, rate=3, miscellaneous_expense=-1),
    ],
)
def test_reading_validation(reading):
    with pytest.raises(ValidationError):
        reading.validate()


def test_recording_same_day_overwrites(db, team):
    _, coordinator, employee = team
    day = date(2025, 6, 6)

    first = service.record_expense(
        db, coordinator, employee_id=employee.id, on_date=day,
        reading=OdometerReading(initial_reading=100, final_reading=150, rate=3),
    )
    second = service.record_expense(
        db, coordinator, employee_id=employee.id, on_date=day,
        reading=OdometerReading(initial_reading=100, final_reading=180, rate=3, miscellaneous_expense=10),
    )

    assert second.id == first.id
    assert db.query(Expense).count() == 1
    assert float(second.total_distance) == 80
    assert float(second.amount) == 250


def test_update_recomputes_totals(db, team):
    _, coordinator, employee = team
    expense = service.record_expense(
        db, coordinator, employee_id=employee.id, on_date=date(2025, 6, 6),
        reading=OdometerReading(initial_reading=100, final_reading=150, rate=3),
    )

    updated = service.update_expense(db, coordinator, expense.id, rate=4.0, miscellaneous_expense=5.0)

    assert float(updated.fuel_total) == 200
    assert float(updated.amount) == 205


def test_plain_employee_cannot_record(db, team):
    *_, employee = team

    with pytest.raises(ForbiddenError):
        service.record_expense(
            db, employee, employee_id=employee.id, on_date=date(2025, 6, 6),
            reading=OdometerReading(initial_reading=100, final_reading=150, rate=3),
        )


def test_expense_endpoints(client, team, headers):
    _, coordinator, employee = team

    created = client.post(
        "/expenses",
        json={
            "employee_id": employee.id,
            "date": "2025-06-06",
            "initial_reading": 100,
            "final_reading": 150,
            "rate": 3,
            "miscellaneous_expense": 20,
        },
        headers=headers(coordinator),
    )
    invalid = client.post(
        "/expenses",
        json={"employee_id": employee.id, "date": "2025-06-07", "initial_reading": 150, "final_reading": 100, "rate": 3},
        headers=headers(coordinator),
    )
    own = client.get("/expenses", headers=headers(employee))
    store_wide = client.get("/expenses", params={"all": "true"}, headers=headers(coordinator))

    assert created.status_code == 201
    assert created.json()["amount"] == 170
    assert invalid.status_code == 400
    assert [row["id"] for row in own.json()] == [created.json()["id"]]
    assert len(store_wide.json()) == 1


def test_moving_expense_onto_taken_date_conflicts(db, team):
    _, coordinator, employee = team
    first = service.record_expense(
        db, coordinator, employee_id=employee.id, on_date=date(2025, 6, 2),
        reading=OdometerReading(initial_reading=100, final_reading=150, rate=3),
    )
    service.record_expense(
        db, coordinator, employee_id=employee.id, on_date=date(2025, 6, 3),
        reading=OdometerReading(initial_reading=150, final_reading=170, rate=3),
    )

    with pytest.raises(ConflictError):
        service.update_expense(db, coordinator, first.id, on_date=date(2025, 6, 3))

    db.expire_all()
    assert db.get(Expense, first.id).date == date(2025, 6, 2)


def test_update_endpoint_reports_date_conflict(client, team, headers):
    _, coordinator, employee = team
    ids = []
    for day in ("2025-06-02", "2025-06-03"):
        response = client.post(
            "/expenses",
            json={"employee_id": employee.id, "date": day, "initial_reading": 100, "final_reading": 150, "rate": 3},
            headers=headers(coordinator),
        )
        ids.append(response.json()["id"])

    moved = client.put(f"/expenses/{ids[0]}", json={"date": "2025-06-03"}, headers=headers(coordinator))
    same_day = client.put(f"/expenses/{ids[0]}", json={"date": "2025-06-02", "rate": 4}, headers=headers(coordinator))

    assert moved.status_code == 409
    assert moved.json() == {"error": "Expense already recorded for this date"}
    assert same_day.status_code == 200
    assert same_day.json()["fuel_total"] == 200
