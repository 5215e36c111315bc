from datetime import date, datetime, time

import pytest

from hrms.domains.attendance import service as attendance
from hrms.domains.comp_off.service import comp_off_credit, expected_shift_hours
from hrms.models import CompOffHistory, Employee
from hrms.models.enums import Profile

SUNDAY = date(2025, 6, 1)


def _work(db, employee, day, start_utc, end_utc, notifications=None):
    attendance.punch_in(db, employee, now=datetime.combine(day, start_utc))
    return attendance.punch_out(db, employee, now=datetime.combine(day, end_utc), sink=notifications)


@pytest.mark.parametrize(
    ("worked", "shift", "expected"),
    [(4.4, 9.0, 0.5), (4.5, 9.0, 1.0), (9.0, 9.0, 1.0), (0.0, 8.0, 0.5)],
)
def test_comp_off_credit(worked, shift, expected):
    assert comp_off_credit(worked, shift) == expected


def test_expected_shift_defaults_to_nine_hours():
    assert expected_shift_hours(Employee(expected_in_time=None, expected_out_time=None)) == 9.0


def test_full_shift_on_weekly_off_earns_full_day(db, make_store, make_employee, notifications):
    employee = make_employee(store=make_store(weekday_off="Sunday"))

    _work(db, employee, SUNDAY, time(4, 30), time(13, 30), notifications)

    db.expire_all()
    assert db.get(Employee, employee.id).comp_off == 1.0
    history = db.query(CompOffHistory).filter(CompOffHistory.employee_id == employee.id).one()
    assert history.action == "earned"
    assert history.amount == 1.0
    assert history.comp_off_days == 1.0
    assert history.attendance_date == SUNDAY
    assert notifications.events[-1][0] == "comp_off_earned"
    assert notifications.events[-1][1] == [employee.id]


def test_short_shift_on_holiday_earns_half_day(db, make_store, make_employee):
    holiday = date(2025, 6, 4)
    employee = make_employee(store=make_store(holidays=(holiday,)))

    # 10:00 to 13:00 local
    _work(db, employee, holiday, time(4, 30), time(7, 30))

    db.expire_all()
    assert db.get(Employee, employee.id).comp_off == 0.5


def test_balance_accumulates_across_days(db, make_store, make_employee):
    employee = make_employee(store=make_store(holidays=(date(2025, 6, 4),)))
    start = time(4, 30)
    end = time(13, 30)

    _work(db, employee, SUNDAY, start, end)
    _work(db, employee, date(2025, 6, 4), start, end)

    db.expire_all()
    rows = (
        db.query(CompOffHistory)
        .filter(CompOffHistory.employee_id == employee.id)
        .order_by(CompOffHistory.id.asc())
        .all()
    )
    assert [row.comp_off_days for row in rows] == [1.0, 2.0]
    assert db.get(Employee, employee.id).comp_off == 2.0


def test_regular_working_day_earns_nothing(db, make_store, make_employee, notifications):
    employee = make_employee(store=make_store())

    _work(db, employee, date(2025, 6, 2), time(4, 30), time(13, 30), notifications)

    db.expire_all()
    assert db.get(Employee, employee.id).comp_off == 0
    assert db.query(CompOffHistory).count() == 0
    assert notifications.events == []


def test_history_visible_to_owner(client, db, make_store, make_employee, headers):
    employee = make_employee(store=make_store())
    _work(db, employee, SUNDAY, time(4, 30), time(13, 30))

    response = client.get("/comp-off-history", headers=headers(employee))

    assert response.status_code == 200
    body = response.json()
    assert len(body) == 1
    assert body[0]["amount"] == 1.0


def test_history_of_other_store_forbidden(client, make_store, make_employee, headers):
    home = make_store()
    other = make_store(name="Whitefield")
    coordinator = make_employee(store=home, profile=Profile.HR_COORDINATOR, hr_of=home)
    remote = make_employee(store=other)

    response = client.get(
        "/comp-off-history", params={"employee_id": remote.id}, headers=headers(coordinator)
    )

    assert response.status_code == 403
