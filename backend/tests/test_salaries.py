from datetime import date, datetime, time

import pytest

from hrms.core.errors import ConflictError, ValidationError
from hrms.domains.salaries import service
from hrms.domains.salaries.calculator import (
    AttendanceDay,
    PeriodData,
    SalaryInputs,
    compute_salary,
    count_absences,
)
from hrms.models import Attendance, Expense, Leave, OvertimeRequest
from hrms.models.enums import ApprovalStage, AttendanceStatus, LeaveStatus, Profile

JUNE_DAYS = 30


def _absent(day):
    return AttendanceDay(date=date(2025, 6, day), status="absent")


def test_manual_day_deduction_scenario():
    inputs = SalaryInputs(basic_salary=30000, per_hour_salary=150, deduction_of_days=2)

    result = compute_salary(inputs, PeriodData(days_in_month=JUNE_DAYS))

    assert result.per_day_salary == 1000
    assert result.total_deductions == 2000
    assert result.salary_gt == 30000
    assert result.net_salary == 28000


def test_absent_days_deduct_day_and_hours():
    inputs = SalaryInputs(basic_salary=30000, per_hour_salary=150)
    period = PeriodData(days_in_month=JUNE_DAYS, expected_daily_hours=8, attendance=[_absent(2), _absent(3)])

    result = compute_salary(inputs, period)

    assert result.absent_days == 2
    assert result.absent_hours == 16
    assert result.total_deductions == 2000 + 16 * 150
    assert result.net_salary == 30000 - 4400


def test_short_shift_adds_hours_only():
    day = AttendanceDay(
        date=date(2025, 6, 2),
        status="present",
        in_time=datetime(2025, 6, 2, 4, 30),
        out_time=datetime(2025, 6, 2, 10, 30),
    )

    assert count_absences([day], frozenset(), 8) == (0, 2)


def test_leave_days_are_not_absences():
    attendance = [_absent(2), _absent(3)]

    assert count_absences(attendance, frozenset({date(2025, 6, 2)}), 8) == (1, 8)


def test_overtime_override_and_default_rate():
    inputs = SalaryInputs(basic_salary=30000, per_hour_salary=100, overtime_hours_override=5)
    period = PeriodData(days_in_month=JUNE_DAYS, approved_overtime_hours=[2, 3, 4])

    result = compute_salary(inputs, period)

    assert result.overtime_hours == 5
    assert result.overtime_payable == 750
    assert result.salary_gt == 30750


def test_approved_overtime_summed_without_override():
    inputs = SalaryInputs(basic_salary=30000, per_hour_salary=100, overtime_rate=200)
    period = PeriodData(days_in_month=JUNE_DAYS, approved_overtime_hours=[2, 3])

    result = compute_salary(inputs, period)

    assert result.overtime_hours == 5
    assert result.overtime_payable == 1000


def test_net_salary_never_negative():
    inputs = SalaryInputs(basic_salary=3000, per_hour_salary=500, deduction_of_days=45)

    assert compute_salary(inputs, PeriodData(days_in_month=JUNE_DAYS)).net_salary == 0


def test_expenses_reported_separately():
    inputs = SalaryInputs(basic_salary=30000, per_hour_salary=150, bonus=500)
    period = PeriodData(days_in_month=JUNE_DAYS, expense_totals=[120.5, 79.5])

    result = compute_salary(inputs, period)

    assert result.expenses == 200
    assert result.net_salary == 30500


@pytest.mark.parametrize(("month", "year"), [(0, 2025), (13, 2025), (6, 1999), (6, date.today().year + 2)])
def test_period_validation(month, year):
    with pytest.raises(ValidationError):
        service.validate_period(month, year)


@pytest.fixture
def payroll(make_store, make_employee):
    store = make_store()
    coordinator = make_employee(store=store, profile=Profile.HR_COORDINATOR, hr_of=store)
    # 8 hour day
    employee = make_employee(store=store, expected_in=time(10, 0), expected_out=time(18, 0))
    return store, coordinator, employee


def _create(db, coordinator, employee, **overrides):
    values = {"basic_salary": 30000, "per_hour_salary": 150}
    values.update(overrides)
    return service.create_salary(
        db, coordinator, employee_id=employee.id, month=6, year=2025, inputs=SalaryInputs(**values)
    )


def test_create_reads_period_data(db, payroll):
    _, coordinator, employee = payroll
    db.add_all(
        [
            Attendance(employee_id=employee.id, date=date(2025, 6, 2), status=AttendanceStatus.ABSENT.value),
            Attendance(employee_id=employee.id, date=date(2025, 6, 3), status=AttendanceStatus.LEAVE.value),
            Attendance(employee_id=employee.id, date=date(2025, 7, 1), status=AttendanceStatus.ABSENT.value),
            OvertimeRequest(
                employee_id=employee.id, date=date(2025, 6, 5), hours=3, remarks="Stock count",
                status="approved", approved_hours=2,
            ),
            Expense(
                employee_id=employee.id, date=date(2025, 6, 6), initial_reading=100, final_reading=150,
                total_distance=50, rate=3, fuel_total=150, miscellaneous_expense=20, amount=170,
            ),
        ]
    )
    db.commit()

    salary = _create(db, coordinator, employee)

    assert float(salary.per_day_salary) == 1000
    assert salary.absent_days == 1
    assert salary.absent_hours == 8
    assert float(salary.total_deductions) == 1000 + 8 * 150
    assert salary.overtime_hours == 2
    assert float(salary.overtime_payable) == 2 * 225
    # amount already includes the miscellaneous part
    assert float(salary.expenses) == 190
    assert float(salary.net_salary) == 30000 + 450 - 2200


def test_absence_under_approved_leave_is_ignored(db, payroll):
    _, coordinator, employee = payroll
    db.add_all(
        [
            Attendance(employee_id=employee.id, date=date(2025, 6, 2), status=AttendanceStatus.ABSENT.value),
            Leave(
                employee_id=employee.id, start_date=date(2025, 6, 2), end_date=date(2025, 6, 2),
                reason="Medical", effective_days=1, status=LeaveStatus.APPROVED.value,
                approval_stage=ApprovalStage.APPROVED.value,
            ),
        ]
    )
    db.commit()

    salary = _create(db, coordinator, employee)

    assert salary.absent_days == 0
    assert float(salary.net_salary) == 30000


def test_duplicate_period_conflicts(db, payroll):
    _, coordinator, employee = payroll
    _create(db, coordinator, employee)

    with pytest.raises(ConflictError, match="already exists"):
        _create(db, coordinator, employee)


def test_update_recomputes_every_field(db, payroll):
    _, coordinator, employee = payroll
    salary = _create(db, coordinator, employee)
    db.add(Attendance(employee_id=employee.id, date=date(2025, 6, 9), status=AttendanceStatus.ABSENT.value))
    db.commit()

    updated = service.update_salary(db, coordinator, salary.id, {"bonus": 1000})

    assert float(updated.bonus) == 1000
    assert updated.absent_days == 1
    assert float(updated.net_salary) == 31000 - 1000 - 8 * 150


def test_update_rejects_invalid_inputs(db, payroll):
    _, coordinator, employee = payroll
    salary = _create(db, coordinator, employee)

    with pytest.raises(ValidationError):
        service.update_salary(db, coordinator, salary.id, {"per_hour_salary": 0})


def test_salary_api_flow(client, payroll, make_store, make_employee, headers):
    _, coordinator, employee = payroll
    payload = {
        "employee_id": employee.id,
        "month": 6,
        "year": 2025,
        "basic_salary": 30000,
        "per_hour_salary": 150,
        "deduction_of_days": 2,
    }

    created = client.post("/salaries", json=payload, headers=headers(coordinator))
    duplicate = client.post("/salaries", json=payload, headers=headers(coordinator))
    hidden = client.get("/salaries", headers=headers(employee))
    published = client.put(
        f"/salaries/{created.json()['id']}", json={"publish": True}, headers=headers(coordinator)
    )
    visible = client.get("/salaries", headers=headers(employee))

    assert created.status_code == 201
    assert created.json()["net_salary"] == 28000
    assert duplicate.status_code == 409
    assert duplicate.json() == {"error": "Salary record already exists for this employee and period"}
    assert hidden.json() == []
    assert published.json()["publish"] is True
    assert [row["id"] for row in visible.json()] == [created.json()["id"]]

    outsider = make_employee(store=make_store(name="Whitefield"), profile=Profile.HR_COORDINATOR)
    denied = client.post("/salaries", json={**payload, "month": 7}, headers=headers(outsider))
    assert denied.status_code == 403


def test_employee_cannot_create_salary(client, payroll, headers):
    *_, employee = payroll

    response = client.post(
        "/salaries",
        json={"employee_id": employee.id, "month": 6, "year": 2025, "basic_salary": 1, "per_hour_salary": 1},
        headers=headers(employee),
    )

    assert response.status_code == 403


def test_salary_api_validates_month(client, payroll, headers):
    _, coordinator, employee = payroll

    response = client.post(
        "/salaries",
        json={"employee_id": employee.id, "month": 13, "year": 2025, "basic_salary": 1, "per_hour_salary": 1},
        headers=headers(coordinator),
    )

    assert response.status_code == 400
