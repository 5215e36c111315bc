"""Monthly salary records.

Every write re-derives all output fields from the inputs stored on the row
and the attendance, leave, overtime and expense data of the period.
"""
from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy.orm import Session

from hrms.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from hrms.core.logging import get_logger
from hrms.core.observability import get_tracer
from hrms.core.permissions import Action, check_permission, has_permission, store_scope
from hrms.core.timeutils import hours_between, month_bounds
from hrms.db.session import atomic
from hrms.domains.leaves.span import LeaveSpan
from hrms.domains.salaries.calculator import (
    DEFAULT_DAILY_HOURS,
    AttendanceDay,
    PeriodData,
    SalaryInputs,
    compute_salary,
)
from hrms.models import Attendance, Employee, Expense, Leave, OvertimeRequest, Salary
from hrms.models.enums import LeaveStatus, RequestStatus

logger = get_logger(__name__)
tracer = get_tracer(__name__)

MIN_YEAR = 2000
INPUT_FIELDS = (
    "basic_salary",
    "per_hour_salary",
    "overtime_rate",
    "bonus",
    "deduction_of_hours",
    "deduction_of_days",
    "overtime_hours_override",
)


def validate_period(month: int, year: int) -> None:
    if month < 1 or month > 12:
        raise ValidationError("Month must be between 1 and 12")
    if year < MIN_YEAR or year > date.today().year + 1:
        raise ValidationError("Invalid year")


def validate_inputs(inputs: SalaryInputs) -> None:
    if inputs.basic_salary <= 0 or inputs.per_hour_salary <= 0:
        raise ValidationError("Basic salary and per hour salary must be positive")
    for name in INPUT_FIELDS[2:]:
        if getattr(inputs, name) < 0:
            raise ValidationError(f"{name} must be non-negative")


def expected_daily_hours(employee: Employee) -> float:
    if employee.expected_in_time and employee.expected_out_time:
        return hours_between(employee.expected_in_time, employee.expected_out_time)
    return DEFAULT_DAILY_HOURS


def load_period(db: Session, employee: Employee, month: int, year: int) -> PeriodData:
    start, end = month_bounds(month, year)

    attendance = [
        AttendanceDay(date=row.date, status=row.status, in_time=row.in_time, out_time=row.out_time)
        for row in db.query(Attendance)
        .filter(Attendance.employee_id == employee.id, Attendance.date >= start, Attendance.date <= end)
        .all()
    ]

    leave_dates: set[date] = set()
    approved_leaves = (
        db.query(Leave)
        .filter(
            Leave.employee_id == employee.id,
            Leave.status == LeaveStatus.APPROVED.value,
            Leave.start_date <= end,
            Leave.end_date >= start,
        )
        .all()
    )
    for leave in approved_leaves:
        leave_dates.update(LeaveSpan.from_leave(leave).covered_days())

    overtime = [
        row.approved_hours or 0.0
        for row in db.query(OvertimeRequest.approved_hours)
        .filter(
            OvertimeRequest.employee_id == employee.id,
            OvertimeRequest.status == RequestStatus.APPROVED.value,
            OvertimeRequest.date >= start,
            OvertimeRequest.date <= end,
        )
        .all()
    ]

    expenses = [
        float(row.amount or 0) + float(row.miscellaneous_expense or 0)
        for row in db.query(Expense.amount, Expense.miscellaneous_expense)
        .filter(Expense.employee_id == employee.id, Expense.date >= start, Expense.date <= end)
        .all()
    ]

    return PeriodData(
        days_in_month=end.day,
        expected_daily_hours=expected_daily_hours(employee),
        attendance=attendance,
        leave_dates=frozenset(leave_dates),
        approved_overtime_hours=overtime,
        expense_totals=expenses,
    )


def inputs_from_row(salary: Salary) -> SalaryInputs:
    return SalaryInputs(
        basic_salary=float(salary.basic_salary),
        per_hour_salary=float(salary.per_hour_salary),
        overtime_rate=float(salary.overtime_rate or 0),
        bonus=float(salary.bonus or 0),
        deduction_of_hours=float(salary.deduction_of_hours or 0),
        deduction_of_days=float(salary.deduction_of_days or 0),
        overtime_hours_override=float(salary.overtime_hours_override or 0),
    )


def recompute(db: Session, salary: Salary) -> Salary:
    """Rewrite the derived fields of ``salary`` in the caller's transaction."""
    with tracer.start_as_current_span("salary.compute") as span:
        span.set_attribute("hrms.employee_id", salary.employee_id)
        span.set_attribute("hrms.period", f"{salary.year}-{salary.month:02d}")
        employee = db.get(Employee, salary.employee_id)
        period = load_period(db, employee, salary.month, salary.year)
        result = compute_salary(inputs_from_row(salary), period)

    salary.per_day_salary = result.per_day_salary
    salary.absent_days = result.absent_days
    salary.absent_hours = result.absent_hours
    salary.total_deductions = result.total_deductions
    salary.overtime_hours = result.overtime_hours
    salary.overtime_payable = result.overtime_payable
    salary.expenses = result.expenses
    salary.salary_gt = result.salary_gt
    salary.net_salary = result.net_salary
    return salary


def recompute_for_period(db: Session, employee_id: int, on_date: date) -> Salary | None:
    """Recompute the salary covering ``on_date`` if one exists; caller commits."""
    salary = (
        db.query(Salary)
        .filter(
            Salary.employee_id == employee_id,
            Salary.month == on_date.month,
            Salary.year == on_date.year,
        )
        .one_or_none()
    )
    if salary is None:
        return None
    return recompute(db, salary)


def _authorize(db: Session, identity: Employee, employee_id: int) -> Employee:
    check_permission(db, identity, Action.MANAGE_SALARIES, target_user_id=employee_id, store_bound_check=True)
    employee = db.get(Employee, employee_id)
    if employee is None:
        raise NotFoundError("Employee not found")
    return employee


def _get_salary(db: Session, salary_id: int) -> Salary:
    salary = db.get(Salary, salary_id)
    if salary is None:
        raise NotFoundError("Salary record not found")
    return salary


def create_salary(
    db: Session,
    identity: Employee,
    *,
    employee_id: int,
    month: int,
    year: int,
    inputs: SalaryInputs,
    publish: bool = False,
) -> Salary:
    validate_period(month, year)
    validate_inputs(inputs)
    _authorize(db, identity, employee_id)

    existing = (
        db.query(Salary.id)
        .filter(Salary.employee_id == employee_id, Salary.month == month, Salary.year == year)
        .first()
    )
    if existing is not None:
        raise ConflictError("Salary record already exists for this employee and period")

    salary = Salary(employee_id=employee_id, month=month, year=year, publish=publish)
    for name in INPUT_FIELDS:
        setattr(salary, name, getattr(inputs, name))

    with atomic(db, conflict="Salary record already exists for this employee and period"):
        db.add(salary)
        recompute(db, salary)
    db.refresh(salary)

    logger.info(
        "salary_created",
        salary_id=salary.id,
        employee_id=employee_id,
        month=month,
        year=year,
        net_salary=float(salary.net_salary),
    )
    return salary


def update_salary(db: Session, identity: Employee, salary_id: int, changes: dict[str, Any]) -> Salary:
    salary = _get_salary(db, salary_id)
    _authorize(db, identity, salary.employee_id)

    unknown = set(changes) - set(INPUT_FIELDS) - {"publish"}
    if unknown:
        raise ValidationError(f"Unknown salary fields: {', '.join(sorted(unknown))}")

    inputs = inputs_from_row(salary)
    for name in INPUT_FIELDS:
        if name in changes and changes[name] is not None:
            setattr(inputs, name, float(changes[name]))
    validate_inputs(inputs)

    with atomic(db):
        for name in INPUT_FIELDS:
            setattr(salary, name, getattr(inputs, name))
        if changes.get("publish") is not None:
            salary.publish = bool(changes["publish"])
        recompute(db, salary)
    db.refresh(salary)

    logger.info(
        "salary_updated",
        salary_id=salary.id,
        employee_id=salary.employee_id,
        fields=sorted(changes),
        net_salary=float(salary.net_salary),
    )
    return salary


def recompute_salary(db: Session, identity: Employee, salary_id: int) -> Salary:
    salary = _get_salary(db, salary_id)
    _authorize(db, identity, salary.employee_id)
    with atomic(db):
        recompute(db, salary)
    db.refresh(salary)
    logger.info("salary_recomputed", salary_id=salary.id, net_salary=float(salary.net_salary))
    return salary


def list_salaries(
    db: Session,
    identity: Employee,
    *,
    employee_id: int | None = None,
    month: int | None = None,
    year: int | None = None,
) -> list[Salary]:
    query = db.query(Salary).join(Employee, Salary.employee_id == Employee.id)

    if has_permission(db, identity, Action.MANAGE_SALARIES):
        store = store_scope(db, identity, Action.MANAGE_SALARIES)
        if store is not None:
            query = query.filter(Employee.store_id == store.id)
        if employee_id is not None:
            query = query.filter(Salary.employee_id == employee_id)
    else:
        if employee_id is not None and employee_id != identity.id:
            raise ForbiddenError("Forbidden: Can only view your own salary")
        query = query.filter(Salary.employee_id == identity.id, Salary.publish.is_(True))

    if month is not None:
        query = query.filter(Salary.month == month)
    if year is not None:
        query = query.filter(Salary.year == year)

    return query.order_by(Salary.year.desc(), Salary.month.desc(), Salary.id.desc()).all()
