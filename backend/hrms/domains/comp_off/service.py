from __future__ import annotations

from sqlalchemy.orm import Session

from hrms.core.logging import get_logger
from hrms.core.permissions import Action, check_permission, store_scope
from hrms.core.timeutils import hours_between
from hrms.domains.stores.calendar import calendar_for_employee
from hrms.models import Attendance, CompOffHistory, Employee
from hrms.models.enums import CompOffAction

logger = get_logger(__name__)

DEFAULT_SHIFT_HOURS = 9.0
HALF_DAY_CREDIT = 0.5
FULL_DAY_CREDIT = 1.0


def expected_shift_hours(employee: Employee) -> float:
    if employee.expected_in_time and employee.expected_out_time:
        return hours_between(employee.expected_in_time, employee.expected_out_time)
    return DEFAULT_SHIFT_HOURS


def comp_off_credit(worked_hours: float, shift_hours: float) -> float:
    return HALF_DAY_CREDIT if worked_hours < shift_hours * 0.5 else FULL_DAY_CREDIT


def accrue_comp_off(db: Session, employee: Employee, attendance: Attendance) -> float:
    """Credit comp-off for a completed shift on a holiday or weekly-off day.

    Runs inside the caller's transaction and returns the credit applied (0 when
    the day is a regular working day).
    """
    if attendance.in_time is None or attendance.out_time is None:
        return 0.0

    calendar = calendar_for_employee(db, employee, attendance.date, attendance.date)
    if not calendar.is_non_working_day(attendance.date):
        return 0.0

    worked = hours_between(attendance.in_time, attendance.out_time)
    credit = comp_off_credit(worked, expected_shift_hours(employee))

    db.query(Employee).filter(Employee.id == employee.id).update(
        {Employee.comp_off: Employee.comp_off + credit}, synchronize_session=False
    )
    balance = db.query(Employee.comp_off).filter(Employee.id == employee.id).scalar()
    db.add(
        CompOffHistory(
            employee_id=employee.id,
            attendance_date=attendance.date,
            action=CompOffAction.EARNED.value,
            amount=credit,
            comp_off_days=balance,
        )
    )
    logger.info(
        "comp_off_accrued",
        employee_id=employee.id,
        date=attendance.date.isoformat(),
        worked_hours=round(worked, 2),
        credit=credit,
    )
    return credit


def list_history(
    db: Session,
    identity: Employee,
    *,
    employee_id: int | None = None,
    all_employees: bool = False,
) -> list[CompOffHistory]:
    query = db.query(CompOffHistory).join(Employee, CompOffHistory.employee_id == Employee.id)

    if all_employees:
        check_permission(db, identity, Action.VIEW_COMP_OFF_HISTORY)
        store = store_scope(db, identity, Action.VIEW_COMP_OFF_HISTORY)
        if store is not None:
            query = query.filter(Employee.store_id == store.id)
    else:
        target_id = employee_id or identity.id
        if target_id != identity.id:
            check_permission(
                db,
                identity,
                Action.VIEW_COMP_OFF_HISTORY,
                target_user_id=target_id,
                store_bound_check=True,
            )
        query = query.filter(CompOffHistory.employee_id == target_id)

    return query.order_by(CompOffHistory.created_at.desc(), CompOffHistory.id.desc()).all()
