from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any

from sqlalchemy.orm import Session

from hrms.core.errors import ConflictError, NotFoundError, ValidationError
from hrms.core.logging import get_logger
from hrms.core.notifications import NotificationSink, notify
from hrms.core.permissions import Action, check_permission, store_scope
from hrms.core.timeutils import iter_days, local_wall_clock, to_storage, utcnow
from hrms.db.session import atomic
from hrms.domains.comp_off.service import accrue_comp_off
from hrms.domains.leaves.span import LeaveSpan
from hrms.domains.stores.calendar import calendar_for_employee
from hrms.models import Attendance, Employee, Leave
from hrms.models.enums import AttendanceStatus, LeaveStatus

logger = get_logger(__name__)

MAX_REPORT_DAYS = 366


def is_late_entry(in_time: datetime | None, expected_in: time | None, threshold_minutes: int | None) -> bool:
    if in_time is None or expected_in is None or threshold_minutes is None:
        return False
    cutoff = datetime.combine(in_time.date(), expected_in) + timedelta(minutes=threshold_minutes)
    return in_time > cutoff


def is_early_exit(out_time: datetime | None, expected_out: time | None, threshold_minutes: int | None) -> bool:
    if out_time is None or expected_out is None or threshold_minutes is None:
        return False
    cutoff = datetime.combine(out_time.date(), expected_out) - timedelta(minutes=threshold_minutes)
    return out_time < cutoff


def _attendance_day(employee: Employee, on_date: date | None, now: datetime) -> date:
    today = local_wall_clock(now).date()
    day = on_date or today
    if day > today:
        raise ValidationError("Cannot mark attendance for a future date")
    if employee.store is None or employee.store.calendar is None:
        raise ValidationError("Employee not assigned to a store with a calendar")
    return day


def _find(db: Session, employee_id: int, day: date) -> Attendance | None:
    return (
        db.query(Attendance)
        .filter(Attendance.employee_id == employee_id, Attendance.date == day)
        .one_or_none()
    )


def punch_in(
    db: Session,
    identity: Employee,
    *,
    on_date: date | None = None,
    now: datetime | None = None,
) -> Attendance:
    check_permission(db, identity, Action.MARK_ATTENDANCE, target_user_id=identity.id)
    now = now or utcnow()
    day = _attendance_day(identity, on_date, now)

    record = _find(db, identity.id, day)
    if record is not None and record.in_time is not None:
        raise ConflictError("In-time already marked for this date")

    store = identity.store
    late = is_late_entry(
        local_wall_clock(now),
        identity.expected_in_time or store.expected_in_time,
        store.late_entry_threshold,
    )

    with atomic(db, conflict="In-time already marked for this date"):
        if record is None:
            record = Attendance(employee_id=identity.id, date=day)
            db.add(record)
        record.in_time = now
        record.is_late_entry = late
        record.status = AttendanceStatus.PRESENT.value
    db.refresh(record)

    logger.info("punch_in", employee_id=identity.id, date=day.isoformat(), late=late)
    return record


def punch_out(
    db: Session,
    identity: Employee,
    *,
    on_date: date | None = None,
    now: datetime | None = None,
    sink: NotificationSink | None = None,
) -> Attendance:
    check_permission(db, identity, Action.MARK_ATTENDANCE, target_user_id=identity.id)
    now = now or utcnow()
    day = _attendance_day(identity, on_date, now)

    record = _find(db, identity.id, day)
    if record is None or record.in_time is None:
        raise ConflictError("No in-time recorded for this date")
    if record.out_time is not None:
        raise ConflictError("Out-time already marked for this date")
    if now < record.in_time:
        raise ValidationError("Out-time cannot precede in-time")

    store = identity.store
    early = is_early_exit(
        local_wall_clock(now),
        identity.expected_out_time or store.expected_out_time,
        store.early_exit_threshold,
    )

    with atomic(db):
        record.out_time = now
        record.is_early_exit = early
        db.flush()
        credit = accrue_comp_off(db, identity, record)
    db.refresh(record)

    logger.info("punch_out", employee_id=identity.id, date=day.isoformat(), early=early)
    if credit:
        notify(sink, "comp_off_earned", [identity.id], date=day.isoformat(), amount=credit)
    return record


@dataclass
class AttendanceEntry:
    """One employee-day; ``id`` is None for synthesized absences."""

    employee_id: int
    date: date
    status: str
    id: int | None = None
    in_time: datetime | None = None
    out_time: datetime | None = None
    is_late_entry: bool = False
    is_early_exit: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_record(cls, record: Attendance) -> "AttendanceEntry":
        return cls(
            id=record.id,
            employee_id=record.employee_id,
            date=record.date,
            status=record.status,
            in_time=record.in_time,
            out_time=record.out_time,
            is_late_entry=bool(record.is_late_entry),
            is_early_exit=bool(record.is_early_exit),
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


def attendance_report(db: Session, employee_ids: list[int], start: date, end: date) -> list[AttendanceEntry]:
    """Every day in [start, end] for every employee, absent when nothing was recorded."""
    if start > end:
        raise ValidationError("start_date must be on or before end_date")
    if (end - start).days >= MAX_REPORT_DAYS:
        raise ValidationError(f"Date range cannot exceed {MAX_REPORT_DAYS} days")
    if not employee_ids:
        return []

    rows = (
        db.query(Attendance)
        .filter(
            Attendance.employee_id.in_(employee_ids),
            Attendance.date >= start,
            Attendance.date <= end,
        )
        .all()
    )
    recorded = {(row.employee_id, row.date): row for row in rows}

    entries: list[AttendanceEntry] = []
    for employee_id in employee_ids:
        for day in iter_days(start, end):
            row = recorded.get((employee_id, day))
            if row is not None:
                entries.append(AttendanceEntry.from_record(row))
            else:
                entries.append(
                    AttendanceEntry(employee_id=employee_id, date=day, status=AttendanceStatus.ABSENT.value)
                )
    return entries


def get_attendance(
    db: Session,
    identity: Employee,
    start: date,
    end: date,
    *,
    employee_id: int | None = None,
    all_employees: bool = False,
    store_id: int | None = None,
) -> list[AttendanceEntry]:
    if all_employees:
        check_permission(db, identity, Action.VIEW_ATTENDANCE)
        query = db.query(Employee.id)
        store = store_scope(db, identity, Action.VIEW_ATTENDANCE)
        if store is not None:
            query = query.filter(Employee.store_id == store.id)
        elif store_id is not None:
            query = query.filter(Employee.store_id == store_id)
        employee_ids = [row.id for row in query.order_by(Employee.id.asc()).all()]
    else:
        target_id = employee_id or identity.id
        if target_id != identity.id:
            check_permission(
                db,
                identity,
                Action.VIEW_ATTENDANCE,
                target_user_id=target_id,
                store_bound_check=True,
            )
            if db.get(Employee, target_id) is None:
                raise NotFoundError("Employee not found")
        employee_ids = [target_id]

    return attendance_report(db, employee_ids, start, end)


CORRECTABLE_FIELDS = ("status", "in_time", "out_time", "is_late_entry", "is_early_exit")
CORRECTABLE_STATUSES = (AttendanceStatus.PRESENT.value, AttendanceStatus.ABSENT.value)


def correct_attendance(db: Session, identity: Employee, attendance_id: int, changes: dict[str, Any]) -> Attendance:
    """HR correction of a recorded day.

    ``in_time``/``out_time`` given as None clear the punch; the other fields
    are left alone when None.
    """
    record = db.get(Attendance, attendance_id)
    if record is None:
        raise NotFoundError("Attendance record not found")
    check_permission(
        db,
        identity,
        Action.VIEW_ATTENDANCE,
        target_user_id=record.employee_id,
        store_bound_check=True,
    )

    unknown = set(changes) - set(CORRECTABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown attendance fields: {', '.join(sorted(unknown))}")
    status = changes.get("status")
    if status is not None and status not in CORRECTABLE_STATUSES:
        raise ValidationError("Status must be present or absent")

    in_time = to_storage(changes["in_time"]) if "in_time" in changes else record.in_time
    out_time = to_storage(changes["out_time"]) if "out_time" in changes else record.out_time
    if in_time is not None and out_time is not None and out_time < in_time:
        raise ValidationError("Out-time cannot precede in-time")

    with atomic(db):
        record.in_time = in_time
        record.out_time = out_time
        if status is not None:
            record.status = status
        for flag in ("is_late_entry", "is_early_exit"):
            if changes.get(flag) is not None:
                setattr(record, flag, bool(changes[flag]))
    db.refresh(record)

    logger.info(
        "attendance_corrected",
        attendance_id=record.id,
        employee_id=record.employee_id,
        corrected_by=identity.id,
        fields=sorted(changes),
    )
    return record


@dataclass
class AttendanceSummary:
    employee_id: int
    from_date: date
    to_date: date
    total_working_days: int
    days_present: int
    attendance_percentage: int


def attendance_summary(
    db: Session,
    identity: Employee,
    employee_id: int,
    *,
    start: date | None = None,
    end: date | None = None,
    today: date | None = None,
) -> AttendanceSummary:
    """Days present against working days, year to date unless a range is given.

    Weekly-offs, holidays and days covered by approved leave are not working days.
    """
    if employee_id != identity.id:
        check_permission(
            db,
            identity,
            Action.VIEW_ATTENDANCE,
            target_user_id=employee_id,
            store_bound_check=True,
        )
    employee = db.get(Employee, employee_id)
    if employee is None:
        raise NotFoundError("Employee not found")
    if employee.store is None:
        raise ValidationError("Employee not assigned to a store")

    today = today or local_wall_clock(utcnow()).date()
    end = end or today
    start = start or date(end.year, 1, 1)
    if start > end:
        raise ValidationError("start_date must be on or before end_date")
    if (end - start).days >= MAX_REPORT_DAYS:
        raise ValidationError(f"Date range cannot exceed {MAX_REPORT_DAYS} days")

    calendar = calendar_for_employee(db, employee, start, end)
    leave_days: set[date] = set()
    approved_leaves = (
        db.query(Leave)
        .filter(
            Leave.employee_id == employee_id,
            Leave.status == LeaveStatus.APPROVED.value,
            Leave.start_date <= end,
            Leave.end_date >= start,
        )
        .all()
    )
    for leave in approved_leaves:
        leave_days.update(LeaveSpan.from_leave(leave).covered_days())
    present_days = {
        row.date
        for row in db.query(Attendance.date).filter(
            Attendance.employee_id == employee_id,
            Attendance.date >= start,
            Attendance.date <= end,
            Attendance.status == AttendanceStatus.PRESENT.value,
        )
    }

    working = [
        day for day in iter_days(start, end) if not calendar.is_non_working_day(day) and day not in leave_days
    ]
    present = sum(1 for day in working if day in present_days)
    percentage = math.floor(present * 100 / len(working) + 0.5) if working else 0
    return AttendanceSummary(
        employee_id=employee_id,
        from_date=start,
        to_date=end,
        total_working_days=len(working),
        days_present=present,
        attendance_percentage=percentage,
    )
