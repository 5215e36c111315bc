"""Leave requests and their two-stage approval.

A leave starts at the coordinator stage (or at the manager stage when the
requester is an HR coordinator), moves to the reporting manager, and ends
approved or rejected.  Final approval debits the leave balance and writes
``leave`` attendance rows in the same transaction.
"""
from __future__ import annotations

from datetime import date
from typing import Literal

from sqlalchemy.orm import Session

from hrms.core.errors import ConflictError, NotFoundError, ValidationError
from hrms.core.logging import get_logger
from hrms.core.notifications import NotificationSink, notify
from hrms.core.permissions import Action, check_permission, store_scope
from hrms.core.timeutils import utcnow
from hrms.db.session import atomic
from hrms.domains.leaves.span import LeaveSpan
from hrms.domains.stores.calendar import calendar_for_employee
from hrms.models import Attendance, Employee, Leave, LeaveHistory
from hrms.models.enums import ApprovalStage, AttendanceStatus, HalfPeriod, LeaveStatus, Profile

logger = get_logger(__name__)

DEFAULT_LIST_LIMIT = 100
LeaveScope = Literal["own", "reports", "all"]


def _store_coordinator_ids(db: Session, employee: Employee) -> list[int]:
    if employee.store_id is None:
        return []
    rows = (
        db.query(Employee.id)
        .filter(
            Employee.store_id == employee.store_id,
            Employee.profile == Profile.HR_COORDINATOR.value,
            Employee.id != employee.id,
        )
        .all()
    )
    return [row.id for row in rows]


def _get_leave(db: Session, leave_id: int) -> Leave:
    leave = db.get(Leave, leave_id)
    if leave is None:
        raise NotFoundError("Leave not found")
    return leave


def submit_leave(
    db: Session,
    identity: Employee,
    *,
    start_date: date,
    end_date: date,
    reason: str,
    is_half_day_start: bool = False,
    start_half_period: HalfPeriod | None = None,
    is_half_day_end: bool = False,
    end_half_period: HalfPeriod | None = None,
    sink: NotificationSink | None = None,
) -> Leave:
    check_permission(db, identity, Action.CREATE_LEAVE, target_user_id=identity.id)

    if start_date > end_date:
        raise ValidationError("Start date must be before or equal to end date")
    if (is_half_day_start and start_half_period is None) or (is_half_day_end and end_half_period is None):
        raise ValidationError("Half-day period is required for half-day leaves")
    if not reason or not reason.strip():
        raise ValidationError("Reason is required")

    span = LeaveSpan(
        start=start_date,
        end=end_date,
        is_half_day_start=is_half_day_start,
        start_half_period=start_half_period if is_half_day_start else None,
        is_half_day_end=is_half_day_end,
        end_half_period=end_half_period if is_half_day_end else None,
    )

    overlapping = (
        db.query(Leave.id)
        .filter(
            Leave.employee_id == identity.id,
            Leave.start_date <= end_date,
            Leave.end_date >= start_date,
            Leave.status != LeaveStatus.REJECTED.value,
        )
        .first()
    )
    if overlapping is not None:
        raise ConflictError("You already have a leave request for this period")

    calendar = calendar_for_employee(db, identity, start_date, end_date)
    effective_days = span.effective_days(calendar)
    if effective_days > (identity.leave_days or 0):
        raise ValidationError("Insufficient leave days")

    is_coordinator = identity.profile_enum is Profile.HR_COORDINATOR
    now = utcnow()
    leave = Leave(
        employee_id=identity.id,
        start_date=start_date,
        end_date=end_date,
        is_half_day_start=is_half_day_start,
        start_half_period=span.start_half_period.value if span.start_half_period else None,
        is_half_day_end=is_half_day_end,
        end_half_period=span.end_half_period.value if span.end_half_period else None,
        reason=reason.strip(),
        status=LeaveStatus.PENDING.value,
        approval_stage=(ApprovalStage.MANAGER if is_coordinator else ApprovalStage.COORDINATOR).value,
        effective_days=effective_days,
        manager_id=identity.reporting_manager_id,
    )
    if is_coordinator:
        # the coordinator's own sign-off is implied by submitting
        leave.approved_by_id = identity.id
        leave.approved_at = now
        leave.manager_approval_status = LeaveStatus.PENDING.value
    leave.history.append(
        LeaveHistory(
            employee_id=identity.id,
            status=LeaveStatus.PENDING.value,
            remark="Submitted for manager approval" if is_coordinator else "Submitted for HR coordinator approval",
        )
    )

    with atomic(db):
        db.add(leave)
    db.refresh(leave)

    logger.info(
        "leave_submitted",
        leave_id=leave.id,
        employee_id=identity.id,
        approval_stage=leave.approval_stage,
        effective_days=effective_days,
    )
    recipients = [leave.manager_id] if is_coordinator else _store_coordinator_ids(db, identity)
    notify(
        sink,
        "leave_submitted",
        recipients,
        leave_id=leave.id,
        employee_id=identity.id,
        effective_days=effective_days,
    )
    return leave


def _authorize_decision(db: Session, identity: Employee, leave: Leave) -> None:
    if leave.approval_stage == ApprovalStage.MANAGER.value and leave.manager_id == identity.id:
        return
    check_permission(
        db,
        identity,
        Action.MANAGE_LEAVE_REQUESTS,
        target_user_id=leave.employee_id,
        store_bound_check=True,
    )


def apply_final_approval(db: Session, leave: Leave) -> list[date]:
    """Debit the balance and write ``leave`` attendance rows; caller commits."""
    employee = leave.employee
    db.query(Employee).filter(Employee.id == leave.employee_id).update(
        {Employee.leave_days: Employee.leave_days - leave.effective_days},
        synchronize_session=False,
    )

    calendar = calendar_for_employee(db, employee, leave.start_date, leave.end_date)
    days = LeaveSpan.from_leave(leave).full_days(calendar)
    existing = {
        row.date: row
        for row in db.query(Attendance)
        .filter(
            Attendance.employee_id == leave.employee_id,
            Attendance.date >= leave.start_date,
            Attendance.date <= leave.end_date,
        )
        .all()
    }
    for day in days:
        record = existing.get(day)
        if record is None:
            db.add(Attendance(employee_id=leave.employee_id, date=day, status=AttendanceStatus.LEAVE.value))
        else:
            record.status = AttendanceStatus.LEAVE.value
    return days


def decide_leave(
    db: Session,
    identity: Employee,
    leave_id: int,
    decision: LeaveStatus,
    *,
    remark: str | None = None,
    sink: NotificationSink | None = None,
) -> Leave:
    if decision not in (LeaveStatus.APPROVED, LeaveStatus.REJECTED):
        raise ValidationError("Decision must be approved or rejected")

    leave = _get_leave(db, leave_id)
    if leave.status != LeaveStatus.PENDING.value:
        raise ConflictError("Leave not pending")
    if leave.approval_stage not in (ApprovalStage.COORDINATOR.value, ApprovalStage.MANAGER.value):
        raise ConflictError("Invalid approval stage")
    _authorize_decision(db, identity, leave)

    now = utcnow()
    employee_is_coordinator = leave.employee.profile_enum is Profile.HR_COORDINATOR
    backfilled: list[date] = []

    with atomic(db):
        if leave.approval_stage == ApprovalStage.COORDINATOR.value:
            leave.approved_by_id = identity.id
            leave.approved_at = now
            if decision is LeaveStatus.REJECTED:
                leave.status = LeaveStatus.REJECTED.value
                leave.approval_stage = ApprovalStage.REJECTED.value
            elif employee_is_coordinator:
                leave.status = LeaveStatus.APPROVED.value
                leave.approval_stage = ApprovalStage.APPROVED.value
                leave.manager_approval_status = LeaveStatus.APPROVED.value
                leave.manager_approved_by_id = identity.id
                leave.manager_approved_at = now
            else:
                leave.approval_stage = ApprovalStage.MANAGER.value
                leave.manager_approval_status = LeaveStatus.PENDING.value
        else:
            leave.manager_approval_status = decision.value
            leave.manager_approved_by_id = identity.id
            leave.manager_approved_at = now
            leave.status = decision.value
            leave.approval_stage = decision.value
            if decision is LeaveStatus.APPROVED:
                leave.approved_by_id = identity.id
                leave.approved_at = now

        leave.history.append(
            LeaveHistory(
                employee_id=leave.employee_id,
                status=decision.value,
                remark=remark or f"Leave {decision.value} by {identity.profile or 'user'}",
            )
        )
        db.flush()
        if leave.status == LeaveStatus.APPROVED.value:
            backfilled = apply_final_approval(db, leave)
    db.refresh(leave)

    logger.info(
        "leave_decided",
        leave_id=leave.id,
        decided_by=identity.id,
        decision=decision.value,
        status=leave.status,
        approval_stage=leave.approval_stage,
        backfilled_days=len(backfilled),
    )
    recipients = [leave.employee_id]
    if leave.approval_stage == ApprovalStage.MANAGER.value:
        recipients.append(leave.manager_id)
    notify(
        sink,
        "leave_decided",
        recipients,
        leave_id=leave.id,
        status=leave.status,
        approval_stage=leave.approval_stage,
    )
    return leave


def withdraw_leave(
    db: Session,
    identity: Employee,
    leave_id: int,
    *,
    sink: NotificationSink | None = None,
) -> None:
    leave = _get_leave(db, leave_id)
    check_permission(db, identity, Action.WITHDRAW_LEAVE, target_user_id=leave.employee_id)
    if leave.status != LeaveStatus.PENDING.value:
        raise ConflictError("Only pending leaves can be withdrawn")

    manager_id = leave.manager_id
    with atomic(db):
        reverted = (
            db.query(Attendance)
            .filter(
                Attendance.employee_id == leave.employee_id,
                Attendance.date >= leave.start_date,
                Attendance.date <= leave.end_date,
                Attendance.status == AttendanceStatus.LEAVE.value,
            )
            .update({Attendance.status: AttendanceStatus.ABSENT.value}, synchronize_session=False)
        )
        db.delete(leave)

    logger.info("leave_withdrawn", leave_id=leave_id, employee_id=identity.id, reverted_days=reverted)
    notify(sink, "leave_withdrawn", [manager_id], leave_id=leave_id, employee_id=identity.id)


def list_leaves(
    db: Session,
    identity: Employee,
    *,
    scope: LeaveScope = "own",
    approval_stage: ApprovalStage | None = None,
    status: LeaveStatus | None = None,
    employee_id: int | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    limit: int = DEFAULT_LIST_LIMIT,
    offset: int = 0,
) -> list[Leave]:
    if start_date and end_date and start_date > end_date:
        raise ValidationError("startDate must be before endDate")

    query = db.query(Leave).join(Employee, Leave.employee_id == Employee.id)

    if scope == "own":
        check_permission(db, identity, Action.VIEW_OWN_LEAVES, target_user_id=identity.id)
        query = query.filter(Leave.employee_id == identity.id)
    elif scope == "reports":
        check_permission(db, identity, Action.VIEW_REPORTS_LEAVES, target_user_id=employee_id)
        if employee_id is None:
            query = query.filter(Employee.reporting_manager_id == identity.id)
    else:
        check_permission(db, identity, Action.MANAGE_LEAVE_REQUESTS)
        store = store_scope(db, identity, Action.MANAGE_LEAVE_REQUESTS)
        if store is not None:
            query = query.filter(Employee.store_id == store.id)

    if employee_id is not None and scope != "own":
        query = query.filter(Leave.employee_id == employee_id)
    if approval_stage is not None:
        query = query.filter(Leave.approval_stage == approval_stage.value)
    if status is not None:
        query = query.filter(Leave.status == status.value)
    if start_date is not None:
        query = query.filter(Leave.start_date >= start_date)
    if end_date is not None:
        query = query.filter(Leave.end_date <= end_date)

    return (
        query.order_by(Leave.created_at.desc(), Leave.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def leave_history(db: Session, identity: Employee, leave_id: int) -> list[LeaveHistory]:
    leave = _get_leave(db, leave_id)
    if leave.employee_id == identity.id:
        check_permission(db, identity, Action.VIEW_OWN_LEAVES, target_user_id=identity.id)
    elif leave.manager_id != identity.id:
        check_permission(
            db,
            identity,
            Action.MANAGE_LEAVE_REQUESTS,
            target_user_id=leave.employee_id,
            store_bound_check=True,
        )
    return list(leave.history)
