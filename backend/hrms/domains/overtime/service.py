from __future__ import annotations

from datetime import date

from sqlalchemy import or_
from sqlalchemy.orm import Session

from hrms.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from hrms.core.logging import get_logger
from hrms.core.notifications import NotificationSink, notify
from hrms.core.permissions import HR_PROFILES, Action, check_permission, has_permission, store_scope
from hrms.core.timeutils import utcnow
from hrms.db.session import atomic
from hrms.domains.salaries.service import recompute_for_period
from hrms.models import Employee, OvertimeRequest
from hrms.models.enums import RequestStatus

logger = get_logger(__name__)

DEFAULT_LIST_LIMIT = 100


def _get_request(db: Session, request_id: int) -> OvertimeRequest:
    request = db.get(OvertimeRequest, request_id)
    if request is None:
        raise NotFoundError("Overtime request not found")
    return request


def create_request(
    db: Session,
    identity: Employee,
    *,
    on_date: date,
    hours: float,
    remarks: str,
    sink: NotificationSink | None = None,
) -> OvertimeRequest:
    check_permission(db, identity, Action.CREATE_OVERTIME_REQUEST)
    if hours <= 0:
        raise ValidationError("Hours must be positive")
    if not remarks or not remarks.strip():
        raise ValidationError("Remarks are required")

    request = OvertimeRequest(
        employee_id=identity.id,
        date=on_date,
        hours=hours,
        remarks=remarks.strip(),
        manager_id=identity.reporting_manager_id,
        status=RequestStatus.PENDING.value,
    )
    with atomic(db):
        db.add(request)
    db.refresh(request)

    logger.info("overtime_submitted", request_id=request.id, employee_id=identity.id, hours=hours)
    notify(sink, "overtime_submitted", [request.manager_id], request_id=request.id, employee_id=identity.id)
    return request


def _authorize_decision(db: Session, identity: Employee, request: OvertimeRequest) -> None:
    if identity.profile_enum in HR_PROFILES:
        check_permission(
            db,
            identity,
            Action.MANAGE_OVERTIME_REQUESTS,
            target_user_id=request.employee_id,
            store_bound_check=True,
        )
        return
    if request.employee.reporting_manager_id != identity.id:
        raise ForbiddenError("Forbidden: Not the employee's reporting manager")


def decide_request(
    db: Session,
    identity: Employee,
    request_id: int,
    decision: RequestStatus,
    *,
    approved_hours: float | None = None,
    sink: NotificationSink | None = None,
) -> OvertimeRequest:
    """Approve or reject a pending request.

    Approval recomputes the employee's salary for that month, when one
    exists, in the same transaction.
    """
    if decision not in (RequestStatus.APPROVED, RequestStatus.REJECTED):
        raise ValidationError("Decision must be approved or rejected")
    if decision is RequestStatus.APPROVED:
        if approved_hours is None:
            raise ValidationError("Approved hours are required for approval")
        if approved_hours < 0:
            raise ValidationError("Approved hours must be non-negative")

    request = _get_request(db, request_id)
    if request.status != RequestStatus.PENDING.value:
        raise ConflictError("Request already approved or rejected")
    _authorize_decision(db, identity, request)

    salary = None
    with atomic(db):
        request.status = decision.value
        request.approved_hours = approved_hours if decision is RequestStatus.APPROVED else None
        request.approver_id = identity.id
        request.approved_at = utcnow()
        db.flush()
        if decision is RequestStatus.APPROVED:
            salary = recompute_for_period(db, request.employee_id, request.date)
    db.refresh(request)

    logger.info(
        "overtime_decided",
        request_id=request.id,
        decided_by=identity.id,
        status=request.status,
        approved_hours=request.approved_hours,
        salary_recomputed=salary is not None,
    )
    notify(
        sink,
        "overtime_decided",
        [request.employee_id],
        request_id=request.id,
        status=request.status,
        approved_hours=request.approved_hours,
    )
    return request


def list_requests(
    db: Session,
    identity: Employee,
    *,
    employee_id: int | None = None,
    status: RequestStatus | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    limit: int = DEFAULT_LIST_LIMIT,
    offset: int = 0,
) -> list[OvertimeRequest]:
    if start_date and end_date and start_date > end_date:
        raise ValidationError("startDate must be before endDate")

    query = db.query(OvertimeRequest).join(Employee, OvertimeRequest.employee_id == Employee.id)

    if has_permission(db, identity, Action.MANAGE_OVERTIME_REQUESTS):
        store = store_scope(db, identity, Action.MANAGE_OVERTIME_REQUESTS)
        if store is not None:
            query = query.filter(Employee.store_id == store.id)
    else:
        # own requests plus those of direct reports
        if employee_id is not None and employee_id != identity.id:
            target = db.get(Employee, employee_id)
            if target is None or target.reporting_manager_id != identity.id:
                raise ForbiddenError("Forbidden: Can only view your own or your reports' requests")
        query = query.filter(
            or_(OvertimeRequest.employee_id == identity.id, Employee.reporting_manager_id == identity.id)
        )

    if employee_id is not None:
        query = query.filter(OvertimeRequest.employee_id == employee_id)
    if status is not None:
        query = query.filter(OvertimeRequest.status == status.value)
    if start_date is not None:
        query = query.filter(OvertimeRequest.date >= start_date)
    if end_date is not None:
        query = query.filter(OvertimeRequest.date <= end_date)

    return (
        query.order_by(OvertimeRequest.created_at.desc(), OvertimeRequest.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
