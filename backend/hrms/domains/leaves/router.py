from datetime import date, datetime
from typing import Literal

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy.orm import Session

from hrms.api.deps import get_identity, get_notification_sink
from hrms.core.notifications import NotificationSink
from hrms.core.timeutils import to_display
from hrms.db.session import get_session
from hrms.domains.leaves import service
from hrms.models import Employee, Leave, LeaveHistory
from hrms.models.enums import ApprovalStage, HalfPeriod, LeaveStatus

router = APIRouter(prefix="/leaves", tags=["leaves"])


class LeaveCreate(BaseModel):
    start_date: date
    end_date: date
    is_half_day_start: bool = False
    is_half_day_end: bool = False
    start_half_period: HalfPeriod | None = None
    end_half_period: HalfPeriod | None = None
    reason: str = Field(..., min_length=1)

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, value: str) -> str:
        reason = value.strip()
        if not reason:
            raise ValueError("Reason is required")
        return reason

    @model_validator(mode="after")
    def validate_range(self) -> "LeaveCreate":
        if (self.is_half_day_start and self.start_half_period is None) or (
            self.is_half_day_end and self.end_half_period is None
        ):
            raise ValueError("Half-day period is required for half-day leaves")
        if self.start_date > self.end_date:
            raise ValueError("Start date must be before or equal to end date")
        return self


class LeaveDecision(BaseModel):
    status: Literal["approved", "rejected"]
    remark: str | None = None


class LeaveOut(BaseModel):
    id: int
    employee_id: int
    employee_name: str | None = None
    start_date: date
    end_date: date
    is_half_day_start: bool
    is_half_day_end: bool
    start_half_period: str | None = None
    end_half_period: str | None = None
    reason: str
    status: str
    approval_stage: str
    effective_days: float
    manager_id: int | None = None
    approved_by_id: int | None = None
    approved_at: datetime | None = None
    manager_approval_status: str | None = None
    manager_approved_by_id: int | None = None
    manager_approved_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class LeaveHistoryOut(BaseModel):
    id: int
    leave_id: int
    employee_id: int
    status: str
    remark: str | None = None
    created_at: datetime | None = None


def _serialize(leave: Leave) -> LeaveOut:
    return LeaveOut(
        id=leave.id,
        employee_id=leave.employee_id,
        employee_name=leave.employee.username if leave.employee else None,
        start_date=leave.start_date,
        end_date=leave.end_date,
        is_half_day_start=bool(leave.is_half_day_start),
        is_half_day_end=bool(leave.is_half_day_end),
        start_half_period=leave.start_half_period,
        end_half_period=leave.end_half_period,
        reason=leave.reason,
        status=leave.status,
        approval_stage=leave.approval_stage,
        effective_days=float(leave.effective_days or 0),
        manager_id=leave.manager_id,
        approved_by_id=leave.approved_by_id,
        approved_at=to_display(leave.approved_at),
        manager_approval_status=leave.manager_approval_status,
        manager_approved_by_id=leave.manager_approved_by_id,
        manager_approved_at=to_display(leave.manager_approved_at),
        created_at=to_display(leave.created_at),
        updated_at=to_display(leave.updated_at),
    )


def _serialize_history(entry: LeaveHistory) -> LeaveHistoryOut:
    return LeaveHistoryOut(
        id=entry.id,
        leave_id=entry.leave_id,
        employee_id=entry.employee_id,
        status=entry.status,
        remark=entry.remark,
        created_at=to_display(entry.created_at),
    )


@router.post("", response_model=LeaveOut, status_code=201)
def create_leave(
    payload: LeaveCreate,
    db: Session = Depends(get_session),
    identity: Employee = Depends(get_identity),
    sink: NotificationSink = Depends(get_notification_sink),
) -> LeaveOut:
    leave = service.submit_leave(
        db,
        identity,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reason=payload.reason,
        is_half_day_start=payload.is_half_day_start,
        start_half_period=payload.start_half_period,
        is_half_day_end=payload.is_half_day_end,
        end_half_period=payload.end_half_period,
        sink=sink,
    )
    return _serialize(leave)


@router.get("", response_model=list[LeaveOut])
def list_leaves(
    scope: Literal["own", "reports", "all"] = "own",
    approval_stage: ApprovalStage | None = None,
    status: LeaveStatus | None = None,
    employee_id: int | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    limit: int = Query(default=service.DEFAULT_LIST_LIMIT, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_session),
    identity: Employee = Depends(get_identity),
) -> list[LeaveOut]:
    leaves = service.list_leaves(
        db,
        identity,
        scope=scope,
        approval_stage=approval_stage,
        status=status,
        employee_id=employee_id,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )
    return [_serialize(leave) for leave in leaves]


@router.put("/{leave_id}/decision", response_model=LeaveOut)
def decide_leave(
    leave_id: int,
    payload: LeaveDecision,
    db: Session = Depends(get_session),
    identity: Employee = Depends(get_identity),
    sink: NotificationSink = Depends(get_notification_sink),
) -> LeaveOut:
    leave = service.decide_leave(
        db,
        identity,
        leave_id,
        LeaveStatus(payload.status),
        remark=payload.remark,
        sink=sink,
    )
    return _serialize(leave)


@router.delete("/{leave_id}", status_code=204)
def withdraw_leave(
    leave_id: int,
    db: Session = Depends(get_session),
    identity: Employee = Depends(get_identity),
    sink: NotificationSink = Depends(get_notification_sink),
) -> Response:
    service.withdraw_leave(db, identity, leave_id, sink=sink)
    return Response(status_code=204)


@router.get("/{leave_id}/history", response_model=list[LeaveHistoryOut])
def get_leave_history(
    leave_id: int,
    db: Session = Depends(get_session),
    identity: Employee = Depends(get_identity),
) -> list[LeaveHistoryOut]:
    return [_serialize_history(entry) for entry in service.leave_history(db, identity, leave_id)]
