from datetime import date, datetime
from typing import Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.orm import Session

from hrms.api.deps import get_identity, get_notification_sink
from hrms.core.notifications import NotificationSink
from hrms.core.timeutils import to_display
from hrms.db.session import get_session
from hrms.domains.overtime import service
from hrms.models import Employee, OvertimeRequest
from hrms.models.enums import RequestStatus

router = APIRouter(prefix="/overtime-requests", tags=["overtime"])


class OvertimeCreate(BaseModel):
    on_date: date = Field(..., alias="date")
    hours: float = Field(..., gt=0)
    remarks: str = Field(..., min_length=1)


class OvertimeDecision(BaseModel):
    status: Literal["approved", "rejected"]
    approved_hours: float | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def require_hours_on_approval(self) -> "OvertimeDecision":
        if self.status == "approved" and self.approved_hours is None:
            raise ValueError("Approved hours are required for approval")
        return self


class OvertimeOut(BaseModel):
    id: int
    employee_id: int
    employee_name: str | None = None
    date: date
    hours: float
    remarks: str
    status: str
    manager_id: int | None = None
    approved_hours: float | None = None
    approver_id: int | None = None
    approved_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


def _serialize(request: OvertimeRequest) -> OvertimeOut:
    return OvertimeOut(
        id=request.id,
        employee_id=request.employee_id,
        employee_name=request.employee.username if request.employee else None,
        date=request.date,
        hours=request.hours,
        remarks=request.remarks,
        status=request.status,
        manager_id=request.manager_id,
        approved_hours=request.approved_hours,
        approver_id=request.approver_id,
        approved_at=to_display(request.approved_at),
        created_at=to_display(request.created_at),
        updated_at=to_display(request.updated_at),
    )


@router.post("", response_model=OvertimeOut, status_code=201)
def create_overtime_request(
    payload: OvertimeCreate,
    db: Session = Depends(get_session),
    identity: Employee = Depends(get_identity),
    sink: NotificationSink = Depends(get_notification_sink),
) -> OvertimeOut:
    request = service.create_request(
        db,
        identity,
        on_date=payload.on_date,
        hours=payload.hours,
        remarks=payload.remarks,
        sink=sink,
    )
    return _serialize(request)


@router.get("", response_model=list[OvertimeOut])
def list_overtime_requests(
    employee_id: int | None = None,
    status: RequestStatus | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    limit: int = Query(default=service.DEFAULT_LIST_LIMIT, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_session),
    identity: Employee = Depends(get_identity),
) -> list[OvertimeOut]:
    requests = service.list_requests(
        db,
        identity,
        employee_id=employee_id,
        status=status,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )
    return [_serialize(request) for request in requests]


@router.put("/{request_id}", response_model=OvertimeOut)
def decide_overtime_request(
    request_id: int,
    payload: OvertimeDecision,
    db: Session = Depends(get_session),
    identity: Employee = Depends(get_identity),
    sink: NotificationSink = Depends(get_notification_sink),
) -> OvertimeOut:
    request = service.decide_request(
        db,
        identity,
        request_id,
        RequestStatus(payload.status),
        approved_hours=payload.approved_hours,
        sink=sink,
    )
    return _serialize(request)
