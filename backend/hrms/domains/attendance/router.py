from datetime import date, datetime
from typing import Literal

from fastapi import APIRouter, Depends, Header, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from hrms.api.deps import get_identity, get_notification_sink, get_optional_identity
from hrms.core.config import settings
from hrms.core.errors import UnauthorizedError
from hrms.core.notifications import NotificationSink
from hrms.core.permissions import Action, check_permission
from hrms.core.timeutils import to_display, utcnow
from hrms.db.session import SessionFactory, get_session, get_session_factory
from hrms.domains.attendance import service
from hrms.domains.attendance.job import mark_non_working_day
from hrms.models import Attendance, Employee
from hrms.models.enums import NonWorkingDayKind

router = APIRouter(prefix="/attendance", tags=["attendance"])


class PunchRequest(BaseModel):
    on_date: date | None = Field(default=None, alias="date")


class AttendanceOut(BaseModel):
    id: int | None
    employee_id: int
    date: date
    status: str
    in_time: datetime | None = None
    out_time: datetime | None = None
    is_late_entry: bool = False
    is_early_exit: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AttendanceCorrection(BaseModel):
    status: Literal["present", "absent"] | None = None
    in_time: datetime | None = None
    out_time: datetime | None = None
    is_late_entry: bool | None = None
    is_early_exit: bool | None = None


class AttendanceSummaryOut(BaseModel):
    employee_id: int
    from_date: date
    to_date: date
    total_working_days: int
    days_present: int
    attendance_percentage: int


class NonWorkingDayRequest(BaseModel):
    on_date: date | None = Field(default=None, alias="date")
    kind: Literal["weekdayoff", "holiday"] | None = None


class NonWorkingDayResult(BaseModel):
    date: date
    successful: int
    failed: int
    marked: int
    failed_store_ids: list[int]


def _serialize(entry: service.AttendanceEntry) -> AttendanceOut:
    return AttendanceOut(
        id=entry.id,
        employee_id=entry.employee_id,
        date=entry.date,
        status=entry.status,
        in_time=to_display(entry.in_time),
        out_time=to_display(entry.out_time),
        is_late_entry=entry.is_late_entry,
        is_early_exit=entry.is_early_exit,
        created_at=to_display(entry.created_at),
        updated_at=to_display(entry.updated_at),
    )


def _serialize_record(record: Attendance) -> AttendanceOut:
    return _serialize(service.AttendanceEntry.from_record(record))


@router.post("/punch-in", response_model=AttendanceOut, status_code=201)
def punch_in(
    payload: PunchRequest | None = None,
    db: Session = Depends(get_session),
    identity: Employee = Depends(get_identity),
) -> AttendanceOut:
    record = service.punch_in(db, identity, on_date=payload.on_date if payload else None)
    return _serialize_record(record)


@router.post("/punch-out", response_model=AttendanceOut)
def punch_out(
    payload: PunchRequest | None = None,
    db: Session = Depends(get_session),
    identity: Employee = Depends(get_identity),
    sink: NotificationSink = Depends(get_notification_sink),
) -> AttendanceOut:
    record = service.punch_out(db, identity, on_date=payload.on_date if payload else None, sink=sink)
    return _serialize_record(record)


@router.get("", response_model=list[AttendanceOut])
def list_attendance(
    start_date: date,
    end_date: date,
    employee_id: int | None = None,
    all_employees: bool = Query(default=False, alias="all"),
    store_id: int | None = None,
    db: Session = Depends(get_session),
    identity: Employee = Depends(get_identity),
) -> list[AttendanceOut]:
    entries = service.get_attendance(
        db,
        identity,
        start_date,
        end_date,
        employee_id=employee_id,
        all_employees=all_employees,
        store_id=store_id,
    )
    return [_serialize(entry) for entry in entries]


@router.get("/summary/{employee_id}", response_model=AttendanceSummaryOut)
def attendance_summary(
    employee_id: int,
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_session),
    identity: Employee = Depends(get_identity),
) -> AttendanceSummaryOut:
    summary = service.attendance_summary(db, identity, employee_id, start=start_date, end=end_date)
    return AttendanceSummaryOut(
        employee_id=summary.employee_id,
        from_date=summary.from_date,
        to_date=summary.to_date,
        total_working_days=summary.total_working_days,
        days_present=summary.days_present,
        attendance_percentage=summary.attendance_percentage,
    )


@router.put("/{attendance_id}", response_model=AttendanceOut)
def correct_attendance(
    attendance_id: int,
    payload: AttendanceCorrection,
    db: Session = Depends(get_session),
    identity: Employee = Depends(get_identity),
) -> AttendanceOut:
    record = service.correct_attendance(db, identity, attendance_id, payload.model_dump(exclude_unset=True))
    return _serialize_record(record)


@router.post("/non-working-day", response_model=NonWorkingDayResult)
def run_non_working_day_job(
    payload: NonWorkingDayRequest | None = None,
    x_cron_secret: str | None = Header(default=None),
    db: Session = Depends(get_session),
    identity: Employee | None = Depends(get_optional_identity),
    factory: SessionFactory = Depends(get_session_factory),
) -> NonWorkingDayResult:
    trusted_caller = settings.cron_secret is not None and x_cron_secret == settings.cron_secret
    if not trusted_caller:
        if x_cron_secret is not None and identity is None:
            raise UnauthorizedError("Unauthorized: Invalid cron secret")
        check_permission(db, identity, Action.RUN_ATTENDANCE_JOB)

    target_date = payload.on_date if payload and payload.on_date else to_display(utcnow()).date()
    kind = NonWorkingDayKind(payload.kind) if payload and payload.kind else None
    result = mark_non_working_day(target_date, kind, factory=factory)
    return NonWorkingDayResult(
        date=result.date,
        successful=result.successful,
        failed=result.failed,
        marked=result.marked,
        failed_store_ids=result.failed_store_ids,
    )
