from datetime import date, datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from hrms.api.deps import get_identity
from hrms.core.timeutils import to_display
from hrms.db.session import get_session
from hrms.domains.comp_off import service
from hrms.models import CompOffHistory, Employee

router = APIRouter(prefix="/comp-off-history", tags=["comp-off"])


class CompOffHistoryOut(BaseModel):
    id: int
    employee_id: int
    employee_name: str | None = None
    attendance_date: date | None = None
    action: str
    amount: float
    comp_off_days: float
    created_at: datetime | None = None


def _serialize(entry: CompOffHistory) -> CompOffHistoryOut:
    return CompOffHistoryOut(
        id=entry.id,
        employee_id=entry.employee_id,
        employee_name=entry.employee.username if entry.employee else None,
        attendance_date=entry.attendance_date,
        action=entry.action,
        amount=entry.amount,
        comp_off_days=entry.comp_off_days,
        created_at=to_display(entry.created_at),
    )


@router.get("", response_model=list[CompOffHistoryOut])
def list_comp_off_history(
    employee_id: int | None = None,
    all_employees: bool = Query(default=False, alias="all"),
    db: Session = Depends(get_session),
    identity: Employee = Depends(get_identity),
) -> list[CompOffHistoryOut]:
    entries = service.list_history(db, identity, employee_id=employee_id, all_employees=all_employees)
    return [_serialize(entry) for entry in entries]
