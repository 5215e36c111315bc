from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from hrms.api.deps import get_identity
from hrms.core.timeutils import to_display
from hrms.db.session import get_session
from hrms.domains.salaries import service
from hrms.domains.salaries.calculator import SalaryInputs
from hrms.models import Employee, Salary

router = APIRouter(prefix="/salaries", tags=["salaries"])


class SalaryCreate(BaseModel):
    employee_id: int
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=service.MIN_YEAR)
    basic_salary: float = Field(..., gt=0)
    per_hour_salary: float = Field(..., gt=0)
    overtime_rate: float = Field(default=0, ge=0)
    bonus: float = Field(default=0, ge=0)
    deduction_of_hours: float = Field(default=0, ge=0)
    deduction_of_days: float = Field(default=0, ge=0)
    overtime_hours: float = Field(default=0, ge=0)
    publish: bool = False


class SalaryUpdate(BaseModel):
    basic_salary: float | None = Field(default=None, gt=0)
    per_hour_salary: float | None = Field(default=None, gt=0)
    overtime_rate: float | None = Field(default=None, ge=0)
    bonus: float | None = Field(default=None, ge=0)
    deduction_of_hours: float | None = Field(default=None, ge=0)
    deduction_of_days: float | None = Field(default=None, ge=0)
    overtime_hours: float | None = Field(default=None, ge=0)
    publish: bool | None = None


class SalaryOut(BaseModel):
    id: int
    employee_id: int
    employee_name: str | None = None
    month: int
    year: int
    basic_salary: float
    per_hour_salary: float
    per_day_salary: float
    overtime_rate: float
    bonus: float
    absent_days: float
    absent_hours: float
    deduction_of_hours: float
    deduction_of_days: float
    total_deductions: float
    overtime_hours: float
    overtime_payable: float
    expenses: float
    salary_gt: float
    net_salary: float
    publish: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


def _serialize(salary: Salary) -> SalaryOut:
    return SalaryOut(
        id=salary.id,
        employee_id=salary.employee_id,
        employee_name=salary.employee.username if salary.employee else None,
        month=salary.month,
        year=salary.year,
        basic_salary=float(salary.basic_salary),
        per_hour_salary=float(salary.per_hour_salary),
        per_day_salary=float(salary.per_day_salary or 0),
        overtime_rate=float(salary.overtime_rate or 0),
        bonus=float(salary.bonus or 0),
        absent_days=float(salary.absent_days or 0),
        absent_hours=float(salary.absent_hours or 0),
        deduction_of_hours=float(salary.deduction_of_hours or 0),
        deduction_of_days=float(salary.deduction_of_days or 0),
        total_deductions=float(salary.total_deductions or 0),
        overtime_hours=float(salary.overtime_hours or 0),
        overtime_payable=float(salary.overtime_payable or 0),
        expenses=float(salary.expenses or 0),
        salary_gt=float(salary.salary_gt or 0),
        net_salary=float(salary.net_salary or 0),
        publish=bool(salary.publish),
        created_at=to_display(salary.created_at),
        updated_at=to_display(salary.updated_at),
    )


@router.get("", response_model=list[SalaryOut])
def list_salaries(
    employee_id: int | None = None,
    month: int | None = None,
    year: int | None = None,
    db: Session = Depends(get_session),
    identity: Employee = Depends(get_identity),
) -> list[SalaryOut]:
    salaries = service.list_salaries(db, identity, employee_id=employee_id, month=month, year=year)
    return [_serialize(salary) for salary in salaries]


@router.post("", response_model=SalaryOut, status_code=201)
def create_salary(
    payload: SalaryCreate,
    db: Session = Depends(get_session),
    identity: Employee = Depends(get_identity),
) -> SalaryOut:
    inputs = SalaryInputs(
        basic_salary=payload.basic_salary,
        per_hour_salary=payload.per_hour_salary,
        overtime_rate=payload.overtime_rate,
        bonus=payload.bonus,
        deduction_of_hours=payload.deduction_of_hours,
        deduction_of_days=payload.deduction_of_days,
        overtime_hours_override=payload.overtime_hours,
    )
    salary = service.create_salary(
        db,
        identity,
        employee_id=payload.employee_id,
        month=payload.month,
        year=payload.year,
        inputs=inputs,
        publish=payload.publish,
    )
    return _serialize(salary)


@router.put("/{salary_id}", response_model=SalaryOut)
def update_salary(
    salary_id: int,
    payload: SalaryUpdate,
    db: Session = Depends(get_session),
    identity: Employee = Depends(get_identity),
) -> SalaryOut:
    changes = payload.model_dump(exclude_unset=True)
    if "overtime_hours" in changes:
        changes["overtime_hours_override"] = changes.pop("overtime_hours")
    salary = service.update_salary(db, identity, salary_id, changes)
    return _serialize(salary)


@router.post("/{salary_id}/recompute", response_model=SalaryOut)
def recompute_salary(
    salary_id: int,
    db: Session = Depends(get_session),
    identity: Employee = Depends(get_identity),
) -> SalaryOut:
    return _serialize(service.recompute_salary(db, identity, salary_id))
