from datetime import date, datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.orm import Session

from hrms.api.deps import get_identity
from hrms.core.timeutils import to_display
from hrms.db.session import get_session
from hrms.domains.expenses import service
from hrms.models import Employee, Expense

router = APIRouter(prefix="/expenses", tags=["expenses"])


class ExpenseCreate(BaseModel):
    employee_id: int
    on_date: date = Field(..., alias="date")
    initial_reading: float = Field(..., ge=0)
    final_reading: float = Field(..., ge=0)
    rate: float = Field(..., gt=0)
    miscellaneous_expense: float = Field(default=0, ge=0)

    @model_validator(mode="after")
    def validate_readings(self) -> "ExpenseCreate":
        if self.final_reading < self.initial_reading:
            raise ValueError("Final reading must be greater than or equal to initial reading")
        return self


class ExpenseUpdate(BaseModel):
    on_date: date | None = Field(default=None, alias="date")
    initial_reading: float | None = Field(default=None, ge=0)
    final_reading: float | None = Field(default=None, ge=0)
    rate: float | None = Field(default=None, gt=0)
    miscellaneous_expense: float | None = Field(default=None, ge=0)


class ExpenseOut(BaseModel):
    id: int
    employee_id: int
    date: date
    initial_reading: float
    final_reading: float
    total_distance: float
    rate: float
    fuel_total: float
    miscellaneous_expense: float
    amount: float
    created_at: datetime | None = None


def _serialize(expense: Expense) -> ExpenseOut:
    return ExpenseOut(
        id=expense.id,
        employee_id=expense.employee_id,
        date=expense.date,
        initial_reading=float(expense.initial_reading),
        final_reading=float(expense.final_reading),
        total_distance=float(expense.total_distance),
        rate=float(expense.rate),
        fuel_total=float(expense.fuel_total),
        miscellaneous_expense=float(expense.miscellaneous_expense or 0),
        amount=float(expense.amount),
        created_at=to_display(expense.created_at),
    )


@router.post("", response_model=ExpenseOut, status_code=201)
def record_expense(
    payload: ExpenseCreate,
    db: Session = Depends(get_session),
    identity: Employee = Depends(get_identity),
) -> ExpenseOut:
    reading = service.OdometerReading(
        initial_reading=payload.initial_reading,
        final_reading=payload.final_reading,
        rate=payload.rate,
        miscellaneous_expense=payload.miscellaneous_expense,
    )
    expense = service.record_expense(
        db, identity, employee_id=payload.employee_id, on_date=payload.on_date, reading=reading
    )
    return _serialize(expense)


@router.put("/{expense_id}", response_model=ExpenseOut)
def update_expense(
    expense_id: int,
    payload: ExpenseUpdate,
    db: Session = Depends(get_session),
    identity: Employee = Depends(get_identity),
) -> ExpenseOut:
    expense = service.update_expense(db, identity, expense_id, **payload.model_dump(exclude_unset=True))
    return _serialize(expense)


@router.get("", response_model=list[ExpenseOut])
def list_expenses(
    employee_id: int | None = None,
    all_employees: bool = Query(default=False, alias="all"),
    start_date: date | None = None,
    end_date: date | None = None,
    limit: int = Query(default=service.DEFAULT_LIST_LIMIT, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_session),
    identity: Employee = Depends(get_identity),
) -> list[ExpenseOut]:
    expenses = service.list_expenses(
        db,
        identity,
        employee_id=employee_id,
        all_employees=all_employees,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )
    return [_serialize(expense) for expense in expenses]
