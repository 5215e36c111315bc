from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from sqlalchemy.orm import Session

from hrms.core.errors import ConflictError, NotFoundError, ValidationError
from hrms.core.logging import get_logger
from hrms.core.permissions import Action, check_permission, store_scope
from hrms.db.session import atomic
from hrms.models import Employee, Expense

logger = get_logger(__name__)

DEFAULT_LIST_LIMIT = 100


@dataclass
class OdometerReading:
    initial_reading: float
    final_reading: float
    rate: float
    miscellaneous_expense: float = 0.0

    def validate(self) -> None:
        if self.initial_reading < 0 or self.final_reading < 0:
            raise ValidationError("Readings must be non-negative")
        if self.final_reading < self.initial_reading:
            raise ValidationError("Final reading must be greater than or equal to initial reading")
        if self.rate <= 0:
            raise ValidationError("Rate must be positive")
        if self.miscellaneous_expense < 0:
            raise ValidationError("Miscellaneous expense must be non-negative")

    @property
    def total_distance(self) -> float:
        return self.final_reading - self.initial_reading

    @property
    def fuel_total(self) -> float:
        return self.total_distance * self.rate

    @property
    def amount(self) -> float:
        return self.fuel_total + self.miscellaneous_expense


def _apply(expense: Expense, reading: OdometerReading) -> None:
    expense.initial_reading = reading.initial_reading
    expense.final_reading = reading.final_reading
    expense.total_distance = round(reading.total_distance, 2)
    expense.rate = reading.rate
    expense.fuel_total = round(reading.fuel_total, 2)
    expense.miscellaneous_expense = reading.miscellaneous_expense
    expense.amount = round(reading.amount, 2)


def record_expense(
    db: Session,
    identity: Employee,
    *,
    employee_id: int,
    on_date: date,
    reading: OdometerReading,
) -> Expense:
    """Create the expense for ``on_date`` or overwrite the one already recorded."""
    reading.validate()
    check_permission(db, identity, Action.MANAGE_EXPENSES, target_user_id=employee_id, store_bound_check=True)
    if db.get(Employee, employee_id) is None:
        raise NotFoundError("Employee not found")

    expense = (
        db.query(Expense)
        .filter(Expense.employee_id == employee_id, Expense.date == on_date)
        .one_or_none()
    )
    created = expense is None
    with atomic(db, conflict="Expense already recorded for this date"):
        if expense is None:
            expense = Expense(employee_id=employee_id, date=on_date)
            db.add(expense)
        _apply(expense, reading)
    db.refresh(expense)

    logger.info(
        "expense_recorded",
        expense_id=expense.id,
        employee_id=employee_id,
        date=on_date.isoformat(),
        amount=float(expense.amount),
        created=created,
    )
    return expense


def update_expense(db: Session, identity: Employee, expense_id: int, **changes) -> Expense:
    expense = db.get(Expense, expense_id)
    if expense is None:
        raise NotFoundError("Expense not found")
    check_permission(
        db, identity, Action.MANAGE_EXPENSES, target_user_id=expense.employee_id, store_bound_check=True
    )

    reading = OdometerReading(
        initial_reading=float(expense.initial_reading),
        final_reading=float(expense.final_reading),
        rate=float(expense.rate),
        miscellaneous_expense=float(expense.miscellaneous_expense or 0),
    )
    for name, value in changes.items():
        if value is not None and hasattr(reading, name):
            setattr(reading, name, float(value))
    reading.validate()

    new_date = changes.get("on_date")
    if new_date is not None and new_date != expense.date:
        clash = (
            db.query(Expense.id)
            .filter(Expense.employee_id == expense.employee_id, Expense.date == new_date, Expense.id != expense.id)
            .first()
        )
        if clash is not None:
            raise ConflictError("Expense already recorded for this date")

    with atomic(db, conflict="Expense already recorded for this date"):
        if new_date is not None:
            expense.date = new_date
        _apply(expense, reading)
    db.refresh(expense)

    logger.info("expense_updated", expense_id=expense.id, amount=float(expense.amount))
    return expense


def list_expenses(
    db: Session,
    identity: Employee,
    *,
    employee_id: int | None = None,
    all_employees: bool = False,
    start_date: date | None = None,
    end_date: date | None = None,
    limit: int = DEFAULT_LIST_LIMIT,
    offset: int = 0,
) -> list[Expense]:
    if start_date and end_date and start_date > end_date:
        raise ValidationError("startDate must be before endDate")

    query = db.query(Expense).join(Employee, Expense.employee_id == Employee.id)
    if all_employees:
        check_permission(db, identity, Action.MANAGE_EXPENSES)
        store = store_scope(db, identity, Action.MANAGE_EXPENSES)
        if store is not None:
            query = query.filter(Employee.store_id == store.id)
    else:
        target_id = employee_id or identity.id
        if target_id != identity.id:
            check_permission(
                db, identity, Action.MANAGE_EXPENSES, target_user_id=target_id, store_bound_check=True
            )
        query = query.filter(Expense.employee_id == target_id)

    if start_date is not None:
        query = query.filter(Expense.date >= start_date)
    if end_date is not None:
        query = query.filter(Expense.date <= end_date)

    return query.order_by(Expense.date.desc(), Expense.id.desc()).offset(offset).limit(limit).all()
