import pytest
from sqlalchemy.exc import IntegrityError

from hrms.core.errors import ConflictError
from hrms.db.session import atomic
from hrms.models import Salary


def _salary(employee_id):
    return Salary(employee_id=employee_id, month=6, year=2025, basic_salary=30000, per_hour_salary=150)


def test_duplicate_salary_period_becomes_conflict(db, make_store, make_employee):
    employee = make_employee(store=make_store())
    with atomic(db):
        db.add(_salary(employee.id))

    with pytest.raises(ConflictError, match="already exists"):
        with atomic(db, conflict="Salary record already exists for this employee and period"):
            db.add(_salary(employee.id))

    # rolled back and still usable
    assert db.query(Salary).count() == 1


def test_integrity_error_propagates_without_conflict_message(db, make_store, make_employee):
    employee = make_employee(store=make_store())
    with atomic(db):
        db.add(_salary(employee.id))

    with pytest.raises(IntegrityError):
        with atomic(db):
            db.add(_salary(employee.id))
