from datetime import date, time

from sqlalchemy.orm import Session

from hrms.models import Calendar, Employee, Holiday, Store
from hrms.models.enums import Profile, Role


def seed(session: Session) -> None:
    store = Store(
        name="Koramangala",
        late_entry_threshold=10,
        early_exit_threshold=10,
        expected_in_time=time(10, 0),
        expected_out_time=time(19, 0),
    )
    store.calendar = Calendar(weekday_off="Sunday")
    store.calendar.holidays.append(
        Holiday(date=date(date.today().year, 8, 15), name="Independence Day")
    )
    session.add(store)
    session.flush()

    md = Employee(email="md@example.com", username="Managing Director", role=Role.ADMIN.value, profile=Profile.MD.value)
    session.add(md)
    session.flush()

    coordinator = Employee(
        email="hr@example.com",
        username="Store HR",
        profile=Profile.HR_COORDINATOR.value,
        store_id=store.id,
        reporting_manager_id=md.id,
        leave_days=12,
    )
    manager = Employee(
        email="manager@example.com",
        username="Floor Manager",
        role=Role.STOREMANAGER.value,
        profile=Profile.EMPLOYEE.value,
        store_id=store.id,
        reporting_manager_id=md.id,
        leave_days=12,
    )
    session.add_all([coordinator, manager])
    session.flush()
    store.hrs.append(coordinator)

    employee = Employee(
        email="employee@example.com",
        username="Sales Associate",
        emp_no="EMP-001",
        profile=Profile.EMPLOYEE.value,
        store_id=store.id,
        reporting_manager_id=manager.id,
        expected_in_time=time(10, 0),
        expected_out_time=time(19, 0),
        leave_days=12,
        basic_salary=30000,
    )
    session.add(employee)
    session.commit()
