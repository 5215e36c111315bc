from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from sqlalchemy.orm import Session

from hrms.core.config import settings
from hrms.core.timeutils import weekday_name
from hrms.models import Calendar, Employee, Holiday, Store


@dataclass(frozen=True)
class StoreCalendar:
    """Read-only view of a store's non-working days over a date range."""

    weekday_off: str
    holidays: frozenset[date] = field(default_factory=frozenset)

    def is_weekday_off(self, day: date) -> bool:
        return weekday_name(day).lower() == self.weekday_off.lower()

    def is_holiday(self, day: date) -> bool:
        return day in self.holidays

    def is_non_working_day(self, day: date) -> bool:
        return self.is_holiday(day) or self.is_weekday_off(day)


def holiday_dates(db: Session, calendar: Calendar, start: date, end: date) -> frozenset[date]:
    rows = (
        db.query(Holiday.date)
        .filter(Holiday.calendar_id == calendar.id, Holiday.date >= start, Holiday.date <= end)
        .all()
    )
    # duplicates on the same date collapse here
    return frozenset(row.date for row in rows)


def calendar_for_store(db: Session, store: Store | None, start: date, end: date) -> StoreCalendar:
    if store is None or store.calendar is None:
        return StoreCalendar(weekday_off=settings.default_weekday_off)
    return StoreCalendar(
        weekday_off=store.calendar.weekday_off or settings.default_weekday_off,
        holidays=holiday_dates(db, store.calendar, start, end),
    )


def calendar_for_employee(db: Session, employee: Employee, start: date, end: date) -> StoreCalendar:
    return calendar_for_store(db, employee.store, start, end)
