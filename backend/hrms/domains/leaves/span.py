from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from hrms.core.timeutils import iter_days
from hrms.domains.stores.calendar import StoreCalendar
from hrms.models import Leave
from hrms.models.enums import HalfPeriod

HALF_DAY = 0.5
FULL_DAY = 1.0


@dataclass(frozen=True)
class LeaveSpan:
    """Date range of a leave together with its half-day boundaries.

    A leave starting in the second half of its first day, or ending in the
    first half of its last day, only covers half of that boundary day.
    """

    start: date
    end: date
    is_half_day_start: bool = False
    start_half_period: HalfPeriod | None = None
    is_half_day_end: bool = False
    end_half_period: HalfPeriod | None = None

    @classmethod
    def from_leave(cls, leave: Leave) -> "LeaveSpan":
        return cls(
            start=leave.start_date,
            end=leave.end_date,
            is_half_day_start=bool(leave.is_half_day_start),
            start_half_period=HalfPeriod(leave.start_half_period) if leave.start_half_period else None,
            is_half_day_end=bool(leave.is_half_day_end),
            end_half_period=HalfPeriod(leave.end_half_period) if leave.end_half_period else None,
        )

    def is_half_boundary(self, day: date) -> bool:
        return (
            self.is_half_day_start
            and day == self.start
            and self.start_half_period is HalfPeriod.SECOND_HALF
        ) or (
            self.is_half_day_end
            and day == self.end
            and self.end_half_period is HalfPeriod.FIRST_HALF
        )

    def covered_days(self) -> list[date]:
        """Every day in the range except half-day boundaries, non-working days included."""
        return [day for day in iter_days(self.start, self.end) if not self.is_half_boundary(day)]

    def working_days(self, calendar: StoreCalendar) -> list[date]:
        return [day for day in iter_days(self.start, self.end) if not calendar.is_non_working_day(day)]

    def effective_days(self, calendar: StoreCalendar) -> float:
        return sum(HALF_DAY if self.is_half_boundary(day) else FULL_DAY for day in self.working_days(calendar))

    def full_days(self, calendar: StoreCalendar) -> list[date]:
        """Working days covered for the whole day."""
        return [day for day in self.working_days(calendar) if not self.is_half_boundary(day)]
