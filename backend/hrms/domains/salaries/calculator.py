from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable

DEFAULT_DAILY_HOURS = 8.0
OVERTIME_MULTIPLIER = 1.5


@dataclass
class SalaryInputs:
    basic_salary: float
    per_hour_salary: float
    overtime_rate: float = 0.0
    bonus: float = 0.0
    deduction_of_hours: float = 0.0
    deduction_of_days: float = 0.0
    overtime_hours_override: float = 0.0


@dataclass
class AttendanceDay:
    date: date
    status: str
    in_time: datetime | None = None
    out_time: datetime | None = None

    @property
    def worked_hours(self) -> float | None:
        if self.in_time is None or self.out_time is None:
            return None
        return (self.out_time - self.in_time).total_seconds() / 3600


@dataclass
class PeriodData:
    """Everything recorded for one employee in one salary period."""

    days_in_month: int
    expected_daily_hours: float = DEFAULT_DAILY_HOURS
    attendance: list[AttendanceDay] = field(default_factory=list)
    leave_dates: frozenset[date] = field(default_factory=frozenset)
    approved_overtime_hours: list[float] = field(default_factory=list)
    expense_totals: list[float] = field(default_factory=list)


@dataclass
class SalaryBreakdown:
    per_day_salary: float
    absent_days: float
    absent_hours: float
    total_deductions: float
    overtime_hours: float
    overtime_payable: float
    expenses: float
    salary_gt: float
    net_salary: float


def count_absences(
    attendance: Iterable[AttendanceDay], leave_dates: frozenset[date], expected_daily_hours: float
) -> tuple[float, float]:
    """Absent days and hours, ignoring days covered by full-day leave.

    Short shifts add their shortfall to absent hours without counting a day.
    """
    absent_days = 0.0
    absent_hours = 0.0
    for day in attendance:
        if day.date in leave_dates:
            continue
        if day.status == "absent":
            absent_days += 1
            absent_hours += expected_daily_hours
            continue
        worked = day.worked_hours
        if worked is not None and worked < expected_daily_hours:
            absent_hours += expected_daily_hours - worked
    return absent_days, absent_hours


def compute_salary(inputs: SalaryInputs, period: PeriodData) -> SalaryBreakdown:
    absent_days, absent_hours = count_absences(
        period.attendance, period.leave_dates, period.expected_daily_hours
    )

    overtime_hours = inputs.overtime_hours_override or sum(period.approved_overtime_hours)

    per_day_salary = inputs.basic_salary / period.days_in_month
    total_deductions = (
        absent_days * per_day_salary
        + absent_hours * inputs.per_hour_salary
        + inputs.deduction_of_hours * inputs.per_hour_salary
        + inputs.deduction_of_days * per_day_salary
    )

    overtime_rate = inputs.overtime_rate or inputs.per_hour_salary * OVERTIME_MULTIPLIER
    overtime_payable = overtime_hours * overtime_rate
    expenses = sum(period.expense_totals)

    salary_gt = inputs.basic_salary + overtime_payable + inputs.bonus
    net_salary = max(0.0, salary_gt - total_deductions)

    return SalaryBreakdown(
        per_day_salary=round(per_day_salary, 2),
        absent_days=absent_days,
        absent_hours=round(absent_hours, 2),
        total_deductions=round(total_deductions, 2),
        overtime_hours=overtime_hours,
        overtime_payable=round(overtime_payable, 2),
        expenses=round(expenses, 2),
        salary_gt=round(salary_gt, 2),
        net_salary=round(net_salary, 2),
    )
