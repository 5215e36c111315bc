from .attendance import Attendance
from .comp_off import CompOffHistory
from .employee import Employee
from .expense import Expense
from .leave import Leave, LeaveHistory
from .overtime import OvertimeRequest
from .salary import Salary
from .store import Calendar, Holiday, Store, store_hrs

__all__ = [
    "Attendance",
    "Calendar",
    "CompOffHistory",
    "Employee",
    "Expense",
    "Holiday",
    "Leave",
    "LeaveHistory",
    "OvertimeRequest",
    "Salary",
    "Store",
    "store_hrs",
]
