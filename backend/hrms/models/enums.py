from enum import Enum


class Role(str, Enum):
    BASIC = "BASIC"
    ADMIN = "ADMIN"
    STOREMANAGER = "STOREMANAGER"
    SERVICE = "SERVICE"


class Profile(str, Enum):
    HR_COORDINATOR = "hr_coordinator"
    HR_COORDINATOR_MANAGER = "hr_coordinator_manager"
    STORE_DIRECTOR = "store_director"
    GENERAL_MANAGER = "general_manager"
    MD = "md"
    EMPLOYEE = "employee"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LEAVE = "leave"
    WEEKDAY_OFF = "weekdayoff"
    HOLIDAY = "holiday"


class NonWorkingDayKind(str, Enum):
    WEEKDAY_OFF = "weekdayoff"
    HOLIDAY = "holiday"


class LeaveStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApprovalStage(str, Enum):
    COORDINATOR = "hr_coordinator"
    MANAGER = "manager"
    APPROVED = "approved"
    REJECTED = "rejected"


class HalfPeriod(str, Enum):
    FIRST_HALF = "first_half"
    SECOND_HALF = "second_half"


class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class CompOffAction(str, Enum):
    EARNED = "earned"
