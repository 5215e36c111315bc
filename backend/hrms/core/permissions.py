"""Declarative permission table and the gate consulted by every handler.

Each action lists the coarse roles and fine-grained profiles allowed to run
it.  Profiles in ``store_bound_profiles`` may only act on employees of the
store they are attached to, either as one of its HR staff or as one of its
employees.  A handful of self-service actions are open to plain employees
for their own records only.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from sqlalchemy.orm import Session

from hrms.core.errors import AuthorizationError, ForbiddenError, NotFoundError, UnauthorizedError
from hrms.models import Employee, Store
from hrms.models.enums import Profile, Role

ALL_ROLES = frozenset(Role)
HR_PROFILES = frozenset(
    {Profile.HR_COORDINATOR, Profile.HR_COORDINATOR_MANAGER, Profile.STORE_DIRECTOR, Profile.MD}
)
STORE_HR_PROFILES = frozenset({Profile.HR_COORDINATOR, Profile.STORE_DIRECTOR})


class Action(str, Enum):
    VIEW_ATTENDANCE = "VIEW_ATTENDANCE"
    MARK_ATTENDANCE = "MARK_ATTENDANCE"
    RUN_ATTENDANCE_JOB = "RUN_ATTENDANCE_JOB"
    MANAGE_LEAVE_REQUESTS = "MANAGE_LEAVE_REQUESTS"
    WITHDRAW_LEAVE = "WITHDRAW_LEAVE"
    VIEW_OWN_LEAVES = "VIEW_OWN_LEAVES"
    VIEW_REPORTS_LEAVES = "VIEW_REPORTS_LEAVES"
    CREATE_LEAVE = "CREATE_LEAVE"
    MANAGE_SALARIES = "MANAGE_SALARIES"
    MANAGE_OVERTIME_REQUESTS = "MANAGE_OVERTIME_REQUESTS"
    CREATE_OVERTIME_REQUEST = "CREATE_OVERTIME_REQUEST"
    MANAGE_EXPENSES = "MANAGE_EXPENSES"
    VIEW_COMP_OFF_HISTORY = "VIEW_COMP_OFF_HISTORY"


@dataclass(frozen=True)
class PermissionConfig:
    allowed_roles: frozenset = field(default_factory=frozenset)
    allowed_profiles: frozenset = field(default_factory=frozenset)
    store_bound_profiles: frozenset = field(default_factory=frozenset)
    restrict_self_update_profiles: frozenset = field(default_factory=frozenset)


PERMISSIONS: dict[Action, PermissionConfig] = {
    Action.VIEW_ATTENDANCE: PermissionConfig(
        allowed_roles=frozenset({Role.ADMIN}),
        allowed_profiles=HR_PROFILES,
        store_bound_profiles=STORE_HR_PROFILES,
    ),
    Action.MARK_ATTENDANCE: PermissionConfig(
        allowed_profiles=frozenset({Profile.EMPLOYEE}),
    ),
    Action.RUN_ATTENDANCE_JOB: PermissionConfig(
        allowed_roles=frozenset({Role.ADMIN}),
        allowed_profiles=frozenset({Profile.MD}),
    ),
    Action.MANAGE_LEAVE_REQUESTS: PermissionConfig(
        allowed_roles=frozenset({Role.ADMIN}),
        allowed_profiles=HR_PROFILES,
        store_bound_profiles=STORE_HR_PROFILES,
        restrict_self_update_profiles=HR_PROFILES,
    ),
    Action.WITHDRAW_LEAVE: PermissionConfig(allowed_roles=ALL_ROLES),
    Action.VIEW_OWN_LEAVES: PermissionConfig(allowed_roles=ALL_ROLES),
    Action.VIEW_REPORTS_LEAVES: PermissionConfig(allowed_roles=ALL_ROLES),
    Action.CREATE_LEAVE: PermissionConfig(allowed_roles=ALL_ROLES),
    Action.MANAGE_SALARIES: PermissionConfig(
        allowed_profiles=HR_PROFILES,
        store_bound_profiles=STORE_HR_PROFILES,
    ),
    Action.MANAGE_OVERTIME_REQUESTS: PermissionConfig(
        allowed_profiles=HR_PROFILES,
        store_bound_profiles=STORE_HR_PROFILES,
        restrict_self_update_profiles=HR_PROFILES,
    ),
    Action.CREATE_OVERTIME_REQUEST: PermissionConfig(allowed_roles=ALL_ROLES),
    Action.MANAGE_EXPENSES: PermissionConfig(
        allowed_profiles=HR_PROFILES,
        store_bound_profiles=STORE_HR_PROFILES,
    ),
    Action.VIEW_COMP_OFF_HISTORY: PermissionConfig(
        allowed_roles=frozenset({Role.ADMIN}),
        allowed_profiles=HR_PROFILES | {Profile.GENERAL_MANAGER},
        store_bound_profiles=STORE_HR_PROFILES | {Profile.HR_COORDINATOR_MANAGER},
    ),
}

# open to plain employees, for their own records only
SELF_SERVICE_ACTIONS = frozenset(
    {Action.MARK_ATTENDANCE, Action.WITHDRAW_LEAVE, Action.VIEW_OWN_LEAVES, Action.CREATE_LEAVE}
)


def is_plain_employee(identity: Employee) -> bool:
    return identity.profile_enum in (None, Profile.EMPLOYEE)


def resolve_store(db: Session, identity: Employee) -> Store | None:
    """Store the identity acts for: one it staffs as HR, else its own."""
    hr_store = (
        db.query(Store)
        .filter(Store.hrs.any(Employee.id == identity.id))
        .order_by(Store.id.asc())
        .first()
    )
    return hr_store or identity.store


def same_store(store: Store, employee: Employee) -> bool:
    return employee.store_name is not None and employee.store_name.lower() == store.name.lower()


def check_permission(
    db: Session,
    identity: Employee | None,
    action: Action,
    *,
    target_user_id: int | None = None,
    store_bound_check: bool = False,
) -> None:
    """Raise an AuthorizationError unless ``identity`` may perform ``action``.

    Reads role, profile and store membership only; never writes.
    """
    if identity is None:
        raise UnauthorizedError("Unauthorized: No active session found")

    config = PERMISSIONS[action]
    profile = identity.profile_enum
    self_service = action in SELF_SERVICE_ACTIONS

    allowed = (
        identity.role_enum in config.allowed_roles
        or (profile is not None and profile in config.allowed_profiles)
        or (self_service and is_plain_employee(identity))
    )

    # managers only see the leaves of their direct reports
    if action is Action.VIEW_REPORTS_LEAVES and target_user_id is not None:
        target = db.get(Employee, target_user_id)
        allowed = identity.role_enum is Role.ADMIN or (
            target is not None and target.reporting_manager_id == identity.id
        )

    if self_service and target_user_id is not None and target_user_id != identity.id:
        raise ForbiddenError(f"Forbidden: {action.value} is limited to your own records")

    if not allowed:
        raise ForbiddenError(f"Forbidden: Insufficient permissions for {action.value}")

    if store_bound_check and profile is not None and profile in config.store_bound_profiles:
        store = resolve_store(db, identity)
        if store is None:
            raise ForbiddenError("Forbidden: Not assigned to any store")
        if target_user_id is not None:
            target = db.get(Employee, target_user_id)
            if target is None:
                raise NotFoundError("Target user not found")
            if not same_store(store, target):
                raise ForbiddenError("Forbidden: Can only perform actions on users in your own store")

    if (
        target_user_id is not None
        and target_user_id == identity.id
        and profile is not None
        and profile in config.restrict_self_update_profiles
    ):
        raise ForbiddenError("Forbidden: Cannot act on your own record")


def store_scope(db: Session, identity: Employee, action: Action) -> Store | None:
    """Store a listing must be limited to, or None when ``identity`` sees every store.

    Call after ``check_permission`` has authorized ``action``.
    """
    profile = identity.profile_enum
    if profile is None or profile not in PERMISSIONS[action].store_bound_profiles:
        return None
    store = resolve_store(db, identity)
    if store is None:
        raise ForbiddenError("Forbidden: Not assigned to any store")
    return store


def has_permission(db: Session, identity: Employee | None, action: Action, **options) -> bool:
    try:
        check_permission(db, identity, action, **options)
    except (AuthorizationError, NotFoundError):
        return False
    return True
