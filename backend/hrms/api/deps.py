from __future__ import annotations

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from hrms.core.errors import UnauthorizedError
from hrms.core.notifications import NotificationSink, default_sink
from hrms.db.session import get_session
from hrms.models import Employee


def get_optional_identity(
    x_employee_id: int | None = Header(default=None),
    db: Session = Depends(get_session),
) -> Employee | None:
    """Employee named by the session layer's ``X-Employee-Id`` header."""
    if x_employee_id is None:
        return None
    return db.get(Employee, x_employee_id)


def get_identity(identity: Employee | None = Depends(get_optional_identity)) -> Employee:
    if identity is None:
        raise UnauthorizedError("Unauthorized: No active session found")
    return identity


def get_notification_sink() -> NotificationSink:
    return default_sink
