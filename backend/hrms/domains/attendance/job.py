"""Daily job marking weekly-off days and holidays in attendance.

Invoked once a day by an external scheduler (HTTP endpoint or the ``hrms``
console script).  Re-running it for the same date is harmless: employees that
already have a row for the date are skipped.  The store scan and each store
are retried a bounded number of times on database errors; a store that keeps
failing is reported and the run moves on.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, TypeVar

from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session, selectinload

from hrms.core.config import settings
from hrms.core.errors import TransientInfraError
from hrms.core.logging import get_logger
from hrms.core.observability import get_meter, get_tracer
from hrms.db.session import SessionFactory, SessionLocal, session_scope
from hrms.domains.stores.calendar import StoreCalendar, holiday_dates
from hrms.models import Attendance, Employee, Store
from hrms.models.enums import NonWorkingDayKind

T = TypeVar("T")

logger = get_logger(__name__)
tracer = get_tracer(__name__)
marked_rows = get_meter(__name__).create_counter(
    "hrms.attendance.non_working_day.rows",
    description="Attendance rows created by the non-working-day job",
)


@dataclass
class StoreTarget:
    store_id: int
    status: NonWorkingDayKind


@dataclass
class JobResult:
    date: date
    successful: int = 0
    failed: int = 0
    marked: int = 0
    failed_store_ids: list[int] = field(default_factory=list)


def _classify_store(db: Session, store: Store, target_date: date) -> NonWorkingDayKind | None:
    if store.calendar is None:
        return None
    calendar = StoreCalendar(
        weekday_off=store.calendar.weekday_off,
        holidays=holiday_dates(db, store.calendar, target_date, target_date),
    )
    if calendar.is_weekday_off(target_date):
        return NonWorkingDayKind.WEEKDAY_OFF
    if calendar.is_holiday(target_date):
        return NonWorkingDayKind.HOLIDAY
    return None


def find_target_stores(
    factory: SessionFactory,
    target_date: date,
    kind: NonWorkingDayKind | None = None,
    batch_size: int = 100,
) -> list[StoreTarget]:
    """Stores for which ``target_date`` is a non-working day.

    With an explicit ``kind`` every matching store is marked with it;
    otherwise weekly-off wins over holiday.
    """
    targets: list[StoreTarget] = []
    with session_scope(factory) as db:
        offset = 0
        while True:
            stores = (
                db.query(Store)
                .options(selectinload(Store.calendar))
                .order_by(Store.id.asc())
                .offset(offset)
                .limit(batch_size)
                .all()
            )
            for store in stores:
                derived = _classify_store(db, store, target_date)
                if derived is None:
                    continue
                targets.append(StoreTarget(store_id=store.id, status=kind or derived))
            if len(stores) < batch_size:
                break
            offset += batch_size
    return targets


def mark_store(
    factory: SessionFactory,
    store_id: int,
    target_date: date,
    status: NonWorkingDayKind,
    batch_size: int = 100,
) -> int:
    """Create missing attendance rows for one store; returns rows created."""
    created = 0
    with session_scope(factory) as db:
        offset = 0
        batch_number = 0
        while True:
            employee_ids = [
                row.id
                for row in db.query(Employee.id)
                .filter(Employee.store_id == store_id)
                .order_by(Employee.id.asc())
                .offset(offset)
                .limit(batch_size)
                .all()
            ]
            if not employee_ids:
                break
            batch_number += 1

            existing = {
                row.employee_id
                for row in db.query(Attendance.employee_id)
                .filter(Attendance.employee_id.in_(employee_ids), Attendance.date == target_date)
                .all()
            }
            rows = [
                Attendance(employee_id=employee_id, date=target_date, status=status.value)
                for employee_id in employee_ids
                if employee_id not in existing
            ]
            if rows:
                db.add_all(rows)
                db.commit()
            created += len(rows)
            logger.info(
                "attendance_job_batch_marked",
                store_id=store_id,
                status=status.value,
                batch=batch_number,
                marked=len(rows),
            )

            if len(employee_ids) < batch_size:
                break
            offset += batch_size
    return created


def _retrying(
    operation: Callable[[], T],
    *,
    failure: str,
    max_retries: int,
    backoff_seconds: float,
    sleep: Callable[[float], None],
    **log_fields,
) -> T:
    attempt = 0
    while True:
        try:
            return operation()
        except DBAPIError as exc:
            if attempt >= max_retries:
                raise TransientInfraError(failure) from exc
            attempt += 1
            logger.warning(
                "attendance_job_retry",
                attempt=attempt,
                max_retries=max_retries,
                error=str(exc.orig),
                **log_fields,
            )
            sleep(backoff_seconds * attempt)


def mark_store_with_retry(
    factory: SessionFactory,
    target: StoreTarget,
    target_date: date,
    *,
    batch_size: int,
    max_retries: int,
    backoff_seconds: float,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    return _retrying(
        lambda: mark_store(factory, target.store_id, target_date, target.status, batch_size),
        failure=f"Store {target.store_id} could not be marked",
        max_retries=max_retries,
        backoff_seconds=backoff_seconds,
        sleep=sleep,
        store_id=target.store_id,
    )


def mark_non_working_day(
    target_date: date,
    kind: NonWorkingDayKind | None = None,
    *,
    factory: SessionFactory = SessionLocal,
    batch_size: int | None = None,
    max_retries: int | None = None,
    backoff_seconds: float | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> JobResult:
    batch_size = batch_size or settings.attendance_job_batch_size
    max_retries = settings.attendance_job_max_retries if max_retries is None else max_retries
    backoff_seconds = (
        settings.attendance_job_retry_backoff_seconds if backoff_seconds is None else backoff_seconds
    )

    result = JobResult(date=target_date)
    with tracer.start_as_current_span("attendance.mark_non_working_day") as span:
        span.set_attribute("hrms.date", target_date.isoformat())
        targets = _retrying(
            lambda: find_target_stores(factory, target_date, kind, batch_size),
            failure="Stores could not be listed",
            max_retries=max_retries,
            backoff_seconds=backoff_seconds,
            sleep=sleep,
            phase="store_scan",
        )
        logger.info("attendance_job_started", date=target_date.isoformat(), stores=len(targets))

        for target in targets:
            try:
                result.marked += mark_store_with_retry(
                    factory,
                    target,
                    target_date,
                    batch_size=batch_size,
                    max_retries=max_retries,
                    backoff_seconds=backoff_seconds,
                    sleep=sleep,
                )
                result.successful += 1
            except TransientInfraError as exc:
                result.failed += 1
                result.failed_store_ids.append(target.store_id)
                logger.error("attendance_job_store_failed", store_id=target.store_id, error=exc.message)

        span.set_attribute("hrms.stores.successful", result.successful)
        span.set_attribute("hrms.stores.failed", result.failed)
        marked_rows.add(result.marked)

    logger.info(
        "attendance_job_completed",
        date=target_date.isoformat(),
        successful=result.successful,
        failed=result.failed,
        marked=result.marked,
    )
    return result
