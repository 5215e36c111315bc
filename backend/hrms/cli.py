from __future__ import annotations

import argparse
from datetime import date

from hrms.core.config import settings
from hrms.core.logging import configure_logging
from hrms.core.observability import configure_observability
from hrms.core.timeutils import to_display, utcnow
from hrms.db.session import Base, SessionLocal, engine, session_scope
from hrms.domains.attendance.job import mark_non_working_day
from hrms.models.enums import NonWorkingDayKind


def parse_date(value: str) -> date:
    return date.fromisoformat(value)


def cmd_mark_non_working_day(args: argparse.Namespace) -> int:
    target = args.date or to_display(utcnow()).date()
    kind = NonWorkingDayKind(args.kind) if args.kind else None
    result = mark_non_working_day(target, kind, factory=SessionLocal)
    print(
        f"Marked {result.marked} attendance rows for {result.date}: "
        f"{result.successful} stores succeeded, {result.failed} failed"
    )
    if result.failed_store_ids:
        print(f"Failed stores: {', '.join(str(store_id) for store_id in result.failed_store_ids)}")
    return 1 if result.failed else 0


def cmd_init_db(_: argparse.Namespace) -> int:
    Base.metadata.create_all(bind=engine)
    print(f"Created tables on {engine.url.render_as_string(hide_password=True)}")
    return 0


def cmd_seed(_: argparse.Namespace) -> int:
    from hrms.seed.seed_data import seed

    with session_scope() as session:
        seed(session)
    print("Seeded demo stores and employees")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Store HRMS maintenance commands")
    sub = parser.add_subparsers(dest="command", required=True)

    mark = sub.add_parser("mark-non-working-day", help="Mark weekly-off and holiday attendance for a date")
    mark.add_argument("--date", type=parse_date, help="Target date (YYYY-MM-DD), defaults to today")
    mark.add_argument("--kind", choices=[kind.value for kind in NonWorkingDayKind])
    mark.set_defaults(func=cmd_mark_non_working_day)

    init_db = sub.add_parser("init-db", help="Create all tables without running migrations")
    init_db.set_defaults(func=cmd_init_db)

    seed = sub.add_parser("seed", help="Load demo data")
    seed.set_defaults(func=cmd_seed)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(settings.log_level)
    configure_observability()
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
