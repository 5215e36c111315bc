from contextlib import contextmanager
from typing import Callable, Iterator

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from hrms.core.config import settings
from hrms.core.errors import ConflictError

SessionFactory = Callable[[], Session]


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,
    connect_args=_connect_args(settings.database_url),
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_session() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> SessionFactory:
    """Factory for work that manages its own transactions (batch jobs)."""
    return SessionLocal


@contextmanager
def session_scope(factory: SessionFactory = SessionLocal) -> Iterator[Session]:
    db = factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def atomic(db: Session, conflict: str | None = None) -> Iterator[Session]:
    """Commit everything written inside the block, or nothing.

    With ``conflict`` set, a unique-constraint violation surfaces as a
    ``ConflictError`` carrying that message.
    """
    try:
        yield db
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if conflict is None:
            raise
        raise ConflictError(conflict) from exc
    except Exception:
        db.rollback()
        raise
