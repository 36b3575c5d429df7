"""Engine and transaction scope.

The engine is created once per process and disposed by the application
lifespan. Multi-statement mutations run inside ``transaction()``, which
commits on success and rolls back on every other exit path.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, create_engine

from app.core.config import settings
from app.core.errors import DatabaseError, StorageConflictError

logger = logging.getLogger(__name__)


def build_engine(url: str, **kwargs) -> Engine:
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_pre_ping", True)
    new_engine = create_engine(url, **kwargs)
    if new_engine.dialect.name == "sqlite":
        event.listen(new_engine, "connect", _enable_sqlite_foreign_keys)
    return new_engine


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = build_engine(settings.SQLALCHEMY_DATABASE_URI)


@contextmanager
def transaction(session: Session, operation: str = "transaction") -> Iterator[Session]:
    """Commit on success, roll back on any error.

    Business errors propagate unchanged. Storage errors are logged with their
    original cause and re-raised as sanitized AppErrors.
    """
    try:
        yield session
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.warning(f"{operation}: integrity error: {e.orig}")
        raise StorageConflictError() from e
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"{operation}: database error: {e}", exc_info=True)
        raise DatabaseError(operation) from e
    except Exception:
        session.rollback()
        raise
