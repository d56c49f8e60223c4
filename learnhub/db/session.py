"""Engine/session construction, the request-scoped `get_db` dependency and DB error translation."""
import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event, exc
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from learnhub.core.config import Settings
from learnhub.core.errors import PersistenceError, Timeout

logger = logging.getLogger(__name__)

Base = declarative_base()

# PostgreSQL "query_canceled" (raised when statement_timeout fires)
PG_QUERY_CANCELED = "57014"


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(settings: Settings) -> Engine:
    """Create the process-wide engine with a bounded pool and per-statement timeouts."""
    url = make_url(settings.database_url)
    backend = url.get_backend_name()
    kwargs = {"pool_pre_ping": True}
    connect_args = {}

    if backend == "sqlite":
        # sqlite3 busy timeout, in seconds
        connect_args = {"check_same_thread": False, "timeout": settings.db_statement_timeout_ms / 1000}
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
        else:
            kwargs.update(
                poolclass=QueuePool,
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_timeout=settings.db_pool_timeout,
            )
    else:
        if backend == "postgresql":
            connect_args = {
                "connect_timeout": max(1, int(settings.db_pool_timeout)),
                "options": f"-c statement_timeout={settings.db_statement_timeout_ms}",
            }
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
        )

    engine = create_engine(url, connect_args=connect_args, **kwargs)
    if backend == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    logger.info("Database engine ready: %s", url.render_as_string(hide_password=True))
    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def get_db(request: Request) -> Iterator[Session]:
    """Yield a session bound to the app's pool; the connection goes back on close."""
    db = request.app.state.context.session_factory()
    try:
        yield db
    finally:
        db.close()


def _is_statement_timeout(error: exc.OperationalError) -> bool:
    orig = getattr(error, "orig", None)
    if getattr(orig, "pgcode", None) == PG_QUERY_CANCELED:
        return True
    return "database is locked" in str(orig)


@contextmanager
def translate_db_errors(db: Session, action: str) -> Iterator[None]:
    """Roll back and re-raise SQLAlchemy failures as PersistenceError / Timeout."""
    try:
        yield
    except exc.TimeoutError as e:
        db.rollback()
        logger.error("Connection pool exhausted during %s: %s", action, e)
        raise Timeout(f"Timed out waiting for a database connection ({action}).") from e
    except exc.OperationalError as e:
        db.rollback()
        if _is_statement_timeout(e):
            logger.error("Statement timeout during %s: %s", action, e.orig)
            raise Timeout(f"Database statement timed out ({action}).") from e
        logger.error("Database error during %s: %s", action, e.orig)
        raise PersistenceError(f"Database unavailable ({action}).") from e
    except exc.IntegrityError as e:
        db.rollback()
        logger.warning("Constraint violation during %s: %s", action, e.orig)
        raise PersistenceError(f"Constraint violation ({action}).") from e
    except exc.SQLAlchemyError as e:
        db.rollback()
        logger.error("Database error during %s: %s", action, e)
        raise PersistenceError(f"Database error ({action}).") from e
