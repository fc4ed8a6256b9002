"""Engine and session lifecycle for the local posting store.

One engine per process: init_database() opens it and creates the schema,
close_database() disposes of it. Work happens inside get_session(), which
commits on success and rolls back on error.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.orm import Session, sessionmaker

from nearby_jobs.logging import get_logger

from .exceptions import DatabaseConnectionError

logger = get_logger(__name__, component="database")

SQLITE_BUSY_TIMEOUT_SECONDS = 30

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def init_database(database_url: str) -> None:
    """Open the posting store and create its schema if needed.

    For file-backed SQLite URLs the parent directory is created first.
    Calling this again replaces the previously opened engine.

    Args:
        database_url: SQLAlchemy URL (e.g., "sqlite:///./data/nearby_jobs.db")

    Raises:
        DatabaseConnectionError: If the URL is unusable or the store cannot be reached
    """
    global _engine, _session_factory

    if not database_url or not isinstance(database_url, str):
        raise DatabaseConnectionError("Database URL must be a non-empty string")

    try:
        url = make_url(database_url)
    except ArgumentError as e:
        raise DatabaseConnectionError(f"Invalid database URL: {e}") from e

    safe_url = url.render_as_string(hide_password=True)
    logger.info(
        "Initializing database",
        extra={"event": "database.initializing", "database_url": safe_url},
    )

    close_database()

    engine: Optional[Engine] = None
    try:
        engine = _create_engine(url)
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()

        from .schema import create_schema

        create_schema(engine)
    except Exception as e:
        if engine is not None:
            engine.dispose()
        logger.error(
            f"Failed to initialize database: {e}",
            exc_info=True,
            extra={"event": "database.init_failed", "database_url": safe_url},
        )
        raise DatabaseConnectionError(f"Failed to initialize database: {e}") from e

    _engine = engine
    _session_factory = sessionmaker(bind=engine, autoflush=True, expire_on_commit=False)

    logger.info(
        "Database ready",
        extra={"event": "database.initialised", "database_url": safe_url},
    )


def _create_engine(url: URL) -> Engine:
    if url.get_backend_name() != "sqlite":
        return create_engine(url, pool_pre_ping=True)

    if url.database and url.database != ":memory:":
        db_dir = Path(url.database).parent
        if not db_dir.exists():
            logger.info(f"Creating database directory: {db_dir}")
            db_dir.mkdir(parents=True, exist_ok=True)

    engine = create_engine(
        url,
        pool_pre_ping=True,
        connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT_SECONDS},
    )
    event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    cursor = dbapi_conn.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
    finally:
        cursor.close()


@contextmanager
def get_session() -> Iterator[Session]:
    """Yield a session that commits on success and rolls back on error.

    Raises:
        DatabaseConnectionError: If init_database() has not been called

    Example:
        >>> with get_session() as session:
        ...     recent = JobPostingRepository(session).get_recent(100)
    """
    if _session_factory is None:
        raise DatabaseConnectionError("Database not initialized. Call init_database() first")

    with _session_factory() as session:
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.warning(
                f"Database session rolled back: {e}",
                extra={"event": "database.session.rolled_back", "error_type": type(e).__name__},
            )
            raise


def get_engine() -> Engine:
    """Return the open engine.

    Raises:
        DatabaseConnectionError: If init_database() has not been called
    """
    if _engine is None:
        raise DatabaseConnectionError("Database not initialized. Call init_database() first")
    return _engine


def is_initialized() -> bool:
    return _session_factory is not None


def close_database() -> None:
    """Dispose of the engine, if one is open."""
    global _engine, _session_factory

    if _engine is None:
        return

    logger.info("Closing database connections", extra={"event": "database.closed"})
    _engine.dispose()
    _engine = None
    _session_factory = None
