"""Database connection and session management."""

import logging
import threading
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .config import Settings, get_settings

logger = logging.getLogger(__name__)


def create_db_engine(settings: Settings | None = None, **kwargs) -> Engine:
    """Create SQLAlchemy engine with connection pooling.

    SQLite connections get foreign keys switched on so ON DELETE CASCADE and
    reference checks behave the way they do in PostgreSQL.
    """
    settings = settings or get_settings()

    options = {
        "pool_pre_ping": True,  # Verify connections before using
        "echo": settings.db_echo,
    }
    if settings.is_sqlite:
        options["connect_args"] = {"check_same_thread": False}
    else:
        options["pool_size"] = settings.db_pool_size
        options["max_overflow"] = settings.db_max_overflow
        if settings.statement_timeout_ms:
            options["connect_args"] = {
                "options": f"-c statement_timeout={settings.statement_timeout_ms}"
            }
    options.update(kwargs)

    engine = create_engine(settings.database_url, **options)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _configure_sqlite_connection)
        event.listen(engine, "begin", _begin_sqlite_transaction)
    return engine


def _configure_sqlite_connection(dbapi_connection, connection_record) -> None:
    # pysqlite's own BEGIN handling breaks SAVEPOINT; SQLAlchemy emits BEGIN instead
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _begin_sqlite_transaction(conn) -> None:
    conn.exec_driver_sql("BEGIN")


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None
_init_lock = threading.Lock()


def get_engine() -> Engine:
    """Process-wide engine, created on first use."""
    global _engine
    if _engine is None:
        with _init_lock:
            if _engine is None:
                _engine = create_db_engine()
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    global _session_factory
    if _session_factory is None:
        engine = get_engine()
        with _init_lock:
            if _session_factory is None:
                _session_factory = create_session_factory(engine)
    return _session_factory


@contextmanager
def session_scope(factory: sessionmaker[Session] | None = None) -> Generator[Session, None, None]:
    """Context manager for one unit of work.

    Commits when the block exits cleanly, rolls back on any exception and
    always closes the session so the connection goes back to the pool.

    Usage:
        with session_scope() as db:
            db.query(...)
    """
    db = (factory or get_session_factory())()
    try:
        yield db
        db.commit()
    except BaseException:
        db.rollback()
        raise
    finally:
        db.close()


def check_database_health(engine: Engine | None = None) -> bool:
    """Verify database connection is working.

    Returns:
        True if database is healthy, False otherwise.
    """
    try:
        with (engine or get_engine()).connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False


def list_tables(engine: Engine | None = None) -> list[str]:
    """List all tables in the database.

    Returns:
        List of table names, empty if the database cannot be reached.
    """
    try:
        return sorted(inspect(engine or get_engine()).get_table_names())
    except Exception as e:
        logger.error(f"Failed to list tables: {e}")
        return []


def dispose_engine() -> None:
    """Dispose of the engine and all connections.

    Call this during graceful shutdown.
    """
    global _engine, _session_factory
    with _init_lock:
        if _engine is not None:
            _engine.dispose()
        _engine = None
        _session_factory = None
