from comuline.config.config_main import db_config

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from contextlib import contextmanager

# Base class for SQLAlchemy models
Base = declarative_base()

SQLITE_PRAGMAS = (
    "PRAGMA busy_timeout = 5000",
    "PRAGMA journal_mode = WAL",
    "PRAGMA synchronous = NORMAL",
)


def _apply_sqlite_pragmas(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    try:
        for pragma in SQLITE_PRAGMAS:
            cursor.execute(pragma)
    finally:
        cursor.close()


def build_engine(connection_string: str) -> Engine:
    """
    Create an engine for the given URL.

    SQLite engines get the WAL/busy-timeout pragmas on every new connection.
    In-memory SQLite is pinned to a single shared connection so that worker
    threads see the same database.
    """
    if not connection_string.startswith("sqlite"):
        return create_engine(
            connection_string,
            pool_pre_ping=True,  # Verify connections before using
            echo=False
        )

    kwargs = {"connect_args": {"check_same_thread": False}}
    if connection_string in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool

    engine = create_engine(connection_string, echo=False, **kwargs)
    event.listen(engine, "connect", _apply_sqlite_pragmas)
    return engine


class ConnectionBroker:

    _engine = None

    @staticmethod
    def get_engine():
        """Get or create the process-wide SQLAlchemy engine."""
        if ConnectionBroker._engine is None:
            ConnectionBroker._engine = build_engine(db_config.connection_string)
        return ConnectionBroker._engine


def make_session_factory(engine: Engine):
    return sessionmaker(
        autoflush=False,
        expire_on_commit=False,
        bind=engine
    )


@contextmanager
def session_scope(session_factory):
    """Commit on success, roll back on any exception, always close."""
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
