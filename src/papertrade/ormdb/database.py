"""Database configuration and session management."""

from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config.logging import get_logger
from ..config.settings import get_settings
from ..exceptions import StoreUnavailable

logger = get_logger(__name__)

# Base class for all ORM models
Base = declarative_base()

_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def _configure_sqlite(dbapi_connection, connection_record):
    """Enable foreign keys and WAL for SQLite connections."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


def create_engine_from_settings() -> Engine:
    """Create database engine using application settings."""
    settings = get_settings()
    database_url = settings.get_database_url()

    logger.info(
        "Creating database engine",
        url_type="sqlite" if "sqlite" in database_url else "other",
        echo_sql=settings.database_echo_sql,
    )

    engine_kwargs = {
        "echo": settings.database_echo_sql,
        "pool_pre_ping": settings.database_pool_pre_ping,
        "pool_recycle": settings.database_pool_recycle,
    }

    if "sqlite" in database_url:
        engine_kwargs.update(
            {
                "connect_args": {
                    "check_same_thread": False,
                    "timeout": 30,
                },
                "poolclass": StaticPool,
            }
        )
    else:
        engine_kwargs.update(
            {
                "pool_size": 5,
                "max_overflow": 10,
            }
        )

    engine = create_engine(database_url, **engine_kwargs)

    if "sqlite" in database_url:
        event.listen(engine, "connect", _configure_sqlite)

    return engine


def get_engine() -> Engine:
    """Get the database engine, creating it if necessary."""
    global _engine

    if _engine is None:
        _engine = create_engine_from_settings()
        logger.info("Database engine initialized")

    return _engine


def get_session_factory() -> sessionmaker:
    """Get the session factory, creating it if necessary."""
    global _SessionLocal

    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=get_engine(),
            expire_on_commit=False,  # Keep objects accessible after commit
        )
        logger.debug("Session factory created")

    return _SessionLocal


def get_session_sync() -> Session:
    """
    Get a synchronous database session.

    Returns:
        Session: SQLAlchemy session (caller responsible for commit and close)
    """
    return get_session_factory()()


@contextmanager
def session_scope(
    operation: str, session_factory: Optional[Callable[[], Session]] = None
) -> Iterator[Session]:
    """
    Provide a session that commits on success and rolls back on error.

    Store errors are re-raised as StoreUnavailable tagged with ``operation``;
    any other exception propagates unchanged after the rollback.
    """
    session = (session_factory or get_session_sync)()
    try:
        yield session
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Database operation failed", operation=operation, error=str(e))
        raise StoreUnavailable(operation, str(e)) from e
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_tables():
    """Create all database tables."""
    # Register models on the metadata before creating
    from . import models  # noqa: F401

    logger.info("Creating database tables")
    Base.metadata.create_all(bind=get_engine())
    logger.info("Database tables created successfully")


def check_database_health() -> dict:
    """
    Check database connectivity.

    Returns:
        dict: Database health status
    """
    try:
        session = get_session_sync()
        try:
            health_check = session.execute(text("SELECT 1")).scalar()
        finally:
            session.close()

        return {"status": "healthy", "connectivity": health_check == 1}

    except Exception as e:
        logger.error("Database health check failed", error=str(e), exc_info=True)
        return {
            "status": "unhealthy",
            "error": str(e),
            "connectivity": False,
        }
