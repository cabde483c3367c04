from contextlib import contextmanager

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import QueuePool

from partnership_agent.core.config import settings
from partnership_agent.utils.logging import get_logger

logger = get_logger("partnership_agent.sqlite.database")


class Base(DeclarativeBase):
    """Base class for all ORM models."""


def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable WAL mode so chat history writes don't block readers."""
    cursor = dbapi_conn.cursor()
    try:
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")  # Faster than FULL, safer than OFF
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA temp_store=MEMORY")
    except Exception as e:
        # WAL is unavailable on some filesystems; the defaults still work
        logger.warning("Could not set SQLite pragmas: %s", e)
    finally:
        cursor.close()


def create_db_engine(database_url: str | None = None) -> Engine:
    url = database_url or settings.database_url
    if url.startswith("sqlite"):
        db_engine = create_engine(
            url,
            connect_args={
                "check_same_thread": settings.sqlite_check_same_thread,
                "timeout": settings.sqlite_timeout,
            },
            poolclass=QueuePool,
            pool_size=max(5, settings.pool_size or 5),
            max_overflow=max(10, settings.max_overflow or 10),
            pool_pre_ping=settings.pool_pre_ping,
            echo=False,
        )
        event.listen(db_engine, "connect", set_sqlite_pragma)
        return db_engine

    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        pool_pre_ping=settings.pool_pre_ping,
        pool_recycle=settings.pool_recycle,
        pool_timeout=settings.pool_timeout,
        echo=False,
    )


engine = create_db_engine()

# Plain session factory; create a new Session per request/task
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,
)


@contextmanager
def get_db_context(session_factory=None):
    """
    Context manager for database sessions (chat history, query logging).
    Commits on success, rolls back on error.
    """
    db = (session_factory or SessionLocal)()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db() -> bool:
    """
    Verify the database connection and create tables.
    Call this during app startup.
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        from partnership_agent.sqlite import models  # noqa: F401  (registers tables)

        Base.metadata.create_all(bind=engine)
        logger.info("[OK] Database ready")
        return True
    except Exception as e:
        logger.error("[FAIL] Database initialization failed: %s", e)
        return False
