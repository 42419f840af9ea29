"""Database session. SQLite by default, pooled connections elsewhere."""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from drugstock.core.config import settings

connect_args = (
    {"check_same_thread": False}
    if settings.DATABASE_URL.startswith("sqlite")
    else {}
)

if settings.DATABASE_URL.startswith("sqlite"):
    # SQLite: NullPool for thread-safety
    from sqlalchemy.pool import NullPool
    engine = create_engine(
        settings.DATABASE_URL,
        connect_args=connect_args,
        poolclass=NullPool,
    )
else:
    # PostgreSQL/MySQL: QueuePool with sensible defaults
    engine = create_engine(
        settings.DATABASE_URL,
        connect_args=connect_args,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=3600,
        pool_pre_ping=True,
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def commit_or_rollback(db, operation: str) -> None:
    """Commit the unit of work; on database failure roll back and raise IntegrationError."""
    _guarded(db, db.commit, operation)


def flush_or_rollback(db, operation: str) -> None:
    """Flush pending changes (assigns ids) under the same failure handling as commit."""
    _guarded(db, db.flush, operation)


def _guarded(db, step, operation: str) -> None:
    from sqlalchemy.exc import SQLAlchemyError

    from drugstock.core.exceptions import IntegrationError

    try:
        step()
    except SQLAlchemyError as e:
        db.rollback()
        raise IntegrationError(f"Database error during {operation}") from e
