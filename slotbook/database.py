"""Database configuration and connection management."""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import Result
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.sql import Executable

from slotbook.config import settings
from slotbook.core.exceptions import (
    AppException,
    AppointmentNumberCollisionException,
    SlotUnavailableException,
    TransientStorageException,
)

# Convert sync PostgreSQL URL to async
DATABASE_URL = settings.database_url.replace("postgresql://", "postgresql+asyncpg://")

# SQLSTATE codes
EXCLUSION_VIOLATION = "23P01"
UNIQUE_VIOLATION = "23505"
TRANSIENT_SQLSTATES = frozenset(
    {
        "40001",  # serialization_failure
        "40P01",  # deadlock_detected
        "55P03",  # lock_not_available (lock_timeout)
        "57014",  # query_canceled (statement_timeout)
    }
)

APPOINTMENT_NUMBER_CONSTRAINT = "uq_appointments_appointment_number"

# Create async engine with connection pooling
engine: AsyncEngine = create_async_engine(
    DATABASE_URL,
    echo=settings.debug,
    pool_pre_ping=True,
    pool_size=10,
    max_overflow=20,
    pool_recycle=3600,
    connect_args={
        "server_settings": {
            "application_name": settings.app_name,
            "statement_timeout": str(settings.db_statement_timeout_ms),
            "lock_timeout": str(settings.db_lock_timeout_ms),
        },
    },
)

# Async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def get_sqlstate(exc: DBAPIError) -> str | None:
    """Extract the SQLSTATE code from a wrapped driver error."""
    orig = exc.orig
    for candidate in (orig, getattr(orig, "__cause__", None)):
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return str(code)
    return None


def translate_db_error(exc: DBAPIError) -> AppException | None:
    """
    Map a database error onto the scheduling error taxonomy.

    Args:
        exc: Error raised by SQLAlchemy

    Returns:
        Matching application exception, or None if the error is not one we map
    """
    sqlstate = get_sqlstate(exc)

    if sqlstate == EXCLUSION_VIOLATION:
        return SlotUnavailableException()

    if isinstance(exc, IntegrityError) and sqlstate == UNIQUE_VIOLATION:
        if APPOINTMENT_NUMBER_CONSTRAINT in str(exc.orig):
            return AppointmentNumberCollisionException(number="<concurrent>")
        return None

    if sqlstate in TRANSIENT_SQLSTATES or exc.connection_invalidated:
        return TransientStorageException(f"Database unavailable ({sqlstate or 'connection lost'})")

    if isinstance(exc, OperationalError):
        return TransientStorageException("Database unavailable")

    return None


async def run_statement(db: AsyncSession, statement: Executable) -> Result[Any]:
    """Execute a statement, raising scheduling errors instead of driver errors."""
    try:
        return await db.execute(statement)
    except DBAPIError as exc:
        mapped = translate_db_error(exc)
        if mapped is not None:
            raise mapped from exc
        raise


async def check_database_connection() -> bool:
    """Check if database connection is healthy."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
