"""Tests for mapping database errors onto scheduling errors."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select, text
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, ProgrammingError

from slotbook.core.exceptions import (
    AppointmentNumberCollisionException,
    SlotUnavailableException,
    TransientStorageException,
)
from slotbook.database import get_sqlstate, run_statement, translate_db_error


class DriverError(Exception):
    """Stand-in for a driver exception carrying a SQLSTATE."""

    def __init__(self, sqlstate: str | None, message: str = "driver error"):
        super().__init__(message)
        self.sqlstate = sqlstate


def wrap(error_class, sqlstate, message="driver error", connection_invalidated=False):
    return error_class(
        "INSERT INTO appointments ...",
        {},
        DriverError(sqlstate, message),
        connection_invalidated=connection_invalidated,
    )


def test_sqlstate_from_cause():
    orig = Exception("wrapped")
    orig.__cause__ = DriverError("23P01")

    assert get_sqlstate(DBAPIError("SELECT 1", {}, orig)) == "23P01"


def test_exclusion_violation_is_slot_unavailable():
    error = wrap(IntegrityError, "23P01", 'violates exclusion constraint "appointments_no_overlap"')

    assert isinstance(translate_db_error(error), SlotUnavailableException)


def test_number_unique_violation_is_collision():
    error = wrap(
        IntegrityError,
        "23505",
        'duplicate key value violates unique constraint "uq_appointments_appointment_number"',
    )

    assert isinstance(translate_db_error(error), AppointmentNumberCollisionException)


def test_other_unique_violation_is_not_mapped():
    error = wrap(IntegrityError, "23505", 'violates unique constraint "users_email_key"')

    assert translate_db_error(error) is None


@pytest.mark.parametrize("sqlstate", ["40001", "40P01", "55P03", "57014"])
def test_transient_sqlstates(sqlstate):
    error = wrap(DBAPIError, sqlstate)

    mapped = translate_db_error(error)

    assert isinstance(mapped, TransientStorageException)
    assert mapped.status_code == 503


def test_lost_connection_is_transient():
    assert isinstance(
        translate_db_error(wrap(DBAPIError, None, connection_invalidated=True)),
        TransientStorageException,
    )
    assert isinstance(translate_db_error(wrap(OperationalError, None)), TransientStorageException)


def test_programming_error_is_not_mapped():
    assert translate_db_error(wrap(ProgrammingError, "42P01")) is None


@pytest.mark.asyncio
async def test_run_statement_translates_errors():
    """Test mapped driver errors surface as scheduling errors."""
    db = AsyncMock()
    db.execute.side_effect = wrap(IntegrityError, "23P01")

    with pytest.raises(SlotUnavailableException):
        await run_statement(db, select(text("1")))


@pytest.mark.asyncio
async def test_run_statement_reraises_unmapped_errors():
    """Test unknown driver errors propagate unchanged."""
    db = AsyncMock()
    error = wrap(ProgrammingError, "42P01")
    db.execute.side_effect = error

    with pytest.raises(ProgrammingError) as exc_info:
        await run_statement(db, select(text("1")))

    assert exc_info.value is error


@pytest.mark.asyncio
async def test_run_statement_returns_result():
    db = AsyncMock()
    db.execute.return_value = "result"

    assert await run_statement(db, select(text("1"))) == "result"
