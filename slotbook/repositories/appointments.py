"""Appointment store: conflict checks, numbering and persistence."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import BigInteger, and_, cast, func, insert, select, update
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from slotbook.core.appointment_numbers import next_number, number_prefix
from slotbook.core.exceptions import AppointmentNumberCollisionException, NotFoundException
from slotbook.database import run_statement, translate_db_error
from slotbook.models.appointments import appointments
from slotbook.models.providers import providers
from slotbook.schemas.appointments import (
    AppointmentFilters,
    AppointmentResponse,
    AppointmentStatus,
)
from slotbook.services.slot_generator import Window

logger = structlog.get_logger()


class AppointmentRepository:
    """Appointment persistence over a single async session."""

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session."""
        self.db = db

    @asynccontextmanager
    async def transaction(self, lock_provider_id: UUID | None = None) -> AsyncIterator[None]:
        """
        Run a unit of work that commits on success and rolls back otherwise.

        With ``lock_provider_id`` the provider row is locked first
        (``SELECT ... FOR UPDATE``). Every writer of that provider's
        appointments takes the same lock, so a conflict check made inside the
        block stays valid until commit.

        Rollback also runs on task cancellation before it propagates.

        Raises:
            NotFoundException: If the provider to lock does not exist
            TransientStorageException: On lock timeout, deadlock or lost connection
        """
        try:
            if lock_provider_id is not None:
                await self._lock_provider(lock_provider_id)
            yield
            await self._commit()
        except BaseException:
            await self.db.rollback()
            raise

    async def _lock_provider(self, provider_id: UUID) -> None:
        query = select(providers.c.id).where(providers.c.id == provider_id).with_for_update()
        result = await run_statement(self.db, query)
        if result.scalar_one_or_none() is None:
            raise NotFoundException("Provider not found", resource="Provider")

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except DBAPIError as exc:
            mapped = translate_db_error(exc)
            if mapped is not None:
                raise mapped from exc
            raise

    @staticmethod
    def _overlap_conditions(
        provider_id: UUID,
        start: datetime,
        end: datetime,
        exclude_appointment_id: UUID | None = None,
    ) -> list[Any]:
        # Half-open: an appointment ending exactly at ``start`` does not overlap
        conditions = [
            appointments.c.provider_id == provider_id,
            appointments.c.status != AppointmentStatus.CANCELLED.value,
            appointments.c.appointment_at < end,
            appointments.c.appointment_end_at > start,
        ]
        if exclude_appointment_id is not None:
            conditions.append(appointments.c.id != exclude_appointment_id)
        return conditions

    async def has_conflict(
        self,
        provider_id: UUID,
        start: datetime,
        end: datetime,
        exclude_appointment_id: UUID | None = None,
    ) -> bool:
        """
        Check whether any live appointment of the provider overlaps [start, end).

        Args:
            provider_id: Provider ID
            start: Window start
            end: Window end
            exclude_appointment_id: Appointment to ignore (used when rescheduling)

        Returns:
            True if the window is taken
        """
        query = (
            select(appointments.c.id)
            .where(and_(*self._overlap_conditions(provider_id, start, end, exclude_appointment_id)))
            .limit(1)
        )
        result = await run_statement(self.db, query)
        taken = result.first() is not None

        if taken:
            logger.info(
                "slot_conflict_detected",
                provider_id=str(provider_id),
                start=start.isoformat(),
                end=end.isoformat(),
            )
        return taken

    async def busy_windows(self, provider_id: UUID, start: datetime, end: datetime) -> list[Window]:
        """Windows of live appointments overlapping [start, end), ordered by start."""
        query = (
            select(appointments.c.appointment_at, appointments.c.appointment_end_at)
            .where(and_(*self._overlap_conditions(provider_id, start, end)))
            .order_by(appointments.c.appointment_at)
        )
        result = await run_statement(self.db, query)
        return [(row.appointment_at, row.appointment_end_at) for row in result.all()]

    async def next_appointment_number_candidate(self, prefix: str, year: int) -> str:
        """
        Number following the highest one issued this year.

        Sequences are compared as integers; past 999999 they grow wider than
        the zero padding and no longer sort as text.
        """
        head = number_prefix(prefix, year)
        # Drop the yearly head and any random suffix, leaving the digits
        sequence = cast(
            func.split_part(func.substr(appointments.c.appointment_number, len(head) + 1), "-", 1),
            BigInteger,
        )
        query = (
            select(appointments.c.appointment_number)
            .where(appointments.c.appointment_number.like(f"{head}%"))
            .order_by(sequence.desc())
            .limit(1)
        )
        result = await run_statement(self.db, query)
        return next_number(result.scalar_one_or_none(), prefix, year)

    async def appointment_number_exists(self, number: str) -> bool:
        """Check whether an appointment number is already taken."""
        query = select(appointments.c.id).where(appointments.c.appointment_number == number)
        result = await run_statement(self.db, query)
        return result.first() is not None

    async def insert(self, values: dict[str, Any]) -> AppointmentResponse:
        """
        Insert an appointment row.

        Raises:
            SlotUnavailableException: If the row would overlap a live appointment
            AppointmentNumberCollisionException: If the number was taken concurrently
        """
        stmt = insert(appointments).values(**values).returning(appointments)
        try:
            result = await run_statement(self.db, stmt)
        except AppointmentNumberCollisionException as exc:
            raise AppointmentNumberCollisionException(values["appointment_number"]) from exc

        row = result.mappings().one()
        return AppointmentResponse.model_validate(dict(row))

    async def update(self, appointment_id: UUID, values: dict[str, Any]) -> AppointmentResponse | None:
        """
        Update an appointment row.

        Raises:
            SlotUnavailableException: If a new window would overlap a live appointment
        """
        stmt = (
            update(appointments)
            .where(appointments.c.id == appointment_id)
            .values(**values)
            .returning(appointments)
        )
        result = await run_statement(self.db, stmt)
        row = result.mappings().first()
        return AppointmentResponse.model_validate(dict(row)) if row else None

    async def attach_meeting(
        self,
        appointment_id: UUID,
        meeting_id: str,
        meeting_url: str,
    ) -> AppointmentResponse | None:
        """Store the meeting link created for an appointment."""
        return await self.update(
            appointment_id,
            {"meeting_id": meeting_id, "meeting_url": meeting_url, "updated_at": func.now()},
        )

    async def get(self, appointment_id: UUID) -> AppointmentResponse | None:
        """Get appointment by ID."""
        query = select(appointments).where(appointments.c.id == appointment_id)
        result = await run_statement(self.db, query)
        row = result.mappings().first()
        return AppointmentResponse.model_validate(dict(row)) if row else None

    async def list_for_user(
        self,
        user_id: UUID,
        filters: AppointmentFilters,
    ) -> tuple[int, list[AppointmentResponse]]:
        """
        List a user's appointments, newest first.

        Args:
            user_id: Owner of the appointments
            filters: Filter and pagination parameters

        Returns:
            Total matching count and the requested page
        """
        conditions = [appointments.c.user_id == user_id]

        if filters.status:
            conditions.append(appointments.c.status == filters.status.value)

        if filters.provider_id:
            conditions.append(appointments.c.provider_id == filters.provider_id)

        if filters.from_date:
            conditions.append(appointments.c.appointment_at >= filters.from_date)

        if filters.to_date:
            conditions.append(appointments.c.appointment_at <= filters.to_date)

        count_stmt = select(func.count()).select_from(appointments).where(and_(*conditions))
        total_result = await run_statement(self.db, count_stmt)
        total = total_result.scalar() or 0

        offset = (filters.page - 1) * filters.page_size

        stmt = (
            select(appointments)
            .where(and_(*conditions))
            .order_by(appointments.c.appointment_at.desc())
            .limit(filters.page_size)
            .offset(offset)
        )
        result = await run_statement(self.db, stmt)
        items = [AppointmentResponse.model_validate(dict(row)) for row in result.mappings().all()]

        return total, items
