"""Appointment lifecycle: lookup, listing, status changes and rescheduling."""

from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

import structlog

from slotbook.config import settings
from slotbook.core.clock import Clock, as_utc, utc_now
from slotbook.core.exceptions import (
    ForbiddenException,
    InvalidStatusTransitionException,
    NotFoundException,
    SlotUnavailableException,
)
from slotbook.core.retry import storage_retrying
from slotbook.repositories.appointments import AppointmentRepository
from slotbook.repositories.providers import ProviderRepository
from slotbook.schemas.appointments import (
    RESCHEDULABLE_STATUSES,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusUpdate,
)
from slotbook.services.booking_service import ensure_bookable_window

logger = structlog.get_logger()


class AppointmentService:
    """Service for managing existing appointments."""

    def __init__(
        self,
        appointments: AppointmentRepository,
        providers: ProviderRepository,
        clock: Clock = utc_now,
        lead_time: timedelta | None = None,
    ):
        """Initialize service with its stores and clock."""
        self.appointments = appointments
        self.providers = providers
        self.clock = clock
        self.lead_time = (
            lead_time if lead_time is not None else timedelta(minutes=settings.slot_lead_time_minutes)
        )

    async def get_appointment(self, appointment_id: UUID, user_id: UUID) -> AppointmentResponse:
        """
        Get appointment by ID.

        Args:
            appointment_id: Appointment ID
            user_id: ID of requesting user

        Returns:
            Appointment details

        Raises:
            NotFoundException: If appointment not found
            ForbiddenException: If user doesn't own the appointment
        """
        appointment = await self.appointments.get(appointment_id)

        if appointment is None:
            raise NotFoundException("Appointment not found", resource="Appointment")

        if appointment.user_id != user_id:
            raise ForbiddenException("Access denied to this appointment")

        return appointment

    async def list_appointments(
        self,
        user_id: UUID,
        filters: AppointmentFilters,
    ) -> AppointmentListResponse:
        """List the user's appointments with filtering and pagination."""
        total, items = await self.appointments.list_for_user(user_id, filters)

        return AppointmentListResponse(
            total=total,
            page=filters.page,
            page_size=filters.page_size,
            items=items,
        )

    async def update_status(
        self,
        appointment_id: UUID,
        user_id: UUID,
        data: AppointmentStatusUpdate,
    ) -> AppointmentResponse:
        """
        Move an appointment through its status machine.

        Raises:
            NotFoundException: If appointment not found
            ForbiddenException: If user doesn't own the appointment
            InvalidStatusTransitionException: If the transition is not allowed
        """
        current = await self.get_appointment(appointment_id, user_id)

        if not current.status.can_transition_to(data.status):
            raise InvalidStatusTransitionException(current.status.value, data.status.value)

        now = self.clock()
        update_values: dict[str, Any] = {
            "status": data.status.value,
            "updated_at": now,
        }

        if data.notes:
            update_values["notes"] = data.notes

        if data.status == AppointmentStatus.CANCELLED:
            update_values["cancelled_at"] = now

        async with self.appointments.transaction():
            updated = await self.appointments.update(appointment_id, update_values)

        if updated is None:
            raise NotFoundException("Appointment not found", resource="Appointment")

        logger.info(
            "appointment_status_changed",
            appointment_id=str(appointment_id),
            old_status=current.status.value,
            new_status=data.status.value,
        )
        return updated

    async def reschedule(
        self,
        appointment_id: UUID,
        user_id: UUID,
        new_start: datetime,
    ) -> AppointmentResponse:
        """
        Move an appointment to a new start time, keeping its duration and status.

        Raises:
            NotFoundException: If appointment or provider not found
            ForbiddenException: If user doesn't own the appointment
            InvalidStatusTransitionException: If the appointment is completed or cancelled
            SlotUnavailableException: If the new window cannot be booked
        """
        current = await self.get_appointment(appointment_id, user_id)

        if current.status not in RESCHEDULABLE_STATUSES:
            raise InvalidStatusTransitionException(current.status.value, "rescheduled")

        provider = await self.providers.get_provider(current.provider_id)
        if provider is None or not provider.is_active:
            raise NotFoundException("Provider not found", resource="Provider")

        now = self.clock()
        start = as_utc(new_start)
        end = start + timedelta(minutes=current.duration_minutes)
        ensure_bookable_window(provider, start, end, now, self.lead_time)

        async for attempt in storage_retrying(settings.booking_max_attempts):
            with attempt:
                async with self.appointments.transaction(lock_provider_id=current.provider_id):
                    if await self.appointments.has_conflict(
                        current.provider_id, start, end, exclude_appointment_id=appointment_id
                    ):
                        raise SlotUnavailableException()

                    updated = await self.appointments.update(
                        appointment_id,
                        {
                            "appointment_at": start,
                            "appointment_end_at": end,
                            "updated_at": now,
                        },
                    )

        if updated is None:
            raise NotFoundException("Appointment not found", resource="Appointment")

        logger.info(
            "appointment_rescheduled",
            appointment_id=str(appointment_id),
            old_start=current.appointment_at.isoformat(),
            new_start=start.isoformat(),
        )
        return updated
