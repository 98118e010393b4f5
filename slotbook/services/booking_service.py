"""Booking service: commits appointments without double-booking a provider."""

from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

import structlog
from pydantic import ValidationError

from slotbook.config import settings
from slotbook.core.appointment_numbers import increment, with_random_suffix
from slotbook.core.clock import Clock, as_utc, utc_now
from slotbook.core.exceptions import (
    NotFoundException,
    SlotUnavailableException,
    ValidationException,
)
from slotbook.core.retry import storage_retrying
from slotbook.repositories.appointments import AppointmentRepository
from slotbook.repositories.providers import ProviderRepository
from slotbook.repositories.users import UserRepository
from slotbook.schemas.appointments import AppointmentResponse, AppointmentStatus, PatientIntake
from slotbook.schemas.providers import Provider
from slotbook.services.meeting_service import MeetingProvisioner
from slotbook.services.slot_generator import fits_availability

logger = structlog.get_logger()


def validate_intake(intake: PatientIntake | dict[str, Any]) -> PatientIntake:
    """
    Validate patient intake data.

    Raises:
        ValidationException: With one detail entry per invalid field
    """
    data = intake.model_dump() if isinstance(intake, PatientIntake) else intake
    try:
        return PatientIntake.model_validate(data)
    except ValidationError as e:
        details = [
            {"loc": ["patient", *error["loc"]], "msg": error["msg"]} for error in e.errors()
        ]
        raise ValidationException("Invalid patient information", details=details) from e


def validate_duration(duration_minutes: int) -> None:
    """Raise ValidationException unless 0 < duration <= configured maximum."""
    if not 0 < duration_minutes <= settings.max_appointment_duration_minutes:
        raise ValidationException.for_field(
            "duration_minutes",
            "Duration must be between 1 and "
            f"{settings.max_appointment_duration_minutes} minutes",
        )


def ensure_bookable_window(
    provider: Provider,
    start: datetime,
    end: datetime,
    now: datetime,
    lead_time: timedelta,
) -> None:
    """
    Check a requested window against lead time and the provider's availability.

    Raises:
        SlotUnavailableException: If the window starts too soon or falls outside availability
    """
    if start < now + lead_time:
        raise SlotUnavailableException(
            "Appointments must be booked at least "
            f"{int(lead_time.total_seconds() // 60)} minutes in advance"
        )
    if not fits_availability(provider.availability, start, end):
        raise SlotUnavailableException("The selected time is outside the provider's availability")


class BookingService:
    """Service for booking appointments."""

    def __init__(
        self,
        users: UserRepository,
        providers: ProviderRepository,
        appointments: AppointmentRepository,
        meetings: MeetingProvisioner | None = None,
        clock: Clock = utc_now,
        lead_time: timedelta | None = None,
    ):
        """Initialize service with its stores, optional meeting provisioner and clock."""
        self.users = users
        self.providers = providers
        self.appointments = appointments
        self.meetings = meetings
        self.clock = clock
        self.lead_time = (
            lead_time if lead_time is not None else timedelta(minutes=settings.slot_lead_time_minutes)
        )

    async def book(
        self,
        user_id: UUID,
        provider_id: UUID,
        start: datetime,
        duration_minutes: int,
        intake: PatientIntake | dict[str, Any],
    ) -> AppointmentResponse:
        """
        Book an appointment.

        The conflict check, number assignment and insert run as one unit under
        the provider lock. The unit is retried as a whole on transient storage
        errors. The meeting link is requested only after commit and its failure
        never fails the booking.

        Args:
            user_id: Booking user
            provider_id: Provider to book
            start: Requested start (normalized to UTC)
            duration_minutes: Appointment length
            intake: Patient information

        Returns:
            Persisted appointment; ``meeting_url`` may be null

        Raises:
            NotFoundException: If the user or provider does not exist
            ValidationException: If intake or duration is invalid
            SlotUnavailableException: If the window cannot be booked
            TransientStorageException: If storage stays unavailable after retries
        """
        if not await self.users.user_exists(user_id):
            raise NotFoundException("User not found", resource="User")

        provider = await self.providers.get_provider(provider_id)
        if provider is None or not provider.is_active:
            raise NotFoundException("Provider not found", resource="Provider")

        patient = validate_intake(intake)
        validate_duration(duration_minutes)

        now = self.clock()
        start = as_utc(start)
        end = start + timedelta(minutes=duration_minutes)
        ensure_bookable_window(provider, start, end, now, self.lead_time)

        async for attempt in storage_retrying(settings.booking_max_attempts):
            with attempt:
                async with self.appointments.transaction(lock_provider_id=provider_id):
                    if await self.appointments.has_conflict(provider_id, start, end):
                        logger.info(
                            "booking_rejected",
                            reason="slot_taken",
                            provider_id=str(provider_id),
                            start=start.isoformat(),
                        )
                        raise SlotUnavailableException()

                    number = await self._assign_appointment_number(now.year)
                    appointment = await self.appointments.insert(
                        {
                            "appointment_number": number,
                            "user_id": user_id,
                            "provider_id": provider_id,
                            "appointment_at": start,
                            "duration_minutes": duration_minutes,
                            "appointment_end_at": end,
                            "status": AppointmentStatus.SCHEDULED.value,
                            **patient.model_dump(),
                            "created_at": now,
                            "updated_at": now,
                        }
                    )

        logger.info(
            "appointment_booked",
            appointment_id=str(appointment.id),
            appointment_number=appointment.appointment_number,
            provider_id=str(provider_id),
            user_id=str(user_id),
            start=start.isoformat(),
        )

        return await self._provision_meeting(appointment)

    async def _assign_appointment_number(self, year: int) -> str:
        """Next free number; falls back to a random suffix after too many collisions."""
        prefix = settings.appointment_number_prefix
        number = await self.appointments.next_appointment_number_candidate(prefix, year)

        for _ in range(settings.appointment_number_max_attempts):
            if not await self.appointments.appointment_number_exists(number):
                return number
            number = increment(number, prefix, year)

        fallback = with_random_suffix(number)
        logger.warning("appointment_number_fallback", number=fallback)
        return fallback

    async def _provision_meeting(self, appointment: AppointmentResponse) -> AppointmentResponse:
        if self.meetings is None:
            return appointment

        try:
            link = await self.meetings.create_meeting(appointment)
            async with self.appointments.transaction():
                updated = await self.appointments.attach_meeting(
                    appointment.id, link.meeting_id, link.join_url
                )
            return updated or appointment
        except Exception as e:
            # Log error but don't fail the booking
            logger.warning(
                "meeting_provisioning_failed",
                appointment_id=str(appointment.id),
                error=str(e),
            )
            return appointment
