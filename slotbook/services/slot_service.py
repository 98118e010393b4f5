"""Slot search: candidate windows annotated with current bookings."""

from datetime import date, timedelta

import structlog

from slotbook.config import settings
from slotbook.core.clock import Clock, utc_now
from slotbook.core.exceptions import ValidationException
from slotbook.core.retry import storage_retrying
from slotbook.repositories.appointments import AppointmentRepository
from slotbook.repositories.providers import ProviderRepository
from slotbook.schemas.providers import Provider
from slotbook.schemas.slots import CandidateSlot, ProviderSlotsResponse, SlotQuery
from slotbook.services.slot_generator import annotate_windows, generate_candidate_windows

logger = structlog.get_logger()


class SlotService:
    """Read-only slot queries. Never writes."""

    def __init__(
        self,
        providers: ProviderRepository,
        appointments: AppointmentRepository,
        clock: Clock = utc_now,
        lead_time: timedelta | None = None,
    ):
        """Initialize service with its stores and clock."""
        self.providers = providers
        self.appointments = appointments
        self.clock = clock
        self.lead_time = (
            lead_time if lead_time is not None else timedelta(minutes=settings.slot_lead_time_minutes)
        )

    async def generate_slots(
        self,
        provider: Provider,
        range_start: date,
        range_end: date,
        slot_duration_minutes: int,
    ) -> list[CandidateSlot]:
        """
        Generate the provider's slots over a date range.

        Each slot is marked unavailable when it overlaps a live appointment.
        Bookings are read once for the whole range.

        Args:
            provider: Provider with its availability rules
            range_start: First calendar day (inclusive)
            range_end: Last calendar day (inclusive)
            slot_duration_minutes: Length of every slot

        Returns:
            Slots sorted by start time

        Raises:
            ValidationException: If the slot duration is not positive
        """
        windows = generate_candidate_windows(
            provider.availability,
            range_start,
            range_end,
            slot_duration_minutes,
            now=self.clock(),
            lead_time=self.lead_time,
        )
        # Overlapping rules produce the same window twice
        windows = list(dict.fromkeys(windows))
        if not windows:
            return []

        busy = await self.appointments.busy_windows(provider.id, windows[0][0], windows[-1][1])
        return annotate_windows(windows, busy)

    def _resolve_range(self, query: SlotQuery) -> tuple[date, date]:
        start_date = query.start_date or self.clock().date()
        end_date = query.end_date or start_date + timedelta(days=settings.slot_query_default_days)

        if end_date < start_date:
            raise ValidationException.for_field("end_date", "End date must not be before start date")
        if (end_date - start_date).days > settings.slot_query_max_days:
            raise ValidationException.for_field(
                "end_date",
                f"Date range must not exceed {settings.slot_query_max_days} days",
            )
        return start_date, end_date

    async def get_available_slots(self, query: SlotQuery) -> list[ProviderSlotsResponse]:
        """
        Slots for one provider, or for every active provider.

        An unknown or inactive provider yields an empty list.

        Raises:
            ValidationException: If the date range is reversed or too long
            TransientStorageException: If storage stays unavailable after retries
        """
        start_date, end_date = self._resolve_range(query)

        async for attempt in storage_retrying(settings.read_retry_attempts):
            with attempt:
                if query.provider_id is not None:
                    provider = await self.providers.get_provider(query.provider_id)
                    candidates = [provider] if provider and provider.is_active else []
                else:
                    candidates = await self.providers.list_active_providers()

                results = []
                for provider in candidates:
                    slots = await self.generate_slots(
                        provider, start_date, end_date, query.duration_minutes
                    )
                    results.append(
                        ProviderSlotsResponse(
                            provider_id=provider.id,
                            provider_name_en=provider.name_en,
                            provider_name_ar=provider.name_ar,
                            specialty_en=provider.specialty_en,
                            specialty_ar=provider.specialty_ar,
                            slots=slots,
                        )
                    )

        logger.info(
            "slots_queried",
            provider_id=str(query.provider_id) if query.provider_id else None,
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat(),
            providers=len(results),
        )
        return results
