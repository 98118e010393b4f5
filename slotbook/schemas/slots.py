"""Slot query schemas."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from slotbook.config import settings


class CandidateSlot(BaseModel):
    """Computed bookable window. Never persisted."""

    start: datetime
    end: datetime
    duration_minutes: int
    available: bool


class SlotQuery(BaseModel):
    """Slot search parameters. Missing dates are filled in by the slot service."""

    provider_id: UUID | None = None
    start_date: date | None = None
    end_date: date | None = None
    duration_minutes: int = Field(
        default=settings.default_slot_duration_minutes,
        gt=0,
        le=settings.max_appointment_duration_minutes,
    )


class ProviderSlotsResponse(BaseModel):
    """Slots offered by one provider over the queried range."""

    provider_id: UUID
    provider_name_en: str
    provider_name_ar: str | None = None
    specialty_en: str
    specialty_ar: str | None = None
    slots: list[CandidateSlot]
