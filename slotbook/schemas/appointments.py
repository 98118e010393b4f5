"""Appointment schemas for request/response validation."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from slotbook.core.clock import as_utc


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    def can_transition_to(self, new_status: "AppointmentStatus") -> bool:
        """Whether the status machine allows moving to ``new_status``."""
        return new_status in ALLOWED_TRANSITIONS[self]

    @property
    def is_live(self) -> bool:
        """Live appointments occupy their provider's time window."""
        return self is not AppointmentStatus.CANCELLED


# scheduled -> confirmed -> completed, cancel only before completion
ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}

RESCHEDULABLE_STATUSES = frozenset({AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED})


class PatientIntake(BaseModel):
    """Patient information captured at booking time."""

    patient_name: str = Field(..., min_length=1, max_length=200)
    patient_age: int = Field(..., ge=0, le=150)
    medical_history: str | None = Field(None, max_length=2000)
    current_concerns: str | None = Field(None, max_length=2000)
    emergency_contact: str | None = Field(None, max_length=200)
    emergency_phone: str | None = Field(None, min_length=7, max_length=20)

    @field_validator("patient_name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Reject whitespace-only names."""
        v = v.strip()
        if not v:
            raise ValueError("Patient name must not be empty")
        return v

    @field_validator("emergency_phone")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        """Validate phone number format."""
        if v is None:
            return v
        cleaned = (
            v.replace("-", "").replace(" ", "").replace("(", "").replace(")", "").replace("+", "")
        )
        if not cleaned.isdigit():
            raise ValueError("Phone number must contain only digits and separators")
        if len(cleaned) < 7:
            raise ValueError("Phone number must have at least 7 digits")
        return v


class AppointmentCreate(BaseModel):
    """Schema for booking a new appointment."""

    provider_id: UUID
    appointment_at: datetime
    duration_minutes: int = Field(default=60)
    patient: PatientIntake

    @field_validator("appointment_at")
    @classmethod
    def normalize_start(cls, v: datetime) -> datetime:
        """Store every instant on the UTC clock."""
        return as_utc(v)


class AppointmentStatusUpdate(BaseModel):
    """Schema for updating appointment status."""

    status: AppointmentStatus
    notes: str | None = Field(None, max_length=1000)


class AppointmentReschedule(BaseModel):
    """Schema for moving an appointment to a new start time."""

    appointment_at: datetime

    @field_validator("appointment_at")
    @classmethod
    def normalize_start(cls, v: datetime) -> datetime:
        """Store every instant on the UTC clock."""
        return as_utc(v)


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: UUID
    appointment_number: str
    user_id: UUID
    provider_id: UUID
    appointment_at: datetime
    appointment_end_at: datetime
    duration_minutes: int
    status: AppointmentStatus
    patient_name: str
    patient_age: int
    medical_history: str | None = None
    current_concerns: str | None = None
    emergency_contact: str | None = None
    emergency_phone: str | None = None
    meeting_id: str | None = None
    meeting_url: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime
    cancelled_at: datetime | None = None

    model_config = {"from_attributes": True}


class AppointmentListResponse(BaseModel):
    """Schema for paginated appointment list response."""

    total: int
    page: int
    page_size: int
    items: list[AppointmentResponse]


class AppointmentFilters(BaseModel):
    """Schema for appointment filtering."""

    status: AppointmentStatus | None = None
    provider_id: UUID | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)
