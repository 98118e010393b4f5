"""Provider and availability schemas."""

from datetime import date, time
from enum import IntEnum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator


class DayOfWeek(IntEnum):
    """Day of week as stored on availability rules (Sunday first)."""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @classmethod
    def of(cls, day: date) -> "DayOfWeek":
        """Day of week for a calendar date."""
        # date.weekday() is Monday first
        return cls((day.weekday() + 1) % 7)


class AvailabilityRule(BaseModel):
    """Recurring weekly window during which a provider can be booked."""

    id: UUID | None = None
    day_of_week: DayOfWeek
    start_time: time
    end_time: time
    is_active: bool = True

    model_config = {"from_attributes": True}

    @field_validator("start_time", "end_time")
    @classmethod
    def drop_seconds(cls, v: time) -> time:
        """Rules are minute-granular."""
        return v.replace(second=0, microsecond=0, tzinfo=None)

    @model_validator(mode="after")
    def validate_window(self) -> "AvailabilityRule":
        """Validate start time is before end time."""
        if self.start_time >= self.end_time:
            raise ValueError("Start time must be before end time")
        return self


class Provider(BaseModel):
    """Bookable provider with its weekly availability."""

    id: UUID
    name_en: str
    name_ar: str | None = None
    specialty_en: str
    specialty_ar: str | None = None
    is_active: bool = True
    availability: list[AvailabilityRule] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    def rules_for(self, day: date) -> list[AvailabilityRule]:
        """Active rules that apply on ``day``."""
        day_of_week = DayOfWeek.of(day)
        return [
            rule for rule in self.availability if rule.is_active and rule.day_of_week == day_of_week
        ]
