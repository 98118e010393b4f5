"""Database models."""

from slotbook.models.appointments import appointments
from slotbook.models.metadata import metadata
from slotbook.models.providers import provider_availability, providers
from slotbook.models.users import users

__all__ = [
    "appointments",
    "metadata",
    "provider_availability",
    "providers",
    "users",
]
