"""FastAPI dependencies."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from slotbook.config import settings
from slotbook.core.clock import Clock, utc_now
from slotbook.core.redis_client import CacheManager, get_redis_client
from slotbook.core.security import decode_access_token
from slotbook.database import get_db
from slotbook.repositories.appointments import AppointmentRepository
from slotbook.repositories.providers import ProviderRepository
from slotbook.repositories.users import UserRepository
from slotbook.services.appointment_service import AppointmentService
from slotbook.services.booking_service import BookingService
from slotbook.services.meeting_service import MeetingProvisioner
from slotbook.services.slot_service import SlotService

# Security
security = HTTPBearer()


async def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> UUID:
    """
    Extract and validate user ID from JWT token.

    Args:
        credentials: Bearer token credentials

    Returns:
        User ID from token

    Raises:
        HTTPException: If token is invalid or expired
    """
    payload = decode_access_token(credentials.credentials)

    user_id_str = payload.get("sub") if payload else None
    if not isinstance(user_id_str, str):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return UUID(user_id_str)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user ID format",
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_cache_manager() -> CacheManager:
    """Cache manager over the shared Redis client."""
    return CacheManager(get_redis_client())


def get_clock() -> Clock:
    """Wall clock used by scheduling services."""
    return utc_now


def get_meeting_provisioner() -> MeetingProvisioner | None:
    """Meeting provisioner, or None when no meeting service is configured."""
    if not settings.meeting_api_url:
        return None
    return MeetingProvisioner(
        base_url=settings.meeting_api_url,
        api_token=settings.meeting_api_token,
        timeout=settings.meeting_timeout_seconds,
    )


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUserId = Annotated[UUID, Depends(get_current_user_id)]
Cache = Annotated[CacheManager, Depends(get_cache_manager)]
ServiceClock = Annotated[Clock, Depends(get_clock)]
Meetings = Annotated[MeetingProvisioner | None, Depends(get_meeting_provisioner)]


def get_slot_service(db: DatabaseSession, cache: Cache, clock: ServiceClock) -> SlotService:
    """Slot service bound to the request's session."""
    return SlotService(ProviderRepository(db, cache), AppointmentRepository(db), clock=clock)


def get_booking_service(
    db: DatabaseSession,
    cache: Cache,
    clock: ServiceClock,
    meetings: Meetings,
) -> BookingService:
    """Booking service bound to the request's session."""
    return BookingService(
        UserRepository(db),
        ProviderRepository(db, cache),
        AppointmentRepository(db),
        meetings=meetings,
        clock=clock,
    )


def get_appointment_service(
    db: DatabaseSession,
    cache: Cache,
    clock: ServiceClock,
) -> AppointmentService:
    """Appointment lifecycle service bound to the request's session."""
    return AppointmentService(AppointmentRepository(db), ProviderRepository(db, cache), clock=clock)


SlotServiceDep = Annotated[SlotService, Depends(get_slot_service)]
BookingServiceDep = Annotated[BookingService, Depends(get_booking_service)]
AppointmentServiceDep = Annotated[AppointmentService, Depends(get_appointment_service)]
