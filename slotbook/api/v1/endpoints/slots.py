"""Slot search endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from slotbook.config import settings
from slotbook.dependencies import SlotServiceDep
from slotbook.schemas.slots import ProviderSlotsResponse, SlotQuery

router = APIRouter()


@router.get(
    "/",
    response_model=list[ProviderSlotsResponse],
    status_code=status.HTTP_200_OK,
    tags=["Slots"],
    summary="Search bookable slots",
)
async def get_available_slots(
    service: SlotServiceDep,
    provider_id: UUID | None = Query(None),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    duration_minutes: int = Query(
        settings.default_slot_duration_minutes,
        gt=0,
        le=settings.max_appointment_duration_minutes,
    ),
) -> list[ProviderSlotsResponse]:
    """
    List slots for one provider, or for every active provider.

    Every slot carries ``available``; taken slots are returned too so a
    calendar can render them.

    Args:
        service: Slot service
        provider_id: Restrict to one provider
        start_date: First day (defaults to today)
        end_date: Last day (defaults to 30 days after start)
        duration_minutes: Slot length

    Returns:
        Slots grouped by provider
    """
    query = SlotQuery(
        provider_id=provider_id,
        start_date=start_date,
        end_date=end_date,
        duration_minutes=duration_minutes,
    )
    return await service.get_available_slots(query)
