"""Appointment endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Query, status

from slotbook.dependencies import AppointmentServiceDep, BookingServiceDep, CurrentUserId
from slotbook.schemas.appointments import (
    AppointmentCreate,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentReschedule,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusUpdate,
)

router = APIRouter()


@router.post(
    "/",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Appointments"],
    summary="Book appointment",
)
async def book_appointment(
    data: AppointmentCreate,
    user_id: CurrentUserId,
    service: BookingServiceDep,
) -> AppointmentResponse:
    """
    Book an appointment for the authenticated user.

    Args:
        data: Booking request
        user_id: Authenticated user ID
        service: Booking service

    Returns:
        Booked appointment

    Raises:
        NotFoundException: Unknown user or provider (404)
        ValidationException: Invalid intake or duration (422)
        SlotUnavailableException: Window already taken or outside availability (409)
    """
    return await service.book(
        user_id,
        data.provider_id,
        data.appointment_at,
        data.duration_minutes,
        data.patient,
    )


@router.get(
    "/",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="List appointments",
)
async def list_appointments(
    user_id: CurrentUserId,
    service: AppointmentServiceDep,
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    provider_id: UUID | None = Query(None),
    from_date: datetime | None = Query(None),
    to_date: datetime | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> AppointmentListResponse:
    """List the authenticated user's appointments, newest first."""
    filters = AppointmentFilters(
        status=status_filter,
        provider_id=provider_id,
        from_date=from_date,
        to_date=to_date,
        page=page,
        page_size=page_size,
    )
    return await service.list_appointments(user_id, filters)


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: UUID,
    user_id: CurrentUserId,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """Get one of the authenticated user's appointments."""
    return await service.get_appointment(appointment_id, user_id)


@router.patch(
    "/{appointment_id}/status",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Update appointment status",
)
async def update_appointment_status(
    appointment_id: UUID,
    data: AppointmentStatusUpdate,
    user_id: CurrentUserId,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """
    Confirm, complete or cancel an appointment.

    Raises:
        InvalidStatusTransitionException: Transition not allowed (409)
    """
    return await service.update_status(appointment_id, user_id, data)


@router.post(
    "/{appointment_id}/reschedule",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Reschedule appointment",
)
async def reschedule_appointment(
    appointment_id: UUID,
    data: AppointmentReschedule,
    user_id: CurrentUserId,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """Move an appointment to a new start time."""
    return await service.reschedule(appointment_id, user_id, data.appointment_at)
