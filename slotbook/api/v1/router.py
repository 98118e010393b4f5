"""API v1 router configuration."""

from fastapi import APIRouter

from slotbook.api.v1.endpoints import appointments, health, slots

api_router = APIRouter()

api_router.include_router(health.router, tags=["Health"])
api_router.include_router(slots.router, prefix="/slots", tags=["Slots"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["Appointments"])
