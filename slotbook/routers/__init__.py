"""API routers."""

from slotbook.routers.appointments import router as appointments_router
from slotbook.routers.booking import router as booking_router

__all__ = ["appointments_router", "booking_router"]
