"""Booking router - FastAPI endpoints for reservations and attendance"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import ALL_ROLES, STAFF_ROLES, CallerContext, require_roles
from ...database import get_tenant_db
from .schemas import (
    BookingResponse,
    BookingStatusUpdate,
    BookSessionResponse,
    MemberBookingFilters,
    MemberBookingListResponse,
    SessionBookingsResponse,
)
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/classes", tags=["Class Bookings"])


def get_booking_service(db: Session = Depends(get_tenant_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


@router.get("/sessions/{session_id}/bookings", response_model=SessionBookingsResponse)
async def list_session_bookings(
    session_id: int,
    caller: CallerContext = Depends(require_roles(*STAFF_ROLES)),
    service: BookingService = Depends(get_booking_service),
):
    """Roster of a session with a per-status summary"""
    return service.list_bookings_for_session(session_id)


@router.post("/sessions/{session_id}/book", response_model=BookSessionResponse, status_code=201)
async def book_session(
    session_id: int,
    caller: CallerContext = Depends(require_roles(*ALL_ROLES)),
    service: BookingService = Depends(get_booking_service),
):
    """Book a seat for the caller, or join the waitlist when the session is full"""
    return service.book_session(session_id, caller.user_id)


@router.patch("/bookings/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: int,
    data: BookingStatusUpdate,
    caller: CallerContext = Depends(require_roles(*ALL_ROLES)),
    service: BookingService = Depends(get_booking_service),
):
    """
    Change a booking's status.

    Members may only cancel their own bookings; staff may also mark attendance,
    no-shows and promote waitlisted bookings.
    """
    return service.update_booking_status(booking_id, data, caller.user_id, caller.role)


@router.get("/my-bookings", response_model=MemberBookingListResponse)
async def my_bookings(
    filters: Annotated[MemberBookingFilters, Query()],
    caller: CallerContext = Depends(require_roles(*ALL_ROLES)),
    service: BookingService = Depends(get_booking_service),
):
    return service.list_bookings_for_member(caller.user_id, filters)
