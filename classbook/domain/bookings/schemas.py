"""Booking schemas - Pydantic models for reservations and status changes"""

from datetime import date, datetime, time
from typing import Literal, Optional

from pydantic import BaseModel, Field

from ...config import DEFAULT_BOOKINGS_PAGE_SIZE, MAX_PAGE_SIZE
from ...models import BOOKING_STATUSES
from ...schemas import PageParams

BookingStatus = Literal[BOOKING_STATUSES]


class BookingStatusUpdate(BaseModel):
    status: BookingStatus
    cancelReason: Optional[str] = None


class MemberBookingFilters(PageParams):
    limit: int = Field(DEFAULT_BOOKINGS_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    status: Optional[BookingStatus] = None
    fromDate: Optional[date] = None
    toDate: Optional[date] = None


class BookingResponse(BaseModel):
    id: int
    sessionId: int
    userId: int
    userName: Optional[str]
    status: str
    bookedAt: Optional[datetime]
    cancelledAt: Optional[datetime]
    cancelReason: Optional[str]
    createdAt: Optional[datetime] = None


class BookSessionResponse(BaseModel):
    booking: BookingResponse
    waitlisted: bool
    position: Optional[int]
    message: str


class BookingSummary(BaseModel):
    booked: int
    waitlisted: int
    attended: int
    noShow: int
    cancelled: int


class SessionBookingsResponse(BaseModel):
    data: list[BookingResponse]
    total: int
    summary: BookingSummary


class MemberBookingResponse(BaseModel):
    id: int
    sessionId: int
    status: str
    sessionStatus: str
    bookedAt: Optional[datetime]
    cancelledAt: Optional[datetime]
    cancelReason: Optional[str]
    date: date
    startTime: time
    endTime: time
    room: Optional[str]
    classTypeName: str
    category: Optional[str]
    color: Optional[str]
    icon: Optional[str]
    instructorName: Optional[str]


class MemberBookingListResponse(BaseModel):
    data: list[MemberBookingResponse]
    total: int
    page: int
    limit: int
