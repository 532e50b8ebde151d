"""
Booking service - Reservation, cancellation and waitlist promotion

Seat accounting relies on row locks taken by the database, never on in-process
state, so any number of service instances can run side by side. Every write
locks rows in the same order: the session, then the booking being changed,
then the waitlisted booking being promoted.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...auth import ROLE_CLIENT
from ...database import transaction
from ...errors import (
    ConflictError,
    IllegalTransitionError,
    NotFoundError,
    PermissionDeniedError,
)
from ...models import (
    BOOKING_ATTENDED,
    BOOKING_BOOKED,
    BOOKING_CANCELLED,
    BOOKING_NO_SHOW,
    BOOKING_WAITLISTED,
    LIVE_BOOKING_INDEX,
    SESSION_SCHEDULED,
    ClassBooking,
    ClassSession,
)
from ...shared.validators import utcnow
from ..sessions.repository import SessionRepository
from .repository import BookingRepository
from .schemas import BookingStatusUpdate, MemberBookingFilters

logger = logging.getLogger(__name__)

BOOKING_TRANSITIONS = {
    BOOKING_BOOKED: {BOOKING_ATTENDED, BOOKING_NO_SHOW, BOOKING_CANCELLED},
    BOOKING_WAITLISTED: {BOOKING_BOOKED, BOOKING_CANCELLED},
    BOOKING_ATTENDED: set(),
    BOOKING_NO_SHOW: set(),
    BOOKING_CANCELLED: set(),
}

# Moving a booking from "booked" to one of these frees its seat
SEAT_RELEASING_STATUSES = {BOOKING_CANCELLED, BOOKING_NO_SHOW}


def format_booking(booking: ClassBooking) -> dict:
    return {
        "id": booking.id,
        "sessionId": booking.session_id,
        "userId": booking.user_id,
        "userName": booking.user.name if booking.user else None,
        "status": booking.status,
        "bookedAt": booking.booked_at,
        "cancelledAt": booking.cancelled_at,
        "cancelReason": booking.cancel_reason,
        "createdAt": booking.created_at,
    }


def format_member_booking(booking: ClassBooking) -> dict:
    session = booking.session
    schedule = session.schedule
    class_type = schedule.class_type
    return {
        "id": booking.id,
        "sessionId": booking.session_id,
        "status": booking.status,
        "sessionStatus": session.status,
        "bookedAt": booking.booked_at,
        "cancelledAt": booking.cancelled_at,
        "cancelReason": booking.cancel_reason,
        "date": session.date,
        "startTime": schedule.start_time,
        "endTime": schedule.end_time,
        "room": schedule.room,
        "classTypeName": class_type.name,
        "category": class_type.category,
        "color": class_type.color,
        "icon": class_type.icon,
        "instructorName": session.instructor.name if session.instructor else None,
    }


def is_live_booking_conflict(error: IntegrityError) -> bool:
    """True when the insert tripped the one-live-booking-per-member index"""
    diag = getattr(error.orig, "diag", None)
    if diag is not None and getattr(diag, "constraint_name", None):
        return diag.constraint_name == LIVE_BOOKING_INDEX
    # SQLite names the columns instead of the index
    message = str(error.orig)
    return LIVE_BOOKING_INDEX in message or (
        "UNIQUE constraint failed: class_bookings.session_id, class_bookings.user_id" in message
    )


def fill_open_seats(db: Session, session: ClassSession) -> list[ClassBooking]:
    """
    Promote waitlisted bookings, oldest first, until the session is full or the
    waitlist is empty. The caller must already hold the session row lock.
    """
    promoted = []
    repo = BookingRepository()
    seated = repo.count_seated(db, session.id)
    while seated < session.effective_capacity:
        candidate = repo.lock_oldest_waitlisted(db, session.id)
        if candidate is None:
            break
        candidate.status = BOOKING_BOOKED
        db.flush()
        promoted.append(candidate)
        seated += 1

    return promoted


class BookingService:
    """Service layer for class bookings"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()
        self.sessions = SessionRepository()

    def book_session(self, session_id: int, member_id: int) -> dict:
        """
        Reserve a seat, or a waitlist place when the session is full.

        The session row stays locked from the capacity check until the new
        booking is committed, so two requests can never both take the last seat.
        """
        logger.info(f"📥 Booking request: member {member_id} → session {session_id}")
        try:
            with transaction(self.db):
                session = self.sessions.lock_session(self.db, session_id)
                if not session:
                    raise NotFoundError("Session", session_id)

                if session.status != SESSION_SCHEDULED:
                    raise ConflictError(
                        f"Session #{session_id} is {session.status} and not open for booking",
                        "Session",
                        session_id,
                    )

                if self.repo.has_live_booking(self.db, session_id, member_id):
                    raise ConflictError(
                        "You already have a booking for this session", "Session", session_id
                    )

                seated = self.repo.count_seated(self.db, session_id)
                is_waitlisted = seated >= session.effective_capacity
                booking = self.repo.create_booking(
                    self.db,
                    session_id,
                    member_id,
                    BOOKING_WAITLISTED if is_waitlisted else BOOKING_BOOKED,
                )
                position = self.repo.count_waitlisted(self.db, session_id) if is_waitlisted else None
                booking_id = booking.id
        except IntegrityError as e:
            if not is_live_booking_conflict(e):
                logger.error(f"❌ Booking insert failed for member {member_id} on session {session_id}: {e.orig}")
                raise
            # Concurrent duplicate request got past the live-booking check
            logger.warning(f"⚠️ Duplicate live booking for member {member_id} on session {session_id}")
            raise ConflictError(
                "You already have a booking for this session", "Session", session_id
            ) from e

        if is_waitlisted:
            logger.info(f"✅ Member {member_id} waitlisted on session {session_id} at position {position}")
        else:
            logger.info(f"✅ Member {member_id} booked on session {session_id}")

        booking = self.repo.get_booking_with_user(self.db, booking_id)
        return {
            "booking": format_booking(booking),
            "waitlisted": is_waitlisted,
            "position": position,
            "message": (
                "Session is full. You have been added to the waitlist."
                if is_waitlisted
                else "Successfully booked!"
            ),
        }

    def update_booking_status(
        self, booking_id: int, data: BookingStatusUpdate, caller_id: int, caller_role: str
    ) -> dict:
        """
        Move a booking through its state machine.

        Members (role "client") may only cancel their own bookings. When a
        confirmed seat is released (booked → cancelled/no_show) the oldest
        waitlisted booking on the session is promoted in the same transaction.
        """
        with transaction(self.db):
            current = self.repo.get_booking(self.db, booking_id)
            if not current:
                raise NotFoundError("Booking", booking_id)

            session = self.sessions.lock_session(self.db, current.session_id)
            booking = self.repo.lock_booking(self.db, booking_id)

            if caller_role == ROLE_CLIENT:
                if booking.user_id != caller_id:
                    raise PermissionDeniedError(
                        "You can only update your own bookings", "Booking", booking_id
                    )
                if data.status != BOOKING_CANCELLED:
                    raise PermissionDeniedError(
                        "You can only cancel your bookings", "Booking", booking_id
                    )

            previous = booking.status
            if data.status not in BOOKING_TRANSITIONS[previous]:
                raise IllegalTransitionError("Booking", booking_id, previous, data.status)

            if previous == BOOKING_WAITLISTED and data.status == BOOKING_BOOKED:
                self._ensure_seat_available(session)

            booking.status = data.status
            if data.status == BOOKING_CANCELLED:
                booking.cancelled_at = utcnow()
                if data.cancelReason:
                    booking.cancel_reason = data.cancelReason
            self.db.flush()

            if previous == BOOKING_BOOKED and data.status in SEAT_RELEASING_STATUSES:
                promoted = fill_open_seats(self.db, session)
                for promoted_booking in promoted:
                    logger.info(
                        f"✅ Waitlisted booking {promoted_booking.id} promoted on session {session.id}"
                    )

        logger.info(f"✅ Booking {booking_id}: {previous} → {data.status} (by user {caller_id})")
        return format_booking(self.repo.get_booking_with_user(self.db, booking_id))

    def _ensure_seat_available(self, session: ClassSession) -> None:
        if session.status != SESSION_SCHEDULED:
            raise ConflictError(
                f"Session #{session.id} is {session.status}; waitlist can no longer be promoted",
                "Session",
                session.id,
            )
        capacity = session.effective_capacity
        if self.repo.count_seated(self.db, session.id) >= capacity:
            raise ConflictError(
                f"Session #{session.id} is full ({capacity} seats)", "Session", session.id
            )

    def list_bookings_for_session(self, session_id: int) -> dict:
        if self.db.get(ClassSession, session_id) is None:
            raise NotFoundError("Session", session_id)

        bookings = self.repo.list_for_session(self.db, session_id)
        summary = self.repo.status_summary(self.db, session_id)
        return {
            "data": [format_booking(b) for b in bookings],
            "total": len(bookings),
            "summary": {
                "booked": summary[BOOKING_BOOKED],
                "waitlisted": summary[BOOKING_WAITLISTED],
                "attended": summary[BOOKING_ATTENDED],
                "noShow": summary[BOOKING_NO_SHOW],
                "cancelled": summary[BOOKING_CANCELLED],
            },
        }

    def list_bookings_for_member(self, member_id: int, filters: MemberBookingFilters) -> dict:
        bookings, total = self.repo.list_for_member(self.db, member_id, filters)
        return {
            "data": [format_member_booking(b) for b in bookings],
            "total": total,
            "page": filters.page,
            "limit": filters.limit,
        }
