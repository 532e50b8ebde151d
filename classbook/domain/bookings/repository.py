"""Booking repository - Database operations for class reservations"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, aliased, contains_eager, joinedload

from ...models import (
    BOOKING_CANCELLED,
    BOOKING_STATUSES,
    BOOKING_WAITLISTED,
    LIVE_BOOKING_STATUSES,
    SEATED_BOOKING_STATUSES,
    ClassBooking,
    ClassSchedule,
    ClassSession,
    ClassType,
    User,
)
from ...shared.validators import utcnow
from .schemas import MemberBookingFilters


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_booking(db: Session, booking_id: int) -> Optional[ClassBooking]:
        return db.query(ClassBooking).filter(ClassBooking.id == booking_id).first()

    @staticmethod
    def lock_booking_query(db: Session, booking_id: int):
        return (
            db.query(ClassBooking)
            .filter(ClassBooking.id == booking_id)
            .with_for_update()
            .populate_existing()
        )

    @staticmethod
    def lock_booking(db: Session, booking_id: int) -> Optional[ClassBooking]:
        return BookingRepository.lock_booking_query(db, booking_id).first()

    @staticmethod
    def get_booking_with_user(db: Session, booking_id: int) -> Optional[ClassBooking]:
        return (
            db.query(ClassBooking)
            .options(joinedload(ClassBooking.user))
            .filter(ClassBooking.id == booking_id)
            .first()
        )

    @staticmethod
    def has_live_booking(db: Session, session_id: int, user_id: int) -> bool:
        return (
            db.query(ClassBooking.id)
            .filter(
                ClassBooking.session_id == session_id,
                ClassBooking.user_id == user_id,
                ClassBooking.status.in_(LIVE_BOOKING_STATUSES),
            )
            .first()
            is not None
        )

    @staticmethod
    def count_seated(db: Session, session_id: int) -> int:
        """Bookings holding a seat (booked + attended)"""
        return (
            db.query(func.count(ClassBooking.id))
            .filter(
                ClassBooking.session_id == session_id,
                ClassBooking.status.in_(SEATED_BOOKING_STATUSES),
            )
            .scalar()
        )

    @staticmethod
    def count_waitlisted(db: Session, session_id: int) -> int:
        return (
            db.query(func.count(ClassBooking.id))
            .filter(
                ClassBooking.session_id == session_id,
                ClassBooking.status == BOOKING_WAITLISTED,
            )
            .scalar()
        )

    @staticmethod
    def create_booking(db: Session, session_id: int, user_id: int, status: str) -> ClassBooking:
        booking = ClassBooking(
            session_id=session_id, user_id=user_id, status=status, booked_at=utcnow()
        )
        db.add(booking)
        db.flush()
        return booking

    @staticmethod
    def oldest_waitlisted_query(db: Session, session_id: int):
        """First-in-first-out: earliest booked_at, ties broken by id"""
        return (
            db.query(ClassBooking)
            .filter(
                ClassBooking.session_id == session_id,
                ClassBooking.status == BOOKING_WAITLISTED,
            )
            .order_by(ClassBooking.booked_at.asc(), ClassBooking.id.asc())
            .with_for_update()
            .populate_existing()
        )

    @staticmethod
    def lock_oldest_waitlisted(db: Session, session_id: int) -> Optional[ClassBooking]:
        return BookingRepository.oldest_waitlisted_query(db, session_id).first()

    @staticmethod
    def cancel_live_bookings(db: Session, session_id: int, reason: str) -> int:
        """Cancel every booked/waitlisted booking of a session; returns the count"""
        return (
            db.query(ClassBooking)
            .filter(
                ClassBooking.session_id == session_id,
                ClassBooking.status.in_(LIVE_BOOKING_STATUSES),
            )
            .update(
                {
                    ClassBooking.status: BOOKING_CANCELLED,
                    ClassBooking.cancelled_at: utcnow(),
                    ClassBooking.cancel_reason: reason,
                },
                synchronize_session=False,
            )
        )

    @staticmethod
    def list_for_session(db: Session, session_id: int) -> list[ClassBooking]:
        return (
            db.query(ClassBooking)
            .options(joinedload(ClassBooking.user))
            .filter(ClassBooking.session_id == session_id)
            .order_by(ClassBooking.booked_at.asc(), ClassBooking.id.asc())
            .all()
        )

    @staticmethod
    def status_summary(db: Session, session_id: int) -> dict[str, int]:
        rows = (
            db.query(ClassBooking.status, func.count(ClassBooking.id))
            .filter(ClassBooking.session_id == session_id)
            .group_by(ClassBooking.status)
            .all()
        )
        summary = {status: 0 for status in BOOKING_STATUSES}
        for status, count in rows:
            summary[status] = count
        return summary

    @staticmethod
    def list_for_member(
        db: Session, user_id: int, filters: MemberBookingFilters
    ) -> tuple[list[ClassBooking], int]:
        instructor = aliased(User)
        query = (
            db.query(ClassBooking)
            .join(ClassSession, ClassSession.id == ClassBooking.session_id)
            .join(ClassSchedule, ClassSchedule.id == ClassSession.schedule_id)
            .join(ClassType, ClassType.id == ClassSchedule.class_type_id)
            .outerjoin(instructor, instructor.id == ClassSession.instructor_id)
            .options(
                contains_eager(ClassBooking.session)
                .contains_eager(ClassSession.schedule)
                .contains_eager(ClassSchedule.class_type),
                contains_eager(ClassBooking.session).contains_eager(
                    ClassSession.instructor.of_type(instructor)
                ),
            )
            .filter(ClassBooking.user_id == user_id)
        )

        if filters.status is not None:
            query = query.filter(ClassBooking.status == filters.status)

        if filters.fromDate is not None:
            query = query.filter(ClassSession.date >= filters.fromDate)

        if filters.toDate is not None:
            query = query.filter(ClassSession.date <= filters.toDate)

        total = query.order_by(None).count()
        bookings = (
            query.order_by(
                ClassSession.date.desc(), ClassSchedule.start_time.desc(), ClassBooking.id.desc()
            )
            .offset(filters.offset)
            .limit(filters.limit)
            .all()
        )
        return bookings, total
