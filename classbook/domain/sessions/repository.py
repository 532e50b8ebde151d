"""Session repository - Database operations for dated class occurrences"""

from datetime import date
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, contains_eager, joinedload

from ...models import (
    SEATED_BOOKING_STATUSES,
    SESSION_SCHEDULED,
    ClassBooking,
    ClassSchedule,
    ClassSession,
    ClassType,
)
from .schemas import SessionFilters


def booked_count_column():
    """Correlated count of seat-holding bookings (booked + attended) per session"""
    return (
        select(func.count(ClassBooking.id))
        .where(
            ClassBooking.session_id == ClassSession.id,
            ClassBooking.status.in_(SEATED_BOOKING_STATUSES),
        )
        .correlate(ClassSession)
        .scalar_subquery()
        .label("booked_count")
    )


class SessionRepository:
    """Repository for session database operations"""

    @staticmethod
    def _detail_query(db: Session):
        return (
            db.query(ClassSession, booked_count_column())
            .join(ClassSchedule, ClassSchedule.id == ClassSession.schedule_id)
            .join(ClassType, ClassType.id == ClassSchedule.class_type_id)
            .options(
                contains_eager(ClassSession.schedule).contains_eager(ClassSchedule.class_type),
                joinedload(ClassSession.instructor),
            )
        )

    @staticmethod
    def list_sessions(db: Session, filters: SessionFilters) -> tuple[list[tuple], int]:
        """Page of (session, booked_count) rows plus the total match count"""
        query = SessionRepository._detail_query(db)

        if filters.branchId is not None:
            query = query.filter(ClassSession.branch_id == filters.branchId)

        if filters.fromDate is not None:
            query = query.filter(ClassSession.date >= filters.fromDate)

        if filters.toDate is not None:
            query = query.filter(ClassSession.date <= filters.toDate)

        if filters.classTypeId is not None:
            query = query.filter(ClassSchedule.class_type_id == filters.classTypeId)

        if filters.instructorId is not None:
            query = query.filter(ClassSession.instructor_id == filters.instructorId)

        if filters.status is not None:
            query = query.filter(ClassSession.status == filters.status)

        total = query.order_by(None).count()
        rows = (
            query.order_by(
                ClassSession.date.asc(), ClassSchedule.start_time.asc(), ClassSession.id.asc()
            )
            .offset(filters.offset)
            .limit(filters.limit)
            .all()
        )
        return rows, total

    @staticmethod
    def get_session_detail(db: Session, session_id: int) -> Optional[tuple]:
        return SessionRepository._detail_query(db).filter(ClassSession.id == session_id).first()

    @staticmethod
    def lock_session_query(db: Session, session_id: int):
        return (
            db.query(ClassSession)
            .filter(ClassSession.id == session_id)
            .with_for_update()
            .populate_existing()
        )

    @staticmethod
    def lock_session(db: Session, session_id: int) -> Optional[ClassSession]:
        """
        Fetch the session row with an exclusive lock held until the transaction ends.

        Every write that depends on a session's seat count takes this lock first.
        """
        return SessionRepository.lock_session_query(db, session_id).first()

    @staticmethod
    def lock_template_sessions_query(db: Session, schedule_id: int):
        return (
            db.query(ClassSession)
            .filter(
                ClassSession.schedule_id == schedule_id,
                ClassSession.actual_capacity.is_(None),
            )
            .order_by(ClassSession.id.asc())
            .with_for_update()
            .populate_existing()
        )

    @staticmethod
    def lock_template_sessions(db: Session, schedule_id: int) -> list[ClassSession]:
        """Sessions whose capacity still follows the template, locked in id order"""
        return SessionRepository.lock_template_sessions_query(db, schedule_id).all()

    @staticmethod
    def existing_dates(db: Session, schedule_id: int, from_date: date, to_date: date) -> set[date]:
        """Dates in the window that already have a session for this schedule"""
        rows = (
            db.query(ClassSession.date)
            .filter(
                ClassSession.schedule_id == schedule_id,
                ClassSession.date >= from_date,
                ClassSession.date <= to_date,
            )
            .all()
        )
        return {row.date for row in rows}

    @staticmethod
    def add_session(db: Session, schedule: ClassSchedule, day: date) -> ClassSession:
        session = ClassSession(
            schedule_id=schedule.id,
            branch_id=schedule.branch_id,
            date=day,
            instructor_id=schedule.instructor_id,
            status=SESSION_SCHEDULED,
        )
        db.add(session)
        return session
