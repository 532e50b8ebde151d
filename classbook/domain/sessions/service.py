"""
Session service - Generation of dated sessions and the session status machine
"""

import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...config import MAX_GENERATION_DAYS
from ...database import transaction
from ...errors import ConflictError, IllegalTransitionError, InvalidRequestError, NotFoundError
from ...models import (
    SESSION_CANCELLED,
    SESSION_COMPLETED,
    SESSION_SCHEDULED,
    ClassSchedule,
    ClassSession,
)
from ...shared.validators import utc_day_of_week, validate_generation_window
from ..bookings.repository import BookingRepository
from ..bookings.service import fill_open_seats
from ..schedules.repository import ScheduleRepository
from .repository import SessionRepository
from .schemas import SessionFilters, SessionUpdate

logger = logging.getLogger(__name__)

SESSION_TRANSITIONS = {
    SESSION_SCHEDULED: {SESSION_CANCELLED, SESSION_COMPLETED},
    SESSION_CANCELLED: set(),
    SESSION_COMPLETED: set(),
}

SESSION_CANCELLED_REASON = "Session cancelled"

_FIELD_MAP = {
    "instructorId": "instructor_id",
    "notes": "notes",
    "cancelledReason": "cancelled_reason",
}


def format_session(session: ClassSession, booked_count: int) -> dict:
    schedule = session.schedule
    class_type = schedule.class_type
    return {
        "id": session.id,
        "scheduleId": session.schedule_id,
        "branchId": session.branch_id,
        "date": session.date,
        "classTypeId": class_type.id,
        "classTypeName": class_type.name,
        "category": class_type.category,
        "color": class_type.color,
        "icon": class_type.icon,
        "instructorId": session.instructor_id,
        "instructorName": session.instructor.name if session.instructor else None,
        "room": schedule.room,
        "startTime": schedule.start_time,
        "endTime": schedule.end_time,
        "status": session.status,
        "capacity": schedule.capacity,
        "actualCapacity": session.actual_capacity,
        "effectiveCapacity": session.effective_capacity,
        "bookedCount": booked_count or 0,
        "notes": session.notes,
        "cancelledReason": session.cancelled_reason,
        "createdAt": session.created_at,
        "updatedAt": session.updated_at,
    }


def _template_dates(schedule: ClassSchedule, from_date: date, to_date: date):
    """Dates in the inclusive window that fall on the template's weekday and bounds"""
    day = from_date
    while day <= to_date:
        if (
            utc_day_of_week(day) == schedule.day_of_week
            and (schedule.start_date is None or day >= schedule.start_date)
            and (schedule.end_date is None or day <= schedule.end_date)
        ):
            yield day
        day += timedelta(days=1)


class SessionService:
    """Service layer for class sessions"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SessionRepository()
        self.bookings = BookingRepository()

    def generate_sessions(
        self,
        from_date: date,
        to_date: date,
        branch_id: Optional[int] = None,
        schedule_id: Optional[int] = None,
    ) -> dict:
        """
        Materialise sessions from active weekly templates over [from_date, to_date].

        Dates that already have a session for a template are skipped, so running
        the same window twice creates nothing the second time. The run is one
        transaction: either every new session is created or none is.

        Raises:
            InvalidRequestError: If the window is inverted or longer than the maximum
            ConflictError: If a concurrent run inserted the same (template, date)
        """
        try:
            validate_generation_window(from_date, to_date, MAX_GENERATION_DAYS)
        except ValueError as e:
            logger.warning(f"⚠️ Rejected generation window {from_date} → {to_date}: {e}")
            raise InvalidRequestError(str(e)) from e

        logger.info(
            f"📥 Generating sessions {from_date} → {to_date} "
            f"(branch={branch_id}, schedule={schedule_id})"
        )

        created = 0
        try:
            with transaction(self.db):
                templates = ScheduleRepository.get_active_templates(
                    self.db, branch_id=branch_id, schedule_id=schedule_id
                )
                for template in templates:
                    existing = self.repo.existing_dates(self.db, template.id, from_date, to_date)
                    for day in _template_dates(template, from_date, to_date):
                        if day in existing:
                            continue
                        self.repo.add_session(self.db, template, day)
                        created += 1
                self.db.flush()
        except IntegrityError as e:
            logger.error(f"❌ Session generation collided with a concurrent run: {e.orig}")
            raise ConflictError(
                "Sessions for this window are being generated concurrently, retry the request"
            ) from e

        logger.info(f"📊 Generated {created} sessions from {len(templates)} templates")
        return {"message": f"Generated {created} sessions", "created": created}

    def list_sessions(self, filters: SessionFilters) -> dict:
        rows, total = self.repo.list_sessions(self.db, filters)
        return {
            "data": [format_session(session, count) for session, count in rows],
            "total": total,
            "page": filters.page,
            "limit": filters.limit,
        }

    def get_session(self, session_id: int) -> dict:
        row = self.repo.get_session_detail(self.db, session_id)
        if not row:
            raise NotFoundError("Session", session_id)
        session, booked_count = row
        return format_session(session, booked_count)

    def update_session(self, session_id: int, data: SessionUpdate) -> dict:
        """
        Patch a session while holding its row lock.

        Cancelling moves every live booking to cancelled in the same transaction.
        Raising actualCapacity promotes waitlisted bookings into the new seats.
        A null actualCapacity drops the override so the template capacity applies.
        """
        patch = data.model_dump(exclude_unset=True)
        if not patch:
            raise InvalidRequestError("No fields to update", "Session", session_id)

        with transaction(self.db):
            session = self.repo.lock_session(self.db, session_id)
            if not session:
                raise NotFoundError("Session", session_id)

            previous = session.status
            new_status = patch.get("status")
            if new_status is not None and new_status not in SESSION_TRANSITIONS[previous]:
                raise IllegalTransitionError("Session", session_id, previous, new_status)

            capacity_raised = False
            if "actualCapacity" in patch:
                override = patch["actualCapacity"]
                new_capacity = override if override is not None else session.schedule.capacity
                seated = self.bookings.count_seated(self.db, session_id)
                if new_capacity < seated:
                    raise ConflictError(
                        f"Capacity {new_capacity} is below the {seated} seats already booked",
                        "Session",
                        session_id,
                    )
                capacity_raised = new_capacity > session.effective_capacity
                session.actual_capacity = override

            for field, column in _FIELD_MAP.items():
                if field in patch:
                    setattr(session, column, patch[field])

            if new_status is not None:
                session.status = new_status
            self.db.flush()

            if new_status == SESSION_CANCELLED:
                cancelled = self.bookings.cancel_live_bookings(
                    self.db, session_id, SESSION_CANCELLED_REASON
                )
                logger.info(f"📊 Session {session_id} cancelled, {cancelled} bookings cancelled")
            elif capacity_raised:
                promoted = fill_open_seats(self.db, session)
                if promoted:
                    logger.info(
                        f"✅ Session {session_id} capacity raised, {len(promoted)} waitlisted bookings promoted"
                    )

        if new_status is not None:
            logger.info(f"✅ Session {session_id}: {previous} → {new_status}")
        else:
            logger.info(f"✅ Session {session_id} updated: {', '.join(sorted(patch))}")

        # Bulk cascade bypassed the identity map
        self.db.expire_all()
        return self.get_session(session_id)
