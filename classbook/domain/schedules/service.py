"""Schedule template service - Business logic for weekly class templates"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...database import transaction
from ...errors import ConflictError, InvalidRequestError, NotFoundError
from ...models import ClassSchedule
from ...shared.validators import validate_date_bounds, validate_time_window
from ..bookings.repository import BookingRepository
from ..bookings.service import fill_open_seats
from ..class_types.service import ClassTypeService
from ..sessions.repository import SessionRepository
from .repository import ScheduleRepository
from .schemas import ScheduleCreate, ScheduleFilters, ScheduleUpdate

logger = logging.getLogger(__name__)

_FIELD_MAP = {
    "instructorId": "instructor_id",
    "room": "room",
    "dayOfWeek": "day_of_week",
    "startTime": "start_time",
    "endTime": "end_time",
    "capacity": "capacity",
    "isRecurring": "is_recurring",
    "startDate": "start_date",
    "endDate": "end_date",
    "isActive": "is_active",
}

_REQUIRED_COLUMNS = {"day_of_week", "start_time", "end_time", "capacity", "is_recurring", "is_active"}


def format_schedule(schedule: ClassSchedule) -> dict:
    class_type = schedule.class_type
    return {
        "id": schedule.id,
        "classTypeId": schedule.class_type_id,
        "classTypeName": class_type.name if class_type else None,
        "color": class_type.color if class_type else None,
        "icon": class_type.icon if class_type else None,
        "branchId": schedule.branch_id,
        "instructorId": schedule.instructor_id,
        "instructorName": schedule.instructor.name if schedule.instructor else None,
        "room": schedule.room,
        "dayOfWeek": schedule.day_of_week,
        "startTime": schedule.start_time,
        "endTime": schedule.end_time,
        "capacity": schedule.capacity,
        "isRecurring": schedule.is_recurring,
        "startDate": schedule.start_date,
        "endDate": schedule.end_date,
        "isActive": schedule.is_active,
        "createdAt": schedule.created_at,
        "updatedAt": schedule.updated_at,
    }


class ScheduleService:
    """Service layer for schedule templates"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ScheduleRepository()

    def list_schedules(self, branch_id: Optional[int], filters: ScheduleFilters) -> dict:
        schedules = self.repo.list_schedules(self.db, branch_id, filters)
        return {"data": [format_schedule(s) for s in schedules], "total": len(schedules)}

    def get_schedule_model(self, schedule_id: int) -> ClassSchedule:
        schedule = self.repo.get_schedule(self.db, schedule_id)
        if not schedule:
            raise NotFoundError("Schedule", schedule_id)
        return schedule

    def get_schedule(self, schedule_id: int) -> dict:
        return format_schedule(self.get_schedule_model(schedule_id))

    def create_schedule(self, branch_id: Optional[int], data: ScheduleCreate) -> dict:
        class_type = ClassTypeService(self.db).get_type_model(data.classTypeId)

        logger.info(
            f"📥 Creating schedule for class type {class_type.id} on day {data.dayOfWeek} "
            f"{data.startTime}-{data.endTime} (branch {branch_id})"
        )
        schedule = self.repo.create_schedule(
            self.db,
            class_type_id=class_type.id,
            branch_id=branch_id,
            instructor_id=data.instructorId,
            room=data.room,
            day_of_week=data.dayOfWeek,
            start_time=data.startTime,
            end_time=data.endTime,
            capacity=data.capacity if data.capacity is not None else class_type.default_capacity,
            is_recurring=data.isRecurring,
            start_date=data.startDate,
            end_date=data.endDate,
        )
        logger.info(f"✅ Schedule {schedule.id} created")
        return format_schedule(schedule)

    def update_schedule(self, schedule_id: int, data: ScheduleUpdate) -> dict:
        """
        Apply a sparse patch to a template.

        A capacity change reaches every generated session that has no
        per-session override. Those sessions are locked first, the new capacity
        must still seat everyone already booked on each of them, and any seats
        it adds are filled from the waitlist in the same transaction.
        """
        schedule = self.get_schedule_model(schedule_id)

        updates = {}
        for field, value in data.model_dump(exclude_unset=True).items():
            column = _FIELD_MAP[field]
            if value is None and column in _REQUIRED_COLUMNS:
                continue
            updates[column] = value

        if not updates:
            return format_schedule(schedule)

        merged = {
            column: updates.get(column, getattr(schedule, column))
            for column in ("start_time", "end_time", "start_date", "end_date")
        }
        try:
            validate_time_window(merged["start_time"], merged["end_time"])
            validate_date_bounds(merged["start_date"], merged["end_date"])
        except ValueError as e:
            raise InvalidRequestError(str(e), "Schedule", schedule_id) from e

        new_capacity = updates.get("capacity", schedule.capacity)
        capacity_raised = new_capacity > schedule.capacity
        promoted = 0
        with transaction(self.db):
            sessions = []
            if new_capacity != schedule.capacity:
                sessions = SessionRepository.lock_template_sessions(self.db, schedule_id)
                for session in sessions:
                    seated = BookingRepository.count_seated(self.db, session.id)
                    if new_capacity < seated:
                        raise ConflictError(
                            f"Capacity {new_capacity} is below the {seated} seats already booked "
                            f"on session #{session.id}",
                            "Schedule",
                            schedule_id,
                        )

            self.repo.update_schedule(self.db, schedule, **updates)

            if capacity_raised:
                for session in sessions:
                    promoted += len(fill_open_seats(self.db, session))

        self.db.refresh(schedule)
        if promoted:
            logger.info(f"✅ Capacity raise on schedule {schedule_id} promoted {promoted} waitlisted booking(s)")
        logger.info(f"✅ Schedule {schedule_id} updated: {', '.join(sorted(updates))}")
        return format_schedule(schedule)

    def delete_schedule(self, schedule_id: int) -> dict:
        schedule = self.get_schedule_model(schedule_id)
        self.repo.soft_delete_schedule(self.db, schedule)
        logger.info(f"✅ Schedule {schedule_id} soft-deleted")
        return {"message": "Schedule deleted successfully"}
