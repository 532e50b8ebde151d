"""Schedule template repository - Database operations for weekly templates"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import ClassSchedule
from ...shared.validators import utcnow
from .schemas import ScheduleFilters


class ScheduleRepository:
    """Repository for schedule template database operations"""

    @staticmethod
    def _base_query(db: Session):
        return (
            db.query(ClassSchedule)
            .options(joinedload(ClassSchedule.class_type), joinedload(ClassSchedule.instructor))
            .filter(ClassSchedule.is_deleted.is_(False))
        )

    @staticmethod
    def list_schedules(
        db: Session, branch_id: Optional[int], filters: ScheduleFilters
    ) -> list[ClassSchedule]:
        query = ScheduleRepository._base_query(db)

        if branch_id is not None:
            query = query.filter(ClassSchedule.branch_id == branch_id)

        if filters.classTypeId is not None:
            query = query.filter(ClassSchedule.class_type_id == filters.classTypeId)

        if filters.isActive is not None:
            query = query.filter(ClassSchedule.is_active.is_(filters.isActive))

        return query.order_by(
            ClassSchedule.day_of_week.asc(), ClassSchedule.start_time.asc(), ClassSchedule.id.asc()
        ).all()

    @staticmethod
    def get_schedule(db: Session, schedule_id: int) -> Optional[ClassSchedule]:
        return (
            ScheduleRepository._base_query(db).filter(ClassSchedule.id == schedule_id).first()
        )

    @staticmethod
    def get_active_templates(
        db: Session, branch_id: Optional[int] = None, schedule_id: Optional[int] = None
    ) -> list[ClassSchedule]:
        """Active, non-deleted templates the session generator walks"""
        query = db.query(ClassSchedule).filter(
            ClassSchedule.is_deleted.is_(False), ClassSchedule.is_active.is_(True)
        )

        if branch_id is not None:
            query = query.filter(ClassSchedule.branch_id == branch_id)

        if schedule_id is not None:
            query = query.filter(ClassSchedule.id == schedule_id)

        return query.order_by(ClassSchedule.id.asc()).all()

    @staticmethod
    def create_schedule(db: Session, **schedule_data) -> ClassSchedule:
        schedule = ClassSchedule(**schedule_data)
        db.add(schedule)
        db.commit()
        db.refresh(schedule)
        return schedule

    @staticmethod
    def update_schedule(db: Session, schedule: ClassSchedule, **updates) -> ClassSchedule:
        for key, value in updates.items():
            if hasattr(schedule, key):
                setattr(schedule, key, value)

        db.flush()
        return schedule

    @staticmethod
    def soft_delete_schedule(db: Session, schedule: ClassSchedule) -> None:
        schedule.is_deleted = True
        schedule.deleted_at = utcnow()
        db.commit()
