"""Class type repository - Database operations for the class catalog"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import ClassSchedule, ClassSession, ClassType
from ...shared.validators import utcnow
from .schemas import ClassTypeFilters


class ClassTypeRepository:
    """Repository for class type database operations"""

    @staticmethod
    def list_types(
        db: Session, branch_id: Optional[int], filters: ClassTypeFilters
    ) -> tuple[list[ClassType], int]:
        """Page of non-deleted class types plus the total match count"""
        query = db.query(ClassType).filter(ClassType.is_deleted.is_(False))

        if branch_id is not None:
            # Branch types plus the ones shared across branches
            query = query.filter(
                or_(ClassType.branch_id == branch_id, ClassType.branch_id.is_(None))
            )

        if filters.category:
            query = query.filter(ClassType.category == filters.category)

        if filters.search:
            search_term = f"%{filters.search.lower()}%"
            query = query.filter(
                (ClassType.name.ilike(search_term)) | (ClassType.description.ilike(search_term))
            )

        total = query.count()
        types = (
            query.order_by(ClassType.name.asc(), ClassType.id.asc())
            .offset(filters.offset)
            .limit(filters.limit)
            .all()
        )
        return types, total

    @staticmethod
    def get_type(db: Session, type_id: int) -> Optional[ClassType]:
        return (
            db.query(ClassType)
            .filter(ClassType.id == type_id, ClassType.is_deleted.is_(False))
            .first()
        )

    @staticmethod
    def create_type(db: Session, **type_data) -> ClassType:
        class_type = ClassType(**type_data)
        db.add(class_type)
        db.commit()
        db.refresh(class_type)
        return class_type

    @staticmethod
    def update_type(db: Session, class_type: ClassType, **updates) -> ClassType:
        """Apply the supplied fields only"""
        for key, value in updates.items():
            if hasattr(class_type, key):
                setattr(class_type, key, value)

        db.commit()
        db.refresh(class_type)
        return class_type

    @staticmethod
    def soft_delete_type(db: Session, class_type: ClassType) -> None:
        class_type.is_deleted = True
        class_type.deleted_at = utcnow()
        db.commit()

    @staticmethod
    def has_sessions(db: Session, type_id: int) -> bool:
        """True once any generated session points at this class type"""
        return (
            db.query(ClassSession.id)
            .join(ClassSchedule, ClassSchedule.id == ClassSession.schedule_id)
            .filter(ClassSchedule.class_type_id == type_id)
            .first()
            is not None
        )
