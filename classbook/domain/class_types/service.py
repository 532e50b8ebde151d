"""Class type service - Business logic for the class catalog"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import ConflictError, NotFoundError
from ...models import ClassType
from .repository import ClassTypeRepository
from .schemas import ClassTypeCreate, ClassTypeFilters, ClassTypeUpdate

logger = logging.getLogger(__name__)

# API field -> column
_FIELD_MAP = {
    "name": "name",
    "description": "description",
    "category": "category",
    "defaultDuration": "default_duration",
    "defaultCapacity": "default_capacity",
    "color": "color",
    "icon": "icon",
    "isActive": "is_active",
}

# Columns that cannot be cleared with an explicit null
_REQUIRED_COLUMNS = {"name", "default_duration", "default_capacity", "is_active"}

# Only display fields may change once sessions have been generated from the type
_STRUCTURAL_COLUMNS = {"category", "default_duration", "default_capacity"}


def format_class_type(class_type: ClassType) -> dict:
    return {
        "id": class_type.id,
        "branchId": class_type.branch_id,
        "name": class_type.name,
        "description": class_type.description,
        "category": class_type.category,
        "defaultDuration": class_type.default_duration,
        "defaultCapacity": class_type.default_capacity,
        "color": class_type.color,
        "icon": class_type.icon,
        "isActive": class_type.is_active,
        "createdAt": class_type.created_at,
        "updatedAt": class_type.updated_at,
    }


class ClassTypeService:
    """Service layer for the class type catalog"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ClassTypeRepository()

    def list_types(self, branch_id: Optional[int], filters: ClassTypeFilters) -> dict:
        types, total = self.repo.list_types(self.db, branch_id, filters)
        return {
            "data": [format_class_type(t) for t in types],
            "total": total,
            "page": filters.page,
            "limit": filters.limit,
        }

    def get_type_model(self, type_id: int) -> ClassType:
        """Lookup used by the other scheduling components"""
        class_type = self.repo.get_type(self.db, type_id)
        if not class_type:
            raise NotFoundError("Class type", type_id)
        return class_type

    def get_type(self, type_id: int) -> dict:
        return format_class_type(self.get_type_model(type_id))

    def create_type(self, branch_id: Optional[int], data: ClassTypeCreate) -> dict:
        logger.info(f"📥 Creating class type '{data.name}' for branch {branch_id}")
        class_type = self.repo.create_type(
            self.db,
            branch_id=branch_id,
            name=data.name,
            description=data.description,
            category=data.category,
            default_duration=data.defaultDuration,
            default_capacity=data.defaultCapacity,
            color=data.color,
            icon=data.icon,
        )
        logger.info(f"✅ Class type {class_type.id} created")
        return format_class_type(class_type)

    def update_type(self, type_id: int, data: ClassTypeUpdate) -> dict:
        class_type = self.get_type_model(type_id)

        updates = {}
        for field, value in data.model_dump(exclude_unset=True).items():
            column = _FIELD_MAP[field]
            if value is None and column in _REQUIRED_COLUMNS:
                continue
            if getattr(class_type, column) != value:
                updates[column] = value

        if not updates:
            return format_class_type(class_type)

        locked = _STRUCTURAL_COLUMNS.intersection(updates)
        if locked and self.repo.has_sessions(self.db, type_id):
            logger.warning(f"⚠️ Rejected change of {sorted(locked)} on class type {type_id} with sessions")
            raise ConflictError(
                f"Class type #{type_id} already has sessions; only name, description, "
                f"color, icon and active flag can change (attempted: {', '.join(sorted(locked))})",
                "Class type",
                type_id,
            )

        class_type = self.repo.update_type(self.db, class_type, **updates)
        return format_class_type(class_type)

    def delete_type(self, type_id: int) -> dict:
        class_type = self.get_type_model(type_id)
        self.repo.soft_delete_type(self.db, class_type)
        logger.info(f"✅ Class type {type_id} soft-deleted")
        return {"message": "Class type deleted successfully"}
