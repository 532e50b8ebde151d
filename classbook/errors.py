"""Scheduling error taxonomy.

Every error is an HTTPException so services raise them directly and FastAPI
renders them without extra handlers. Raising inside a transaction rolls it back.
"""

from typing import Optional

from fastapi import HTTPException


class SchedulingError(HTTPException):
    status_code = 400

    def __init__(self, detail: str, entity: Optional[str] = None, entity_id: Optional[int] = None):
        super().__init__(status_code=self.status_code, detail=detail)
        self.entity = entity
        self.entity_id = entity_id


class NotFoundError(SchedulingError):
    status_code = 404

    def __init__(self, entity: str, entity_id: int, detail: Optional[str] = None):
        super().__init__(detail or f"{entity} #{entity_id} not found", entity, entity_id)


class IllegalTransitionError(SchedulingError):
    status_code = 409

    def __init__(self, entity: str, entity_id: int, current: str, requested: str):
        super().__init__(
            f"Cannot transition {entity.lower()} #{entity_id} from '{current}' to '{requested}'",
            entity,
            entity_id,
        )
        self.current = current
        self.requested = requested


class ConflictError(SchedulingError):
    status_code = 409


class InvalidRequestError(SchedulingError):
    status_code = 400


class PermissionDeniedError(SchedulingError):
    status_code = 403
