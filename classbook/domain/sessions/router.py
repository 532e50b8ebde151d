"""Session router - FastAPI endpoints for dated class sessions"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import ALL_ROLES, MANAGER_ROLES, STAFF_ROLES, CallerContext, require_roles
from ...database import get_tenant_db
from .schemas import (
    GenerateSessionsRequest,
    GenerateSessionsResponse,
    SessionFilters,
    SessionListResponse,
    SessionResponse,
    SessionUpdate,
)
from .service import SessionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/classes/sessions", tags=["Class Sessions"])


def get_session_service(db: Session = Depends(get_tenant_db)) -> SessionService:
    """Dependency injection for SessionService"""
    return SessionService(db)


@router.get("", response_model=SessionListResponse)
async def list_sessions(
    filters: Annotated[SessionFilters, Query()],
    caller: CallerContext = Depends(require_roles(*ALL_ROLES)),
    service: SessionService = Depends(get_session_service),
):
    """
    List sessions with booked counts.

    Query params:
    - branchId: defaults to the caller branch
    - classTypeId, instructorId, status: exact filters
    - fromDate, toDate: inclusive date window
    - page, limit: pagination (default 1 / 50)
    """
    if filters.branchId is None and caller.branch_id is not None:
        filters = filters.model_copy(update={"branchId": caller.branch_id})
    return service.list_sessions(filters)


@router.post("/generate", response_model=GenerateSessionsResponse)
async def generate_sessions(
    data: GenerateSessionsRequest,
    caller: CallerContext = Depends(require_roles(*MANAGER_ROLES)),
    service: SessionService = Depends(get_session_service),
):
    """Create sessions from active weekly templates for a date window (max 90 days)"""
    branch_id = data.branchId if data.branchId is not None else caller.branch_id
    return service.generate_sessions(
        data.fromDate, data.toDate, branch_id=branch_id, schedule_id=data.scheduleId
    )


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: int,
    caller: CallerContext = Depends(require_roles(*ALL_ROLES)),
    service: SessionService = Depends(get_session_service),
):
    return service.get_session(session_id)


@router.patch("/{session_id}", response_model=SessionResponse)
async def update_session(
    session_id: int,
    data: SessionUpdate,
    caller: CallerContext = Depends(require_roles(*STAFF_ROLES)),
    service: SessionService = Depends(get_session_service),
):
    """Change status, instructor, notes or capacity of one session"""
    return service.update_session(session_id, data)
