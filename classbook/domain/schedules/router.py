"""Schedule router - FastAPI endpoints for weekly class templates"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import ALL_ROLES, MANAGER_ROLES, CallerContext, require_roles
from ...database import get_tenant_db
from ...schemas import MessageResponse
from .schemas import (
    ScheduleCreate,
    ScheduleFilters,
    ScheduleListResponse,
    ScheduleResponse,
    ScheduleUpdate,
)
from .service import ScheduleService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/classes/schedules", tags=["Class Schedules"])


def get_schedule_service(db: Session = Depends(get_tenant_db)) -> ScheduleService:
    """Dependency injection for ScheduleService"""
    return ScheduleService(db)


@router.get("", response_model=ScheduleListResponse)
async def list_schedules(
    filters: Annotated[ScheduleFilters, Query()],
    caller: CallerContext = Depends(require_roles(*ALL_ROLES)),
    service: ScheduleService = Depends(get_schedule_service),
):
    """List weekly templates ordered by day and start time"""
    return service.list_schedules(caller.branch_id, filters)


@router.get("/{schedule_id}", response_model=ScheduleResponse)
async def get_schedule(
    schedule_id: int,
    caller: CallerContext = Depends(require_roles(*ALL_ROLES)),
    service: ScheduleService = Depends(get_schedule_service),
):
    return service.get_schedule(schedule_id)


@router.post("", response_model=ScheduleResponse, status_code=201)
async def create_schedule(
    data: ScheduleCreate,
    caller: CallerContext = Depends(require_roles(*MANAGER_ROLES)),
    service: ScheduleService = Depends(get_schedule_service),
):
    return service.create_schedule(caller.branch_id, data)


@router.patch("/{schedule_id}", response_model=ScheduleResponse)
async def update_schedule(
    schedule_id: int,
    data: ScheduleUpdate,
    caller: CallerContext = Depends(require_roles(*MANAGER_ROLES)),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Update a template (only supplied fields change)"""
    return service.update_schedule(schedule_id, data)


@router.delete("/{schedule_id}", response_model=MessageResponse)
async def delete_schedule(
    schedule_id: int,
    caller: CallerContext = Depends(require_roles(*MANAGER_ROLES)),
    service: ScheduleService = Depends(get_schedule_service),
):
    return service.delete_schedule(schedule_id)
