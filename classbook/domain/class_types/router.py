"""Class type router - FastAPI endpoints for the class catalog"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import ALL_ROLES, MANAGER_ROLES, CallerContext, require_roles
from ...database import get_tenant_db
from ...schemas import MessageResponse
from .schemas import (
    ClassTypeCreate,
    ClassTypeFilters,
    ClassTypeListResponse,
    ClassTypeResponse,
    ClassTypeUpdate,
)
from .service import ClassTypeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/classes/types", tags=["Class Types"])


def get_class_type_service(db: Session = Depends(get_tenant_db)) -> ClassTypeService:
    """Dependency injection for ClassTypeService"""
    return ClassTypeService(db)


@router.get("", response_model=ClassTypeListResponse)
async def list_class_types(
    filters: Annotated[ClassTypeFilters, Query()],
    caller: CallerContext = Depends(require_roles(*ALL_ROLES)),
    service: ClassTypeService = Depends(get_class_type_service),
):
    """List class types visible to the caller's branch"""
    return service.list_types(caller.branch_id, filters)


@router.get("/{type_id}", response_model=ClassTypeResponse)
async def get_class_type(
    type_id: int,
    caller: CallerContext = Depends(require_roles(*ALL_ROLES)),
    service: ClassTypeService = Depends(get_class_type_service),
):
    return service.get_type(type_id)


@router.post("", response_model=ClassTypeResponse, status_code=201)
async def create_class_type(
    data: ClassTypeCreate,
    caller: CallerContext = Depends(require_roles(*MANAGER_ROLES)),
    service: ClassTypeService = Depends(get_class_type_service),
):
    return service.create_type(caller.branch_id, data)


@router.patch("/{type_id}", response_model=ClassTypeResponse)
async def update_class_type(
    type_id: int,
    data: ClassTypeUpdate,
    caller: CallerContext = Depends(require_roles(*MANAGER_ROLES)),
    service: ClassTypeService = Depends(get_class_type_service),
):
    """Update a class type (only supplied fields change)"""
    return service.update_type(type_id, data)


@router.delete("/{type_id}", response_model=MessageResponse)
async def delete_class_type(
    type_id: int,
    caller: CallerContext = Depends(require_roles(*MANAGER_ROLES)),
    service: ClassTypeService = Depends(get_class_type_service),
):
    """Soft-delete a class type"""
    return service.delete_type(type_id)
