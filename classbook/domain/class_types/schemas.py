"""Class type schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from ...models import CLASS_CATEGORIES
from ...schemas import PageParams

ClassCategory = Literal[CLASS_CATEGORIES]


class ClassTypeCreate(BaseModel):
    """Schema for creating a class type"""

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    category: Optional[ClassCategory] = None
    defaultDuration: int = Field(60, ge=15)
    defaultCapacity: int = Field(20, ge=1)
    color: Optional[str] = Field(None, max_length=20)
    icon: Optional[str] = Field(None, max_length=50)


class ClassTypeUpdate(BaseModel):
    """Sparse patch - only fields that are sent are changed"""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    category: Optional[ClassCategory] = None
    defaultDuration: Optional[int] = Field(None, ge=15)
    defaultCapacity: Optional[int] = Field(None, ge=1)
    color: Optional[str] = Field(None, max_length=20)
    icon: Optional[str] = Field(None, max_length=50)
    isActive: Optional[bool] = None


class ClassTypeFilters(PageParams):
    category: Optional[str] = None
    search: Optional[str] = None


class ClassTypeResponse(BaseModel):
    id: int
    branchId: Optional[int]
    name: str
    description: Optional[str]
    category: Optional[str]
    defaultDuration: int
    defaultCapacity: int
    color: Optional[str]
    icon: Optional[str]
    isActive: bool
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class ClassTypeListResponse(BaseModel):
    data: list[ClassTypeResponse]
    total: int
    page: int
    limit: int
