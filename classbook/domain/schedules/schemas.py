"""Schedule template schemas - Pydantic models for validation"""

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from ...shared.validators import validate_date_bounds, validate_time_window


class ScheduleCreate(BaseModel):
    """Schema for creating a weekly schedule template"""

    classTypeId: int
    instructorId: Optional[int] = None
    room: Optional[str] = Field(None, max_length=100)
    dayOfWeek: int = Field(..., ge=0, le=6, description="0 = Sunday ... 6 = Saturday")
    startTime: time
    endTime: time
    capacity: Optional[int] = Field(None, ge=1, description="Defaults to the class type capacity")
    isRecurring: bool = True
    startDate: Optional[date] = None
    endDate: Optional[date] = None

    @model_validator(mode="after")
    def validate_windows(self):
        validate_time_window(self.startTime, self.endTime)
        validate_date_bounds(self.startDate, self.endDate)
        return self


class ScheduleUpdate(BaseModel):
    """Sparse patch; the merged template is revalidated by the service"""

    instructorId: Optional[int] = None
    room: Optional[str] = Field(None, max_length=100)
    dayOfWeek: Optional[int] = Field(None, ge=0, le=6)
    startTime: Optional[time] = None
    endTime: Optional[time] = None
    capacity: Optional[int] = Field(None, ge=1)
    isRecurring: Optional[bool] = None
    startDate: Optional[date] = None
    endDate: Optional[date] = None
    isActive: Optional[bool] = None


class ScheduleFilters(BaseModel):
    classTypeId: Optional[int] = None
    isActive: Optional[bool] = None


class ScheduleResponse(BaseModel):
    id: int
    classTypeId: int
    classTypeName: Optional[str]
    color: Optional[str]
    icon: Optional[str]
    branchId: Optional[int]
    instructorId: Optional[int]
    instructorName: Optional[str]
    room: Optional[str]
    dayOfWeek: int
    startTime: time
    endTime: time
    capacity: int
    isRecurring: bool
    startDate: Optional[date]
    endDate: Optional[date]
    isActive: bool
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class ScheduleListResponse(BaseModel):
    data: list[ScheduleResponse]
    total: int
