"""Session schemas - Pydantic models for generation, filtering and status updates"""

from datetime import date, datetime, time
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...models import SESSION_STATUSES
from ...schemas import PageParams
from ...shared.validators import to_utc_date

SessionStatus = Literal[SESSION_STATUSES]


class GenerateSessionsRequest(BaseModel):
    """Inclusive date window; ISO datetimes are reduced to their UTC date"""

    fromDate: date
    toDate: date
    branchId: Optional[int] = None
    scheduleId: Optional[int] = None

    @field_validator("fromDate", "toDate", mode="before")
    @classmethod
    def normalise_dates(cls, v):
        try:
            return to_utc_date(v)
        except ValueError:
            # Let pydantic report the malformed value
            return v


class GenerateSessionsResponse(BaseModel):
    message: str
    created: int


class SessionFilters(PageParams):
    """
    Typed filter set for listing sessions.

    Every filter is optional; omitted filters do not restrict the result.
    Defaults: page 1, 50 per page, ordered by date then start time.
    """

    branchId: Optional[int] = None
    fromDate: Optional[date] = None
    toDate: Optional[date] = None
    classTypeId: Optional[int] = None
    instructorId: Optional[int] = None
    status: Optional[SessionStatus] = None


class SessionUpdate(BaseModel):
    status: Optional[SessionStatus] = None
    instructorId: Optional[int] = None
    notes: Optional[str] = None
    cancelledReason: Optional[str] = None
    actualCapacity: Optional[int] = Field(None, ge=1)


class SessionResponse(BaseModel):
    id: int
    scheduleId: int
    branchId: Optional[int]
    date: date
    classTypeId: Optional[int]
    classTypeName: Optional[str]
    category: Optional[str]
    color: Optional[str]
    icon: Optional[str]
    instructorId: Optional[int]
    instructorName: Optional[str]
    room: Optional[str]
    startTime: Optional[time]
    endTime: Optional[time]
    status: str
    capacity: int
    actualCapacity: Optional[int]
    effectiveCapacity: int
    bookedCount: int
    notes: Optional[str]
    cancelledReason: Optional[str]
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class SessionListResponse(BaseModel):
    data: list[SessionResponse]
    total: int
    page: int
    limit: int
