from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

CLASS_CATEGORIES = (
    "yoga",
    "spin",
    "hiit",
    "crossfit",
    "strength",
    "pilates",
    "zumba",
    "boxing",
    "cardio",
    "stretching",
    "functional",
    "other",
)

SESSION_SCHEDULED = "scheduled"
SESSION_CANCELLED = "cancelled"
SESSION_COMPLETED = "completed"
SESSION_STATUSES = (SESSION_SCHEDULED, SESSION_CANCELLED, SESSION_COMPLETED)

BOOKING_BOOKED = "booked"
BOOKING_WAITLISTED = "waitlisted"
BOOKING_ATTENDED = "attended"
BOOKING_NO_SHOW = "no_show"
BOOKING_CANCELLED = "cancelled"
BOOKING_STATUSES = (
    BOOKING_BOOKED,
    BOOKING_WAITLISTED,
    BOOKING_ATTENDED,
    BOOKING_NO_SHOW,
    BOOKING_CANCELLED,
)

# A member holds at most one of these per session
LIVE_BOOKING_STATUSES = (BOOKING_BOOKED, BOOKING_WAITLISTED)
# These occupy a seat
SEATED_BOOKING_STATUSES = (BOOKING_BOOKED, BOOKING_ATTENDED)


class User(Base):
    """Member/staff directory row, owned by the users module. Read here for display names."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    role = Column(String(50), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class ClassType(Base):
    __tablename__ = "class_types"

    id = Column(Integer, primary_key=True, index=True)
    branch_id = Column(Integer, nullable=True, index=True)  # NULL = shared by all branches
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=True)
    default_duration = Column(Integer, default=60, nullable=False)  # minutes
    default_capacity = Column(Integer, default=20, nullable=False)
    color = Column(String(20), nullable=True)
    icon = Column(String(50), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Soft delete
    is_deleted = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    schedules = relationship("ClassSchedule", back_populates="class_type")

    __table_args__ = (
        CheckConstraint("default_duration >= 15", name="check_class_type_duration"),
        CheckConstraint("default_capacity >= 1", name="check_class_type_capacity"),
    )

    def __repr__(self):
        return f"<ClassType(id={self.id}, name='{self.name}')>"


class ClassSchedule(Base):
    """Weekly template a class is generated from"""

    __tablename__ = "class_schedules"

    id = Column(Integer, primary_key=True, index=True)
    class_type_id = Column(Integer, ForeignKey("class_types.id"), nullable=False, index=True)
    branch_id = Column(Integer, nullable=True, index=True)
    instructor_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    room = Column(String(100), nullable=True)

    day_of_week = Column(Integer, nullable=False)  # 0 = Sunday ... 6 = Saturday
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    capacity = Column(Integer, nullable=False)

    is_recurring = Column(Boolean, default=True, nullable=False)
    start_date = Column(Date, nullable=True)  # Optional active-date bounds
    end_date = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    is_deleted = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    class_type = relationship("ClassType", back_populates="schedules")
    instructor = relationship("User")
    sessions = relationship("ClassSession", back_populates="schedule")

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="check_schedule_day_of_week"),
        CheckConstraint("capacity >= 1", name="check_schedule_capacity"),
        Index("ix_class_schedules_branch_active", "branch_id", "is_active"),
    )

    def __repr__(self):
        return f"<ClassSchedule(id={self.id}, class_type_id={self.class_type_id}, day={self.day_of_week})>"


class ClassSession(Base):
    """A dated occurrence generated from a schedule"""

    __tablename__ = "class_sessions"

    id = Column(Integer, primary_key=True, index=True)
    schedule_id = Column(Integer, ForeignKey("class_schedules.id"), nullable=False, index=True)
    branch_id = Column(Integer, nullable=True, index=True)  # Copied from the schedule
    date = Column(Date, nullable=False, index=True)
    instructor_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    actual_capacity = Column(Integer, nullable=True)  # Per-occurrence override

    # Status workflow: scheduled → cancelled | completed (both terminal)
    status = Column(String(20), default=SESSION_SCHEDULED, nullable=False, index=True)
    notes = Column(Text, nullable=True)
    cancelled_reason = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    schedule = relationship("ClassSchedule", back_populates="sessions")
    instructor = relationship("User")
    bookings = relationship("ClassBooking", back_populates="session")

    __table_args__ = (
        UniqueConstraint("schedule_id", "date", name="uq_class_sessions_schedule_date"),
        CheckConstraint(
            "actual_capacity IS NULL OR actual_capacity >= 1", name="check_session_capacity"
        ),
    )

    @property
    def effective_capacity(self) -> int:
        if self.actual_capacity is not None:
            return self.actual_capacity
        return self.schedule.capacity

    def __repr__(self):
        return f"<ClassSession(id={self.id}, schedule_id={self.schedule_id}, date={self.date}, status={self.status})>"


LIVE_BOOKING_INDEX = "uq_class_bookings_live_member"
_LIVE_BOOKING_PREDICATE = text("status IN ('booked', 'waitlisted')")


class ClassBooking(Base):
    """A member's reservation against one session. Kept forever for attendance history."""

    __tablename__ = "class_bookings"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("class_sessions.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # booked → attended | no_show | cancelled; waitlisted → booked | cancelled
    status = Column(String(20), nullable=False)
    booked_at = Column(DateTime, nullable=False, server_default=func.now())
    cancelled_at = Column(DateTime, nullable=True)
    cancel_reason = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    session = relationship("ClassSession", back_populates="bookings")
    user = relationship("User")

    __table_args__ = (
        Index("ix_class_bookings_session_status", "session_id", "status"),
        Index(
            LIVE_BOOKING_INDEX,
            "session_id",
            "user_id",
            unique=True,
            postgresql_where=_LIVE_BOOKING_PREDICATE,
            sqlite_where=_LIVE_BOOKING_PREDICATE,
        ),
    )

    def __repr__(self):
        return f"<ClassBooking(id={self.id}, session_id={self.session_id}, user_id={self.user_id}, status={self.status})>"
