import os

# Configure an in-memory database before the app modules read their settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

from datetime import date, time  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from classbook.database import Base, SessionLocal, engine  # noqa: E402
from classbook.domain.class_types.schemas import ClassTypeCreate  # noqa: E402
from classbook.domain.class_types.service import ClassTypeService  # noqa: E402
from classbook.domain.schedules.schemas import ScheduleCreate  # noqa: E402
from classbook.domain.schedules.service import ScheduleService  # noqa: E402
from classbook.domain.sessions.service import SessionService  # noqa: E402
from classbook.main import app  # noqa: E402
from classbook.models import ClassSession, User  # noqa: E402

GYM_ID = 7
BRANCH_ID = 1

ADMIN_ID = 1
TRAINER_ID = 2
MEMBER_A = 10
MEMBER_B = 11
MEMBER_C = 12

# 2024-01-01 is a Monday
MONDAY = date(2024, 1, 1)


def caller_headers(user_id: int, role: str, branch_id: int = BRANCH_ID) -> dict:
    headers = {"X-Gym-Id": str(GYM_ID), "X-User-Id": str(user_id), "X-User-Role": role}
    if branch_id is not None:
        headers["X-Branch-Id"] = str(branch_id)
    return headers


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    db.add_all(
        [
            User(id=ADMIN_ID, name="Alex Admin", role="admin"),
            User(id=TRAINER_ID, name="Tara Trainer", role="trainer"),
            User(id=MEMBER_A, name="Member A", role="client"),
            User(id=MEMBER_B, name="Member B", role="client"),
            User(id=MEMBER_C, name="Member C", role="client"),
        ]
    )
    db.commit()
    db.close()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def admin_headers():
    return caller_headers(ADMIN_ID, "admin")


@pytest.fixture
def trainer_headers():
    return caller_headers(TRAINER_ID, "trainer")


@pytest.fixture
def member_headers():
    return caller_headers(MEMBER_A, "client")


@pytest.fixture
def class_type(db):
    data = ClassTypeCreate(name="Morning Yoga", category="yoga", defaultCapacity=20)
    return ClassTypeService(db).create_type(BRANCH_ID, data)


@pytest.fixture
def make_schedule(db, class_type):
    def _make(**overrides):
        payload = {
            "classTypeId": class_type["id"],
            "instructorId": TRAINER_ID,
            "room": "Studio 1",
            "dayOfWeek": 1,
            "startTime": time(7, 0),
            "endTime": time(8, 0),
        }
        payload.update(overrides)
        return ScheduleService(db).create_schedule(BRANCH_ID, ScheduleCreate(**payload))

    return _make


@pytest.fixture
def make_session(db, make_schedule):
    """Monday 2024-01-01 session of a fresh template"""

    def _make(capacity: int = 1) -> int:
        schedule = make_schedule(capacity=capacity)
        SessionService(db).generate_sessions(MONDAY, MONDAY, schedule_id=schedule["id"])
        return db.query(ClassSession.id).filter(ClassSession.schedule_id == schedule["id"]).scalar()

    return _make
