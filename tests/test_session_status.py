import pytest
from conftest import BRANCH_ID, MEMBER_A, MEMBER_B, MEMBER_C, MONDAY, caller_headers

from classbook.domain.bookings.repository import BookingRepository
from classbook.domain.bookings.schemas import BookingStatusUpdate
from classbook.domain.bookings.service import BookingService
from classbook.domain.sessions.schemas import SessionFilters, SessionUpdate
from classbook.domain.sessions.service import SessionService
from classbook.errors import (
    ConflictError,
    IllegalTransitionError,
    InvalidRequestError,
    NotFoundError,
)
from classbook.models import ClassBooking


def _statuses(db, session_id):
    db.expire_all()
    bookings = (
        db.query(ClassBooking)
        .filter(ClassBooking.session_id == session_id)
        .order_by(ClassBooking.id)
        .all()
    )
    return [(b.user_id, b.status) for b in bookings]


def test_get_session_reports_capacity_and_counts(db, make_session):
    session_id = make_session(capacity=2)
    BookingService(db).book_session(session_id, MEMBER_A)

    session = SessionService(db).get_session(session_id)
    assert session["date"] == MONDAY
    assert session["classTypeName"] == "Morning Yoga"
    assert session["instructorName"] == "Tara Trainer"
    assert session["capacity"] == 2
    assert session["effectiveCapacity"] == 2
    assert session["bookedCount"] == 1
    assert session["status"] == "scheduled"


def test_unknown_session_not_found(db):
    with pytest.raises(NotFoundError):
        SessionService(db).get_session(404)


def test_cancel_cascades_to_live_bookings(db, make_session):
    session_id = make_session(capacity=1)
    bookings = BookingService(db)
    bookings.book_session(session_id, MEMBER_A)
    bookings.book_session(session_id, MEMBER_B)

    updated = SessionService(db).update_session(
        session_id, SessionUpdate(status="cancelled", cancelledReason="Instructor sick")
    )

    assert updated["status"] == "cancelled"
    assert updated["cancelledReason"] == "Instructor sick"
    assert updated["bookedCount"] == 0
    assert _statuses(db, session_id) == [(MEMBER_A, "cancelled"), (MEMBER_B, "cancelled")]

    db.expire_all()
    reasons = {b.cancel_reason for b in db.query(ClassBooking).all()}
    assert reasons == {"Session cancelled"}


def test_cancel_keeps_attendance_history(db, make_session):
    session_id = make_session(capacity=2)
    bookings = BookingService(db)
    attended = bookings.book_session(session_id, MEMBER_A)["booking"]["id"]
    bookings.book_session(session_id, MEMBER_B)

    bookings.update_booking_status(attended, BookingStatusUpdate(status="attended"), 1, "admin")
    SessionService(db).update_session(session_id, SessionUpdate(status="cancelled"))

    assert _statuses(db, session_id) == [(MEMBER_A, "attended"), (MEMBER_B, "cancelled")]


def test_terminal_session_cannot_transition(db, make_session):
    session_id = make_session()
    service = SessionService(db)
    service.update_session(session_id, SessionUpdate(status="completed"))

    with pytest.raises(IllegalTransitionError) as exc_info:
        service.update_session(session_id, SessionUpdate(status="scheduled"))

    assert exc_info.value.current == "completed"
    assert exc_info.value.requested == "scheduled"
    assert exc_info.value.status_code == 409
    assert service.get_session(session_id)["status"] == "completed"


def test_illegal_transition_mutates_nothing(db, make_session):
    session_id = make_session()
    service = SessionService(db)
    service.update_session(session_id, SessionUpdate(status="cancelled"))

    with pytest.raises(IllegalTransitionError):
        service.update_session(session_id, SessionUpdate(status="completed", notes="late note"))

    session = service.get_session(session_id)
    assert session["status"] == "cancelled"
    assert session["notes"] is None


def test_empty_patch_rejected(db, make_session):
    session_id = make_session()

    with pytest.raises(InvalidRequestError, match="No fields to update"):
        SessionService(db).update_session(session_id, SessionUpdate())


def test_instructor_and_notes_override(db, make_session):
    session_id = make_session()

    updated = SessionService(db).update_session(
        session_id, SessionUpdate(instructorId=1, notes="Bring a mat")
    )

    assert updated["instructorId"] == 1
    assert updated["instructorName"] == "Alex Admin"
    assert updated["notes"] == "Bring a mat"
    assert updated["status"] == "scheduled"


def test_capacity_raise_promotes_waitlist_in_order(db, make_session):
    session_id = make_session(capacity=1)
    bookings = BookingService(db)
    bookings.book_session(session_id, MEMBER_A)
    bookings.book_session(session_id, MEMBER_B)
    bookings.book_session(session_id, MEMBER_C)

    updated = SessionService(db).update_session(session_id, SessionUpdate(actualCapacity=2))

    assert updated["actualCapacity"] == 2
    assert updated["effectiveCapacity"] == 2
    assert updated["bookedCount"] == 2
    assert _statuses(db, session_id) == [
        (MEMBER_A, "booked"),
        (MEMBER_B, "booked"),
        (MEMBER_C, "waitlisted"),
    ]


def test_capacity_below_booked_count_rejected(db, make_session):
    session_id = make_session(capacity=3)
    bookings = BookingService(db)
    bookings.book_session(session_id, MEMBER_A)
    bookings.book_session(session_id, MEMBER_B)

    with pytest.raises(ConflictError):
        SessionService(db).update_session(session_id, SessionUpdate(actualCapacity=1))

    assert SessionService(db).get_session(session_id)["actualCapacity"] is None


def test_list_sessions_filters_and_orders(db, make_schedule, class_type):
    early = make_schedule(dayOfWeek=1, startTime="06:00:00", endTime="07:00:00")
    late = make_schedule(dayOfWeek=1, startTime="19:00:00", endTime="20:00:00")
    service = SessionService(db)
    service.generate_sessions(MONDAY, MONDAY.replace(day=8))

    listing = service.list_sessions(SessionFilters())
    assert listing["total"] == 4
    assert [(s["date"], s["scheduleId"]) for s in listing["data"]] == [
        (MONDAY, early["id"]),
        (MONDAY, late["id"]),
        (MONDAY.replace(day=8), early["id"]),
        (MONDAY.replace(day=8), late["id"]),
    ]

    second_week = service.list_sessions(SessionFilters(fromDate=MONDAY.replace(day=2)))
    assert second_week["total"] == 2

    by_type = service.list_sessions(SessionFilters(classTypeId=class_type["id"], limit=1, page=2))
    assert by_type["total"] == 4
    assert len(by_type["data"]) == 1
    assert by_type["data"][0]["scheduleId"] == late["id"]

    assert service.list_sessions(SessionFilters(status="cancelled"))["total"] == 0


def test_session_endpoints(client, admin_headers, trainer_headers, member_headers, make_session):
    session_id = make_session()

    listing = client.get("/classes/sessions", params={"fromDate": "2024-01-01"}, headers=member_headers)
    assert listing.status_code == 200
    assert listing.json()["data"][0]["id"] == session_id

    assert client.get(f"/classes/sessions/{session_id}", headers=member_headers).status_code == 200

    denied = client.patch(
        f"/classes/sessions/{session_id}", json={"status": "completed"}, headers=member_headers
    )
    assert denied.status_code == 403

    completed = client.patch(
        f"/classes/sessions/{session_id}", json={"status": "completed"}, headers=trainer_headers
    )
    assert completed.status_code == 200
    assert completed.json()["status"] == "completed"

    illegal = client.patch(
        f"/classes/sessions/{session_id}", json={"status": "cancelled"}, headers=admin_headers
    )
    assert illegal.status_code == 409
    assert illegal.json()["detail"] == (
        f"Cannot transition session #{session_id} from 'completed' to 'cancelled'"
    )

    empty = client.patch(f"/classes/sessions/{session_id}", json={}, headers=admin_headers)
    assert empty.status_code == 400


def test_clearing_capacity_override_falls_back_to_template(db, make_session):
    session_id = make_session(capacity=3)
    bookings = BookingService(db)
    service = SessionService(db)
    bookings.book_session(session_id, MEMBER_A)
    service.update_session(session_id, SessionUpdate(actualCapacity=1))
    bookings.book_session(session_id, MEMBER_B)
    bookings.book_session(session_id, MEMBER_C)

    cleared = service.update_session(session_id, SessionUpdate(actualCapacity=None))

    assert cleared["actualCapacity"] is None
    assert cleared["effectiveCapacity"] == 3
    assert cleared["bookedCount"] == 3
    assert _statuses(db, session_id) == [
        (MEMBER_A, "booked"),
        (MEMBER_B, "booked"),
        (MEMBER_C, "booked"),
    ]


def test_clearing_override_below_booked_count_rejected(db, make_session):
    session_id = make_session(capacity=1)
    service = SessionService(db)
    service.update_session(session_id, SessionUpdate(actualCapacity=2))
    bookings = BookingService(db)
    bookings.book_session(session_id, MEMBER_A)
    bookings.book_session(session_id, MEMBER_B)

    with pytest.raises(ConflictError, match="below the 2 seats"):
        service.update_session(session_id, SessionUpdate(actualCapacity=None))

    assert service.get_session(session_id)["actualCapacity"] == 2


def test_failed_cancel_cascade_rolls_back_status(db, make_session, monkeypatch):
    session_id = make_session(capacity=1)
    bookings = BookingService(db)
    bookings.book_session(session_id, MEMBER_A)
    bookings.book_session(session_id, MEMBER_B)

    def broken_cascade(*args):
        raise RuntimeError("connection lost")

    monkeypatch.setattr(BookingRepository, "cancel_live_bookings", staticmethod(broken_cascade))

    with pytest.raises(RuntimeError):
        SessionService(db).update_session(session_id, SessionUpdate(status="cancelled"))

    db.expire_all()
    assert SessionService(db).get_session(session_id)["status"] == "scheduled"
    assert _statuses(db, session_id) == [(MEMBER_A, "booked"), (MEMBER_B, "waitlisted")]


def test_session_list_defaults_to_caller_branch(client, make_session):
    session_id = make_session()

    own_branch = client.get("/classes/sessions", headers=caller_headers(MEMBER_A, "client"))
    assert [s["id"] for s in own_branch.json()["data"]] == [session_id]

    other_branch = client.get(
        "/classes/sessions", headers=caller_headers(MEMBER_A, "client", branch_id=2)
    )
    assert other_branch.status_code == 200
    assert other_branch.json()["total"] == 0

    explicit = client.get(
        "/classes/sessions",
        params={"branchId": BRANCH_ID},
        headers=caller_headers(MEMBER_A, "client", branch_id=2),
    )
    assert explicit.json()["total"] == 1

    no_branch = client.get(
        "/classes/sessions", headers=caller_headers(MEMBER_A, "client", branch_id=None)
    )
    assert no_branch.json()["total"] == 1
