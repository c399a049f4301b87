"""Concurrent writers, each thread with its own session, against one SQLite file."""
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

from sqlalchemy import func, select

from hotel_api.errors import Conflict
from hotel_api.models import Reservation, ReservationStatus
from hotel_api.services import booking
from hotel_api.services.booking import GuestInfo

NOW = datetime(2025, 1, 5)
WORKERS = 8


def _attempt(session_factory, room_id, check_in, check_out, actor):
    db = session_factory()
    try:
        r = booking.create_booking(
            db, room_id, check_in, check_out,
            GuestInfo(name="Ana", email="ana@example.com", phone="555"), 1,
            actor=actor, now=NOW,
        )
        return r.code
    except Conflict:
        return None
    finally:
        db.close()


def test_parallel_bookings_get_distinct_codes(db, session_factory, make_room, guest):
    rooms = [make_room(name=f"Room {i}") for i in range(WORKERS)]

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        futures = [
            pool.submit(_attempt, session_factory, room.id, datetime(2025, 2, 1), datetime(2025, 2, 3), guest)
            for room in rooms
        ]
        codes = [f.result() for f in futures]

    assert sorted(codes) == [f"H2025-{n:04d}" for n in range(1, WORKERS + 1)]


def test_parallel_overlapping_bookings_admit_one(db, session_factory, make_room, guest):
    room = make_room()
    ranges = [(datetime(2025, 2, 1 + i % 2), datetime(2025, 2, 4)) for i in range(WORKERS)]

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        futures = [pool.submit(_attempt, session_factory, room.id, start, end, guest) for start, end in ranges]
        codes = [f.result() for f in futures]

    assert len([c for c in codes if c]) == 1
    assert db.scalar(
        select(func.count(Reservation.id)).where(Reservation.room_id == room.id, Reservation.status == ReservationStatus.PENDING)
    ) == 1


def test_cancel_and_book_race_never_double_books(db, session_factory, make_room, guest, operator):
    room = make_room()
    first = booking.create_booking(
        db, room.id, datetime(2025, 3, 1), datetime(2025, 3, 5),
        GuestInfo(name="Ana", email="ana@example.com", phone="555"), 1, actor=guest, now=NOW,
    )

    def cancel():
        s = session_factory()
        try:
            booking.cancel_booking(s, first.id, operator)
        finally:
            s.close()

    with ThreadPoolExecutor(max_workers=4) as pool:
        attempts = [pool.submit(_attempt, session_factory, room.id, datetime(2025, 3, 2), datetime(2025, 3, 4), guest) for _ in range(3)]
        pool.submit(cancel).result()
        results = [f.result() for f in attempts]

    db.expire_all()
    blocking = db.scalars(
        select(Reservation).where(Reservation.room_id == room.id, Reservation.status != ReservationStatus.CANCELED)
    ).all()
    assert len(blocking) <= 1
    assert len([c for c in results if c]) == len(blocking)
