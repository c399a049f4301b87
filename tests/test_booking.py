from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from hotel_api.errors import Conflict, Forbidden, InvalidArgument, InvalidTransition, NotFound, Unauthorized
from hotel_api.models import PaymentStatus, Reservation, ReservationCounter, ReservationStatus, Room
from hotel_api.services import booking
from hotel_api.services.booking import GuestInfo
from hotel_api.services.rooms import delete_room

NOW = datetime(2025, 1, 5, 9, 30)
ANA = GuestInfo(name="Ana Perez", email="ana@example.com", phone="555-1234")


def book(db, room, check_in, check_out, actor, guests=2, now=NOW):
    return booking.create_booking(db, room.id, check_in, check_out, ANA, guests, actor=actor, now=now)


def reservation_count(db) -> int:
    return db.scalar(select(func.count(Reservation.id)))


def test_first_booking_of_the_year(db, make_room, guest):
    room = make_room(capacity=2, price="100.00")

    r = book(db, room, datetime(2025, 1, 10), datetime(2025, 1, 12), guest)

    assert r.code == "H2025-0001"
    assert r.status == ReservationStatus.PENDING
    assert r.total == Decimal("200.00")
    assert r.user_id == guest.id
    assert r.created_at == NOW
    assert booking.count_nights(r.check_in, r.check_out) == 2


def test_overlapping_booking_is_rejected(db, make_room, guest):
    room = make_room()
    book(db, room, datetime(2025, 1, 10), datetime(2025, 1, 12), guest)

    with pytest.raises(Conflict):
        book(db, room, datetime(2025, 1, 11), datetime(2025, 1, 13), guest)
    assert reservation_count(db) == 1


def test_booking_touching_the_previous_checkout_is_accepted(db, make_room, guest):
    room = make_room()
    book(db, room, datetime(2025, 1, 10), datetime(2025, 1, 12), guest)

    r = book(db, room, datetime(2025, 1, 12), datetime(2025, 1, 14), guest)

    assert r.code == "H2025-0002"
    assert r.status == ReservationStatus.PENDING


def test_rejected_booking_does_not_consume_a_code(db, make_room, guest):
    room = make_room()
    book(db, room, datetime(2025, 1, 10), datetime(2025, 1, 12), guest)
    with pytest.raises(Conflict):
        book(db, room, datetime(2025, 1, 10), datetime(2025, 1, 11), guest)

    r = book(db, room, datetime(2025, 2, 1), datetime(2025, 2, 3), guest)
    assert r.code == "H2025-0002"


def test_codes_are_sequential_per_year(db, make_room, guest):
    room = make_room()
    codes = [
        book(db, room, datetime(2025, 3, d), datetime(2025, 3, d + 1), guest).code
        for d in (1, 2, 3)
    ]
    next_year = book(db, room, datetime(2026, 1, 10), datetime(2026, 1, 11), guest, now=datetime(2026, 1, 2)).code

    assert codes == ["H2025-0001", "H2025-0002", "H2025-0003"]
    assert next_year == "H2026-0001"


def test_partial_day_counts_as_a_night(db, make_room, guest):
    room = make_room(price="80.50")
    r = book(db, room, datetime(2025, 1, 10, 14), datetime(2025, 1, 11, 16), guest)
    assert r.total == Decimal("161.00")


@pytest.mark.parametrize(
    "check_in, check_out",
    [
        (datetime(2025, 1, 12), datetime(2025, 1, 10)),
        (datetime(2025, 1, 10), datetime(2025, 1, 10)),
    ],
)
def test_invalid_range_leaves_no_trace(db, make_room, guest, check_in, check_out):
    room = make_room()
    with pytest.raises(InvalidArgument):
        book(db, room, check_in, check_out, guest)
    assert reservation_count(db) == 0
    assert db.scalar(select(func.count()).select_from(ReservationCounter)) == 0


def test_missing_guest_fields_are_rejected(db, make_room, guest):
    room = make_room()
    with pytest.raises(InvalidArgument):
        booking.create_booking(
            db, room.id, datetime(2025, 1, 10), datetime(2025, 1, 12),
            GuestInfo(name=" ", email="a@b.c", phone=""), 1, actor=guest, now=NOW,
        )
    assert reservation_count(db) == 0


def test_zero_guests_rejected(db, make_room, guest):
    room = make_room()
    with pytest.raises(InvalidArgument):
        book(db, room, datetime(2025, 1, 10), datetime(2025, 1, 12), guest, guests=0)


def test_capacity_is_enforced(db, make_room, guest):
    room = make_room(capacity=2)
    with pytest.raises(InvalidArgument):
        book(db, room, datetime(2025, 1, 10), datetime(2025, 1, 12), guest, guests=3)
    assert reservation_count(db) == 0


def test_unknown_or_inactive_room(db, make_room, guest):
    closed = make_room(is_active=False)
    with pytest.raises(NotFound):
        book(db, closed, datetime(2025, 1, 10), datetime(2025, 1, 12), guest)
    with pytest.raises(NotFound):
        booking.create_booking(db, 999, datetime(2025, 1, 10), datetime(2025, 1, 12), ANA, 1, actor=guest, now=NOW)


def test_canceled_reservation_frees_the_dates(db, make_room, guest):
    room = make_room()
    first = book(db, room, datetime(2025, 1, 10), datetime(2025, 1, 12), guest)
    booking.cancel_booking(db, first.id, guest, now=NOW)

    again = book(db, room, datetime(2025, 1, 10), datetime(2025, 1, 12), guest)
    assert again.code == "H2025-0002"


def test_aware_datetimes_are_stored_as_utc(db, make_room, guest):
    from datetime import timedelta, timezone

    minus_five = timezone(timedelta(hours=-5))
    room = make_room()
    r = book(db, room, datetime(2025, 1, 10, 19, tzinfo=minus_five), datetime(2025, 1, 12, 19, tzinfo=minus_five), guest)
    assert r.check_in == datetime(2025, 1, 11, 0, 0)
    assert r.check_in.tzinfo is None


# ---- status changes ----

def test_check_in_requires_confirmation_first(db, make_room, guest, operator):
    room = make_room()
    r = book(db, room, datetime(2025, 1, 10), datetime(2025, 1, 12), guest)

    with pytest.raises(InvalidTransition) as exc:
        booking.change_status(db, r.id, ReservationStatus.CHECKED_IN, operator)
    assert exc.value.current == ReservationStatus.PENDING
    assert exc.value.target == ReservationStatus.CHECKED_IN
    assert db.get(Reservation, r.id).status == ReservationStatus.PENDING

    booking.change_status(db, r.id, ReservationStatus.CONFIRMED, operator)
    r = booking.change_status(db, r.id, ReservationStatus.CHECKED_IN, operator)
    assert r.status == ReservationStatus.CHECKED_IN


def test_status_accepts_plain_strings(db, make_room, guest, operator):
    room = make_room()
    r = book(db, room, datetime(2025, 1, 10), datetime(2025, 1, 12), guest)
    assert booking.change_status(db, r.id, "CONFIRMED", operator).status == ReservationStatus.CONFIRMED
    with pytest.raises(InvalidArgument):
        booking.change_status(db, r.id, "LOST", operator)


def test_owner_can_cancel_and_pay_but_not_confirm(db, make_room, guest):
    room = make_room()
    r1 = book(db, room, datetime(2025, 1, 10), datetime(2025, 1, 12), guest)
    r2 = book(db, room, datetime(2025, 1, 20), datetime(2025, 1, 22), guest)

    with pytest.raises(Forbidden):
        booking.change_status(db, r1.id, ReservationStatus.CONFIRMED, guest)

    paid = booking.mark_paid(db, r1.id, guest, now=datetime(2025, 1, 6))
    assert paid.status == ReservationStatus.PAID
    assert paid.payment_status == PaymentStatus.SUCCEEDED
    assert paid.payment_date == datetime(2025, 1, 6)

    assert booking.cancel_booking(db, r2.id, guest).status == ReservationStatus.CANCELED


def test_other_guests_cannot_touch_a_reservation(db, make_room, make_user, guest):
    from conftest import principal_of

    stranger = principal_of(make_user("stranger@example.com"))
    room = make_room()
    r = book(db, room, datetime(2025, 1, 10), datetime(2025, 1, 12), guest)

    with pytest.raises(Forbidden):
        booking.cancel_booking(db, r.id, stranger)
    with pytest.raises(Forbidden):
        booking.get_reservation(db, r.id, stranger)
    with pytest.raises(Unauthorized):
        booking.cancel_booking(db, r.id, None)


def test_terminal_reservations_cannot_be_canceled(db, make_room, guest, operator):
    room = make_room()
    r = book(db, room, datetime(2025, 1, 10), datetime(2025, 1, 12), guest)
    for status in (ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN, ReservationStatus.CHECKED_OUT):
        booking.change_status(db, r.id, status, operator)

    with pytest.raises(InvalidTransition):
        booking.cancel_booking(db, r.id, operator)


def test_unknown_reservation(db, operator):
    with pytest.raises(NotFound):
        booking.change_status(db, 404, ReservationStatus.CONFIRMED, operator)


def test_list_reservations_filters_and_pages(db, make_room, guest, operator):
    a, b = make_room(name="A"), make_room(name="B")
    book(db, a, datetime(2025, 1, 10), datetime(2025, 1, 12), guest)
    r = book(db, b, datetime(2025, 1, 10), datetime(2025, 1, 12), guest)
    book(db, b, datetime(2025, 2, 10), datetime(2025, 2, 12), guest)
    booking.change_status(db, r.id, ReservationStatus.CONFIRMED, operator)

    items, total = booking.list_reservations(db, room_id=b.id)
    assert total == 2
    assert {i.room_id for i in items} == {b.id}

    items, total = booking.list_reservations(db, status=ReservationStatus.CONFIRMED)
    assert total == 1 and items[0].id == r.id

    items, total = booking.list_reservations(db, page=2, page_size=2)
    assert total == 3 and len(items) == 1


# ---- room deletion ----

def test_room_with_upcoming_reservation_cannot_be_deleted(db, make_room, guest, operator, admin):
    room = make_room()
    r = book(db, room, datetime(2025, 1, 10), datetime(2025, 1, 12), guest)
    booking.change_status(db, r.id, ReservationStatus.CONFIRMED, operator)

    with pytest.raises(Conflict):
        delete_room(db, room.id, admin, now=NOW)
    assert db.get(Room, room.id) is not None

    booking.cancel_booking(db, r.id, operator)
    delete_room(db, room.id, admin, now=NOW)

    db.expunge_all()
    assert db.get(Room, room.id) is None
    assert reservation_count(db) == 0


def test_room_with_only_past_stays_can_be_deleted(db, make_room, guest, admin):
    room = make_room()
    book(db, room, datetime(2025, 1, 10), datetime(2025, 1, 12), guest)
    delete_room(db, room.id, admin, now=datetime(2025, 2, 1))
    db.expunge_all()
    assert db.get(Room, room.id) is None


def test_only_admins_delete_rooms(db, make_room, operator):
    room = make_room()
    with pytest.raises(Forbidden):
        delete_room(db, room.id, operator)
