from datetime import datetime
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..errors import InvalidArgument
from ..models import Room, Reservation, BLOCKING_STATUSES


def validate_range(start: datetime, end: datetime) -> None:
    if start is None or end is None or not start < end:
        raise InvalidArgument("Invalid date range: check-in must be before check-out")


def ranges_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Return True if [a_start, a_end) overlaps [b_start, b_end). Touching ends do not overlap."""
    return a_start < b_end and b_start < a_end


def _blocking_overlap(start: datetime, end: datetime):
    return (
        Reservation.status.in_(sorted(BLOCKING_STATUSES)),
        Reservation.check_in < end,
        Reservation.check_out > start,
    )


def overlapping_reservations(db: Session, room_id: int, start: datetime, end: datetime, exclude_id: int | None = None) -> list[Reservation]:
    """Blocking reservations of ``room_id`` whose stay intersects [start, end)."""
    validate_range(start, end)
    q = select(Reservation).where(Reservation.room_id == room_id, *_blocking_overlap(start, end))
    if exclude_id is not None:
        q = q.where(Reservation.id != exclude_id)
    return list(db.scalars(q.order_by(Reservation.check_in.asc())))


def is_available(db: Session, room_id: int, start: datetime, end: datetime) -> bool:
    validate_range(start, end)
    q = (
        select(Reservation.id)
        .where(Reservation.room_id == room_id, *_blocking_overlap(start, end))
        .limit(1)
    )
    return db.scalar(q) is None


def busy_room_ids(db: Session, start: datetime, end: datetime) -> set[int]:
    validate_range(start, end)
    q = select(Reservation.room_id).where(*_blocking_overlap(start, end)).distinct()
    return set(db.scalars(q))


def find_available_rooms(db: Session, start: datetime, end: datetime) -> list[Room]:
    """Active rooms with no blocking reservation intersecting [start, end), newest first."""
    busy = busy_room_ids(db, start, end)
    q = select(Room).where(Room.is_active.is_(True))
    if busy:
        q = q.where(Room.id.not_in(sorted(busy)))
    return list(db.scalars(q.order_by(Room.created_at.desc(), Room.id.desc())))
