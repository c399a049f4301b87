"""Aggregates for the staff dashboard and admin panel."""
from collections import OrderedDict
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from ..models import User, Room, Reservation, ReservationStatus, BLOCKING_STATUSES
from .dates import utcnow
from .reservation_codes import year_bounds

# Reservations whose total counts as income.
REVENUE_STATUSES = (
    ReservationStatus.PAID,
    ReservationStatus.CONFIRMED,
    ReservationStatus.CHECKED_IN,
    ReservationStatus.CHECKED_OUT,
)


def _count(db: Session, *filters) -> int:
    return int(db.scalar(select(func.count(Reservation.id)).where(*filters)) or 0)


def total_revenue(db: Session) -> Decimal:
    q = select(func.coalesce(func.sum(Reservation.total), 0)).where(Reservation.status.in_(REVENUE_STATUSES))
    return Decimal(str(db.scalar(q) or 0))


def summary(db: Session) -> dict:
    return {
        "users": int(db.scalar(select(func.count(User.id))) or 0),
        "rooms": int(db.scalar(select(func.count(Room.id))) or 0),
        "reservations_total": _count(db),
        "reservations_active": _count(db, Reservation.status.in_(sorted(BLOCKING_STATUSES))),
        "reservations_canceled": _count(db, Reservation.status == ReservationStatus.CANCELED),
        "revenue_total": float(total_revenue(db)),
    }


def occupancy_by_room(db: Session) -> list[dict]:
    q = (
        select(Room, func.count(Reservation.id))
        .outerjoin(Reservation, Reservation.room_id == Room.id)
        .group_by(Room.id)
        .order_by(Room.created_at.desc(), Room.id.desc())
    )
    return [
        {
            "id": room.id,
            "name": room.name,
            "reservations": int(count),
            "capacity": room.capacity,
            "price_per_night": float(room.price_per_night),
        }
        for room, count in db.execute(q)
    ]


def _revenue_rows(db: Session, start: datetime, end: datetime):
    q = select(Reservation.created_at, Reservation.total).where(
        Reservation.status.in_(REVENUE_STATUSES),
        Reservation.created_at >= start,
        Reservation.created_at < end,
    )
    return db.execute(q).all()


def monthly_revenue(db: Session, year: int) -> list[dict]:
    """Revenue per month (1-12) of ``year``, by creation date; months without income are omitted."""
    start, end = year_bounds(year)
    buckets: dict[int, Decimal] = {}
    for created_at, total in _revenue_rows(db, start, end):
        buckets[created_at.month] = buckets.get(created_at.month, Decimal("0")) + Decimal(str(total))
    return [{"month": m, "revenue": float(buckets[m])} for m in sorted(buckets)]


def rooms_popularity(db: Session, limit: int = 5) -> list[dict]:
    count = func.count(Reservation.id).label("bookings")
    q = (
        select(Room.id, Room.name, count)
        .join(Reservation, Reservation.room_id == Room.id)
        .group_by(Room.id, Room.name)
        .order_by(count.desc(), Room.id.asc())
        .limit(limit)
    )
    return [{"room_id": rid, "room_name": name, "bookings_count": int(n)} for rid, name, n in db.execute(q)]


def admin_stats(db: Session, now: datetime | None = None) -> dict:
    now = now or utcnow()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    tomorrow = today + timedelta(days=1)

    total_rooms = int(db.scalar(select(func.count(Room.id))) or 0)
    occupied = _count(db, Reservation.status == ReservationStatus.CHECKED_IN)
    by_status = {
        ReservationStatus(status).value: int(n)
        for status, n in db.execute(select(Reservation.status, func.count(Reservation.id)).group_by(Reservation.status))
    }

    # Last six months, keyed YYYY-MM, oldest first
    first = (today.replace(day=1) - timedelta(days=1)).replace(day=1)
    for _ in range(4):
        first = (first - timedelta(days=1)).replace(day=1)
    per_month: OrderedDict[str, Decimal] = OrderedDict()
    for created_at, total in sorted(_revenue_rows(db, first, tomorrow), key=lambda r: r[0]):
        key = created_at.strftime("%Y-%m")
        per_month[key] = per_month.get(key, Decimal("0")) + Decimal(str(total))

    return {
        "occupancy": {
            "occupied": occupied,
            "total": total_rooms,
            "percentage": round(occupied / total_rooms * 100, 2) if total_rooms else 0,
        },
        "check_ins_today": _count(db, Reservation.check_in >= today, Reservation.check_in < tomorrow),
        "revenue_total": float(total_revenue(db)),
        "reservations_by_status": by_status,
        "revenue_by_month": {k: float(v) for k, v in per_month.items()},
    }
