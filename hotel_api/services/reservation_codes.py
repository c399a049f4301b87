"""
Human readable reservation codes: ``H<year>-<seq>``, e.g. ``H2025-0001``.

The sequence is taken from a per-year counter row that is incremented with a
single UPDATE inside the caller's transaction. Counting the year's
reservations and adding one would hand the same number to two concurrent
bookings; the row lock taken by the UPDATE does not.
"""
from datetime import datetime
from sqlalchemy import select, update, insert, func
from sqlalchemy.orm import Session

from ..models import Reservation, ReservationCounter


def format_code(year: int, seq: int) -> str:
    return f"H{year}-{seq:04d}"


def year_bounds(year: int) -> tuple[datetime, datetime]:
    """[Jan 1 00:00 UTC of year, Jan 1 00:00 UTC of year + 1), as naive UTC datetimes."""
    return datetime(year, 1, 1), datetime(year + 1, 1, 1)


def count_created_in_year(db: Session, year: int) -> int:
    start, end = year_bounds(year)
    q = select(func.count(Reservation.id)).where(Reservation.created_at >= start, Reservation.created_at < end)
    return int(db.scalar(q) or 0)


def _insert_counter_if_missing(db: Session, year: int) -> None:
    values = {"year": year, "last_value": count_created_in_year(db, year)}
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert as pg_insert
        stmt = pg_insert(ReservationCounter).values(**values).on_conflict_do_nothing(index_elements=["year"])
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert as sqlite_insert
        stmt = sqlite_insert(ReservationCounter).values(**values).on_conflict_do_nothing(index_elements=["year"])
    else:
        if db.scalar(select(ReservationCounter.year).where(ReservationCounter.year == year)) is not None:
            return
        stmt = insert(ReservationCounter).values(**values)
    db.execute(stmt)


def next_sequence(db: Session, year: int) -> int:
    """
    Reserve the next sequence number for ``year``.
    A year without a counter row is seeded from the reservations already
    created in it, so existing numbering continues. Does not commit.
    """
    _insert_counter_if_missing(db, year)
    db.execute(
        update(ReservationCounter)
        .where(ReservationCounter.year == year)
        .values(last_value=ReservationCounter.last_value + 1)
        .execution_options(synchronize_session=False)
    )
    return int(db.scalar(select(ReservationCounter.last_value).where(ReservationCounter.year == year)))


def next_code(db: Session, year: int) -> str:
    return format_code(year, next_sequence(db, year))
