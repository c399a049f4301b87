from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from enum import Enum as PyEnum
from sqlalchemy import Integer, String, ForeignKey, DateTime, Numeric, Enum, Index, CheckConstraint, DDL, event
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..db import Base

if TYPE_CHECKING:
    from .room import Room

class ReservationStatus(str, PyEnum):
    PENDING = "PENDING"
    PAID = "PAID"
    CONFIRMED = "CONFIRMED"
    CHECKED_IN = "CHECKED_IN"
    CHECKED_OUT = "CHECKED_OUT"
    CANCELED = "CANCELED"

# Statuses that hold the room for their date range.
BLOCKING_STATUSES = frozenset({
    ReservationStatus.PENDING,
    ReservationStatus.PAID,
    ReservationStatus.CONFIRMED,
    ReservationStatus.CHECKED_IN,
})

class PaymentStatus(str, PyEnum):
    PENDING = "PENDING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"

class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint("check_out > check_in", name="ck_reservations_range"),
        CheckConstraint("guests >= 1", name="ck_reservations_guests_positive"),
        CheckConstraint("total >= 0", name="ck_reservations_total_non_negative"),
        Index("ix_reservations_room_range", "room_id", "check_in", "check_out"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    room_id: Mapped[int] = mapped_column(ForeignKey("rooms.id"), index=True, nullable=False)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), index=True)

    # Guest snapshot, independent of the booking user
    guest_name: Mapped[str] = mapped_column(String(200), nullable=False)
    guest_email: Mapped[str] = mapped_column(String(255), nullable=False)
    guest_phone: Mapped[str] = mapped_column(String(50), nullable=False)
    document_type: Mapped[str | None] = mapped_column(String(50))
    document_number: Mapped[str | None] = mapped_column(String(100))

    check_in: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    check_out: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    guests: Mapped[int] = mapped_column(Integer, nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[ReservationStatus] = mapped_column(Enum(ReservationStatus), default=ReservationStatus.PENDING, nullable=False, index=True)

    payment_status: Mapped[PaymentStatus | None] = mapped_column(Enum(PaymentStatus))
    payment_date: Mapped[datetime | None] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    room: Mapped[Room] = relationship(back_populates="reservations")
    user: Mapped[Optional["User"]] = relationship(back_populates="reservations")


# Two blocking reservations of one room may not share a night. PostgreSQL only;
# schemas built with create_all get the same constraint as the migration.
BTREE_GIST_DDL = DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql")
NO_OVERLAP_DDL = DDL(
    "ALTER TABLE reservations ADD CONSTRAINT ex_reservations_room_no_overlap "
    "EXCLUDE USING gist (room_id WITH =, tsrange(check_in, check_out) WITH &&) "
    "WHERE (status IN (%s))" % ", ".join(f"'{s.value}'" for s in sorted(BLOCKING_STATUSES))
).execute_if(dialect="postgresql")

event.listen(Reservation.__table__, "after_create", BTREE_GIST_DDL)
event.listen(Reservation.__table__, "after_create", NO_OVERLAP_DDL)
