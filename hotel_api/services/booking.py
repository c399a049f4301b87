"""
Booking workflow: reservation creation and status changes.

Writes to one room's reservation set are serialized: the room's mutex is held
from the availability check until the transaction has committed, and the room
row is read FOR UPDATE where the database supports it. Storage constraints
(unique code, and on PostgreSQL the overlap exclusion constraint) back this
up across processes; a constraint violation surfaces as ``Conflict``.
"""
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ..errors import Conflict, Forbidden, InvalidArgument, NotFound, Unauthorized
from ..models import Room, Reservation, ReservationStatus, PaymentStatus
from .availability import is_available, validate_range
from .dates import as_utc_naive, utcnow
from .locks import room_locks
from .permissions import Permission, Principal, ensure_permission
from .reservation_codes import next_code
from .status_machine import INITIAL_STATUS, ensure_transition

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)
CENTS = Decimal("0.01")


@dataclass
class GuestInfo:
    name: str
    email: str
    phone: str
    document_type: str | None = None
    document_number: str | None = None

    def cleaned(self) -> "GuestInfo":
        return GuestInfo(
            name=(self.name or "").strip(),
            email=(self.email or "").strip(),
            phone=(self.phone or "").strip(),
            document_type=(self.document_type or "").strip() or None,
            document_number=(self.document_number or "").strip() or None,
        )


def count_nights(check_in: datetime, check_out: datetime) -> int:
    """Whole nights, rounding a partial day up."""
    return math.ceil((check_out - check_in) / ONE_DAY)


def compute_total(price_per_night, nights: int) -> Decimal:
    return (Decimal(str(price_per_night)) * nights).quantize(CENTS)


def validate_request(check_in: datetime, check_out: datetime, guest: GuestInfo, guests: int) -> None:
    validate_range(check_in, check_out)
    if guests is None or guests < 1:
        raise InvalidArgument("At least one guest is required")
    missing = [f for f in ("name", "email", "phone") if not getattr(guest, f)]
    if missing:
        raise InvalidArgument(f"Missing guest fields: {', '.join(missing)}")


def create_booking(
    db: Session,
    room_id: int,
    check_in: datetime,
    check_out: datetime,
    guest: GuestInfo,
    guests: int,
    actor: Principal | None = None,
    now: datetime | None = None,
) -> Reservation:
    """
    Create a PENDING reservation for ``room_id`` over [check_in, check_out).

    Raises InvalidArgument, NotFound (missing or inactive room) or Conflict
    (dates taken). A failure never leaves a reservation row behind.
    """
    if actor is not None:
        ensure_permission(actor, Permission.BOOKING_CREATE)
    check_in, check_out = as_utc_naive(check_in), as_utc_naive(check_out)
    guest = guest.cleaned()
    validate_request(check_in, check_out, guest, guests)
    now = as_utc_naive(now) if now is not None else utcnow()

    with room_locks.hold(room_id):
        try:
            room = db.scalar(select(Room).where(Room.id == room_id).with_for_update())
            if room is None or not room.is_active:
                raise NotFound("Room not available")
            if guests > room.capacity:
                raise InvalidArgument(f"Room capacity is {room.capacity} guests")
            if not is_available(db, room_id, check_in, check_out):
                logger.info("Booking rejected: room %s taken for %s → %s", room_id, check_in, check_out)
                raise Conflict("Dates not available")

            nights = count_nights(check_in, check_out)
            reservation = Reservation(
                code=next_code(db, now.year),
                room_id=room_id,
                user_id=actor.id if actor is not None else None,
                guest_name=guest.name,
                guest_email=guest.email,
                guest_phone=guest.phone,
                document_type=guest.document_type,
                document_number=guest.document_number,
                check_in=check_in,
                check_out=check_out,
                guests=guests,
                total=compute_total(room.price_per_night, nights),
                status=INITIAL_STATUS,
                created_at=now,
                updated_at=now,
            )
            db.add(reservation)
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.info("Booking rejected by storage constraint on room %s: %s", room_id, e.orig)
            raise Conflict("Dates not available") from e
        except Exception:
            db.rollback()
            raise

    db.refresh(reservation)
    logger.info("Reservation %s created: room %s, %s night(s), total %s", reservation.code, room_id, nights, reservation.total)
    return reservation


def _get_reservation(db: Session, reservation_id: int) -> Reservation:
    reservation = db.get(Reservation, reservation_id)
    if reservation is None:
        raise NotFound("Reservation not found")
    return reservation


def _is_owner(reservation: Reservation, actor: Principal) -> bool:
    return reservation.user_id is not None and reservation.user_id == actor.id


# Transitions a guest may apply to a reservation they made themselves.
_OWNER_TRANSITIONS = {
    ReservationStatus.CANCELED: Permission.BOOKING_CANCEL_OWN,
    ReservationStatus.PAID: Permission.BOOKING_PAY_OWN,
}


def _authorize_transition(reservation: Reservation, target: ReservationStatus, actor: Principal | None) -> None:
    if actor is None:
        raise Unauthorized()
    if actor.can(Permission.BOOKING_MANAGE):
        return
    needed = _OWNER_TRANSITIONS.get(target)
    if needed is not None and _is_owner(reservation, actor) and actor.can(needed):
        return
    raise Forbidden()


def change_status(
    db: Session,
    reservation_id: int,
    target: ReservationStatus | str,
    actor: Principal | None,
    now: datetime | None = None,
) -> Reservation:
    """Apply one state machine transition. Raises NotFound, Forbidden or InvalidTransition."""
    try:
        target = ReservationStatus(target)
    except ValueError:
        raise InvalidArgument(f"Unknown status {target!r}") from None
    reservation = _get_reservation(db, reservation_id)
    _authorize_transition(reservation, target, actor)
    now = as_utc_naive(now) if now is not None else utcnow()

    with room_locks.hold(reservation.room_id):
        try:
            db.refresh(reservation, with_for_update=True)
            previous = reservation.status
            reservation.status = ensure_transition(previous, target)
            reservation.updated_at = now
            if target == ReservationStatus.PAID:
                reservation.payment_status = PaymentStatus.SUCCEEDED
                reservation.payment_date = now
            db.commit()
        except Exception:
            db.rollback()
            raise

    logger.info("Reservation %s: %s → %s (by user %s)", reservation.code, previous.value, target.value, actor.id)
    return reservation


def cancel_booking(db: Session, reservation_id: int, actor: Principal | None, now: datetime | None = None) -> Reservation:
    return change_status(db, reservation_id, ReservationStatus.CANCELED, actor, now=now)


def mark_paid(db: Session, reservation_id: int, actor: Principal | None, now: datetime | None = None) -> Reservation:
    """Record a payment for the reservation (PENDING → PAID)."""
    return change_status(db, reservation_id, ReservationStatus.PAID, actor, now=now)


def get_reservation(db: Session, reservation_id: int, actor: Principal) -> Reservation:
    reservation = _get_reservation(db, reservation_id)
    if not (_is_owner(reservation, actor) or actor.can(Permission.BOOKING_VIEW_ALL)):
        raise Forbidden()
    return reservation


def list_reservations(
    db: Session,
    status: ReservationStatus | None = None,
    room_id: int | None = None,
    user_id: int | None = None,
    page: int = 1,
    page_size: int = 50,
) -> tuple[list[Reservation], int]:
    filters = []
    if status is not None:
        filters.append(Reservation.status == ReservationStatus(status))
    if room_id is not None:
        filters.append(Reservation.room_id == room_id)
    if user_id is not None:
        filters.append(Reservation.user_id == user_id)

    total = db.scalar(select(func.count(Reservation.id)).where(*filters)) or 0
    q = (
        select(Reservation)
        .where(*filters)
        .options(selectinload(Reservation.room), selectinload(Reservation.user))
        .order_by(Reservation.created_at.desc(), Reservation.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(db.scalars(q)), int(total)


def list_user_reservations(db: Session, user_id: int) -> list[Reservation]:
    q = (
        select(Reservation)
        .where(Reservation.user_id == user_id)
        .options(selectinload(Reservation.room))
        .order_by(Reservation.created_at.desc(), Reservation.id.desc())
    )
    return list(db.scalars(q))
