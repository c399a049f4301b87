import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from ..errors import Conflict, InvalidArgument, NotFound
from ..models import Room, Reservation, BLOCKING_STATUSES
from .dates import as_utc_naive, utcnow
from .locks import room_locks
from .permissions import Permission, Principal, ensure_permission

logger = logging.getLogger(__name__)

ROOM_FIELDS = ("name", "capacity", "price_per_night", "description", "image_url", "is_active")


def _validate_fields(data: dict) -> dict:
    if "name" in data and len((data["name"] or "").strip()) < 2:
        raise InvalidArgument("Name too short")
    if "capacity" in data and (data["capacity"] is None or data["capacity"] < 1):
        raise InvalidArgument("Capacity must be at least 1")
    if "price_per_night" in data:
        if data["price_per_night"] is None or Decimal(str(data["price_per_night"])) < 0:
            raise InvalidArgument("Invalid price")
        data["price_per_night"] = Decimal(str(data["price_per_night"]))
    if "is_active" in data and data["is_active"] is None:
        raise InvalidArgument("is_active cannot be null")
    if "image_url" in data and not data["image_url"]:
        data["image_url"] = None
    return data


def get_room(db: Session, room_id: int) -> Room:
    room = db.get(Room, room_id)
    if room is None:
        raise NotFound("Room not found")
    return room


def list_rooms(db: Session, q: str | None = None, include_inactive: bool = False) -> list[Room]:
    stmt = select(Room)
    if not include_inactive:
        stmt = stmt.where(Room.is_active.is_(True))
    if q:
        stmt = stmt.where(func.lower(Room.name).contains(q.strip().lower()))
    return list(db.scalars(stmt.order_by(Room.created_at.desc(), Room.id.desc())))


def create_room(db: Session, actor: Principal, **fields) -> Room:
    ensure_permission(actor, Permission.ROOM_MANAGE)
    data = _validate_fields({k: v for k, v in fields.items() if k in ROOM_FIELDS})
    for required in ("name", "capacity", "price_per_night"):
        if required not in data:
            raise InvalidArgument(f"Missing field: {required}")
    room = Room(**data)
    db.add(room)
    db.commit()
    db.refresh(room)
    logger.info("Room %s created: %s", room.id, room.name)
    return room


def update_room(db: Session, room_id: int, actor: Principal, **fields) -> Room:
    """
    Partial update. Staff without ROOM_MANAGE may only open or close a room
    (``is_active``); any other field is ignored for them.
    """
    if actor.can(Permission.ROOM_MANAGE):
        allowed = ROOM_FIELDS
    else:
        ensure_permission(actor, Permission.ROOM_TOGGLE_ACTIVE)
        allowed = ("is_active",)
        if "is_active" not in fields or fields["is_active"] is None:
            raise InvalidArgument("is_active is required")
    data = _validate_fields({k: v for k, v in fields.items() if k in allowed})
    room = get_room(db, room_id)
    for key, value in data.items():
        setattr(room, key, value)
    db.commit()
    db.refresh(room)
    return room


def has_active_reservations(db: Session, room_id: int, now: datetime) -> bool:
    q = (
        select(Reservation.id)
        .where(
            Reservation.room_id == room_id,
            Reservation.status.in_(sorted(BLOCKING_STATUSES)),
            Reservation.check_out > now,
        )
        .limit(1)
    )
    return db.scalar(q) is not None


def delete_room(db: Session, room_id: int, actor: Principal, now: datetime | None = None) -> None:
    """
    Delete a room unless a blocking reservation for it ends in the future.
    Past and non-blocking reservations are removed with the room.
    """
    ensure_permission(actor, Permission.ROOM_MANAGE)
    now = as_utc_naive(now) if now is not None else utcnow()
    with room_locks.hold(room_id):
        try:
            room = db.scalar(select(Room).where(Room.id == room_id).with_for_update())
            if room is None:
                raise NotFound("Room not found")
            if has_active_reservations(db, room_id, now):
                raise Conflict("Room has active or upcoming reservations")
            db.delete(room)
            db.commit()
        except Exception:
            db.rollback()
            raise
    room_locks.discard(room_id)
    logger.info("Room %s deleted", room_id)
