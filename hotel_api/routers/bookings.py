from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import ReservationStatus
from ..schemas import BookingCreateIn, ReservationOut, StatusIn
from ..security import require_permission, require_principal
from ..services import booking as booking_service
from ..services.booking import GuestInfo
from ..services.permissions import Permission, Principal
from ..services.stats import rooms_popularity

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=ReservationOut, status_code=201)
def bookings_create(payload: BookingCreateIn, principal: Principal = Depends(require_principal), db: Session = Depends(get_db)):
    guest = GuestInfo(
        name=payload.guest_name,
        email=payload.guest_email,
        phone=payload.guest_phone,
        document_type=payload.document_type,
        document_number=payload.document_number,
    )
    return booking_service.create_booking(
        db,
        room_id=payload.room_id,
        check_in=payload.check_in,
        check_out=payload.check_out,
        guest=guest,
        guests=payload.guests,
        actor=principal,
    )


@router.get("", response_model=List[ReservationOut])
def bookings_index(
    status: Optional[ReservationStatus] = None,
    principal: Principal = Depends(require_permission(Permission.BOOKING_VIEW_ALL)),
    db: Session = Depends(get_db),
):
    items, _ = booking_service.list_reservations(db, status=status, page_size=1000)
    return items


@router.get("/mine", response_model=List[ReservationOut])
def bookings_mine(principal: Principal = Depends(require_principal), db: Session = Depends(get_db)):
    return booking_service.list_user_reservations(db, principal.id)


@router.get("/me")
def bookings_me(principal: Principal = Depends(require_principal), db: Session = Depends(get_db)):
    """Same list as /mine, wrapped in ``data`` for the guest profile page."""
    items = booking_service.list_user_reservations(db, principal.id)
    return {"data": [ReservationOut.model_validate(r) for r in items]}


@router.get("/stats/rooms-popularity")
def bookings_rooms_popularity(
    principal: Principal = Depends(require_permission(Permission.BOOKING_VIEW_ALL)),
    db: Session = Depends(get_db),
):
    return {"data": rooms_popularity(db, limit=5)}


@router.get("/{reservation_id}", response_model=ReservationOut)
def bookings_detail(reservation_id: int, principal: Principal = Depends(require_principal), db: Session = Depends(get_db)):
    return booking_service.get_reservation(db, reservation_id, principal)


@router.patch("/{reservation_id}/status", response_model=ReservationOut)
def bookings_change_status(reservation_id: int, payload: StatusIn, principal: Principal = Depends(require_principal), db: Session = Depends(get_db)):
    return booking_service.change_status(db, reservation_id, payload.status, principal)


@router.post("/{reservation_id}/cancel", response_model=ReservationOut)
def bookings_cancel(reservation_id: int, principal: Principal = Depends(require_principal), db: Session = Depends(get_db)):
    return booking_service.cancel_booking(db, reservation_id, principal)


@router.post("/{reservation_id}/pay", response_model=ReservationOut)
def bookings_pay(reservation_id: int, principal: Principal = Depends(require_principal), db: Session = Depends(get_db)):
    return booking_service.mark_paid(db, reservation_id, principal)
