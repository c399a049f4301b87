from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..db import get_db
from ..schemas import AvailabilityOut, RoomCreateIn, RoomOut, RoomUpdateIn
from ..security import require_permission, require_principal
from ..services import rooms as room_service
from ..services.availability import find_available_rooms
from ..services.dates import parse_datetime
from ..services.permissions import Permission, Principal

router = APIRouter(prefix="/rooms", tags=["rooms"])


@router.get("", response_model=List[RoomOut])
def rooms_index(q: Optional[str] = None, db: Session = Depends(get_db)):
    return room_service.list_rooms(db, q=q)


@router.get("/availability/search", response_model=AvailabilityOut)
def rooms_availability(start: str = Query(...), end: str = Query(...), db: Session = Depends(get_db)):
    return {"data": find_available_rooms(db, parse_datetime(start), parse_datetime(end)), "meta": {"start": start, "end": end}}


@router.get("/{room_id}", response_model=RoomOut)
def rooms_detail(room_id: int, db: Session = Depends(get_db)):
    return room_service.get_room(db, room_id)


@router.post("", response_model=RoomOut, status_code=201)
def rooms_create(payload: RoomCreateIn, principal: Principal = Depends(require_principal), db: Session = Depends(get_db)):
    return room_service.create_room(db, principal, **payload.model_dump())


@router.put("/{room_id}", response_model=RoomOut)
def rooms_replace(room_id: int, payload: RoomUpdateIn, principal: Principal = Depends(require_permission(Permission.ROOM_MANAGE)), db: Session = Depends(get_db)):
    return room_service.update_room(db, room_id, principal, **payload.model_dump(exclude_unset=True))


@router.patch("/{room_id}", response_model=RoomOut)
def rooms_update(room_id: int, payload: RoomUpdateIn, principal: Principal = Depends(require_principal), db: Session = Depends(get_db)):
    return room_service.update_room(db, room_id, principal, **payload.model_dump(exclude_unset=True))


@router.delete("/{room_id}")
def rooms_delete(room_id: int, principal: Principal = Depends(require_principal), db: Session = Depends(get_db)):
    room_service.delete_room(db, room_id, principal)
    return {"ok": True}

