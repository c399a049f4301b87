from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import Conflict, NotFound
from ..models import User, UserRole, ReservationStatus
from ..schemas import OperatorUpdateIn, RegisterIn, ReservationListOut, ReservationOut, StatusIn, UserOut
from ..security import hash_password, require_permission
from ..services import booking as booking_service
from ..services.permissions import Permission, Principal
from ..services.stats import admin_stats

router = APIRouter(prefix="/admin", tags=["admin"])

staff = require_permission(Permission.BOOKING_VIEW_ALL)
admin_only = require_permission(Permission.OPERATOR_MANAGE)


@router.get("/reservations", response_model=ReservationListOut)
def admin_reservations(
    status: Optional[ReservationStatus] = None,
    room_id: Optional[int] = None,
    user_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    principal: Principal = Depends(staff),
    db: Session = Depends(get_db),
):
    items, total = booking_service.list_reservations(db, status=status, room_id=room_id, user_id=user_id, page=page, page_size=page_size)
    return {"meta": {"total": total, "page": page, "page_size": page_size}, "items": items}


@router.put("/reservations/{reservation_id}/status", response_model=ReservationOut)
def admin_reservation_status(reservation_id: int, payload: StatusIn, principal: Principal = Depends(staff), db: Session = Depends(get_db)):
    return booking_service.change_status(db, reservation_id, payload.status, principal)


@router.get("/stats")
def admin_statistics(principal: Principal = Depends(require_permission(Permission.DASHBOARD_VIEW)), db: Session = Depends(get_db)):
    return {"data": admin_stats(db)}


# ==== Operators ====

def _get_operator(db: Session, operator_id: int) -> User:
    user = db.get(User, operator_id)
    if not user or user.role != UserRole.OPERATOR.value:
        raise NotFound("Operator not found")
    return user


@router.get("/operators", response_model=List[UserOut])
def admin_operators(principal: Principal = Depends(admin_only), db: Session = Depends(get_db)):
    return db.query(User).filter(User.role == UserRole.OPERATOR.value).order_by(User.created_at.asc()).all()


@router.post("/operators", response_model=UserOut, status_code=201)
def admin_operators_create(payload: RegisterIn, principal: Principal = Depends(admin_only), db: Session = Depends(get_db)):
    email = payload.email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise Conflict("Email already exists")
    user = User(name=payload.name.strip(), email=email, password_hash=hash_password(payload.password), role=UserRole.OPERATOR.value)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@router.put("/operators/{operator_id}", response_model=UserOut)
def admin_operators_update(operator_id: int, payload: OperatorUpdateIn, principal: Principal = Depends(admin_only), db: Session = Depends(get_db)):
    user = _get_operator(db, operator_id)
    if payload.email is not None:
        email = payload.email.strip().lower()
        if db.query(User).filter(User.email == email, User.id != user.id).first():
            raise Conflict("Email already exists")
        user.email = email
    if payload.name is not None:
        user.name = payload.name.strip()
    if payload.password:
        user.password_hash = hash_password(payload.password)
    db.commit()
    db.refresh(user)
    return user


@router.delete("/operators/{operator_id}", status_code=204)
def admin_operators_delete(operator_id: int, principal: Principal = Depends(admin_only), db: Session = Depends(get_db)):
    db.delete(_get_operator(db, operator_id))
    db.commit()
    return Response(status_code=204)
