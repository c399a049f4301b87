from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..errors import Conflict, InvalidArgument, NotFound, Unauthorized
from ..limiter import limiter
from ..models import User, UserRole
from ..schemas import LoginIn, ProfileUpdateIn, RegisterIn, TokenOut, UserOut
from ..security import create_access_token, hash_password, require_principal, verify_password
from ..services.permissions import Principal

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=TokenOut, status_code=201)
@limiter.limit(settings.RATE_LIMIT_AUTH)
def register(request: Request, payload: RegisterIn, db: Session = Depends(get_db)):
    email = payload.email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise Conflict("Email already registered")
    user = User(name=payload.name.strip(), email=email, password_hash=hash_password(payload.password), role=UserRole.GUEST.value)
    db.add(user)
    db.commit()
    db.refresh(user)
    return {"token": create_access_token(user), "user": user}


@router.post("/login", response_model=TokenOut)
@limiter.limit(settings.RATE_LIMIT_AUTH)
def login(request: Request, payload: LoginIn, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == payload.email.strip().lower()).first()
    if not user or not verify_password(payload.password, user.password_hash):
        raise Unauthorized("Invalid credentials")
    return {"token": create_access_token(user), "user": user}


@router.get("/me", response_model=UserOut)
def me(principal: Principal = Depends(require_principal), db: Session = Depends(get_db)):
    user = db.get(User, principal.id)
    if not user:
        raise NotFound("User not found")
    return user


@router.patch("/me", response_model=UserOut)
def update_me(payload: ProfileUpdateIn, principal: Principal = Depends(require_principal), db: Session = Depends(get_db)):
    """Update the caller's own profile; only the fields present in the body change."""
    user = db.get(User, principal.id)
    if not user:
        raise NotFound("User not found")
    data = payload.model_dump(exclude_unset=True)
    if "name" in data:
        if not data["name"]:
            raise InvalidArgument("Name is required")
        user.name = data["name"].strip()
    for field in ("phone", "address"):
        if field in data:
            setattr(user, field, (data[field] or "").strip() or None)
    db.commit()
    db.refresh(user)
    return user
