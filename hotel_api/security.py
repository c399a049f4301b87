from typing import Optional
from passlib.context import CryptContext
from itsdangerous import URLSafeTimedSerializer, BadSignature
from fastapi import Request

from .config import settings
from .errors import Unauthorized
from .models import User, UserRole
from .services.permissions import Permission, Principal, ensure_permission

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
serializer = URLSafeTimedSerializer(settings.SECRET_KEY, salt="hotel-api-token")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(password, hashed)


def create_access_token(user: User) -> str:
    return serializer.dumps({"id": user.id, "email": user.email, "role": user.role})


def decode_access_token(token: str) -> Optional[Principal]:
    try:
        data = serializer.loads(token, max_age=settings.TOKEN_MAX_AGE_DAYS * 24 * 60 * 60)
        principal = Principal(id=int(data["id"]), email=str(data["email"]), role=UserRole(data["role"]))
    except (BadSignature, KeyError, ValueError, TypeError):
        return None
    return principal


def parse_bearer(header: Optional[str]) -> Optional[str]:
    parts = (header or "").split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


def get_optional_principal(request: Request) -> Optional[Principal]:
    token = parse_bearer(request.headers.get("Authorization"))
    if not token:
        return None
    return decode_access_token(token)


def require_principal(request: Request) -> Principal:
    """
    Dependency for routes that need an authenticated caller.
    Responds 401 when the bearer token is missing, invalid or expired.
    """
    principal = get_optional_principal(request)
    if principal is None:
        raise Unauthorized()
    return principal


def require_permission(permission: Permission):
    def _dependency(request: Request) -> Principal:
        return ensure_permission(require_principal(request), permission)
    return _dependency
