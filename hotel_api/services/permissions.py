"""
Role based capabilities.

Every role maps to a fixed set of permissions; services and routers ask
``ensure_permission`` instead of comparing role strings.
"""
from dataclasses import dataclass
from enum import Enum

from ..errors import Forbidden, Unauthorized
from ..models import UserRole


class Permission(str, Enum):
    BOOKING_CREATE = "booking:create"
    BOOKING_CANCEL_OWN = "booking:cancel_own"
    BOOKING_PAY_OWN = "booking:pay_own"
    BOOKING_VIEW_ALL = "booking:view_all"
    BOOKING_MANAGE = "booking:manage"
    ROOM_MANAGE = "room:manage"
    ROOM_TOGGLE_ACTIVE = "room:toggle_active"
    INQUIRY_MANAGE = "inquiry:manage"
    DASHBOARD_VIEW = "dashboard:view"
    OPERATOR_MANAGE = "operator:manage"


_GUEST = frozenset({
    Permission.BOOKING_CREATE,
    Permission.BOOKING_CANCEL_OWN,
    Permission.BOOKING_PAY_OWN,
})

_OPERATOR = _GUEST | {
    Permission.BOOKING_VIEW_ALL,
    Permission.BOOKING_MANAGE,
    Permission.ROOM_TOGGLE_ACTIVE,
    Permission.INQUIRY_MANAGE,
    Permission.DASHBOARD_VIEW,
}

ROLE_PERMISSIONS: dict[UserRole, frozenset[Permission]] = {
    UserRole.GUEST: _GUEST,
    UserRole.OPERATOR: frozenset(_OPERATOR),
    UserRole.ADMIN: frozenset(Permission),
}


@dataclass(frozen=True)
class Principal:
    """Identity resolved from a bearer token."""
    id: int
    email: str
    role: UserRole

    def can(self, permission: Permission) -> bool:
        return has_permission(self.role, permission)


def permissions_for(role) -> frozenset[Permission]:
    try:
        return ROLE_PERMISSIONS[UserRole(role)]
    except ValueError:
        return frozenset()


def has_permission(role, permission: Permission) -> bool:
    return permission in permissions_for(role)


def ensure_permission(actor: Principal | None, permission: Permission) -> Principal:
    if actor is None:
        raise Unauthorized()
    if not actor.can(permission):
        raise Forbidden()
    return actor
