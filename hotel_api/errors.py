"""
Typed failures raised by the booking core and the services around it.

Routers let these propagate; ``main.py`` turns them into JSON responses with
the status code carried by each class.
"""


class HotelError(Exception):
    status_code: int = 500
    default_detail: str = "Internal error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class InvalidArgument(HotelError):
    status_code = 400
    default_detail = "Invalid data"


class Unauthorized(HotelError):
    status_code = 401
    default_detail = "Not authenticated"


class Forbidden(HotelError):
    status_code = 403
    default_detail = "Insufficient permissions"


class NotFound(HotelError):
    status_code = 404
    default_detail = "Not found"


class Conflict(HotelError):
    status_code = 409
    default_detail = "Conflict"


class InvalidTransition(Conflict):
    """A reservation status change that the state machine does not allow."""

    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(f"Invalid transition {_name(current)} → {_name(target)}")


class Internal(HotelError):
    status_code = 500
    default_detail = "Internal error"


def _name(status) -> str:
    return getattr(status, "value", str(status))
