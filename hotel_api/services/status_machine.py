"""
Reservation status state machine.

One transition table shared by every caller: staff status changes, guest
cancellation and the payment action all go through ``ensure_transition``.
"""
from ..errors import InvalidTransition
from ..models import ReservationStatus, BLOCKING_STATUSES

S = ReservationStatus

TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    S.PENDING: frozenset({S.PAID, S.CONFIRMED, S.CANCELED}),
    S.PAID: frozenset({S.CONFIRMED, S.CHECKED_IN, S.CANCELED}),
    S.CONFIRMED: frozenset({S.CHECKED_IN, S.CANCELED}),
    S.CHECKED_IN: frozenset({S.CHECKED_OUT}),
    S.CHECKED_OUT: frozenset(),
    S.CANCELED: frozenset(),
}

INITIAL_STATUS = S.PENDING


def allowed_targets(current: ReservationStatus) -> frozenset[ReservationStatus]:
    return TRANSITIONS[ReservationStatus(current)]


def can_transition(current: ReservationStatus, target: ReservationStatus) -> bool:
    return ReservationStatus(target) in allowed_targets(current)


def ensure_transition(current: ReservationStatus, target: ReservationStatus) -> ReservationStatus:
    """Return the target status, or raise InvalidTransition naming the pair."""
    if not can_transition(current, target):
        raise InvalidTransition(ReservationStatus(current), ReservationStatus(target))
    return ReservationStatus(target)


def is_terminal(status: ReservationStatus) -> bool:
    return not TRANSITIONS[ReservationStatus(status)]


def is_blocking(status: ReservationStatus) -> bool:
    return ReservationStatus(status) in BLOCKING_STATUSES
