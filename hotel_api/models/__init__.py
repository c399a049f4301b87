from .user import User, UserRole
from .room import Room
from .reservation import Reservation, ReservationStatus, PaymentStatus, BLOCKING_STATUSES
from .counter import ReservationCounter
from .inquiry import Inquiry, InquiryStatus
