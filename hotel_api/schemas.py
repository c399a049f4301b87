from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator

from .models import ReservationStatus, PaymentStatus, InquiryStatus, UserRole


def _coerce_datetime(value):
    # Plain YYYY-MM-DD from the date pickers means midnight
    if isinstance(value, str) and len(value) == 10:
        return datetime.fromisoformat(value)
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, datetime.min.time())
    return value

# ==== Users ====

class UserOut(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    role: UserRole

    class Config:
        from_attributes = True

class RegisterIn(BaseModel):
    name: str = Field(min_length=2)
    email: str = Field(min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=6)

class LoginIn(BaseModel):
    email: str
    password: str

class TokenOut(BaseModel):
    token: str
    user: UserOut

class ProfileUpdateIn(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2)
    phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=255)

class OperatorUpdateIn(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2)
    email: Optional[str] = Field(default=None, pattern=r"^[^@\s]+@[^@\s]+$")
    password: Optional[str] = Field(default=None, min_length=6)

# ==== Rooms ====

class RoomOut(BaseModel):
    id: int
    name: str
    capacity: int
    price_per_night: float
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class RoomSummary(BaseModel):
    id: int
    name: str
    price_per_night: float
    image_url: Optional[str] = None

    class Config:
        from_attributes = True

class RoomCreateIn(BaseModel):
    name: str
    capacity: int
    price_per_night: float
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool = True

class RoomUpdateIn(BaseModel):
    name: Optional[str] = None
    capacity: Optional[int] = None
    price_per_night: Optional[float] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_active: Optional[bool] = None

class AvailabilityOut(BaseModel):
    data: List[RoomOut]
    meta: dict

# ==== Reservations ====

class ReservationOut(BaseModel):
    id: int
    code: str
    room_id: int
    user_id: Optional[int] = None
    guest_name: str
    guest_email: str
    guest_phone: str
    document_type: Optional[str] = None
    document_number: Optional[str] = None
    check_in: datetime
    check_out: datetime
    guests: int
    total: float
    status: ReservationStatus
    payment_status: Optional[PaymentStatus] = None
    payment_date: Optional[datetime] = None
    created_at: datetime
    room: Optional[RoomSummary] = None

    class Config:
        use_enum_values = True
        from_attributes = True

class ReservationListOut(BaseModel):
    meta: dict
    items: List[ReservationOut]

class BookingCreateIn(BaseModel):
    room_id: int
    check_in: datetime
    check_out: datetime
    guests: int = 1
    guest_name: str = Field(min_length=2)
    guest_email: str = Field(pattern=r"^[^@\s]+@[^@\s]+$")
    guest_phone: str = Field(min_length=6)
    document_type: Optional[str] = None
    document_number: Optional[str] = None

    @field_validator("check_in", "check_out", mode="before")
    @classmethod
    def parse_dates(cls, value):
        return _coerce_datetime(value)

class StatusIn(BaseModel):
    status: ReservationStatus

# ==== Inquiries ====

class InquiryOut(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    subject: str
    message: str
    status: InquiryStatus
    response: Optional[str] = None
    responded_at: Optional[datetime] = None
    assigned_to: Optional[int] = None
    created_at: datetime

    class Config:
        use_enum_values = True
        from_attributes = True

class InquiryCreateIn(BaseModel):
    name: str = Field(min_length=2)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+$")
    phone: Optional[str] = Field(default=None, min_length=6)
    subject: str = Field(min_length=3)
    message: str = Field(min_length=10)

class InquiryStatusIn(BaseModel):
    status: InquiryStatus

class InquiryResponseIn(BaseModel):
    response: str = Field(min_length=5)
