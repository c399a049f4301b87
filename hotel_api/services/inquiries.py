import logging
from datetime import datetime

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from ..errors import InvalidArgument, NotFound
from ..models import Inquiry, InquiryStatus
from .dates import utcnow
from .permissions import Permission, Principal, ensure_permission

logger = logging.getLogger(__name__)


def create_inquiry(db: Session, name: str, email: str, subject: str, message: str, phone: str | None = None) -> Inquiry:
    inquiry = Inquiry(
        name=name.strip(),
        email=email.strip(),
        phone=(phone or "").strip() or None,
        subject=subject.strip(),
        message=message.strip(),
        status=InquiryStatus.NEW,
    )
    db.add(inquiry)
    db.commit()
    db.refresh(inquiry)
    logger.info("Inquiry %s received from %s", inquiry.id, inquiry.email)
    return inquiry


def list_inquiries(db: Session, actor: Principal, status: InquiryStatus | None = None, page: int = 1, page_size: int = 20) -> tuple[list[Inquiry], int]:
    ensure_permission(actor, Permission.INQUIRY_MANAGE)
    filters = [Inquiry.status == InquiryStatus(status)] if status else []
    total = db.scalar(select(func.count(Inquiry.id)).where(*filters)) or 0
    q = (
        select(Inquiry)
        .where(*filters)
        .order_by(Inquiry.created_at.desc(), Inquiry.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(db.scalars(q)), int(total)


def get_inquiry(db: Session, inquiry_id: int, actor: Principal) -> Inquiry:
    ensure_permission(actor, Permission.INQUIRY_MANAGE)
    inquiry = db.get(Inquiry, inquiry_id)
    if inquiry is None:
        raise NotFound("Inquiry not found")
    return inquiry


def update_status(db: Session, inquiry_id: int, status: InquiryStatus, actor: Principal) -> Inquiry:
    inquiry = get_inquiry(db, inquiry_id, actor)
    inquiry.status = InquiryStatus(status)
    inquiry.assigned_to = actor.id
    db.commit()
    db.refresh(inquiry)
    return inquiry


def respond(db: Session, inquiry_id: int, response: str, actor: Principal, now: datetime | None = None) -> Inquiry:
    """Store the staff answer and mark the inquiry ANSWERED."""
    if len((response or "").strip()) < 5:
        raise InvalidArgument("Response too short")
    inquiry = get_inquiry(db, inquiry_id, actor)
    inquiry.response = response.strip()
    inquiry.responded_at = now or utcnow()
    inquiry.status = InquiryStatus.ANSWERED
    inquiry.assigned_to = actor.id
    db.commit()
    db.refresh(inquiry)
    return inquiry


def summary(db: Session, actor: Principal) -> dict:
    ensure_permission(actor, Permission.INQUIRY_MANAGE)
    counts = dict(db.execute(select(Inquiry.status, func.count(Inquiry.id)).group_by(Inquiry.status)).all())
    data = {s.value.lower(): int(counts.get(s, 0)) for s in InquiryStatus}
    data["total"] = sum(data.values())
    return data
