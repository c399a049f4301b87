from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import InquiryStatus
from ..schemas import InquiryCreateIn, InquiryOut, InquiryResponseIn, InquiryStatusIn
from ..security import require_principal
from ..services import inquiries
from ..services.permissions import Principal

router = APIRouter(prefix="/contact", tags=["contact"])


@router.post("", status_code=201)
def contact_create(payload: InquiryCreateIn, db: Session = Depends(get_db)):
    inquiry = inquiries.create_inquiry(db, **payload.model_dump())
    return {"message": "Inquiry received", "data": InquiryOut.model_validate(inquiry)}


@router.get("")
def contact_index(
    status: Optional[InquiryStatus] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db),
):
    items, total = inquiries.list_inquiries(db, principal, status=status, page=page, page_size=page_size)
    return {
        "meta": {"total": total, "page": page, "page_size": page_size},
        "data": [InquiryOut.model_validate(i) for i in items],
    }


@router.get("/stats/summary")
def contact_summary(principal: Principal = Depends(require_principal), db: Session = Depends(get_db)):
    return {"data": inquiries.summary(db, principal)}


@router.get("/{inquiry_id}", response_model=InquiryOut)
def contact_detail(inquiry_id: int, principal: Principal = Depends(require_principal), db: Session = Depends(get_db)):
    return inquiries.get_inquiry(db, inquiry_id, principal)


@router.patch("/{inquiry_id}/status", response_model=InquiryOut)
def contact_status(inquiry_id: int, payload: InquiryStatusIn, principal: Principal = Depends(require_principal), db: Session = Depends(get_db)):
    return inquiries.update_status(db, inquiry_id, payload.status, principal)


@router.patch("/{inquiry_id}/response", response_model=InquiryOut)
def contact_respond(inquiry_id: int, payload: InquiryResponseIn, principal: Principal = Depends(require_principal), db: Session = Depends(get_db)):
    return inquiries.respond(db, inquiry_id, payload.response, principal)
