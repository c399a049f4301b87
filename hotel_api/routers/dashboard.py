from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..security import require_permission
from ..services import stats
from ..services.dates import utcnow
from ..services.permissions import Permission, Principal

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

staff = require_permission(Permission.DASHBOARD_VIEW)


@router.get("/summary")
def dashboard_summary(principal: Principal = Depends(staff), db: Session = Depends(get_db)):
    return stats.summary(db)


@router.get("/occupancy")
def dashboard_occupancy(principal: Principal = Depends(staff), db: Session = Depends(get_db)):
    return {"data": stats.occupancy_by_room(db)}


@router.get("/monthly-revenue")
def dashboard_monthly_revenue(year: Optional[int] = None, principal: Principal = Depends(staff), db: Session = Depends(get_db)):
    year = year or utcnow().year
    return {"year": year, "data": stats.monthly_revenue(db, year)}
