from sqlalchemy import Integer
from sqlalchemy.orm import Mapped, mapped_column
from ..db import Base

class ReservationCounter(Base):
    """Last issued reservation sequence number per calendar year."""
    __tablename__ = "reservation_counters"

    year: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
