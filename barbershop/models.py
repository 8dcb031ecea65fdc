# barbershop/models.py

from typing import Optional
from datetime import datetime, timezone, date as Date, time

from sqlalchemy import Index, UniqueConstraint, text
from sqlmodel import SQLModel, Field

# Only pending/confirmed bookings hold a slot, so the uniqueness rule is partial
ACTIVE_STATUS_SQL = "status IN ('pending', 'confirmed')"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    full_name: Optional[str] = None
    role: str  # customer, barber or admin


class Barber(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[int] = Field(default=None, foreign_key="user.id", unique=True)
    name: str
    is_active: bool = True


class Service(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    price: float
    duration_minutes: Optional[int] = None
    is_active: bool = True


class WorkingHours(SQLModel, table=True):
    __tablename__ = "working_hours"
    __table_args__ = (
        UniqueConstraint("barber_id", "day_of_week", name="uq_barber_weekday"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int = Field(foreign_key="barber.id", index=True)
    day_of_week: int  # 0=Sun ... 6=Sat
    start_time: time
    end_time: time
    is_available: bool = True


class TimeOff(SQLModel, table=True):
    __tablename__ = "time_off"

    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int = Field(foreign_key="barber.id", index=True)
    start_date: Date
    end_date: Date
    reason: Optional[str] = None


class Booking(SQLModel, table=True):
    __table_args__ = (
        Index(
            "uq_booking_active_slot",
            "barber_id",
            "booking_date",
            "booking_time",
            unique=True,
            sqlite_where=text(ACTIVE_STATUS_SQL),
            postgresql_where=text(ACTIVE_STATUS_SQL),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    barber_id: int = Field(foreign_key="barber.id", index=True)
    service_id: int = Field(foreign_key="service.id")

    booking_date: Date = Field(index=True)
    booking_time: time
    status: str = "confirmed"
    total_price: float
    notes: Optional[str] = None
    confirmation_code: str
    created_at: datetime = Field(default_factory=_utcnow)
