# barbershop/schemas.py

from pydantic import BaseModel, Field, field_serializer
from enum import Enum
from datetime import datetime, date, time
from typing import List, Optional


class UserRole(str, Enum):
    customer = "customer"
    barber = "barber"
    admin = "admin"


class BookingStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"
    no_show = "no_show"


class AppointmentScope(str, Enum):
    upcoming = "upcoming"
    past = "past"


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserPublic(BaseModel):
    id: int
    email: str
    full_name: Optional[str] = None
    role: UserRole


class UserCreate(BaseModel):
    email: str
    password: str = Field(min_length=8, max_length=72)
    full_name: Optional[str] = None


class BarberCreate(UserCreate):
    name: str


class BarberPublic(BaseModel):
    id: int
    user_id: Optional[int] = None
    name: str
    is_active: bool


class WorkingHoursUpdate(BaseModel):
    start_time: time
    end_time: time
    is_available: bool = True


class WorkingHoursPublic(BaseModel):
    day_of_week: int
    start_time: time
    end_time: time
    is_available: bool

    @field_serializer("start_time", "end_time")
    def format_hhmm(self, value: time) -> str:
        return value.strftime("%H:%M")


class TimeOffCreate(BaseModel):
    start_date: date
    end_date: date
    reason: Optional[str] = None


class TimeOffPublic(TimeOffCreate):
    id: int
    barber_id: int


class Slot(BaseModel):
    time: str
    available: bool


class SlotsResponse(BaseModel):
    barber_id: int
    date: date
    service_id: int
    duration_minutes: int
    slots: List[Slot]


class AvailableDatesResponse(BaseModel):
    barber_id: int
    dates: List[date]


class BookingCreate(BaseModel):
    barber_id: int
    service_id: int
    booking_date: date
    booking_time: time
    notes: Optional[str] = None


class AdminBookingCreate(BookingCreate):
    user_id: int
    status: BookingStatus = BookingStatus.pending


class BookingReschedule(BaseModel):
    booking_date: date
    booking_time: time


class StatusUpdate(BaseModel):
    status: BookingStatus


class BookingPublic(BaseModel):
    id: int
    user_id: int
    barber_id: int
    service_id: int
    booking_date: date
    booking_time: time
    status: BookingStatus
    total_price: float
    notes: Optional[str] = None
    confirmation_code: str
    created_at: datetime

    @field_serializer("booking_time")
    def format_hhmm(self, value: time) -> str:
        return value.strftime("%H:%M")
