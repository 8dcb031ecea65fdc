# barbershop/routers/admin_routes.py

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop import booking as booking_service
from barbershop import status as status_machine
from barbershop.auth import hash_password
from barbershop.db import get_session
from barbershop.deps import get_current_admin
from barbershop.models import Barber, User
from barbershop.schemas import (
    AdminBookingCreate,
    BarberCreate,
    BarberPublic,
    BookingPublic,
    StatusUpdate,
    UserRole,
)

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(get_current_admin)],
)


@router.post("/barbers", response_model=BarberPublic, status_code=201)
def create_barber(
    payload: BarberCreate,
    session: Session = Depends(get_session),
):
    existing = session.exec(
        select(User).where(User.email == payload.email)
    ).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Email already registered")

    user = User(
        email=payload.email,
        password_hash=hash_password(payload.password),
        full_name=payload.full_name or payload.name,
        role=UserRole.barber.value,
    )
    session.add(user)
    session.flush()  # assigns user.id

    barber = Barber(user_id=user.id, name=payload.name)
    session.add(barber)
    session.commit()
    session.refresh(barber)
    return barber


@router.post("/bookings", response_model=BookingPublic, status_code=201)
def create_booking_for_customer(
    payload: AdminBookingCreate,
    session: Session = Depends(get_session),
):
    return booking_service.create_booking(
        session,
        user_id=payload.user_id,
        barber_id=payload.barber_id,
        service_id=payload.service_id,
        booking_date=payload.booking_date,
        booking_time=payload.booking_time,
        notes=payload.notes,
        initial_status=payload.status,
    )


@router.put("/bookings/{booking_id}/status", response_model=BookingPublic)
def override_status(
    booking_id: int,
    payload: StatusUpdate,
    session: Session = Depends(get_session),
):
    return status_machine.set_status(session, booking_id, payload.status)
