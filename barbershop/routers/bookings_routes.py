# barbershop/routers/bookings_routes.py

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from barbershop import booking as booking_service
from barbershop import status as status_machine
from barbershop import stores
from barbershop.auth import get_current_user
from barbershop.db import get_session
from barbershop.deps import require_role
from barbershop.errors import PermissionDeniedError
from barbershop.schemas import (
    BookingCreate,
    BookingPublic,
    BookingReschedule,
    BookingStatus,
)

router = APIRouter(
    prefix="/bookings",
    tags=["bookings"],
)


@router.post("", response_model=BookingPublic, status_code=201)
def create_booking(
    payload: BookingCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "customer")

    return booking_service.create_booking(
        session,
        user_id=current_user["id"],
        barber_id=payload.barber_id,
        service_id=payload.service_id,
        booking_date=payload.booking_date,
        booking_time=payload.booking_time,
        notes=payload.notes,
        now=datetime.now(),
    )


@router.get("/me", response_model=List[BookingPublic])
def list_my_bookings(
    status: Optional[BookingStatus] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return booking_service.list_user_bookings(session, current_user["id"], status)


@router.get("/{booking_id}", response_model=BookingPublic)
def get_booking(
    booking_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    booking = booking_service.get_booking(session, booking_id)
    if current_user["role"] == "customer" and booking.user_id != current_user["id"]:
        raise PermissionDeniedError("You can only view your own bookings")
    if current_user["role"] == "barber":
        barber = stores.get_barber_for_user(session, current_user["id"])
        if barber is None or booking.barber_id != barber.id:
            raise PermissionDeniedError("This booking belongs to another barber")
    return booking


@router.patch("/{booking_id}/cancel", response_model=BookingPublic)
def cancel_booking(
    booking_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return status_machine.cancel_booking(session, booking_id, current_user["id"])


@router.patch("/{booking_id}/reschedule", response_model=BookingPublic)
def reschedule_booking(
    booking_id: int,
    payload: BookingReschedule,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    booking = booking_service.get_booking(session, booking_id)
    if booking.user_id != current_user["id"]:
        raise PermissionDeniedError("You can only reschedule your own bookings")

    return booking_service.reschedule_booking(
        session,
        booking_id,
        payload.booking_date,
        payload.booking_time,
        now=datetime.now(),
    )
