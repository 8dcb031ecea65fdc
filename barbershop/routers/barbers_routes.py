# barbershop/routers/barbers_routes.py

from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path
from sqlmodel import Session

from barbershop import booking as booking_service
from barbershop import slots as slot_service
from barbershop import status as status_machine
from barbershop import stores
from barbershop.db import get_session
from barbershop.deps import get_current_barber
from barbershop.models import Barber, TimeOff
from barbershop.schemas import (
    AppointmentScope,
    AvailableDatesResponse,
    BookingPublic,
    SlotsResponse,
    StatusUpdate,
    TimeOffCreate,
    TimeOffPublic,
    WorkingHoursPublic,
    WorkingHoursUpdate,
)

router = APIRouter(
    prefix="/barbers",
    tags=["barbers"],
)


@router.get("/me/working-hours", response_model=List[WorkingHoursPublic])
def get_my_working_hours(
    session: Session = Depends(get_session),
    barber: Barber = Depends(get_current_barber),
):
    return stores.list_working_hours(session, barber.id)


@router.put("/me/working-hours/{day_of_week}", response_model=WorkingHoursPublic)
def set_working_hours(
    hours: WorkingHoursUpdate,
    day_of_week: int = Path(..., ge=0, le=6, description="0=Sunday ... 6=Saturday"),
    session: Session = Depends(get_session),
    barber: Barber = Depends(get_current_barber),
):
    if hours.start_time >= hours.end_time:
        raise HTTPException(status_code=422, detail="start_time must be before end_time")

    return stores.upsert_working_hours(
        session,
        barber.id,
        day_of_week,
        hours.start_time,
        hours.end_time,
        hours.is_available,
    )


@router.delete("/me/working-hours/{day_of_week}", status_code=204)
def clear_working_hours(
    day_of_week: int = Path(..., ge=0, le=6, description="0=Sunday ... 6=Saturday"),
    session: Session = Depends(get_session),
    barber: Barber = Depends(get_current_barber),
):
    stores.delete_working_hours(session, barber.id, day_of_week)


@router.get("/me/time-off", response_model=List[TimeOffPublic])
def get_my_time_off(
    session: Session = Depends(get_session),
    barber: Barber = Depends(get_current_barber),
):
    return stores.list_time_off(session, barber.id)


@router.post("/me/time-off", response_model=TimeOffPublic, status_code=201)
def add_time_off(
    payload: TimeOffCreate,
    session: Session = Depends(get_session),
    barber: Barber = Depends(get_current_barber),
):
    if payload.start_date > payload.end_date:
        raise HTTPException(status_code=422, detail="start_date cannot be after end_date")

    return stores.create_time_off(
        session,
        TimeOff(
            barber_id=barber.id,
            start_date=payload.start_date,
            end_date=payload.end_date,
            reason=payload.reason,
        ),
    )


@router.delete("/me/time-off/{time_off_id}", status_code=204)
def remove_time_off(
    time_off_id: int,
    session: Session = Depends(get_session),
    barber: Barber = Depends(get_current_barber),
):
    stores.delete_time_off(session, barber.id, time_off_id)


@router.get("/me/appointments", response_model=List[BookingPublic])
def list_my_appointments(
    scope: AppointmentScope = AppointmentScope.upcoming,
    session: Session = Depends(get_session),
    barber: Barber = Depends(get_current_barber),
):
    return booking_service.list_barber_bookings(session, barber.id, date.today(), scope)


@router.patch("/me/appointments/{booking_id}/status", response_model=BookingPublic)
def update_appointment_status(
    booking_id: int,
    payload: StatusUpdate,
    session: Session = Depends(get_session),
    barber: Barber = Depends(get_current_barber),
):
    return status_machine.advance_status(session, booking_id, barber.id, payload.status)


@router.put("/me/appointments/{booking_id}/status", response_model=BookingPublic)
def override_appointment_status(
    booking_id: int,
    payload: StatusUpdate,
    session: Session = Depends(get_session),
    barber: Barber = Depends(get_current_barber),
):
    return status_machine.set_status(session, booking_id, payload.status, barber_id=barber.id)


def _require_active_barber(session: Session, barber_id: int) -> None:
    # an inactive barber is treated as unknown
    barber = stores.get_barber(session, barber_id)
    if barber is None or not barber.is_active:
        raise HTTPException(status_code=404, detail="Barber Not Found")


@router.get("/{barber_id}/slots", response_model=SlotsResponse)
def barber_slots(
    barber_id: int,
    date: date,
    service_id: int,
    session: Session = Depends(get_session),
):
    _require_active_barber(session, barber_id)

    service = stores.get_active_service(session, service_id)
    if service is None:
        raise HTTPException(status_code=422, detail="Service not available")

    duration = service.duration_minutes or 0
    slots = slot_service.get_available_slots(session, barber_id, date, duration)
    return {
        "barber_id": barber_id,
        "date": date,
        "service_id": service_id,
        "duration_minutes": duration,
        "slots": slots,
    }


@router.get("/{barber_id}/available-dates", response_model=AvailableDatesResponse)
def barber_available_dates(
    barber_id: int,
    start: date,
    end: date,
    session: Session = Depends(get_session),
):
    _require_active_barber(session, barber_id)

    dates = slot_service.get_available_dates(session, barber_id, start, end)
    return {"barber_id": barber_id, "dates": dates}
