# barbershop/booking.py

"""Creating and moving bookings.

Availability shown to a customer comes from a separate read and may be stale
by the time they submit. The write here is what decides: an overlap re-check
inside the request's session, backed by the partial unique index on
``(barber_id, booking_date, booking_time)`` for active bookings. Whichever of
two racing requests commits second gets a ``ConflictError``.
"""

import logging
import secrets
from datetime import date, datetime, time
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from . import stores
from .core import day_of_week, format_time, overlaps, to_minutes
from .errors import ConflictError, NotFoundError, ValidationError
from .models import Booking, Service
from .schemas import AppointmentScope, BookingStatus
from .status import ACTIVE_STATUSES

logger = logging.getLogger(__name__)

CREATION_STATUSES = (BookingStatus.pending, BookingStatus.confirmed)


def _confirmation_code() -> str:
    return secrets.token_hex(4).upper()


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    # psycopg2 exposes pgcode, psycopg 3 exposes sqlstate
    if "23505" in (getattr(orig, "pgcode", None), getattr(orig, "sqlstate", None)):
        return True
    return "UNIQUE" in str(orig).upper()


def _check_slot(
    session: Session,
    barber_id: int,
    service: Service,
    booking_date: date,
    booking_time: time,
    now: Optional[datetime] = None,
    exclude_id: Optional[int] = None,
) -> None:
    if now is not None and datetime.combine(booking_date, booking_time) < now:
        raise ValidationError("Cannot book an appointment in the past")

    duration = service.duration_minutes
    if not duration or duration <= 0:
        raise ValidationError("Service has no valid duration")

    # 1) Working hours for that weekday
    hours = stores.get_working_hours(session, barber_id, day_of_week(booking_date))
    if hours is None or not hours.is_available:
        raise ValidationError("Barber is not scheduled to work that day")

    start = to_minutes(booking_time)
    end = start + duration
    if start < to_minutes(hours.start_time) or end > to_minutes(hours.end_time):
        raise ValidationError("Appointment must be within working hours")

    # 2) Time off
    if stores.get_overlapping_time_off(session, barber_id, booking_date):
        raise ValidationError("Barber is on time off that day")

    # 3) Existing active bookings
    for existing_time, existing_duration in stores.get_active_bookings(
        session, barber_id, booking_date, exclude_id=exclude_id
    ):
        existing_start = to_minutes(existing_time)
        if overlaps(start, end, existing_start, existing_start + existing_duration):
            raise ConflictError("Slot already booked, please choose another time")


def _commit(session: Session, booking: Booking, operation) -> Booking:
    try:
        return operation(session, booking)
    except IntegrityError as e:
        if _is_unique_violation(e):
            logger.warning(
                f"Booking race lost for barber {booking.barber_id} "
                f"at {booking.booking_date} {format_time(booking.booking_time)}"
            )
            raise ConflictError("Slot already booked, please choose another time") from e
        raise ValidationError("Barber or service no longer exists") from e


def create_booking(
    session: Session,
    user_id: int,
    barber_id: int,
    service_id: int,
    booking_date: date,
    booking_time: time,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
    initial_status: BookingStatus = BookingStatus.confirmed,
) -> Booking:
    if initial_status not in CREATION_STATUSES:
        raise ValidationError("New bookings start as pending or confirmed")

    # 1) Service and price snapshot
    service = stores.get_active_service(session, service_id)
    if service is None:
        raise ValidationError("Service not available")

    # 2) Barber
    barber = stores.get_barber(session, barber_id)
    if barber is None or not barber.is_active:
        raise ValidationError("Barber not found")

    # 3) Hours, time off and overlaps against what is committed right now
    _check_slot(session, barber_id, service, booking_date, booking_time, now=now)

    # 4) Insert; the active-slot index rejects the loser of a race
    booking = Booking(
        user_id=user_id,
        barber_id=barber_id,
        service_id=service.id,
        booking_date=booking_date,
        booking_time=booking_time,
        status=initial_status.value,
        total_price=service.price,
        notes=notes or None,
        confirmation_code=_confirmation_code(),
    )
    booking = _commit(session, booking, stores.insert_booking)

    logger.info(
        f"Booking {booking.id} created for barber {barber_id} "
        f"at {booking_date} {format_time(booking_time)} ({initial_status.value})"
    )
    return booking


def get_booking(session: Session, booking_id: int) -> Booking:
    booking = stores.get_booking(session, booking_id)
    if booking is None:
        raise NotFoundError("Booking not found")
    return booking


def reschedule_booking(
    session: Session,
    booking_id: int,
    new_date: date,
    new_time: time,
    now: Optional[datetime] = None,
) -> Booking:
    booking = get_booking(session, booking_id)
    if BookingStatus(booking.status) not in ACTIVE_STATUSES:
        raise ValidationError(f"A {booking.status} booking cannot be rescheduled")

    service = session.get(Service, booking.service_id)
    if service is None:
        raise ValidationError("Service not available")

    _check_slot(
        session, booking.barber_id, service, new_date, new_time,
        now=now, exclude_id=booking.id,
    )

    old = f"{booking.booking_date} {format_time(booking.booking_time)}"
    booking.booking_date = new_date
    booking.booking_time = new_time
    booking = _commit(session, booking, stores.save_booking)

    logger.info(f"Booking {booking.id} moved from {old} to {new_date} {format_time(new_time)}")
    return booking


def list_user_bookings(
    session: Session,
    user_id: int,
    status: Optional[BookingStatus] = None,
) -> List[Booking]:
    with stores.store_operation(session, "list_user_bookings"):
        stmt = select(Booking).where(Booking.user_id == user_id)
        if status is not None:
            stmt = stmt.where(Booking.status == status.value)
        stmt = stmt.order_by(Booking.booking_date.desc(), Booking.booking_time.desc())
        return session.exec(stmt).all()


def list_barber_bookings(
    session: Session,
    barber_id: int,
    today: date,
    scope: AppointmentScope = AppointmentScope.upcoming,
) -> List[Booking]:
    """Upcoming: active and on/after ``today``. Past: before ``today`` or completed."""
    with stores.store_operation(session, "list_barber_bookings"):
        stmt = select(Booking).where(Booking.barber_id == barber_id)

        if scope == AppointmentScope.upcoming:
            stmt = (
                stmt.where(Booking.booking_date >= today)
                .where(Booking.status.in_(stores.ACTIVE_STATUS_VALUES))
                .order_by(Booking.booking_date, Booking.booking_time)
            )
        else:
            stmt = stmt.where(
                (Booking.booking_date < today)
                | (Booking.status == BookingStatus.completed.value)
            ).order_by(Booking.booking_date.desc(), Booking.booking_time.desc())

        return session.exec(stmt).all()

