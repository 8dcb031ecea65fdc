# barbershop/stores.py

"""Data access for the scheduling core.

Each function takes an open ``Session`` and runs inside ``store_operation`` so
that infrastructure failures reach the caller as ``StoreUnavailableError``
tagged with the operation name. Integrity errors are left alone: the booking
committer needs them to tell a taken slot from a vanished barber/service.
"""

import logging
from contextlib import contextmanager
from datetime import date, time
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from .core import DEFAULT_BOOKING_DURATION_MINUTES
from .errors import NotFoundError, StoreUnavailableError
from .models import Barber, Booking, Service, TimeOff, WorkingHours
from .schemas import BookingStatus

logger = logging.getLogger(__name__)

ACTIVE_STATUS_VALUES = (BookingStatus.pending.value, BookingStatus.confirmed.value)


@contextmanager
def store_operation(session: Session, operation: str):
    try:
        yield
    except IntegrityError:
        raise
    except SQLAlchemyError as e:
        logger.error(f"Store operation '{operation}' failed: {e}")
        session.rollback()
        raise StoreUnavailableError(operation, e) from e


def get_working_hours(session: Session, barber_id: int, day_of_week: int) -> Optional[WorkingHours]:
    with store_operation(session, "get_working_hours"):
        return session.exec(
            select(WorkingHours)
            .where(WorkingHours.barber_id == barber_id)
            .where(WorkingHours.day_of_week == day_of_week)
        ).first()


def list_working_hours(session: Session, barber_id: int) -> List[WorkingHours]:
    with store_operation(session, "list_working_hours"):
        return session.exec(
            select(WorkingHours)
            .where(WorkingHours.barber_id == barber_id)
            .order_by(WorkingHours.day_of_week)
        ).all()


def upsert_working_hours(
    session: Session,
    barber_id: int,
    day_of_week: int,
    start_time: time,
    end_time: time,
    is_available: bool,
) -> WorkingHours:
    with store_operation(session, "upsert_working_hours"):
        row = get_working_hours(session, barber_id, day_of_week)
        if row is None:
            row = WorkingHours(barber_id=barber_id, day_of_week=day_of_week,
                               start_time=start_time, end_time=end_time,
                               is_available=is_available)
        else:
            row.start_time = start_time
            row.end_time = end_time
            row.is_available = is_available
        session.add(row)
        session.commit()
        session.refresh(row)
        return row


def delete_working_hours(session: Session, barber_id: int, day_of_week: int) -> None:
    with store_operation(session, "delete_working_hours"):
        row = get_working_hours(session, barber_id, day_of_week)
        if row is None:
            raise NotFoundError("Working hours not set for that day")
        session.delete(row)
        session.commit()


def get_overlapping_time_off(session: Session, barber_id: int, on_date: date) -> List[TimeOff]:
    return get_time_off_between(session, barber_id, on_date, on_date)


def get_time_off_between(session: Session, barber_id: int, start: date, end: date) -> List[TimeOff]:
    """Time-off rows for the barber that touch any day in [start, end]."""
    with store_operation(session, "get_time_off"):
        return session.exec(
            select(TimeOff)
            .where(TimeOff.barber_id == barber_id)
            .where(TimeOff.start_date <= end)
            .where(TimeOff.end_date >= start)
            .order_by(TimeOff.start_date)
        ).all()


def list_time_off(session: Session, barber_id: int) -> List[TimeOff]:
    with store_operation(session, "list_time_off"):
        return session.exec(
            select(TimeOff).where(TimeOff.barber_id == barber_id).order_by(TimeOff.start_date)
        ).all()


def create_time_off(session: Session, time_off: TimeOff) -> TimeOff:
    with store_operation(session, "create_time_off"):
        session.add(time_off)
        session.commit()
        session.refresh(time_off)
        return time_off


def delete_time_off(session: Session, barber_id: int, time_off_id: int) -> None:
    with store_operation(session, "delete_time_off"):
        row = session.get(TimeOff, time_off_id)
        if row is None or row.barber_id != barber_id:
            raise NotFoundError("Time off not found")
        session.delete(row)
        session.commit()


def get_active_bookings(
    session: Session,
    barber_id: int,
    on_date: date,
    exclude_id: Optional[int] = None,
) -> List[Tuple[time, int]]:
    """(booking_time, duration_minutes) for every slot-holding booking that day."""
    with store_operation(session, "get_active_bookings"):
        stmt = (
            select(Booking.booking_time, Service.duration_minutes)
            .join(Service, Service.id == Booking.service_id)
            .where(Booking.barber_id == barber_id)
            .where(Booking.booking_date == on_date)
            .where(Booking.status.in_(ACTIVE_STATUS_VALUES))
        )
        if exclude_id is not None:
            stmt = stmt.where(Booking.id != exclude_id)

        rows = session.exec(stmt).all()
        return [
            (booking_time, duration or DEFAULT_BOOKING_DURATION_MINUTES)
            for booking_time, duration in rows
        ]


def _commit_booking(session: Session, booking: Booking) -> Booking:
    session.add(booking)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise
    session.refresh(booking)  # fills booking.id
    return booking


def insert_booking(session: Session, booking: Booking) -> Booking:
    with store_operation(session, "insert_booking"):
        return _commit_booking(session, booking)


def save_booking(session: Session, booking: Booking) -> Booking:
    with store_operation(session, "save_booking"):
        return _commit_booking(session, booking)


def get_booking(session: Session, booking_id: int) -> Optional[Booking]:
    with store_operation(session, "get_booking"):
        return session.get(Booking, booking_id)


def update_booking_status(session: Session, booking_id: int, status: BookingStatus) -> Booking:
    with store_operation(session, "update_booking_status"):
        booking = session.get(Booking, booking_id)
        if booking is None:
            raise NotFoundError("Booking not found")
        booking.status = status.value
        return _commit_booking(session, booking)


def get_active_service(session: Session, service_id: int) -> Optional[Service]:
    with store_operation(session, "get_active_service"):
        service = session.get(Service, service_id)
        if service is None or not service.is_active:
            return None
        return service


def get_active_price(session: Session, service_id: int) -> Optional[float]:
    service = get_active_service(session, service_id)
    return service.price if service is not None else None


def get_barber(session: Session, barber_id: int) -> Optional[Barber]:
    with store_operation(session, "get_barber"):
        return session.get(Barber, barber_id)


def get_barber_for_user(session: Session, user_id: int) -> Optional[Barber]:
    with store_operation(session, "get_barber_for_user"):
        return session.exec(select(Barber).where(Barber.user_id == user_id)).first()
