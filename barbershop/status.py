# barbershop/status.py

"""Booking status lifecycle.

    pending -> confirmed -> completed
    confirmed -> no_show
    pending | confirmed -> cancelled

Customers can only cancel their own active bookings. Barbers move their own
bookings along the forward transitions above. Admins, and barbers on their own
bookings, can set any status with ``set_status``; that path skips validation.
Only pending and confirmed bookings occupy a slot, so cancelling is a status
change, never a delete.
"""

import logging
from typing import Dict, FrozenSet, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from . import stores
from .errors import ConflictError, InvalidTransitionError, NotFoundError, PermissionDeniedError
from .models import Booking
from .schemas import BookingStatus

logger = logging.getLogger(__name__)

ACTIVE_STATUSES: FrozenSet[BookingStatus] = frozenset({BookingStatus.pending, BookingStatus.confirmed})

FORWARD_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.pending: frozenset({BookingStatus.confirmed, BookingStatus.cancelled}),
    BookingStatus.confirmed: frozenset(
        {BookingStatus.completed, BookingStatus.no_show, BookingStatus.cancelled}
    ),
    BookingStatus.completed: frozenset(),
    BookingStatus.cancelled: frozenset(),
    BookingStatus.no_show: frozenset(),
}


def is_terminal(status: BookingStatus) -> bool:
    return not FORWARD_TRANSITIONS[status]


def can_transition(current: BookingStatus, new: BookingStatus) -> bool:
    return new in FORWARD_TRANSITIONS[current]


def validate_transition(current: BookingStatus, new: BookingStatus) -> None:
    if not can_transition(current, new):
        raise InvalidTransitionError(f"Cannot change a {current.value} booking to {new.value}")


def _load(session: Session, booking_id: int) -> Booking:
    booking = stores.get_booking(session, booking_id)
    if booking is None:
        raise NotFoundError("Booking not found")
    return booking


def cancel_booking(session: Session, booking_id: int, user_id: int) -> Booking:
    """Customer self-service cancellation."""
    booking = _load(session, booking_id)
    if booking.user_id != user_id:
        raise PermissionDeniedError("You can only cancel your own bookings")

    validate_transition(BookingStatus(booking.status), BookingStatus.cancelled)

    booking = stores.update_booking_status(session, booking_id, BookingStatus.cancelled)
    logger.info(f"Booking {booking_id} cancelled by customer {user_id}")
    return booking


def advance_status(session: Session, booking_id: int, barber_id: int, new_status: BookingStatus) -> Booking:
    """Barber moves one of their own bookings along a forward transition."""
    booking = _load(session, booking_id)
    if booking.barber_id != barber_id:
        raise PermissionDeniedError("This booking belongs to another barber")

    current = BookingStatus(booking.status)
    validate_transition(current, new_status)

    booking = stores.update_booking_status(session, booking_id, new_status)
    logger.info(f"Booking {booking_id}: {current.value} -> {new_status.value} (barber {barber_id})")
    return booking


def set_status(
    session: Session,
    booking_id: int,
    new_status: BookingStatus,
    barber_id: Optional[int] = None,
) -> Booking:
    """
    Administrative override: any status, no transition check.

    With ``barber_id`` the override is limited to that barber's own bookings,
    so a barber can undo a mistaken no_show or completion.
    """
    booking = _load(session, booking_id)
    if barber_id is not None and booking.barber_id != barber_id:
        raise PermissionDeniedError("This booking belongs to another barber")

    current = BookingStatus(booking.status)

    if current != new_status and not can_transition(current, new_status):
        logger.warning(
            f"Override on booking {booking_id}: {current.value} -> {new_status.value} "
            "is not a forward transition"
        )

    try:
        booking = stores.update_booking_status(session, booking_id, new_status)
    except IntegrityError as e:
        # reactivating a booking whose slot has since been taken
        raise ConflictError("Another active booking already holds this slot") from e
    actor = f"barber {barber_id}" if barber_id is not None else "admin"
    logger.info(f"Booking {booking_id} set to {new_status.value} by {actor}")
    return booking
