# barbershop/slots.py

import logging
from datetime import date, time, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlmodel import Session

from . import stores
from .core import SLOT_INTERVAL_MINUTES, day_of_week, format_minutes, overlaps, to_minutes
from .errors import ValidationError
from .models import TimeOff, WorkingHours

logger = logging.getLogger(__name__)

# Longest window get_available_dates will scan
MAX_DATE_RANGE_DAYS = 366


def generate_slots(
    working_hours: Optional[WorkingHours],
    time_off: Sequence[TimeOff],
    bookings: Iterable[Tuple[time, int]],
    duration_minutes: int,
) -> List[dict]:
    """
    Candidate start times for one barber/day, every 15 minutes from opening.

    A slot is kept only if the whole service fits before closing time; slots
    that collide with an active booking are still returned, flagged
    ``available: False``. A closed day or any time off yields no slots at all.
    """
    if working_hours is None or not working_hours.is_available:
        return []
    if time_off:
        return []

    busy = [
        (to_minutes(start), to_minutes(start) + duration)
        for start, duration in bookings
    ]

    slots = []
    current = to_minutes(working_hours.start_time)
    end = to_minutes(working_hours.end_time)

    while current + duration_minutes <= end:
        slot_end = current + duration_minutes
        taken = any(overlaps(current, slot_end, b_start, b_end) for b_start, b_end in busy)
        slots.append({"time": format_minutes(current), "available": not taken})
        current += SLOT_INTERVAL_MINUTES

    return slots


def get_available_slots(
    session: Session,
    barber_id: int,
    on_date: date,
    duration_minutes: int,
) -> List[dict]:
    if duration_minutes <= 0:
        raise ValidationError("Service duration must be a positive number of minutes")

    working_hours = stores.get_working_hours(session, barber_id, day_of_week(on_date))
    if working_hours is None or not working_hours.is_available:
        logger.debug(f"Barber {barber_id} does not work on {on_date}")
        return []

    time_off = stores.get_overlapping_time_off(session, barber_id, on_date)
    if time_off:
        logger.debug(f"Barber {barber_id} is on time off on {on_date}")
        return []

    bookings = stores.get_active_bookings(session, barber_id, on_date)
    slots = generate_slots(working_hours, time_off, bookings, duration_minutes)

    logger.debug(
        f"Barber {barber_id} on {on_date}: {len(slots)} slots, "
        f"{sum(1 for s in slots if s['available'])} available"
    )
    return slots


def get_available_dates(session: Session, barber_id: int, start: date, end: date) -> List[date]:
    """Dates in [start, end] on which the barber works and is not on time off."""
    if start > end:
        raise ValidationError("start must not be after end")
    if (end - start).days >= MAX_DATE_RANGE_DAYS:
        raise ValidationError(f"Date range cannot exceed {MAX_DATE_RANGE_DAYS} days")

    working_days = {
        wh.day_of_week
        for wh in stores.list_working_hours(session, barber_id)
        if wh.is_available
    }
    if not working_days:
        return []

    days_off = set()
    for period in stores.get_time_off_between(session, barber_id, start, end):
        first = max(start, period.start_date)
        last = min(end, period.end_date)
        days_off.update(first + timedelta(days=i) for i in range((last - first).days + 1))

    dates = []
    for offset in range((end - start).days + 1):
        current = start + timedelta(days=offset)
        if day_of_week(current) in working_days and current not in days_off:
            dates.append(current)

    return dates
