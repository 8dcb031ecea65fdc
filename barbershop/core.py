# barbershop/core.py

from datetime import date, datetime, time
from typing import Union

# Slots are always offered on :00/:15/:30/:45 marks
SLOT_INTERVAL_MINUTES = 15

# Bookings whose service carries no duration occupy this long
DEFAULT_BOOKING_DURATION_MINUTES = 30


def overlaps(a_start, a_end, b_start, b_end) -> bool:
    # half-open intervals: touching ends do not overlap
    return a_start < b_end and a_end > b_start


def parse_time(value: Union[str, time]) -> time:
    if isinstance(value, time):
        return value
    return datetime.strptime(value, "%H:%M").time()


def to_minutes(value: Union[str, time]) -> int:
    t = parse_time(value)
    return t.hour * 60 + t.minute


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_time(value: time) -> str:
    return value.strftime("%H:%M")


def day_of_week(value: date) -> int:
    """0=Sunday .. 6=Saturday (Python's weekday() starts at Monday)."""
    return (value.weekday() + 1) % 7
