from datetime import date
from enum import IntEnum


class Weekday(IntEnum):
    """Day numbering shared by schedules, promotions and rules (0 = Sunday)."""

    sunday = 0
    monday = 1
    tuesday = 2
    wednesday = 3
    thursday = 4
    friday = 5
    saturday = 6


def day_name(day: int) -> str:
    return Weekday(day).name.capitalize()


def weekday_of(value: date) -> int:
    # date.weekday() is Monday-based
    return (value.weekday() + 1) % 7
