"""
Calendar date normalization.

Records may carry dates as plain ISO dates ("2024-01-15") or as full
timestamps ("2024-01-15T05:00:00.000Z"). Parsing a timestamp and then
taking its local date can shift the day under a timezone offset, so we
never do that: the date part is split off the string and rebuilt from
year/month/day. Every comparison in the engine works on these values.
"""

from datetime import date, datetime
from typing import Annotated, Union

from pydantic import BeforeValidator


DateLike = Union[date, datetime, str]


def to_calendar_date(value: DateLike) -> date:
    """
    Reduce a date, datetime or ISO string to a plain calendar date.

    Raises:
        ValueError: If a string is not in YYYY-MM-DD[...] form
        TypeError: For any other input type
    """
    # datetime is a subclass of date, so it must be checked first
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        parts = value.strip().split("T")[0].split("-")
        if len(parts) != 3:
            raise ValueError(f"Not an ISO calendar date: {value!r}")
        year, month, day = (int(part) for part in parts)
        return date(year, month, day)
    raise TypeError(f"Cannot interpret {type(value).__name__} as a calendar date")


def _coerce_calendar_date(value):
    if value is None:
        return value
    return to_calendar_date(value)


# Annotated type used by every date field of the finance models
CalendarDate = Annotated[date, BeforeValidator(_coerce_calendar_date)]
