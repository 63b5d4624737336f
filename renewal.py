"""
renewal.py — Days-until-renewal arithmetic

Everything here works on calendar days. "today" is always passed in so the
dashboard and the reminder sweep agree on one evaluation date.
"""

import math
from datetime import date, datetime, time
from typing import Union

DateLike = Union[date, datetime, str]

SECONDS_PER_DAY = 24 * 60 * 60

DASHBOARD_WINDOW = (0, 7)  # shown as "upcoming" on the dashboard, due day included
REMINDER_WINDOW  = (1, 7)  # emailed about; never on the due day itself


def calendar_day(value: DateLike) -> date:
    """Truncate a date, datetime or ISO string to a local calendar day."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()  # local time of this process
        return value.date()
    return value


def days_until_renewal(next_billing_date: DateLike, today: DateLike) -> int:
    """
    Whole days from today to the next billing date, rounded up.

    0 means it renews today, negative means the date has passed.
    """
    start = datetime.combine(calendar_day(today), time.min)
    end = datetime.combine(calendar_day(next_billing_date), time.min)
    return math.ceil((end - start).total_seconds() / SECONDS_PER_DAY)


def within_window(days: int, first_day: int, last_day: int) -> bool:
    return first_day <= days <= last_day
