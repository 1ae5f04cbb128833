"""
Datetime utility functions.
"""

from datetime import date, datetime
from typing import Optional
import pytz


def utcnow() -> datetime:
    """
    Get current UTC datetime using pytz.UTC.

    Returns:
        Current UTC datetime with pytz timezone information
    """
    return datetime.now(pytz.UTC)


def today() -> date:
    """Current UTC calendar date."""
    return utcnow().date()


def calculate_age(date_of_birth: Optional[date], on: Optional[date] = None) -> Optional[int]:
    """
    Age in whole years on a given day (defaults to today).

    Examples:
        >>> calculate_age(date(2010, 6, 15), on=date(2025, 6, 14))
        14
        >>> calculate_age(date(2010, 6, 15), on=date(2025, 6, 15))
        15
    """
    if date_of_birth is None:
        return None
    on = on or today()
    had_birthday = (on.month, on.day) >= (date_of_birth.month, date_of_birth.day)
    return on.year - date_of_birth.year - (0 if had_birthday else 1)


def isoformat_or_none(value) -> Optional[str]:
    """ISO string for a date/time/datetime, None passthrough."""
    return value.isoformat() if value is not None else None
