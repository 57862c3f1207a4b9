"""Date manipulation utilities"""

from datetime import date, datetime, timedelta


def to_day(value: date | datetime | str) -> date:
    """Truncate a date, datetime or ISO string to its calendar day"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def month_key(value: date | datetime | str) -> str:
    """Format the (year, month) of a date as YYYY-MM"""
    day = to_day(value)
    return f"{day.year:04d}-{day.month:02d}"


def add_days(from_date: date | str, days: int) -> date:
    """Offset a date by a number of calendar days"""
    return to_day(from_date) + timedelta(days=days)


def days_between(start: date | str, end: date | str) -> int:
    """Calendar days from start to end (negative if end is earlier)"""
    return (to_day(end) - to_day(start)).days
