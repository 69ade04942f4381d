"""Month cache policy.

Past months never change on the portal, so their cached entry is served
regardless of age. The current and future months are refetched once the entry
is older than the configured cache duration.
"""

from datetime import date, datetime, timedelta

from sam_timesheet.models import Month

DEFAULT_CACHE_EXPIRY = timedelta(hours=1)


def month_key(target: date) -> str:
    """Store key of the month containing *target*, e.g. ``"3/2024"``."""
    return f"{target.month}/{target.year}"


def month_passed(target: date, now: datetime) -> bool:
    """True if *target* lies before the first day of the current month."""
    return (target.year, target.month) < (now.year, now.month)


def is_fresh(
    month: Month,
    target: date,
    now: datetime,
    expiry: timedelta = DEFAULT_CACHE_EXPIRY,
) -> bool:
    if month_passed(target, now):
        return True
    return now - month.updated < expiry
