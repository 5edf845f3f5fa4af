"""
Calendar helpers
Conversions between profile-local wall time and the naive UTC values stored in the ledger
"""

import re
from typing import Optional, Tuple
from datetime import datetime, date, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from config import settings
from exceptions import ValidationError


_HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)(?::([0-5]\d))?$")


def parse_hhmm(value: str) -> time:
    """Parse a 24-hour 'HH:MM' (or 'HH:MM:SS') string into a time"""
    if not isinstance(value, str):
        raise ValidationError(f"Time must be an 'HH:MM' string, got {value!r}")
    match = _HHMM_PATTERN.match(value.strip())
    if not match:
        raise ValidationError(f"Invalid 24-hour time: {value!r}")
    return time(int(match.group(1)), int(match.group(2)))


def normalize_hhmm(value: str) -> str:
    """Return the canonical 'HH:MM' form of a time string"""
    return parse_hhmm(value).strftime("%H:%M")


def get_zone(name: Optional[str] = None) -> ZoneInfo:
    """Resolve an IANA timezone name, falling back to the configured default"""
    try:
        return ZoneInfo(name or settings.DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Unknown timezone: {name!r}")


def utc_now() -> datetime:
    """Current instant as naive UTC, the storage convention of the ledger"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(moment: datetime, zone: ZoneInfo) -> datetime:
    """
    Convert a datetime to naive UTC.

    Naive inputs are read as wall time in ``zone``; aware inputs keep their offset.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=zone)
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def to_local(stored: datetime, zone: ZoneInfo) -> datetime:
    """Convert a stored (naive UTC) datetime to an aware datetime in ``zone``"""
    if stored.tzinfo is None:
        stored = stored.replace(tzinfo=timezone.utc)
    return stored.astimezone(zone)


def local_day_bounds(day: date, zone: ZoneInfo) -> Tuple[datetime, datetime]:
    """Half-open naive UTC window [start, end) covering a local calendar day"""
    start = to_utc_naive(datetime.combine(day, time.min), zone)
    end = to_utc_naive(datetime.combine(day + timedelta(days=1), time.min), zone)
    return start, end


def local_range_bounds(start_day: date, end_day: date, zone: ZoneInfo) -> Tuple[datetime, datetime]:
    """Half-open naive UTC window covering the inclusive local day range"""
    start, _ = local_day_bounds(start_day, zone)
    _, end = local_day_bounds(end_day, zone)
    return start, end


def local_today(zone: ZoneInfo) -> date:
    return datetime.now(zone).date()
