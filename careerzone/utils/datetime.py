"""Helpers for working with timezone-aware datetimes."""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from functools import lru_cache
from typing import Final

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from careerzone.config import get_settings

_DEFAULT_TIMEZONE: Final[str] = "UTC"
_OFFSET_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?:UTC|GMT)(?P<sign>[+-])(?P<hours>\d{1,2})(?::?(?P<minutes>\d{2}))?$",
    re.IGNORECASE,
)


@lru_cache(maxsize=1)
def get_app_timezone() -> tzinfo:
    """Return the configured application timezone.

    The timezone is resolved using the ``APP_TIMEZONE`` environment variable.
    Offsets such as ``UTC-05:00`` are accepted; unknown names fall back to UTC.
    """

    settings = get_settings()
    tz_name = (settings.app_timezone or "").strip() or _DEFAULT_TIMEZONE
    return _resolve_timezone(tz_name)


def now_in_app_timezone() -> datetime:
    """Return the current time localized to the configured timezone."""

    return datetime.now(tz=get_app_timezone())


def now_in_app_naive_datetime() -> datetime:
    """Return the current localized time without attaching ``tzinfo``."""

    return now_in_app_timezone().replace(tzinfo=None)


def ensure_app_timezone(value: datetime | None) -> datetime | None:
    """Normalize ``value`` so it is expressed in the configured timezone."""

    if value is None:
        return None

    tz = get_app_timezone()
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def ensure_app_naive_datetime(value: datetime | None) -> datetime | None:
    """Return ``value`` localized to the app timezone but without ``tzinfo``.

    Columns are stored as naive ``DATETIME`` values so SQLite and server
    databases compare them the same way; the domain layer keeps aware values.
    """

    localized = ensure_app_timezone(value)
    if localized is None:
        return None
    return localized.replace(tzinfo=None)


def start_of_day(value: date) -> datetime:
    """Return the first instant of ``value`` in the application timezone."""

    return datetime.combine(value, time.min, tzinfo=get_app_timezone())


def end_of_day(value: date) -> datetime:
    """Return the last instant of ``value`` in the application timezone."""

    return datetime.combine(value, time.max, tzinfo=get_app_timezone())


def _parse_offset(tz_name: str) -> tzinfo | None:
    """Return a fixed-offset zone for names like ``UTC+2`` or ``GMT-05:30``."""

    match = _OFFSET_PATTERN.match(tz_name)
    if match is None:
        return None
    minutes = int(match.group("hours")) * 60 + int(match.group("minutes") or 0)
    if match.group("sign") == "-":
        minutes = -minutes
    return timezone(timedelta(minutes=minutes))


def _resolve_timezone(tz_name: str) -> tzinfo:
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        return _parse_offset(tz_name) or timezone.utc
