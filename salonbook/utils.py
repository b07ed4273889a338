"""Shared utilities used across the booking engine."""

import re
from datetime import datetime, time, timedelta
from typing import Optional

from salonbook.config import settings


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("+996 (700) 111-222")
        '+996700111222'
        >>> normalize_phone("0700 111 222")
        '0700111222'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def format_phone(
    value: str,
    country_code: Optional[str] = None,
    subscriber_digits: Optional[int] = None,
) -> str:
    """Coerce free-form input into ``+<country code><subscriber digits>``.

    Missing country codes are prefixed and overlong input is truncated,
    mirroring what the booking form does while the visitor types.

    Examples:
        >>> format_phone("700 111 222")
        '+996700111222'
        >>> format_phone("+996 700 111 222 33")
        '+996700111222'
    """
    code = country_code or settings.business.phone_country_code
    digits_after_code = subscriber_digits or settings.business.phone_subscriber_digits
    cleaned = re.sub(r"[^\d]", "", value)
    if not cleaned.startswith(code):
        cleaned = code + cleaned
    return "+" + cleaned[: len(code) + digits_after_code]


def phone_pattern(
    country_code: Optional[str] = None, subscriber_digits: Optional[int] = None
) -> re.Pattern[str]:
    """Strict pattern: ``+``, the country code, then exactly N digits."""
    code = country_code or settings.business.phone_country_code
    digits = subscriber_digits or settings.business.phone_subscriber_digits
    return re.compile(rf"^\+{re.escape(code)}\d{{{digits}}}$")


def parse_hhmm(value: str) -> time:
    """Parse ``HH:MM`` (seconds tolerated and dropped) into a time."""
    value = value.strip()
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(value, fmt).time().replace(second=0)
        except ValueError:
            continue
    raise ValueError(f"Invalid time of day: {value!r}")


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def add_minutes(start: time, minutes: int) -> time:
    """Add minutes to a time of day.

    Appointments never cross midnight, but one may end exactly at it
    (23:00 + 60 gives 00:00).
    """
    anchor = datetime.combine(datetime.min.date() + timedelta(days=1), start)
    result = anchor + timedelta(minutes=minutes)
    midnight = datetime.combine(anchor.date() + timedelta(days=1), time(0, 0))
    if result.date() != anchor.date() and result != midnight:
        raise ValueError(
            f"{format_hhmm(start)} + {minutes} min crosses midnight"
        )
    return result.time()
