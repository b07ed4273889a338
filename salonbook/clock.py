"""Wall-clock capability pinned to the business's fixed civil offset.

Same-day cutoffs and the working-date horizon are evaluated against the
salon's calendar, never the visitor's local one. Components receive a
``Clock`` explicitly so tests can freeze time.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Protocol

from salonbook.config import settings


class Clock(Protocol):
    """Anything that can report the current business-local time."""

    def now(self) -> datetime: ...


def business_timezone(offset_hours: Optional[int] = None) -> timezone:
    hours = settings.business.utc_offset_hours if offset_hours is None else offset_hours
    return timezone(timedelta(hours=hours))


class BusinessClock:
    """Real clock reporting time at a fixed UTC offset."""

    def __init__(self, offset_hours: Optional[int] = None) -> None:
        self._tz = business_timezone(offset_hours)

    @property
    def tz(self) -> timezone:
        return self._tz

    def now(self) -> datetime:
        return datetime.now(timezone.utc).astimezone(self._tz)


class FixedClock:
    """Clock frozen at one instant. Naive datetimes are taken as business-local."""

    def __init__(self, instant: datetime, offset_hours: Optional[int] = None) -> None:
        tz = business_timezone(offset_hours)
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=tz)
        self._instant = instant.astimezone(tz)

    def now(self) -> datetime:
        return self._instant

    def advance(self, **delta: float) -> None:
        self._instant = self._instant + timedelta(**delta)


def today(clock: Clock) -> date:
    """Current calendar date on the business calendar."""
    return clock.now().date()


def time_of_day(clock: Clock) -> time:
    """Current business-local time of day, without tzinfo."""
    return clock.now().time().replace(tzinfo=None)
