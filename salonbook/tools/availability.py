"""
Provider availability: workable dates and bookable start times.

Working dates are opt-in: a date is workable only when the provider's
calendar carries an active override for it. Slot candidates come from the
backend already filtered for overlap with existing appointments; the
resolver adds the same-day cutoff on the business calendar.

Read failures fail closed. A calendar or slot list that cannot be fetched
is reported as zero availability, never as "everything open".
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from salonbook.clock import Clock, today as business_today
from salonbook.config import settings
from salonbook.logging_context import get_session_logger
from salonbook.schemas.booking_schema import TimeSlot, WorkingDateOverride
from salonbook.tools.api_client import ApiError, BookingApiClient
from salonbook.tools.services import unwrap_list

logger = get_session_logger(__name__)

SLOTS_PATH = "available-slots"


def working_dates_path(provider_id: int) -> str:
    return f"providers/{provider_id}/working-dates"


class AvailabilityOutcome(str, Enum):
    """How a resolver query settled."""

    AVAILABLE = "available"
    NO_AVAILABILITY = "no_availability"
    SOURCE_UNAVAILABLE = "source_unavailable"


@dataclass(frozen=True)
class WorkableDates:
    """Dates in the horizon on which the provider can be booked."""

    provider_id: int
    dates: frozenset[date] = field(default_factory=frozenset)
    outcome: AvailabilityOutcome = AvailabilityOutcome.NO_AVAILABILITY

    def __contains__(self, day: object) -> bool:
        return day in self.dates

    def ordered(self) -> list[date]:
        return sorted(self.dates)


@dataclass(frozen=True)
class SlotSet:
    """Start times for one (provider, date, duration) query, ascending."""

    provider_id: int
    day: date
    service_duration: int
    slots: tuple[TimeSlot, ...] = ()
    outcome: AvailabilityOutcome = AvailabilityOutcome.NO_AVAILABILITY

    @property
    def available_times(self) -> tuple[time, ...]:
        return tuple(slot.time for slot in self.slots if slot.available)

    def offers(self, start: time) -> bool:
        return start in self.available_times


def horizon_bounds(start: date, horizon_days: int) -> tuple[date, date]:
    """Half-open ``[start, start + horizon_days)``."""
    return start, start + timedelta(days=horizon_days)


def select_workable_dates(
    overrides: Iterable[WorkingDateOverride], today: date, horizon_days: int
) -> frozenset[date]:
    """Active override dates inside the horizon.

    A date listed more than once is workable only if every entry for it
    is active.
    """
    first, end = horizon_bounds(today, horizon_days)
    active: set[date] = set()
    inactive: set[date] = set()
    for override in overrides:
        if not first <= override.work_date < end:
            continue
        (active if override.active else inactive).add(override.work_date)
    duplicates = active & inactive
    if duplicates:
        logger.warning(
            "Conflicting working-date overrides for %s, treating as unavailable",
            ", ".join(d.isoformat() for d in sorted(duplicates)),
        )
    return frozenset(active - inactive)


def apply_same_day_cutoff(
    slots: Iterable[TimeSlot], day: date, now: datetime
) -> list[TimeSlot]:
    """Drop slots that are not strictly later than ``now`` when ``day`` is today.

    ``now`` must already be on the business calendar.
    """
    slots = list(slots)
    if day != now.date():
        return slots
    current = now.time().replace(tzinfo=None)
    return [slot for slot in slots if slot.time > current]


def order_slots(slots: Iterable[TimeSlot]) -> tuple[TimeSlot, ...]:
    """Ascending by time; a time repeated in the feed is available only if every copy is."""
    merged: dict[time, bool] = {}
    for slot in slots:
        merged[slot.time] = merged.get(slot.time, True) and slot.available
    return tuple(TimeSlot(time=t, available=merged[t]) for t in sorted(merged))


def _parse_entries(payload: Any, model: Any, *keys: str) -> list[Any]:
    parsed = []
    for entry in unwrap_list(payload, *keys):
        try:
            parsed.append(model.model_validate(entry))
        except ValidationError:
            logger.debug("Ignoring malformed %s entry: %r", model.__name__, entry)
    return parsed


class AvailabilityResolver:
    """Resolves workable dates and offerable slots for one provider at a time."""

    def __init__(
        self,
        api: BookingApiClient,
        clock: Clock,
        horizon_days: Optional[int] = None,
    ) -> None:
        self._api = api
        self._clock = clock
        if horizon_days is None:
            horizon_days = settings.wizard.horizon_days
        self._horizon_days = horizon_days

    @property
    def horizon_days(self) -> int:
        return self._horizon_days

    async def resolve_workable_dates(
        self, provider_id: int, horizon_days: Optional[int] = None
    ) -> WorkableDates:
        """Workable dates in ``[today, today + horizon_days)``.

        On any read failure every date in the horizon is unworkable.
        """
        horizon = self._horizon_days if horizon_days is None else horizon_days
        today = business_today(self._clock)
        try:
            payload = await self._api.get_json(working_dates_path(provider_id))
            overrides = _parse_entries(payload, WorkingDateOverride, "data", "workingDates")
        except (ApiError, ValueError) as exc:
            logger.warning(
                "Working dates for provider %s unavailable, failing closed: %s",
                provider_id, exc,
            )
            return WorkableDates(provider_id, frozenset(), AvailabilityOutcome.SOURCE_UNAVAILABLE)

        dates = select_workable_dates(overrides, today, horizon)
        outcome = AvailabilityOutcome.AVAILABLE if dates else AvailabilityOutcome.NO_AVAILABILITY
        logger.debug("Provider %s has %d workable dates", provider_id, len(dates))
        return WorkableDates(provider_id, dates, outcome)

    async def resolve_time_slots(
        self, provider_id: int, day: date, service_duration: int
    ) -> SlotSet:
        """Slots for ``day``, cut off at the current business time when ``day`` is today.

        Zero selectable slots is an ordinary NO_AVAILABILITY outcome.
        """
        now = self._clock.now()
        first, end = horizon_bounds(now.date(), self._horizon_days)
        if not first <= day < end:
            return SlotSet(provider_id, day, service_duration)

        params = {
            "provider": provider_id,
            "date": day.isoformat(),
            "serviceDuration": service_duration,
        }
        try:
            payload = await self._api.get_json(SLOTS_PATH, params=params)
            raw = _parse_entries(payload, TimeSlot, "data", "slots")
        except (ApiError, ValueError) as exc:
            logger.warning(
                "Slots for provider %s on %s unavailable, failing closed: %s",
                provider_id, day.isoformat(), exc,
            )
            return SlotSet(
                provider_id, day, service_duration,
                outcome=AvailabilityOutcome.SOURCE_UNAVAILABLE,
            )

        slots = order_slots(apply_same_day_cutoff(raw, day, now))
        has_free = any(slot.available for slot in slots)
        outcome = AvailabilityOutcome.AVAILABLE if has_free else AvailabilityOutcome.NO_AVAILABILITY
        return SlotSet(provider_id, day, service_duration, slots, outcome)
