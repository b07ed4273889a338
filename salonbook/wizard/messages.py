"""Visitor-facing text for wizard outcomes."""

from datetime import date
from typing import Optional

from salonbook.schemas.booking_schema import Appointment, Branch, Provider, Service
from salonbook.tools.availability import AvailabilityOutcome
from salonbook.tools.services import format_amount
from salonbook.utils import format_hhmm

CATALOG_UNAVAILABLE = "Booking is temporarily unavailable. Please try again later."
PROVIDERS_UNAVAILABLE = "Could not load the list of masters. Please try again."
NO_PROVIDERS = "No masters are available for this service at this branch."
SLOT_TAKEN = "This time is no longer available. Please choose another slot."
SLOT_NOT_OFFERED = "This time is not available. Please choose one of the listed slots."
SUPERSEDED = "A newer selection replaced this one."


def build_no_dates_message(outcome: AvailabilityOutcome) -> Optional[str]:
    if outcome == AvailabilityOutcome.SOURCE_UNAVAILABLE:
        return "Could not load the master's schedule. No dates can be booked right now."
    if outcome == AvailabilityOutcome.NO_AVAILABILITY:
        return "This master has no working days in the coming weeks."
    return None


def build_no_slots_message(day: date, outcome: AvailabilityOutcome) -> Optional[str]:
    if outcome == AvailabilityOutcome.SOURCE_UNAVAILABLE:
        return f"Could not load free times for {day.isoformat()}. Please try again."
    if outcome == AvailabilityOutcome.NO_AVAILABILITY:
        return f"No free times on {day.isoformat()}. Please pick another date."
    return None


def build_confirmation_summary(
    appointment: Appointment,
    branch: Optional[Branch] = None,
    service: Optional[Service] = None,
    provider: Optional[Provider] = None,
    currency: str = "",
) -> str:
    """Read-back of every choice the visitor made."""
    price = format_amount(appointment.price)
    lines = [
        f"  branch: {branch.name if branch else appointment.branch_id}",
        f"  service: {service.name if service else appointment.service_id}",
        f"  duration: {appointment.duration} min",
        f"  price: {price} {currency}".rstrip(),
        f"  master: {provider.name if provider else appointment.provider_id}",
        f"  date: {appointment.date.isoformat()}",
        f"  time: {format_hhmm(appointment.start_time)} - {format_hhmm(appointment.end_time)}",
        f"  name: {appointment.contact_name}",
        f"  phone: {appointment.contact_phone}",
    ]
    return "Your booking is confirmed:\n" + "\n".join(lines)
