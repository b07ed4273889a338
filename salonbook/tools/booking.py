"""
Appointment commit path with conflict reporting.

This is the only write into the appointment store. No hold is placed on a
slot while the visitor types their contact details; the backend
re-validates overlap when the create request lands and answers 409 if
the slot was taken in the meantime.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from salonbook.logging_context import get_session_logger
from salonbook.schemas.booking_schema import Appointment, BookingRequest
from salonbook.schemas.draft_schema import BookingDraft
from salonbook.tools.api_client import (
    ApiConflictError,
    ApiRejectedError,
    ApiUnavailableError,
    BookingApiClient,
)
from salonbook.utils import add_minutes, format_hhmm, phone_pattern

logger = get_session_logger(__name__)

BOOKING_PATH = "booking"

# Draft attribute -> field name reported back to the form
REQUIRED_FIELDS: dict[str, str] = {
    "branch": "branch",
    "service_id": "service",
    "service_duration": "duration",
    "provider_id": "provider",
    "date": "date",
    "time": "time",
    "name": "name",
    "phone": "phone",
}


class CommitOutcome(str, Enum):
    """How a commit attempt settled."""

    BOOKED = "booked"
    CONFLICT = "conflict"
    INVALID = "invalid"
    FAILED = "failed"


@dataclass(frozen=True)
class CommitResult:
    """Result from BookingConflictGuard.commit."""

    outcome: CommitOutcome
    message: str
    appointment: Optional[Appointment] = None
    field: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome == CommitOutcome.BOOKED

    @property
    def retryable(self) -> bool:
        return self.outcome in (CommitOutcome.CONFLICT, CommitOutcome.FAILED)


def booking_datetime(draft: BookingDraft) -> str:
    """``YYYY-MM-DDTHH:MM`` from the chosen date and time."""
    return f"{draft.date.isoformat()}T{format_hhmm(draft.time)}"


def _unwrap_body(body: Any) -> dict[str, Any]:
    if isinstance(body, dict) and isinstance(body.get("data"), dict):
        return body["data"]
    return body if isinstance(body, dict) else {}


class BookingConflictGuard:
    """Validates a finished draft and creates the appointment atomically."""

    def __init__(self, api: BookingApiClient, pattern: Optional[re.Pattern[str]] = None) -> None:
        self._api = api
        self._phone_pattern = pattern or phone_pattern()

    def validate(self, draft: BookingDraft) -> Optional[CommitResult]:
        """Return an INVALID result for the first bad field, or None if the draft is complete."""
        missing = [
            label
            for attr, label in REQUIRED_FIELDS.items()
            if getattr(draft, attr) is None
            or (isinstance(getattr(draft, attr), str) and not getattr(draft, attr).strip())
        ]
        if missing:
            return CommitResult(
                CommitOutcome.INVALID,
                f"Cannot create booking - missing required fields: {', '.join(missing)}.",
                field=missing[0],
            )
        if not self._phone_pattern.match(draft.phone.strip()):
            return CommitResult(
                CommitOutcome.INVALID,
                f"The phone number '{draft.phone}' doesn't look right.",
                field="phone",
            )
        try:
            add_minutes(draft.time, draft.service_duration)
        except ValueError:
            return CommitResult(
                CommitOutcome.INVALID,
                "The appointment would run past midnight. Please pick an earlier time.",
                field="time",
            )
        return None

    async def commit(self, draft: BookingDraft) -> CommitResult:
        """Create the appointment or report why not.

        Never raises for backend problems: conflicts, rejections and
        transport failures all come back as a CommitResult.
        """
        invalid = self.validate(draft)
        if invalid is not None:
            return invalid

        request = BookingRequest(
            branch=draft.branch,
            service_id=draft.service_id,
            service_duration=draft.service_duration,
            service_price=draft.service_price or 0,
            provider_id=draft.provider_id,
            datetime=booking_datetime(draft),
            name=draft.name.strip(),
            phone=draft.phone.strip(),
        )

        try:
            body = await self._api.post_json(BOOKING_PATH, request.to_payload())
        except ApiConflictError as exc:
            logger.warning(
                "Slot %s with provider %s was taken before commit: %s",
                request.datetime, request.provider_id, exc.message,
            )
            return CommitResult(CommitOutcome.CONFLICT, exc.message)
        except ApiRejectedError as exc:
            return CommitResult(CommitOutcome.INVALID, exc.message, field=exc.field)
        except ApiUnavailableError as exc:
            logger.warning("Booking commit failed: %s", exc.message)
            return CommitResult(
                CommitOutcome.FAILED,
                "Could not create the booking. Please try again.",
            )

        data = _unwrap_body(body)
        appointment = Appointment(
            id=data.get("id"),
            provider_id=request.provider_id,
            branch_id=request.branch,
            service_id=request.service_id,
            duration=request.service_duration,
            price=request.service_price,
            date=draft.date,
            start_time=draft.time,
            end_time=add_minutes(draft.time, request.service_duration),
            contact_name=request.name,
            contact_phone=request.phone,
        )
        logger.info(
            "Booking created: %s for %s with provider %s at %s",
            appointment.id, appointment.contact_name, appointment.provider_id, request.datetime,
        )
        return CommitResult(
            CommitOutcome.BOOKED,
            f"Booking confirmed for {draft.date.isoformat()} at {format_hhmm(draft.time)}.",
            appointment=appointment,
        )
