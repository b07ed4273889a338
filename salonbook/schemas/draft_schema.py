"""In-progress booking state and its persisted record shape."""

import datetime as dt
from dataclasses import asdict, dataclass, fields
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

# Wizard-ordered selection fields. Clearing one clears everything after it.
SELECTION_ORDER = (
    "branch",
    "service_id",
    "service_duration",
    "service_price",
    "provider_id",
    "date",
    "time",
)


class DraftRecordError(ValueError):
    """Raised when a persisted draft cannot be parsed back into a BookingDraft."""


class DraftRecord(BaseModel):
    """Serialized draft as written to the draft store."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    branch: Optional[str] = None
    service_id: Optional[str] = Field(None, alias="serviceId")
    service_duration: Optional[int] = Field(None, alias="serviceDuration", gt=0)
    service_price: Optional[float] = Field(None, alias="servicePrice", ge=0)
    provider_id: Optional[int] = Field(None, alias="providerId")
    date: Optional[dt.date] = None
    time: Optional[dt.time] = None
    name: Optional[str] = None
    phone: Optional[str] = None


@dataclass
class BookingDraft:
    """
    Per-session booking choices, owned by exactly one wizard.

    Every step reads and writes here instead of inferring progress from
    which screens were shown.
    """
    branch: Optional[str] = None
    service_id: Optional[str] = None
    service_duration: Optional[int] = None
    service_price: Optional[float] = None
    provider_id: Optional[int] = None
    date: Optional[dt.date] = None
    time: Optional[dt.time] = None
    name: Optional[str] = None
    phone: Optional[str] = None

    def clear_from(self, field_name: str) -> None:
        """Clear ``field_name`` and every selection that depends on it."""
        start = SELECTION_ORDER.index(field_name)
        for name in SELECTION_ORDER[start:]:
            setattr(self, name, None)

    def reset(self) -> None:
        for f in fields(self):
            setattr(self, f.name, None)

    def is_empty(self) -> bool:
        return all(value is None for value in asdict(self).values())

    def to_record(self) -> dict[str, Any]:
        """JSON-ready record using the wire field names."""
        return {
            "branch": self.branch,
            "serviceId": self.service_id,
            "serviceDuration": self.service_duration,
            "servicePrice": self.service_price,
            "providerId": self.provider_id,
            "date": self.date.isoformat() if self.date else None,
            "time": self.time.strftime("%H:%M") if self.time else None,
            "name": self.name,
            "phone": self.phone,
        }

    @classmethod
    def from_record(cls, record: Any) -> "BookingDraft":
        """Rebuild a draft from a stored record.

        Raises:
            DraftRecordError: If the record is not a mapping or any field is malformed.
        """
        if not isinstance(record, dict):
            raise DraftRecordError(f"Draft record must be an object, got {type(record).__name__}")
        try:
            parsed = DraftRecord.model_validate(record)
        except ValidationError as exc:
            raise DraftRecordError(str(exc)) from exc
        return cls(**parsed.model_dump())
