"""Reference data, availability and appointment models.

These mirror the backend's JSON shapes. Aliases accept both the
camelCase wire names and the snake_case column names the CRM exports.
"""

import datetime as dt
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

DEFAULT_DURATION_MINUTES = 60

# Flat per-duration price columns used by older service exports
LEGACY_DURATION_MINUTES = (10, 15, 20, 30, 40, 50, 60, 75, 80, 90, 110, 120, 150, 220)


def _is_priced(value: Any) -> bool:
    try:
        return value is not None and float(value) > 0
    except (TypeError, ValueError):
        return False


class DurationOption(BaseModel):
    """One bookable (duration, price) variant of a service."""

    model_config = ConfigDict(frozen=True)

    duration: int = Field(gt=0)
    price: float = Field(ge=0)


class Service(BaseModel):
    """Immutable catalog entry."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, coerce_numbers_to_str=True)

    id: str
    name: str
    description: Optional[str] = None
    default_duration: int = Field(
        DEFAULT_DURATION_MINUTES,
        validation_alias=AliasChoices("defaultDuration", "default_duration"),
    )
    available_durations: tuple[DurationOption, ...] = Field(
        default=(),
        validation_alias=AliasChoices("availableDurations", "available_durations"),
    )

    @model_validator(mode="before")
    @classmethod
    def _collect_duration_options(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        options = data.pop("availableDurations", None) or data.pop("available_durations", None)
        if not options:
            options = [
                {"duration": minutes, "price": data[f"duration{minutes}_price"]}
                for minutes in LEGACY_DURATION_MINUTES
                if _is_priced(data.get(f"duration{minutes}_price"))
            ]
        if data.get("defaultDuration") is None and data.get("default_duration") is None:
            data["defaultDuration"] = DEFAULT_DURATION_MINUTES
        if not options:
            default = data.get("defaultDuration") or data.get("default_duration")
            options = [{"duration": default, "price": 0}]

        unique: dict[int, Any] = {}
        for option in options:
            key = option["duration"] if isinstance(option, dict) else option.duration
            unique.setdefault(int(key), option)
        data["availableDurations"] = [unique[k] for k in sorted(unique)]
        return data

    @property
    def has_single_option(self) -> bool:
        return len(self.available_durations) == 1

    def option_for(self, duration: int) -> Optional[DurationOption]:
        for option in self.available_durations:
            if option.duration == duration:
                return option
        return None


class Branch(BaseModel):
    """Physical salon location from the organisation directory."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, coerce_numbers_to_str=True)

    id: str
    name: str = Field(validation_alias=AliasChoices("name", "branches"))
    address: Optional[str] = None
    is_active: bool = Field(True, validation_alias=AliasChoices("isActive", "is_active"))


class Provider(BaseModel):
    """A master who performs services at a branch."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, coerce_numbers_to_str=True)

    id: int
    name: str
    specialty: Optional[str] = None
    photo_url: Optional[str] = Field(
        None, validation_alias=AliasChoices("photoUrl", "photo_url")
    )
    branch_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("branchId", "branch_id")
    )
    work_start: dt.time = Field(
        dt.time(9, 0), validation_alias=AliasChoices("startWorkHour", "start_time", "work_start")
    )
    work_end: dt.time = Field(
        dt.time(20, 0), validation_alias=AliasChoices("endWorkHour", "end_time", "work_end")
    )
    service_ids: Optional[tuple[str, ...]] = Field(
        None, validation_alias=AliasChoices("serviceIds", "service_ids")
    )

    @model_validator(mode="before")
    @classmethod
    def _join_name_parts(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("name"):
            first = data.get("firstname") or data.get("first_name") or ""
            last = data.get("lastname") or data.get("last_name") or ""
            data = {**data, "name": f"{first} {last}".strip()}
        return data

    def offers(self, service_id: str) -> bool:
        """Providers without an explicit service list are assumed to offer everything."""
        return self.service_ids is None or service_id in self.service_ids


class WorkingDateOverride(BaseModel):
    """Explicit calendar entry: the provider works (or not) on this date."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    work_date: dt.date = Field(validation_alias=AliasChoices("date", "workDate", "work_date"))
    active: bool = Field(True, validation_alias=AliasChoices("active", "isActive", "is_active"))


class TimeSlot(BaseModel):
    """Candidate start time for a given (provider, date, duration) query."""

    model_config = ConfigDict(frozen=True)

    time: dt.time
    available: bool = True


class BookingRequest(BaseModel):
    """Body of ``POST booking``."""

    model_config = ConfigDict(populate_by_name=True)

    branch: str
    service_id: str = Field(serialization_alias="serviceId")
    service_duration: int = Field(gt=0, serialization_alias="serviceDuration")
    service_price: float = Field(ge=0, serialization_alias="servicePrice")
    provider_id: int = Field(serialization_alias="providerId")
    datetime: str
    name: str
    phone: str

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class Appointment(BaseModel):
    """Committed, conflict-checked booking."""

    model_config = ConfigDict(frozen=True)

    id: Optional[Union[int, str]] = None
    provider_id: int
    branch_id: str
    service_id: str
    duration: int
    price: float
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    contact_name: str
    contact_phone: str
