"""
Per-field rules for the booking draft.

Each field belongs to the step that collects it. The step order of the
fields doubles as the recovery rule: a saved draft is resumed at the step
after the last field of its longest filled prefix.

Usage:
    error = check_contact("Ivan", "+996700111222")
    if error is None:
        ...
    step = furthest_step(draft)
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional

from salonbook.schemas.draft_schema import BookingDraft
from salonbook.utils import phone_pattern
from salonbook.wizard.state_machine import WizardStep

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 2


def _validate_name(value: str, pattern: Optional[re.Pattern[str]] = None) -> bool:
    return len(value.strip()) >= MIN_NAME_LENGTH


def _validate_phone(value: str, pattern: Optional[re.Pattern[str]] = None) -> bool:
    return bool((pattern or phone_pattern()).match(value.strip()))


@dataclass(frozen=True)
class FieldDefinition:
    """One draft attribute and the step that collects it.

    ``error`` is shown when ``validator`` rejects the value; it may use ``{value}``.
    """

    name: str
    step: WizardStep
    required: bool = True
    validator: Optional[Callable[[str, Optional[re.Pattern[str]]], bool]] = None
    error: str = ""


FIELD_DEFINITIONS: tuple[FieldDefinition, ...] = (
    FieldDefinition("branch", WizardStep.BRANCH),
    FieldDefinition("service_id", WizardStep.SERVICE),
    FieldDefinition("service_duration", WizardStep.DURATION),
    FieldDefinition("provider_id", WizardStep.PROVIDER),
    FieldDefinition("date", WizardStep.DATE_TIME),
    FieldDefinition("time", WizardStep.DATE_TIME),
    FieldDefinition(
        "name", WizardStep.CONTACT_INFO,
        validator=_validate_name, error="Please enter your name.",
    ),
    FieldDefinition(
        "phone", WizardStep.CONTACT_INFO,
        validator=_validate_phone, error="The phone number '{value}' doesn't look right.",
    ),
)

# Where to resume once the draft holds everything up to and including the key field
RESUME_AFTER: dict[str, WizardStep] = {
    "branch": WizardStep.SERVICE,
    "service_id": WizardStep.DURATION,
    "service_duration": WizardStep.PROVIDER,
    "provider_id": WizardStep.DATE_TIME,
    "date": WizardStep.DATE_TIME,
    "time": WizardStep.CONTACT_INFO,
}


def _is_filled(value: Any) -> bool:
    if isinstance(value, str):
        return bool(value.strip())
    return value is not None


def filled_prefix(draft: BookingDraft) -> list[str]:
    """Selection fields filled in order, stopping at the first gap."""
    names = []
    for name in RESUME_AFTER:
        if not _is_filled(getattr(draft, name)):
            break
        names.append(name)
    return names


def furthest_step(draft: BookingDraft) -> WizardStep:
    """Furthest step reachable from the draft without skipping a choice."""
    prefix = filled_prefix(draft)
    if not prefix:
        return WizardStep.BRANCH
    return RESUME_AFTER[prefix[-1]]


def missing_fields(draft: BookingDraft) -> list[FieldDefinition]:
    """Required fields still empty, in step order."""
    return [
        defn for defn in FIELD_DEFINITIONS
        if defn.required and not _is_filled(getattr(draft, defn.name))
    ]


def check_contact(
    name: Optional[str], phone: Optional[str], pattern: Optional[re.Pattern[str]] = None
) -> Optional[tuple[str, str]]:
    """Return ``(field, message)`` for the first bad contact field, or None."""
    values = {"name": name, "phone": phone}
    for defn in FIELD_DEFINITIONS:
        if defn.step != WizardStep.CONTACT_INFO or defn.validator is None:
            continue
        value = values[defn.name]
        if not value or not defn.validator(value, pattern):
            logger.debug("Contact %s rejected: %r", defn.name, value)
            return defn.name, defn.error.format(value=value or "")
    return None
