from salonbook.wizard.booking_wizard import (
    BookingWizard,
    DeepLink,
    ResponseStatus,
    WizardResponse,
    WizardUnavailableError,
    create_wizard,
)
from salonbook.wizard.draft_store import DraftStore, JsonFileDraftStore, MemoryDraftStore
from salonbook.wizard.single_flight import SingleFlight
from salonbook.wizard.state_machine import (
    InvalidTransitionError,
    WizardEvent,
    WizardStateMachine,
    WizardStep,
)

__all__ = [
    "BookingWizard",
    "create_wizard",
    "DeepLink",
    "ResponseStatus",
    "WizardResponse",
    "WizardUnavailableError",
    "DraftStore",
    "JsonFileDraftStore",
    "MemoryDraftStore",
    "SingleFlight",
    "InvalidTransitionError",
    "WizardEvent",
    "WizardStateMachine",
    "WizardStep",
]
