"""
Booking wizard: drives one visitor from branch choice to a confirmed appointment.

The wizard owns the draft and the step machine. It talks to the catalog,
the provider directory, the availability resolver and the conflict guard,
and persists the draft after every forward move so a reload can resume.

Usage:
    wizard = create_wizard(api, branches, store=MemoryDraftStore())
    await wizard.initialize()
    await wizard.select_branch("B1")
    await wizard.select_service("massage-classic")
    ...
    response = await wizard.submit_contact("Ivan", "+996700111222")
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, replace
from datetime import date, time
from enum import Enum
from typing import AsyncIterator, Optional, Sequence, Union

from salonbook.clock import BusinessClock, Clock, time_of_day, today as business_today
from salonbook.config import settings
from salonbook.logging_context import get_session_logger, new_session_id, set_session_id
from salonbook.schemas.booking_schema import Appointment, Branch, Provider, Service
from salonbook.schemas.draft_schema import BookingDraft, DraftRecordError
from salonbook.tools.api_client import BookingApiClient
from salonbook.tools.availability import (
    AvailabilityOutcome,
    AvailabilityResolver,
    SlotSet,
    WorkableDates,
)
from salonbook.tools.booking import BookingConflictGuard, CommitOutcome, CommitResult
from salonbook.tools.providers import DirectoryUnavailableError, ProviderDirectory
from salonbook.tools.services import CatalogUnavailableError, ServiceCatalog
from salonbook.utils import normalize_phone, parse_hhmm, phone_pattern
from salonbook.wizard import messages
from salonbook.wizard.draft_fields import check_contact, furthest_step
from salonbook.wizard.draft_store import DraftStore, MemoryDraftStore, decode_draft, encode_draft
from salonbook.wizard.single_flight import SingleFlight
from salonbook.wizard.state_machine import WizardEvent, WizardStateMachine, WizardStep

logger = get_session_logger(__name__)


class ResponseStatus(str, Enum):
    """How the wizard handled one visitor action."""

    ADVANCED = "advanced"
    UPDATED = "updated"
    REJECTED = "rejected"
    IGNORED = "ignored"
    NO_AVAILABILITY = "no_availability"
    CONFLICT = "conflict"
    FAILED = "failed"


@dataclass(frozen=True)
class WizardResponse:
    """Outcome of a wizard action, with the step the wizard is now on."""

    status: ResponseStatus
    step: WizardStep
    message: str = ""
    field: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.status in (ResponseStatus.ADVANCED, ResponseStatus.UPDATED)


@dataclass(frozen=True)
class DeepLink:
    """Entry parameters that pre-select a branch and optionally a service."""

    branch: Optional[str] = None
    service_id: Optional[str] = None


class WizardUnavailableError(Exception):
    """Raised when the wizard is used before its service catalog has loaded."""


class BookingWizard:
    """
    One visitor's booking session.

    Every public action returns a WizardResponse rather than raising for
    ordinary outcomes (bad input, no availability, conflicts, backend
    hiccups). Only calling an action from a step that does not allow it
    raises InvalidTransitionError, and using a wizard whose catalog never
    loaded raises WizardUnavailableError.
    """

    def __init__(
        self,
        catalog: ServiceCatalog,
        directory: ProviderDirectory,
        resolver: AvailabilityResolver,
        guard: BookingConflictGuard,
        store: DraftStore,
        clock: Clock,
        branches: Sequence[Branch],
        session_id: Optional[str] = None,
        auto_advance_delay: Optional[float] = None,
    ) -> None:
        self.session_id = session_id or new_session_id()
        self._catalog = catalog
        self._directory = directory
        self._resolver = resolver
        self._guard = guard
        self._store = store
        self._clock = clock
        self._branches: dict[str, Branch] = {b.id: b for b in branches}
        self._delay = (
            settings.wizard.auto_advance_ms / 1000
            if auto_advance_delay is None
            else auto_advance_delay
        )
        self._phone_pattern = phone_pattern()

        self._machine = WizardStateMachine()
        self._draft = BookingDraft()
        self._providers: list[Provider] = []
        self._workable: Optional[WorkableDates] = None
        self._slot_set: Optional[SlotSet] = None
        self._appointment: Optional[Appointment] = None

        self._slot_flight = SingleFlight("select_time")
        self._submit_flight = SingleFlight("submit")
        # Bumped whenever outstanding calendar queries stop being relevant
        self._epoch = 0
        self._slot_requests = 0
        self._applied_slot_request = 0
        self._pending = 0
        self._initialized = False
        self._blocked_reason: Optional[str] = None

    # --- Read-only view ---

    @property
    def step(self) -> WizardStep:
        return self._machine.current_state

    @property
    def draft(self) -> BookingDraft:
        return replace(self._draft)

    @property
    def branches(self) -> list[Branch]:
        return list(self._branches.values())

    @property
    def services(self) -> list[Service]:
        return self._catalog.all()

    @property
    def providers(self) -> list[Provider]:
        return list(self._providers)

    @property
    def workable_dates(self) -> Optional[WorkableDates]:
        return self._workable

    @property
    def slot_set(self) -> Optional[SlotSet]:
        return self._slot_set

    @property
    def appointment(self) -> Optional[Appointment]:
        return self._appointment

    @property
    def loading(self) -> bool:
        return self._pending > 0

    @property
    def blocked_reason(self) -> Optional[str]:
        return self._blocked_reason

    @property
    def selected_branch(self) -> Optional[Branch]:
        return self._branches.get(self._draft.branch) if self._draft.branch else None

    @property
    def selected_service(self) -> Optional[Service]:
        return self._catalog.get(self._draft.service_id)

    @property
    def selected_provider(self) -> Optional[Provider]:
        return self._find_provider(self._draft.provider_id)

    @property
    def confirmation_summary(self) -> Optional[str]:
        if self._appointment is None:
            return None
        return messages.build_confirmation_summary(
            self._appointment,
            branch=self.selected_branch,
            service=self.selected_service,
            provider=self.selected_provider,
            currency=settings.business.currency_label,
        )

    def state_trace(self) -> list[str]:
        return self._machine.get_state_trace()

    # --- Lifecycle ---

    async def initialize(self, deep_link: Optional[DeepLink] = None) -> WizardResponse:
        """Load the catalog, then resume a saved draft or apply a deep link.

        A catalog that cannot be loaded leaves the wizard blocked; calling
        ``initialize`` again retries.
        """
        set_session_id(self.session_id)
        if self._initialized:
            return self._respond(ResponseStatus.IGNORED)

        if not self._catalog.loaded:
            try:
                async with self._loading():
                    await self._catalog.load()
            except CatalogUnavailableError as exc:
                self._blocked_reason = messages.CATALOG_UNAVAILABLE
                logger.error("Wizard blocked, service catalog unavailable: %s", exc)
                return self._respond(ResponseStatus.FAILED, messages.CATALOG_UNAVAILABLE)
        self._initialized = True
        self._blocked_reason = None

        saved = self._take_saved_draft()
        if saved is not None and (deep_link is None or deep_link.branch in (None, saved.branch)):
            return await self._restore(saved)
        if deep_link is not None and deep_link.branch:
            return await self._enter_deep_link(deep_link)
        return self._respond(ResponseStatus.UPDATED)

    async def reset(self) -> WizardResponse:
        """Drop the draft and start over from branch selection."""
        self._ensure_ready()
        if self._submit_flight.busy:
            return self._respond(ResponseStatus.IGNORED)
        self._machine.check(WizardEvent.RESTART)
        self._epoch += 1
        self._draft.reset()
        self._providers = []
        self._workable = None
        self._slot_set = None
        self._appointment = None
        self._machine.transition(WizardEvent.RESTART)
        self._store.clear()
        logger.info("Wizard reset")
        return self._respond(ResponseStatus.ADVANCED)

    async def back(self) -> WizardResponse:
        """Return to the immediately preceding step."""
        self._ensure_ready()
        if self._submit_flight.busy:
            return self._respond(ResponseStatus.IGNORED)
        self._machine.check(WizardEvent.BACK)

        leaving = self.step
        if leaving == WizardStep.DATE_TIME:
            self._epoch += 1
        if leaving in (WizardStep.DATE_TIME, WizardStep.CONTACT_INFO):
            self._draft.time = None
            self._slot_set = None
        response = self._advance(WizardEvent.BACK)
        if leaving == WizardStep.CONTACT_INFO:
            return self._as_advanced(await self._open_calendar(preferred=self._draft.date))
        return response

    # --- Forward steps ---

    async def select_branch(self, branch_id: str) -> WizardResponse:
        self._ensure_ready()
        self._machine.check(WizardEvent.BRANCH_SELECTED)
        branch = self._branches.get(str(branch_id))
        if branch is None:
            return self._respond(
                ResponseStatus.REJECTED, f"Unknown branch '{branch_id}'.", field="branch"
            )
        self._choose("branch", branch.id)
        return self._advance(WizardEvent.BRANCH_SELECTED)

    async def select_service(self, service_id: str) -> WizardResponse:
        """Pick a service. A single-option service fills in its duration and skips ahead."""
        self._ensure_ready()
        self._machine.check(WizardEvent.SERVICE_SELECTED)
        service = self._catalog.get(service_id)
        if service is None:
            return self._respond(
                ResponseStatus.REJECTED, f"Unknown service '{service_id}'.", field="service"
            )
        self._choose("service_id", service.id)
        if not service.has_single_option:
            return self._advance(WizardEvent.SERVICE_SELECTED)

        option = service.available_durations[0]
        self._choose("service_duration", option.duration)
        self._draft.service_price = option.price
        return await self._enter_provider_step(WizardEvent.SINGLE_OPTION_SERVICE_SELECTED)

    async def select_duration(self, duration: int) -> WizardResponse:
        self._ensure_ready()
        self._machine.check(WizardEvent.DURATION_SELECTED)
        option = self._catalog.option_for(self._draft.service_id, int(duration))
        if option is None:
            return self._respond(
                ResponseStatus.REJECTED,
                f"{duration} min is not offered for this service.",
                field="duration",
            )
        self._choose("service_duration", option.duration)
        self._draft.service_price = option.price
        return await self._enter_provider_step(WizardEvent.DURATION_SELECTED)

    async def refresh_providers(self) -> WizardResponse:
        """Re-fetch the provider list after a failed load."""
        self._ensure_ready()
        self._machine.check(WizardEvent.PROVIDER_SELECTED)
        try:
            self._providers = await self._fetch_providers()
        except DirectoryUnavailableError:
            return self._respond(ResponseStatus.FAILED, messages.PROVIDERS_UNAVAILABLE)
        if not self._providers:
            return self._respond(ResponseStatus.NO_AVAILABILITY, messages.NO_PROVIDERS, "provider")
        return self._respond(ResponseStatus.UPDATED)

    async def select_provider(self, provider_id: Union[int, str]) -> WizardResponse:
        """Pick a provider and open the calendar on today."""
        self._ensure_ready()
        self._machine.check(WizardEvent.PROVIDER_SELECTED)
        provider = self._find_provider(provider_id)
        if provider is None:
            return self._respond(
                ResponseStatus.REJECTED, f"Unknown master '{provider_id}'.", field="provider"
            )
        self._choose("provider_id", provider.id)
        self._epoch += 1
        self._workable = None
        self._slot_set = None
        self._advance(WizardEvent.PROVIDER_SELECTED)
        return self._as_advanced(await self._open_calendar(preferred=self._draft.date))

    async def select_date(self, day: Union[date, str]) -> WizardResponse:
        """Change the calendar date. Clears any chosen time and loads that day's slots."""
        self._ensure_ready()
        self._machine.check(WizardEvent.DATE_CHANGED)
        if isinstance(day, str):
            try:
                day = date.fromisoformat(day)
            except ValueError:
                return self._respond(
                    ResponseStatus.REJECTED, f"Invalid date '{day}'.", field="date"
                )
        if self._workable is None or day not in self._workable:
            return self._respond(
                ResponseStatus.REJECTED,
                f"{day.isoformat()} is not a working day for this master.",
                field="date",
            )
        self._draft.date = day
        self._draft.time = None
        self._slot_set = None
        self._advance(WizardEvent.DATE_CHANGED)
        return await self._load_slots()

    async def refresh_slots(self) -> WizardResponse:
        """Reload the calendar for the current date, e.g. after a failed fetch."""
        self._ensure_ready()
        self._machine.check(WizardEvent.DATE_CHANGED)
        if self._workable is None or self._workable.outcome == AvailabilityOutcome.SOURCE_UNAVAILABLE:
            return await self._open_calendar(preferred=self._draft.date)
        return await self._load_slots()

    async def select_time(self, start: Union[time, str]) -> WizardResponse:
        """Accept a slot and, after a short pause, move on to contact details.

        Further picks are dropped while one is being accepted.
        """
        self._ensure_ready()
        self._machine.check(WizardEvent.SLOT_ACCEPTED)
        async with self._slot_flight.claim() as claimed:
            if not claimed:
                return self._respond(ResponseStatus.IGNORED, "A time is already being selected.")
            if isinstance(start, str):
                try:
                    start = parse_hhmm(start)
                except ValueError:
                    return self._respond(
                        ResponseStatus.REJECTED, messages.SLOT_NOT_OFFERED, field="time"
                    )
            if not self._slot_is_current(start):
                return self._respond(
                    ResponseStatus.REJECTED, messages.SLOT_NOT_OFFERED, field="time"
                )

            day = self._draft.date
            self._draft.time = start
            await asyncio.sleep(self._delay)
            if self.step != WizardStep.DATE_TIME or (self._draft.date, self._draft.time) != (day, start):
                logger.debug("Slot %s on %s superseded before advancing", start, day)
                if (self._draft.date, self._draft.time) == (day, start):
                    self._draft.time = None
                    self._persist()
                return self._respond(ResponseStatus.IGNORED, messages.SUPERSEDED)
            return self._advance(WizardEvent.SLOT_ACCEPTED)

    async def submit_contact(self, name: str, phone: str) -> WizardResponse:
        """Record contact details and commit the booking.

        Duplicate submits while a commit is in flight are dropped.
        """
        self._ensure_ready()
        self._machine.check(WizardEvent.BOOKING_COMMITTED)
        async with self._submit_flight.claim() as claimed:
            if not claimed:
                return self._respond(
                    ResponseStatus.IGNORED, "Your booking is already being submitted."
                )
            self._draft.name = name.strip() if name else name
            self._draft.phone = normalize_phone(phone) if phone else phone
            error = check_contact(self._draft.name, self._draft.phone, self._phone_pattern)
            if error is not None:
                field_name, message = error
                return self._respond(ResponseStatus.REJECTED, message, field=field_name)

            async with self._loading():
                result = await self._guard.commit(replace(self._draft))
            return await self._settle(result)

    # --- Internals ---

    def _ensure_ready(self) -> None:
        set_session_id(self.session_id)
        if not self._initialized:
            raise WizardUnavailableError(
                self._blocked_reason or "Booking wizard has not been initialized"
            )

    def _respond(
        self, status: ResponseStatus, message: str = "", field: Optional[str] = None
    ) -> WizardResponse:
        return WizardResponse(status, self.step, message, field)

    def _as_advanced(self, response: WizardResponse) -> WizardResponse:
        if response.status == ResponseStatus.UPDATED:
            return replace(response, status=ResponseStatus.ADVANCED)
        return response

    def _advance(
        self,
        trigger: WizardEvent,
        status: ResponseStatus = ResponseStatus.ADVANCED,
        message: str = "",
        field: Optional[str] = None,
    ) -> WizardResponse:
        self._machine.transition(trigger)
        self._persist()
        return self._respond(status, message, field)

    def _persist(self) -> None:
        if self._draft.is_empty():
            self._store.clear()
        else:
            self._store.set(encode_draft(self._draft))

    def _choose(self, field_name: str, value: object) -> None:
        """Set a selection, dropping everything downstream if it changed."""
        if getattr(self._draft, field_name) != value:
            self._draft.clear_from(field_name)
            setattr(self._draft, field_name, value)

    def _find_provider(self, provider_id: Union[int, str, None]) -> Optional[Provider]:
        if provider_id is None:
            return None
        for provider in self._providers:
            if str(provider.id) == str(provider_id):
                return provider
        return None

    def _slot_is_current(self, start: time) -> bool:
        slot_set = self._slot_set
        return (
            slot_set is not None
            and slot_set.provider_id == self._draft.provider_id
            and slot_set.day == self._draft.date
            and slot_set.service_duration == self._draft.service_duration
            and slot_set.offers(start)
        )

    @asynccontextmanager
    async def _loading(self) -> AsyncIterator[None]:
        self._pending += 1
        try:
            yield
        finally:
            self._pending -= 1

    async def _fetch_providers(self) -> list[Provider]:
        async with self._loading():
            return await self._directory.list_providers(
                self._draft.branch, self._draft.service_id
            )

    async def _enter_provider_step(self, trigger: WizardEvent) -> WizardResponse:
        try:
            providers = await self._fetch_providers()
        except DirectoryUnavailableError:
            return self._respond(ResponseStatus.FAILED, messages.PROVIDERS_UNAVAILABLE)
        self._providers = providers
        if not providers:
            return self._advance(
                trigger, ResponseStatus.NO_AVAILABILITY, messages.NO_PROVIDERS, "provider"
            )
        return self._advance(trigger)

    async def _open_calendar(self, preferred: Optional[date] = None) -> WizardResponse:
        """Resolve workable dates, pick the date to show and load its slots.

        The date shown is ``preferred`` when still workable, otherwise today.
        """
        epoch = self._epoch
        provider_id = self._draft.provider_id
        async with self._loading():
            workable = await self._resolver.resolve_workable_dates(provider_id)
        if epoch != self._epoch:
            logger.debug("Discarding working dates for provider %s", provider_id)
            return self._respond(ResponseStatus.IGNORED, messages.SUPERSEDED)

        self._workable = workable
        day = preferred if preferred is not None and preferred in workable else business_today(self._clock)
        self._draft.date = day
        self._draft.time = None
        if day not in workable:
            self._slot_set = SlotSet(provider_id, day, self._draft.service_duration)
            message = messages.build_no_dates_message(workable.outcome) or (
                messages.build_no_slots_message(day, AvailabilityOutcome.NO_AVAILABILITY)
            )
            return self._respond(ResponseStatus.NO_AVAILABILITY, message, field="date")
        return await self._load_slots()

    async def _load_slots(self) -> WizardResponse:
        """Fetch slots for the current selection; drop the answer if the selection moved on."""
        self._slot_requests += 1
        request = self._slot_requests
        epoch = self._epoch
        provider_id = self._draft.provider_id
        day = self._draft.date
        duration = self._draft.service_duration

        async with self._loading():
            slot_set = await self._resolver.resolve_time_slots(provider_id, day, duration)

        current = (self._draft.provider_id, self._draft.date, self._draft.service_duration)
        if (
            epoch != self._epoch
            or request < self._applied_slot_request
            or current != (provider_id, day, duration)
        ):
            logger.debug("Discarding stale slots for %s (request %d)", day, request)
            return self._respond(ResponseStatus.IGNORED, messages.SUPERSEDED)

        self._applied_slot_request = request
        self._slot_set = slot_set
        if slot_set.outcome == AvailabilityOutcome.AVAILABLE:
            return self._respond(ResponseStatus.UPDATED)
        return self._respond(
            ResponseStatus.NO_AVAILABILITY,
            messages.build_no_slots_message(day, slot_set.outcome) or "",
            field="time",
        )

    async def _settle(self, result: CommitResult) -> WizardResponse:
        if result.outcome == CommitOutcome.BOOKED:
            self._appointment = result.appointment
            self._machine.transition(WizardEvent.BOOKING_COMMITTED)
            self._store.clear()
            logger.info("Booking %s confirmed", result.appointment.id if result.appointment else None)
            return self._respond(ResponseStatus.ADVANCED, self.confirmation_summary or result.message)

        if result.outcome == CommitOutcome.CONFLICT:
            logger.info("Slot %s on %s was taken, back to the calendar", self._draft.time, self._draft.date)
            self._draft.time = None
            self._slot_set = None
            self._advance(WizardEvent.SLOT_CONFLICT)
            await self._load_slots()
            return self._respond(ResponseStatus.CONFLICT, messages.SLOT_TAKEN, field="time")

        if result.outcome == CommitOutcome.INVALID:
            return self._respond(ResponseStatus.REJECTED, result.message, field=result.field)
        return self._respond(ResponseStatus.FAILED, result.message)

    def _take_saved_draft(self) -> Optional[BookingDraft]:
        """Read and delete the saved draft. It is only ever offered once."""
        raw = self._store.get()
        if raw is None:
            return None
        self._store.clear()
        try:
            draft = decode_draft(raw)
        except DraftRecordError as exc:
            logger.warning("Discarding unreadable booking draft: %s", exc)
            return None
        return None if draft.is_empty() else draft

    def _resume(
        self, draft: BookingDraft, step: WizardStep, duration_skipped: bool = False
    ) -> WizardResponse:
        self._draft = draft
        self._machine.resume(step, duration_skipped=duration_skipped)
        logger.info("Resumed booking at %s", step.value)
        return self._respond(ResponseStatus.ADVANCED)

    async def _restore(self, saved: BookingDraft) -> WizardResponse:
        """Rebuild the wizard from a saved draft, stopping at the first choice that no longer holds."""
        logger.info("Found saved draft reaching %s", furthest_step(saved).value)
        draft = BookingDraft()
        branch = self._branches.get(saved.branch) if saved.branch else None
        if branch is None:
            logger.info("Saved branch %r is no longer offered, starting over", saved.branch)
            return self._respond(ResponseStatus.UPDATED)
        draft.branch = branch.id

        service = self._catalog.get(saved.service_id)
        if service is None:
            return self._resume(draft, WizardStep.SERVICE)
        draft.service_id = service.id

        option = service.option_for(saved.service_duration) if saved.service_duration else None
        if option is None and service.has_single_option:
            option = service.available_durations[0]
        if option is None:
            return self._resume(draft, WizardStep.DURATION)
        draft.service_duration = option.duration
        draft.service_price = option.price
        skipped = service.has_single_option

        self._draft = draft
        try:
            self._providers = await self._fetch_providers()
        except DirectoryUnavailableError:
            self._resume(draft, WizardStep.PROVIDER, skipped)
            return self._respond(ResponseStatus.FAILED, messages.PROVIDERS_UNAVAILABLE)
        provider = self._find_provider(saved.provider_id)
        if provider is None:
            return self._resume(draft, WizardStep.PROVIDER, skipped)
        draft.provider_id = provider.id

        today = business_today(self._clock)
        day = saved.date if saved.date is not None and saved.date >= today else None
        start = saved.time if day is not None else None
        if start is not None and day == today and start <= time_of_day(self._clock):
            start = None
        if start is not None:
            draft.date = day
            draft.time = start
            draft.name = saved.name
            draft.phone = saved.phone
            return self._resume(draft, WizardStep.CONTACT_INFO, skipped)

        self._resume(draft, WizardStep.DATE_TIME, skipped)
        return self._as_advanced(await self._open_calendar(preferred=day))

    async def _enter_deep_link(self, link: DeepLink) -> WizardResponse:
        """Start past the steps a deep link already answers."""
        branch = self._branches.get(str(link.branch))
        if branch is None:
            logger.info("Deep link branch %r not found", link.branch)
            return self._respond(
                ResponseStatus.REJECTED, f"Unknown branch '{link.branch}'.", field="branch"
            )
        draft = BookingDraft(branch=branch.id)
        if not link.service_id:
            return self._resume(draft, WizardStep.SERVICE)

        service = self._catalog.get(link.service_id)
        if service is None:
            self._resume(draft, WizardStep.SERVICE)
            return self._respond(
                ResponseStatus.REJECTED, f"Unknown service '{link.service_id}'.", field="service"
            )
        draft.service_id = service.id
        if not service.has_single_option:
            return self._resume(draft, WizardStep.DURATION)

        option = service.available_durations[0]
        draft.service_duration = option.duration
        draft.service_price = option.price
        self._draft = draft
        try:
            self._providers = await self._fetch_providers()
        except DirectoryUnavailableError:
            self._resume(draft, WizardStep.PROVIDER, duration_skipped=True)
            return self._respond(ResponseStatus.FAILED, messages.PROVIDERS_UNAVAILABLE)
        self._resume(draft, WizardStep.PROVIDER, duration_skipped=True)
        if not self._providers:
            return self._respond(ResponseStatus.NO_AVAILABILITY, messages.NO_PROVIDERS, "provider")
        return self._respond(ResponseStatus.ADVANCED)


def create_wizard(
    api: BookingApiClient,
    branches: Sequence[Branch],
    store: Optional[DraftStore] = None,
    clock: Optional[Clock] = None,
    session_id: Optional[str] = None,
    auto_advance_delay: Optional[float] = None,
) -> BookingWizard:
    """Wire a wizard and its collaborators around one API client."""
    clock = clock or BusinessClock()
    return BookingWizard(
        catalog=ServiceCatalog(api),
        directory=ProviderDirectory(api),
        resolver=AvailabilityResolver(api, clock),
        guard=BookingConflictGuard(api),
        store=store if store is not None else MemoryDraftStore(),
        clock=clock,
        branches=branches,
        session_id=session_id,
        auto_advance_delay=auto_advance_delay,
    )
