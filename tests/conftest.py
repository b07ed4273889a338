"""Shared test fixtures and helpers."""

import asyncio
import json
import re
from datetime import date, datetime
from typing import Any, Optional

import httpx
import pytest

from salonbook.clock import FixedClock
from salonbook.schemas.booking_schema import Branch
from salonbook.tools.api_client import BookingApiClient
from salonbook.wizard.booking_wizard import create_wizard
from salonbook.wizard.draft_store import MemoryDraftStore
from salonbook.wizard.state_machine import WizardStateMachine

BASE_URL = "http://backend.test/api"

# Monday 2026-10-19, 10:30 on the salon's calendar (UTC+6)
NOW = datetime(2026, 10, 19, 10, 30)
TODAY = date(2026, 10, 19)
TOMORROW = date(2026, 10, 20)

BRANCHES = [
    Branch(id="B1", name="Bishkek Center", address="Chui 1"),
    Branch(id="B2", name="Asanbay", address="Asanbay 12"),
]

SERVICES: list[dict[str, Any]] = [
    {
        "id": "massage-classic",
        "name": "Classic massage",
        "defaultDuration": 60,
        "availableDurations": [{"duration": 60, "price": 2200}],
    },
    {
        "id": "haircut",
        "name": "Haircut",
        "availableDurations": [
            {"duration": 30, "price": 800},
            {"duration": 60, "price": 1500},
        ],
    },
]

PROVIDERS: list[dict[str, Any]] = [
    {"id": 7, "name": "Aida", "branchId": "B1", "specialty": "Massage"},
    {"id": 8, "firstname": "Bakyt", "lastname": "Uulu", "branchId": "B1",
     "serviceIds": ["haircut"]},
    {"id": 9, "name": "Cholpon", "branchId": "B2"},
]

WORKING_DATES: dict[int, list[dict[str, Any]]] = {
    7: [
        {"date": "2026-10-19", "isActive": True},
        {"date": "2026-10-20", "isActive": True},
        {"date": "2026-10-21", "isActive": False},
        {"date": "2026-10-22", "isActive": True},
    ],
    8: [
        {"date": "2026-10-20", "isActive": True},
    ],
}

SLOTS: dict[tuple[int, str], list[dict[str, Any]]] = {
    (7, "2026-10-19"): [
        {"time": "09:00", "available": True},
        {"time": "10:00", "available": True},
        {"time": "10:30", "available": True},
        {"time": "11:00", "available": True},
        {"time": "14:00", "available": True},
    ],
    (7, "2026-10-20"): [
        {"time": "13:00", "available": True},
        {"time": "11:00", "available": True},
        {"time": "12:00", "available": True},
        {"time": "15:00", "available": False},
    ],
    (7, "2026-10-22"): [
        {"time": "10:00", "available": True},
    ],
    (8, "2026-10-20"): [
        {"time": "16:00", "available": True},
    ],
}


class FakeBackend:
    """In-memory booking backend served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.services = [dict(s) for s in SERVICES]
        self.providers = [dict(p) for p in PROVIDERS]
        self.working_dates = {k: list(v) for k, v in WORKING_DATES.items()}
        self.slots = {k: list(v) for k, v in SLOTS.items()}
        self.taken: set[tuple[int, str]] = set()
        self.bookings: list[dict[str, Any]] = []
        self.calls: list[tuple[str, str, dict[str, str]]] = []
        self.down: set[str] = set()
        self.gates: dict[str, asyncio.Event] = {}
        self.booking_gate: Optional[asyncio.Event] = None

    def calls_to(self, path: str) -> list[tuple[str, str, dict[str, str]]]:
        return [call for call in self.calls if call[1] == path]

    async def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api/")
        params = dict(request.url.params)
        self.calls.append((request.method, path, params))
        if path in self.down or any(re.fullmatch(p, path) for p in self.down):
            return httpx.Response(503, json={"message": "maintenance"})

        if path == "services":
            return httpx.Response(200, json=self.services)
        if path == "providers":
            branch = params.get("branch")
            return httpx.Response(
                200, json={"data": [p for p in self.providers if p.get("branchId") == branch]}
            )
        match = re.fullmatch(r"providers/(\d+)/working-dates", path)
        if match:
            entries = self.working_dates.get(int(match.group(1)), [])
            return httpx.Response(200, json={"data": entries})
        if path == "available-slots":
            gate = self.gates.get(params["date"])
            if gate is not None:
                await gate.wait()
            key = (int(params["provider"]), params["date"])
            return httpx.Response(200, json=self.slots.get(key, []))
        if path == "booking" and request.method == "POST":
            if self.booking_gate is not None:
                await self.booking_gate.wait()
            payload = json.loads(request.content)
            key = (payload["providerId"], payload["datetime"])
            if key in self.taken:
                return httpx.Response(409, json={"message": "Slot already booked"})
            self.taken.add(key)
            self.bookings.append(payload)
            return httpx.Response(201, json={"data": {"id": len(self.bookings)}})
        return httpx.Response(404, json={"message": f"No route for {path}"})


def make_api(backend: FakeBackend) -> BookingApiClient:
    return BookingApiClient(
        base_url=BASE_URL,
        timeout=5,
        read_attempts=1,
        retry_max_wait=0,
        transport=httpx.MockTransport(backend.handle),
    )


@pytest.fixture
def state_machine():
    return WizardStateMachine()


@pytest.fixture
def clock():
    return FixedClock(NOW, offset_hours=6)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def api(backend):
    return make_api(backend)


@pytest.fixture
def store():
    return MemoryDraftStore()


@pytest.fixture
def wizard(api, store, clock):
    return create_wizard(
        api, BRANCHES, store=store, clock=clock, session_id="WZ-test", auto_advance_delay=0
    )
