"""Tests for reference-data models and the draft record."""

from datetime import date, time

import pytest
from pydantic import ValidationError

from salonbook.schemas.booking_schema import (
    Branch,
    BookingRequest,
    Provider,
    Service,
    TimeSlot,
    WorkingDateOverride,
)
from salonbook.schemas.draft_schema import BookingDraft, DraftRecordError


class TestService:
    def test_available_durations_sorted_and_deduplicated(self):
        service = Service.model_validate({
            "id": 1,
            "name": "Haircut",
            "availableDurations": [
                {"duration": 60, "price": 1500},
                {"duration": 30, "price": 800},
                {"duration": 60, "price": 9999},
            ],
        })
        assert service.id == "1"
        assert [(o.duration, o.price) for o in service.available_durations] == [
            (30, 800), (60, 1500),
        ]
        assert not service.has_single_option

    def test_legacy_price_columns(self):
        service = Service.model_validate({
            "id": "m1",
            "name": "Massage",
            "duration60_price": 2200,
            "duration90_price": 3000,
            "duration30_price": 0,
        })
        assert [o.duration for o in service.available_durations] == [60, 90]

    def test_falls_back_to_default_duration(self):
        service = Service.model_validate({"id": "x", "name": "Consult", "defaultDuration": 45})
        assert service.has_single_option
        assert service.option_for(45).price == 0

    def test_rejects_non_positive_duration(self):
        with pytest.raises(ValidationError):
            Service.model_validate({
                "id": "x", "name": "Bad", "availableDurations": [{"duration": 0, "price": 1}],
            })

    def test_option_for_unknown_duration(self):
        service = Service.model_validate({
            "id": "x", "name": "One", "availableDurations": [{"duration": 60, "price": 1}],
        })
        assert service.option_for(90) is None


class TestReferenceModels:
    def test_branch_accepts_legacy_name_column(self):
        branch = Branch.model_validate({"id": 3, "branches": "Center", "isActive": False})
        assert branch.id == "3"
        assert branch.name == "Center"
        assert not branch.is_active

    def test_provider_joins_name_parts(self):
        provider = Provider.model_validate({"id": 8, "firstname": "Bakyt", "lastname": "Uulu"})
        assert provider.name == "Bakyt Uulu"
        assert provider.work_start == time(9, 0)

    def test_provider_service_filter(self):
        provider = Provider.model_validate({"id": 8, "name": "B", "serviceIds": ["haircut"]})
        assert provider.offers("haircut")
        assert not provider.offers("massage")
        assert Provider(id=1, name="A").offers("anything")

    def test_working_date_override_aliases(self):
        override = WorkingDateOverride.model_validate({"work_date": "2026-10-20", "is_active": 0})
        assert override.work_date == date(2026, 10, 20)
        assert not override.active

    def test_time_slot_defaults_to_available(self):
        assert TimeSlot.model_validate({"time": "11:00"}).available

    def test_booking_request_payload_uses_wire_names(self):
        request = BookingRequest(
            branch="B1", service_id="m", service_duration=60, service_price=2200,
            provider_id=7, datetime="2026-10-20T11:00", name="Ivan", phone="+996700111222",
        )
        assert request.to_payload() == {
            "branch": "B1",
            "serviceId": "m",
            "serviceDuration": 60,
            "servicePrice": 2200.0,
            "providerId": 7,
            "datetime": "2026-10-20T11:00",
            "name": "Ivan",
            "phone": "+996700111222",
        }


class TestBookingDraft:
    def test_clear_from_drops_downstream(self):
        draft = BookingDraft(
            branch="B1", service_id="haircut", service_duration=30, service_price=800,
            provider_id=7, date=date(2026, 10, 20), time=time(11, 0), name="Ivan",
        )
        draft.clear_from("service_duration")
        assert draft.service_id == "haircut"
        assert draft.service_duration is None
        assert draft.provider_id is None
        assert draft.time is None
        assert draft.name == "Ivan"

    def test_record_round_trip(self):
        draft = BookingDraft(
            branch="B1", service_id="massage-classic", service_duration=60,
            service_price=2200, provider_id=7, date=date(2026, 10, 20), time=time(11, 0),
        )
        record = draft.to_record()
        assert record["serviceId"] == "massage-classic"
        assert record["time"] == "11:00"
        assert BookingDraft.from_record(record) == draft

    def test_reset_and_is_empty(self):
        draft = BookingDraft(branch="B1", phone="+996700111222")
        assert not draft.is_empty()
        draft.reset()
        assert draft.is_empty()

    @pytest.mark.parametrize(
        "record",
        [
            ["not", "a", "mapping"],
            {"date": "20-10-2026"},
            {"serviceDuration": -5},
            {"providerId": "seven"},
        ],
    )
    def test_malformed_record(self, record):
        with pytest.raises(DraftRecordError):
            BookingDraft.from_record(record)
