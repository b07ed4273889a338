"""Tests for the service catalog, provider directory and branch list."""

import httpx
import pytest

from salonbook.schemas.booking_schema import Service
from salonbook.tools.api_client import BookingApiClient
from salonbook.tools.providers import (
    BranchDirectory,
    DirectoryUnavailableError,
    ProviderDirectory,
)
from salonbook.tools.services import (
    CatalogUnavailableError,
    ServiceCatalog,
    describe_duration,
    describe_price,
    unwrap_list,
)


def _service(*options):
    return Service.model_validate({
        "id": "s",
        "name": "S",
        "availableDurations": [{"duration": d, "price": p} for d, p in options],
    })


class TestDisplayHelpers:
    def test_single_price(self):
        assert describe_price(_service((60, 2200)), currency="som") == "2200 som"

    def test_price_range(self):
        assert describe_price(_service((30, 1500), (60, 2200)), currency="som") == "1500 - 2200 som"

    def test_fractional_price(self):
        assert describe_price(_service((30, 99.5)), currency="som") == "99.50 som"

    def test_duration_range(self):
        assert describe_duration(_service((30, 1), (90, 2))) == "30 - 90 min"
        assert describe_duration(_service((60, 1))) == "60 min"

    def test_unwrap_list(self):
        assert unwrap_list([1], "data") == [1]
        assert unwrap_list({"services": [2]}, "data", "services") == [2]
        with pytest.raises(ValueError):
            unwrap_list({"data": "nope"}, "data")


class TestServiceCatalog:
    @pytest.mark.asyncio
    async def test_load_and_lookup(self, api):
        catalog = ServiceCatalog(api)
        assert not catalog.loaded
        services = await catalog.load()
        assert catalog.loaded
        assert [s.id for s in services] == ["massage-classic", "haircut"]
        assert catalog.get("haircut").name == "Haircut"
        assert catalog.get(None) is None
        assert catalog.option_for("haircut", 60).price == 1500
        assert catalog.option_for("missing", 60) is None

    @pytest.mark.asyncio
    async def test_malformed_entries_skipped(self, api, backend):
        backend.services.append({"id": "broken"})
        services = await ServiceCatalog(api).load()
        assert "broken" not in [s.id for s in services]

    @pytest.mark.asyncio
    async def test_unavailable(self, api, backend):
        backend.down.add("services")
        with pytest.raises(CatalogUnavailableError):
            await ServiceCatalog(api).load()


class TestProviderDirectory:
    @pytest.mark.asyncio
    async def test_filters_by_branch_and_service(self, api):
        directory = ProviderDirectory(api)
        everyone = await directory.list_providers("B1")
        massage = await directory.list_providers("B1", "massage-classic")
        assert [p.id for p in everyone] == [7, 8]
        assert [p.id for p in massage] == [7]

    @pytest.mark.asyncio
    async def test_unavailable(self, api, backend):
        backend.down.add("providers")
        with pytest.raises(DirectoryUnavailableError):
            await ProviderDirectory(api).list_providers("B1")


class TestBranchDirectory:
    @pytest.mark.asyncio
    async def test_inactive_branches_excluded(self):
        def handler(request):
            assert request.url.params["organisationId"] == "org-1"
            return httpx.Response(200, json={"branches": [
                {"id": 1, "branches": "Center", "isActive": True},
                {"id": 2, "branches": "Closed", "isActive": False},
                {"name": "no id"},
            ]})

        api = BookingApiClient(
            base_url="http://backend.test/api",
            read_attempts=1,
            retry_max_wait=0,
            transport=httpx.MockTransport(handler),
        )
        async with api:
            branches = await BranchDirectory(api).list_branches("org-1")
        assert [(b.id, b.name) for b in branches] == [("1", "Center")]
