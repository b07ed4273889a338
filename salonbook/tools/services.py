"""Service catalog with duration/price variants and display helpers."""

import logging
from typing import Any, Optional

from pydantic import ValidationError

from salonbook.config import settings
from salonbook.schemas.booking_schema import DurationOption, Service
from salonbook.tools.api_client import ApiError, BookingApiClient

logger = logging.getLogger(__name__)

SERVICES_PATH = "services"


class CatalogUnavailableError(Exception):
    """Raised when the service catalog cannot be loaded at all."""


def unwrap_list(payload: Any, *keys: str) -> list[Any]:
    """Accept a bare JSON list or one wrapped under any of ``keys``."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in keys:
            value = payload.get(key)
            if isinstance(value, list):
                return value
    raise ValueError(f"Expected a list payload, got {type(payload).__name__}")


def format_amount(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:.2f}"


def describe_price(service: Service, currency: Optional[str] = None) -> str:
    """``"2200 som"`` for a single option, ``"1500 - 2200 som"`` for several."""
    currency = currency or settings.business.currency_label
    prices = [option.price for option in service.available_durations]
    low, high = min(prices), max(prices)
    if low == high:
        return f"{format_amount(low)} {currency}"
    return f"{format_amount(low)} - {format_amount(high)} {currency}"


def describe_duration(service: Service) -> str:
    durations = [option.duration for option in service.available_durations]
    if len(durations) == 1:
        return f"{durations[0]} min"
    return f"{min(durations)} - {max(durations)} min"


class ServiceCatalog:
    """Read-only lookup of bookable services, loaded once per wizard."""

    def __init__(self, api: BookingApiClient) -> None:
        self._api = api
        self._services: dict[str, Service] = {}
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def load(self, branch_id: Optional[str] = None) -> list[Service]:
        """Fetch and parse the catalog.

        Malformed entries are skipped; only a failed or unparseable
        response makes the catalog unavailable.

        Raises:
            CatalogUnavailableError: If the backend cannot supply a catalog.
        """
        params = {"branchId": branch_id} if branch_id else None
        try:
            payload = await self._api.get_json(SERVICES_PATH, params=params)
            entries = unwrap_list(payload, "data", "services")
        except (ApiError, ValueError) as exc:
            logger.error("Service catalog unavailable: %s", exc)
            raise CatalogUnavailableError(str(exc)) from exc

        services: dict[str, Service] = {}
        for entry in entries:
            try:
                service = Service.model_validate(entry)
            except ValidationError as exc:
                logger.warning("Skipping malformed service entry: %s", exc.errors()[:1])
                continue
            services[service.id] = service

        self._services = services
        self._loaded = True
        logger.info("Service catalog loaded: %d services", len(services))
        return list(services.values())

    def all(self) -> list[Service]:
        return list(self._services.values())

    def get(self, service_id: Optional[str]) -> Optional[Service]:
        if service_id is None:
            return None
        return self._services.get(str(service_id))

    def option_for(self, service_id: str, duration: int) -> Optional[DurationOption]:
        service = self.get(service_id)
        return service.option_for(duration) if service else None
