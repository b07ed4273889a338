"""Provider ("master") directory and branch reference list.

Both are owned by other subsystems; the wizard only reads them.
"""

import logging
from typing import Optional

from pydantic import ValidationError

from salonbook.schemas.booking_schema import Branch, Provider
from salonbook.tools.api_client import ApiError, BookingApiClient
from salonbook.tools.services import unwrap_list

logger = logging.getLogger(__name__)

PROVIDERS_PATH = "providers"
BRANCHES_PATH = "branches"


class DirectoryUnavailableError(Exception):
    """Raised when providers or branches cannot be fetched."""


class ProviderDirectory:
    """Look up the providers working at a branch."""

    def __init__(self, api: BookingApiClient) -> None:
        self._api = api

    async def list_providers(
        self, branch_id: str, service_id: Optional[str] = None
    ) -> list[Provider]:
        """Providers at ``branch_id``, narrowed to ``service_id`` when records say what they offer.

        Raises:
            DirectoryUnavailableError: On transport/server failure or an unusable payload.
        """
        try:
            payload = await self._api.get_json(PROVIDERS_PATH, params={"branch": branch_id})
            entries = unwrap_list(payload, "data", "masters", "providers")
        except (ApiError, ValueError) as exc:
            logger.warning("Provider list for branch %s unavailable: %s", branch_id, exc)
            raise DirectoryUnavailableError(str(exc)) from exc

        providers: list[Provider] = []
        for entry in entries:
            try:
                provider = Provider.model_validate(entry)
            except ValidationError as exc:
                logger.warning("Skipping malformed provider entry: %s", exc.errors()[:1])
                continue
            if service_id is None or provider.offers(service_id):
                providers.append(provider)
        return providers


class BranchDirectory:
    """Active branches of an organisation."""

    def __init__(self, api: BookingApiClient) -> None:
        self._api = api

    async def list_branches(self, organisation_id: str) -> list[Branch]:
        try:
            payload = await self._api.get_json(
                BRANCHES_PATH, params={"organisationId": organisation_id}
            )
            entries = unwrap_list(payload, "branches", "data")
        except (ApiError, ValueError) as exc:
            logger.warning("Branch list for organisation %s unavailable: %s", organisation_id, exc)
            raise DirectoryUnavailableError(str(exc)) from exc

        branches = []
        for entry in entries:
            try:
                branch = Branch.model_validate(entry)
            except ValidationError:
                logger.warning("Skipping malformed branch entry: %r", entry)
                continue
            if branch.is_active:
                branches.append(branch)
        return branches
