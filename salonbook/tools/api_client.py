"""Async HTTP client for the booking backend.

Purpose: one place for base URL, timeout and retry policy so the catalog,
directory, resolver and guard only deal with JSON and typed errors.

Pattern: a shared httpx.AsyncClient; GETs are wrapped with tenacity
exponential-backoff retries, POSTs are sent exactly once so a create is
never duplicated by the transport.
"""

import logging
from typing import Any, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from salonbook.config import settings

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base class for backend failures surfaced by BookingApiClient."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ApiUnavailableError(ApiError):
    """Transport failure, timeout, throttling or 5xx. Safe to retry."""


class ApiConflictError(ApiError):
    """409: the backend refused the write because it overlaps existing data."""


class ApiRejectedError(ApiError):
    """Any other 4xx. Carries the server's message and offending field when given."""

    def __init__(
        self, message: str, status_code: Optional[int] = None, field: Optional[str] = None
    ) -> None:
        super().__init__(message, status_code)
        self.field = field


def _error_details(response: httpx.Response) -> tuple[str, Optional[str]]:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase, None
    if isinstance(body, dict):
        message = body.get("message") or body.get("error") or response.reason_phrase
        return str(message), body.get("field")
    return response.reason_phrase, None


class BookingApiClient:
    """Thin JSON client over the booking REST API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        read_attempts: Optional[int] = None,
        retry_max_wait: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._read_attempts = read_attempts or settings.api.read_attempts
        self._retry_max_wait = (
            settings.api.retry_max_wait if retry_max_wait is None else retry_max_wait
        )
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.api.base_url,
            timeout=timeout or settings.api.timeout_seconds,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> "BookingApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_json(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        """GET with retries on ApiUnavailableError.

        Raises:
            ApiUnavailableError: If every attempt failed at the transport/server level.
            ApiRejectedError: On a 4xx response (not retried).
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._read_attempts),
            wait=wait_exponential(multiplier=0.5, min=0, max=self._retry_max_wait),
            retry=retry_if_exception_type(ApiUnavailableError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return await retrying(self._request, "GET", path, params=params)

    async def post_json(self, path: str, payload: dict[str, Any]) -> Any:
        """Single-shot POST. Callers decide whether a failure is worth retrying."""
        return await self._request("POST", path, json=payload)

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json: Optional[dict[str, Any]] = None,
    ) -> Any:
        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.TimeoutException as exc:
            raise ApiUnavailableError(f"{method} {path} timed out") from exc
        except httpx.TransportError as exc:
            raise ApiUnavailableError(f"{method} {path} failed: {exc}") from exc

        status = response.status_code
        if status == 409:
            message, _ = _error_details(response)
            raise ApiConflictError(message, status)
        if status == 429 or status >= 500:
            message, _ = _error_details(response)
            raise ApiUnavailableError(f"{method} {path} returned {status}: {message}", status)
        if status >= 400:
            message, field = _error_details(response)
            raise ApiRejectedError(message, status, field)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ApiUnavailableError(f"{method} {path} returned invalid JSON", status) from exc
