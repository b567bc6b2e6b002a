"""Error taxonomy and HTTP error classification.

Every failure surfaced by the client is one of the exceptions below:
- InvalidRequestError: rejected locally or by the API (4xx)
- AuthenticationError: missing or invalid API key (401/403)
- RateLimitError: too many requests (429), carries retry_after seconds
- ServerError: the API failed (5xx)
- NetworkError: the request never produced an HTTP response
- DeserializationError: the response body could not be decoded

Only rate limit, server and network errors are retryable.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

import httpx
from pydantic import ValidationError

logger = logging.getLogger(__name__)

# Fallback wait when a 429 carries no usable hint
DEFAULT_RETRY_AFTER = 60

REQUEST_ID_HEADER = "x-request-id"


class DocarooError(Exception):
    """Base exception for Docaroo API errors."""

    retryable = False

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        request_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self._request_id = request_id

    def is_retryable(self) -> bool:
        """Check if the failed call may succeed when sent again."""
        return self.retryable

    def request_id(self) -> str | None:
        """Get the server-assigned request ID, if one was returned."""
        return self._request_id

    def __str__(self) -> str:
        if self._request_id:
            return f"{self.message} (request_id: {self._request_id})"
        return self.message


class InvalidRequestError(DocarooError):
    """Request parameters were rejected."""

    pass


class AuthenticationError(DocarooError):
    """API key missing, invalid or not allowed to call the endpoint."""

    pass


class ConfigurationError(DocarooError):
    """Client configuration is incomplete or invalid."""

    pass


class RateLimitError(DocarooError):
    """Raised when rate limit is exceeded."""

    retryable = True

    def __init__(
        self,
        message: str,
        retry_after: int = DEFAULT_RETRY_AFTER,
        request_id: str | None = None,
        status_code: int = 429,
    ) -> None:
        super().__init__(message, status_code=status_code, request_id=request_id)
        self.retry_after = retry_after


class ServerError(DocarooError):
    """The API returned a 5xx response."""

    retryable = True


class NetworkError(DocarooError):
    """Connection failure or timeout before a response was received."""

    retryable = True


class DeserializationError(DocarooError):
    """Response body was not valid JSON or did not match the expected shape."""

    pass


def parse_retry_after(
    value: str | None,
    now: datetime | None = None,
) -> int | None:
    """Parse a Retry-After header value into whole seconds.

    Args:
        value: Header value, either delta-seconds or an HTTP-date
        now: Reference time for HTTP-date values (defaults to current UTC)

    Returns:
        Seconds to wait, or None if the value is missing or unparseable
    """
    if not value:
        return None

    value = value.strip()
    if value.isdecimal():
        return _to_seconds(value)

    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if retry_at is None:
        return None
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=timezone.utc)

    now = now or datetime.now(timezone.utc)
    return max(0, int((retry_at - now).total_seconds()))


def _to_seconds(value: Any) -> int | None:
    try:
        return int(value)
    except (ValueError, OverflowError):
        return None


def _retry_after_from_details(details: Any) -> int | None:
    if not isinstance(details, dict):
        return None
    value = details.get("retryAfter", details.get("retry_after"))
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, (int, float)) and value >= 0:
        return _to_seconds(value)
    if isinstance(value, str) and value.strip().isdecimal():
        return _to_seconds(value.strip())
    return None


def _salvage_error_fields(body: Any, status: int, reason: str) -> dict[str, Any]:
    fallback = {"error": reason or str(status), "message": f"HTTP {status} error"}
    if not isinstance(body, dict):
        return fallback

    # Keep whichever fields are usable when the body as a whole is not
    fields: dict[str, Any] = {}
    for key, alias in (("error", "error"), ("message", "message"), ("request_id", "requestId")):
        value = body.get(alias)
        if isinstance(value, str) and value:
            fields[key] = value
    return {**fallback, **fields, "details": body.get("details")}


def classify_response(response: httpx.Response) -> DocarooError:
    """Map a non-2xx HTTP response onto the error taxonomy.

    Args:
        response: HTTP response with an error status

    Returns:
        The matching DocarooError subclass instance (not raised)
    """
    # Imported here to avoid a cycle (models imports InvalidRequestError)
    from .models import ErrorResponse

    status = response.status_code

    try:
        body = response.json()
    except ValueError:
        body = None

    try:
        error_body = ErrorResponse.model_validate(body)
    except ValidationError:
        error_body = ErrorResponse(
            **_salvage_error_fields(body, status, response.reason_phrase)
        )

    request_id = error_body.request_id or response.headers.get(REQUEST_ID_HEADER)
    message = error_body.message
    token = error_body.error.lower()

    if status == 429 or token == "rate_limit_exceeded":
        retry_after = parse_retry_after(response.headers.get("Retry-After"))
        if retry_after is None:
            retry_after = _retry_after_from_details(error_body.details)
        if retry_after is None:
            retry_after = DEFAULT_RETRY_AFTER
        return RateLimitError(
            f"Rate limit exceeded. Retry after {retry_after} seconds",
            retry_after=retry_after,
            request_id=request_id,
            status_code=status,
        )

    if status in (401, 403) or token == "unauthorized":
        return AuthenticationError(
            f"Authentication failed: {message}",
            status_code=status,
            request_id=request_id,
        )

    if status >= 500:
        return ServerError(
            f"Server error: {status} - {message}",
            status_code=status,
            request_id=request_id,
        )

    return InvalidRequestError(
        f"Invalid request: {message}",
        status_code=status,
        request_id=request_id,
    )


def classify_transport_error(exc: httpx.TransportError) -> NetworkError:
    """Wrap an httpx transport failure (connect, timeout, protocol) as NetworkError."""
    if isinstance(exc, httpx.TimeoutException):
        return NetworkError(f"Request timed out: {exc}")
    return NetworkError(f"HTTP request failed: {exc}")
