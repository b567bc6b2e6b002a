"""Main client for the Docaroo Care Navigation Data API.

Provides:
- Authenticated async HTTP calls over a shared httpx.AsyncClient
- Response decoding into typed models
- Classification of HTTP and transport failures into DocarooError subclasses

No call is retried automatically; see docaroo.retry for a caller-side helper.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Mapping
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from .config import API_BASE_URL, DEFAULT_TIMEOUT, USER_AGENT, DocarooConfig
from .errors import (
    REQUEST_ID_HEADER,
    ConfigurationError,
    DeserializationError,
    classify_response,
    classify_transport_error,
)
from .models import (
    CodeType,
    ConnectionTestResult,
    LikelihoodRequest,
    LikelihoodResponse,
    PricingRequest,
    PricingResponse,
)
from .pricing import PricingClient
from .procedures import ProceduresClient

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Query parameter the gateway reads the API key from
API_KEY_PARAM = "key"


class DocarooClient:
    """Async client for the Docaroo API.

    Domain operations live on ``client.pricing`` and ``client.procedures``;
    the most common ones are also available directly on the client.

    Example:
        async with DocarooClient("your-api-key") as client:
            request = PricingRequest.build(["1043566623"], "99214")
            response = await client.pricing.get_in_network_rates(request)
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
        api_key_header: str | None = None,
        config: DocarooConfig | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Docaroo API key (required unless config is given)
            base_url: Override for the production base URL
            http_client: Shared AsyncClient; the caller keeps ownership of it
            timeout: Request timeout in seconds for an internally created client
            api_key_header: Send the key in this header instead of the query string
            config: Complete configuration; other settings are ignored when given

        Raises:
            ConfigurationError: If the API key is missing or a setting is invalid
        """
        if config is None:
            if not api_key:
                raise ConfigurationError("api_key is required")
            try:
                config = DocarooConfig(
                    api_key=api_key,
                    base_url=API_BASE_URL if base_url is None else base_url,
                    timeout=DEFAULT_TIMEOUT if timeout is None else timeout,
                    api_key_header=api_key_header,
                )
            except ValidationError as e:
                raise ConfigurationError(f"Invalid Docaroo configuration: {e}") from e

        self.config = config
        self._owns_http_client = http_client is None
        if http_client is None:
            http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(
                    config.timeout, connect=min(10.0, config.timeout)
                ),
                follow_redirects=True,
            )
        self._http_client = http_client

        self.pricing = PricingClient(self)
        self.procedures = ProceduresClient(self)

    @classmethod
    def from_env(
        cls,
        http_client: httpx.AsyncClient | None = None,
        env: Mapping[str, str] | None = None,
    ) -> DocarooClient:
        """Create a client from DOCAROO_* environment variables."""
        return cls(config=DocarooConfig.from_env(env), http_client=http_client)

    @property
    def api_key(self) -> str:
        return self.config.api_key

    @property
    def base_url(self) -> str:
        return self.config.base_url

    @property
    def http_client(self) -> httpx.AsyncClient:
        return self._http_client

    def __repr__(self) -> str:
        return f"DocarooClient(base_url={self.base_url!r})"

    async def __aenter__(self) -> DocarooClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http_client:
            await self._http_client.aclose()

    def build_url(self, endpoint: str) -> str:
        """Build the absolute URL for an API endpoint path."""
        return f"{self.config.base_url}/{endpoint.lstrip('/')}"

    def _auth(self) -> tuple[dict[str, str], dict[str, str]]:
        """Get (headers, query params) carrying the API key."""
        headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
        params: dict[str, str] = {}
        if self.config.api_key_header:
            headers[self.config.api_key_header] = self.config.api_key
        else:
            params[API_KEY_PARAM] = self.config.api_key
        return headers, params

    async def _request(
        self,
        method: str,
        endpoint: str,
        json_data: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send one authenticated request.

        Args:
            method: HTTP method (GET, POST)
            endpoint: API endpoint path
            json_data: JSON request body

        Returns:
            HTTP response with a non-error status

        Raises:
            NetworkError: If no response was received
            DocarooError: Classified error for 4xx/5xx responses
        """
        headers, params = self._auth()

        logger.debug(f"{method} {endpoint}", extra={"endpoint": endpoint})

        try:
            response = await self._http_client.request(
                method,
                self.build_url(endpoint),
                params=params,
                json=json_data,
                headers=headers,
            )
        except httpx.TransportError as e:
            error = classify_transport_error(e)
            logger.warning(
                f"{method} {endpoint} failed: {error}",
                extra={"endpoint": endpoint, "error_type": type(error).__name__},
            )
            raise error from e

        if response.is_error:
            error = classify_response(response)
            logger.warning(
                f"{method} {endpoint} returned {response.status_code}: {error}",
                extra={
                    "endpoint": endpoint,
                    "status_code": response.status_code,
                    "error_type": type(error).__name__,
                    "request_id": error.request_id(),
                    "retryable": error.is_retryable(),
                },
            )
            raise error

        return response

    async def _get(self, endpoint: str) -> httpx.Response:
        return await self._request("GET", endpoint)

    async def _post(self, endpoint: str, json_data: dict[str, Any]) -> httpx.Response:
        return await self._request("POST", endpoint, json_data=json_data)

    @staticmethod
    def _decode(response: httpx.Response, model: type[ModelT]) -> ModelT:
        """Decode a successful response body into a model.

        Raises:
            DeserializationError: If the body is not JSON or does not match model
        """
        request_id = response.headers.get(REQUEST_ID_HEADER)

        try:
            payload = response.json()
        except ValueError as e:
            raise DeserializationError(
                f"Failed to parse response: invalid JSON ({e})",
                status_code=response.status_code,
                request_id=request_id,
            ) from e

        if isinstance(payload, dict) and isinstance(payload.get("meta"), dict):
            request_id = payload["meta"].get("requestId") or request_id

        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise DeserializationError(
                f"Failed to parse response as {model.__name__}: "
                f"{e.error_count()} validation error(s), first: {e.errors()[0]['msg']}",
                status_code=response.status_code,
                request_id=request_id,
            ) from e

    async def test_connection(self) -> ConnectionTestResult:
        """Probe the API gateway without raising.

        Any HTTP response (even 4xx) proves the gateway is reachable;
        success additionally requires a status below 400.
        """
        start_time = time.monotonic()
        headers, params = self._auth()
        endpoint = self.config.health_endpoint

        try:
            response = await self._http_client.get(
                self.build_url(endpoint), params=params, headers=headers
            )
        except httpx.TransportError as e:
            error = classify_transport_error(e)
            return ConnectionTestResult(
                success=False,
                message=str(error)[:200],
                latency_ms=None,
                details={"error_type": type(e).__name__},
            )

        latency_ms = round((time.monotonic() - start_time) * 1000, 2)

        if response.status_code < 400:
            return ConnectionTestResult(
                success=True,
                message=f"Successfully connected to API: {self.base_url}",
                latency_ms=latency_ms,
                details={"base_url": self.base_url, "status_code": response.status_code},
            )
        return ConnectionTestResult(
            success=False,
            message=f"API returned status {response.status_code}",
            latency_ms=latency_ms,
            details={
                "status_code": response.status_code,
                "error_type": type(classify_response(response)).__name__,
            },
        )

    # --- Shortcuts ---

    async def get_in_network_rates(
        self, request: PricingRequest | Mapping[str, Any]
    ) -> PricingResponse:
        """Shortcut for ``client.pricing.get_in_network_rates``."""
        return await self.pricing.get_in_network_rates(request)

    async def get_likelihood(
        self, request: LikelihoodRequest | Mapping[str, Any]
    ) -> LikelihoodResponse:
        """Shortcut for ``client.procedures.get_likelihood``."""
        return await self.procedures.get_likelihood(request)

    async def check_providers(
        self,
        npis: Iterable[str],
        condition_code: str,
        code_type: CodeType | str = CodeType.CPT,
    ) -> LikelihoodResponse:
        """Shortcut for ``client.procedures.check_providers``."""
        return await self.procedures.check_providers(npis, condition_code, code_type)
