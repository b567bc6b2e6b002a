"""Pricing operations for in-network contracted rates."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from .errors import InvalidRequestError
from .models import PricingRequest, PricingResponse

if TYPE_CHECKING:
    from .client import DocarooClient

logger = logging.getLogger(__name__)

IN_NETWORK_ENDPOINT = "/pricing/in-network"


def _as_pricing_request(request: PricingRequest | Mapping[str, Any]) -> PricingRequest:
    # Rebuilding re-runs validation, including on model_construct() instances
    if isinstance(request, PricingRequest):
        return PricingRequest.from_mapping(request.model_dump())
    if isinstance(request, Mapping):
        return PricingRequest.from_mapping(request)
    raise InvalidRequestError(
        f"Expected PricingRequest or mapping, got {type(request).__name__}"
    )


class PricingClient:
    """Client for pricing-related operations."""

    def __init__(self, client: DocarooClient) -> None:
        self._client = client

    async def get_in_network_rates(
        self, request: PricingRequest | Mapping[str, Any]
    ) -> PricingResponse:
        """Get in-network contracted rates for healthcare providers.

        Supports bulk lookups for up to 10 NPIs per request. The request is
        validated before anything is sent.

        Args:
            request: PricingRequest, or a mapping of its fields

        Returns:
            PricingResponse with rate records keyed by NPI

        Raises:
            InvalidRequestError: Invalid parameters (locally or per the API)
            AuthenticationError: Invalid API key
            RateLimitError: Rate limit exceeded
            ServerError: API failure
            NetworkError: Connection failure or timeout
            DeserializationError: Malformed response body
        """
        request = _as_pricing_request(request)

        response = await self._client._post(IN_NETWORK_ENDPOINT, request.to_payload())
        result = self._client._decode(response, PricingResponse)

        logger.info(
            f"Fetched in-network rates for {len(result.data)} of {len(request.npis)} NPIs",
            extra={
                "request_id": result.meta.request_id,
                "condition_code": request.condition_code,
                "processing_time_ms": result.meta.processing_time_ms,
            },
        )
        return result
