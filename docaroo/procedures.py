"""Procedure likelihood operations.

Scores from 0.0 (unlikely) to 1.0 (highly likely) estimate whether a
provider performs a given procedure, based on historical claims and
provider specialty.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from .errors import InvalidRequestError
from .models import CodeType, LikelihoodRequest, LikelihoodResponse

if TYPE_CHECKING:
    from .client import DocarooClient

logger = logging.getLogger(__name__)

LIKELIHOOD_ENDPOINT = "/procedures/likelihood"


class ProceduresClient:
    """Client for procedure likelihood operations."""

    def __init__(self, client: DocarooClient) -> None:
        self._client = client

    async def get_likelihood(
        self, request: LikelihoodRequest | Mapping[str, Any]
    ) -> LikelihoodResponse:
        """Get procedure likelihood scores for healthcare providers.

        Args:
            request: LikelihoodRequest, or a mapping of its fields

        Returns:
            LikelihoodResponse with one score per NPI

        Raises:
            InvalidRequestError: Invalid parameters (locally or per the API)
            DocarooError: Any other classified API, network or decoding failure
        """
        if isinstance(request, LikelihoodRequest):
            request = LikelihoodRequest.from_mapping(request.model_dump())
        elif isinstance(request, Mapping):
            request = LikelihoodRequest.from_mapping(request)
        else:
            raise InvalidRequestError(
                f"Expected LikelihoodRequest or mapping, got {type(request).__name__}"
            )

        response = await self._client._post(LIKELIHOOD_ENDPOINT, request.to_payload())
        result = self._client._decode(response, LikelihoodResponse)

        logger.info(
            f"Fetched likelihood scores for {len(result.data)} of {len(request.npis)} NPIs",
            extra={
                "request_id": result.meta.request_id,
                "condition_code": request.condition_code,
                "processing_time_ms": result.meta.processing_time_ms,
            },
        )
        return result

    async def check_providers(
        self,
        npis: Iterable[str],
        condition_code: str,
        code_type: CodeType | str = CodeType.CPT,
    ) -> LikelihoodResponse:
        """Check several providers for the same procedure in one request.

        Example:
            response = await client.procedures.check_providers(
                ["1487648176", "1234567893"], "99214", "CPT"
            )
        """
        request = LikelihoodRequest.build(
            npis=npis, condition_code=condition_code, code_type=code_type
        )
        return await self.get_likelihood(request)
