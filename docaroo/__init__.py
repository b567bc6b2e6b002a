"""Docaroo Care Navigation Data API client.

Async access to healthcare provider pricing and procedure likelihood data:
- In-network contracted rates for up to 10 NPIs per request
- Procedure likelihood scoring (0.0 unlikely to 1.0 highly likely)
- Typed errors that say whether a call is worth retrying

Example usage:
    from docaroo import DocarooClient, PricingRequest

    async with DocarooClient("your-api-key") as client:
        request = PricingRequest.build(
            npis=["1043566623", "1972767655"],
            condition_code="99214",
        )
        response = await client.pricing.get_in_network_rates(request)

        for npi, rates in response.data.items():
            print(f"NPI {npi}: {len(rates)} rates found")
"""

from .client import DocarooClient
from .config import API_BASE_URL, CLIENT_VERSION, DocarooConfig
from .errors import (
    AuthenticationError,
    ConfigurationError,
    DeserializationError,
    DocarooError,
    InvalidRequestError,
    NetworkError,
    RateLimitError,
    ServerError,
)
from .models import (
    DEFAULT_PLAN_ID,
    MAX_NPIS_PER_REQUEST,
    CodeType,
    ConnectionTestResult,
    ErrorResponse,
    LikelihoodData,
    LikelihoodMeta,
    LikelihoodRequest,
    LikelihoodResponse,
    PricingMeta,
    PricingRequest,
    PricingResponse,
    RateData,
    likelihood_label,
    validate_npi,
)
from .pricing import PricingClient
from .procedures import ProceduresClient
from .retry import call_with_retry

__version__ = CLIENT_VERSION

__all__ = [
    # Client
    "DocarooClient",
    "DocarooConfig",
    "PricingClient",
    "ProceduresClient",
    "API_BASE_URL",
    # Exceptions
    "DocarooError",
    "InvalidRequestError",
    "AuthenticationError",
    "ConfigurationError",
    "RateLimitError",
    "ServerError",
    "NetworkError",
    "DeserializationError",
    # Models
    "CodeType",
    "PricingRequest",
    "LikelihoodRequest",
    "PricingResponse",
    "PricingMeta",
    "RateData",
    "LikelihoodResponse",
    "LikelihoodMeta",
    "LikelihoodData",
    "ErrorResponse",
    "ConnectionTestResult",
    "DEFAULT_PLAN_ID",
    "MAX_NPIS_PER_REQUEST",
    "validate_npi",
    "likelihood_label",
    # Retry
    "call_with_retry",
]
