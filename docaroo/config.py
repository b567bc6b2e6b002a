"""Shared configuration for the Docaroo client.

This module centralizes environment variable access and default values
so the client, the example scripts and the tests agree on them.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigurationError

# Production gateway
API_BASE_URL = "https://care-navigation-gateway-ccg16t89.wl.gateway.dev"

DEFAULT_TIMEOUT = 30.0

CLIENT_VERSION = "0.1.0"
USER_AGENT = f"docaroo-python/{CLIENT_VERSION}"

# Environment variables read by DocarooConfig.from_env
ENV_API_KEY = "DOCAROO_API_KEY"
ENV_BASE_URL = "DOCAROO_BASE_URL"
ENV_TIMEOUT = "DOCAROO_TIMEOUT"
# When set, the API key is sent in this header instead of the `key` query param
ENV_API_KEY_HEADER = "DOCAROO_API_KEY_HEADER"


class DocarooConfig(BaseModel):
    """Configuration for the Docaroo client."""

    api_key: str = Field(..., min_length=1, exclude=True, repr=False)
    base_url: str = API_BASE_URL
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    api_key_header: str | None = None
    health_endpoint: str = "/"

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("API key cannot be blank")
        return v.strip()

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Base URL must be absolute http(s); trailing slashes are dropped."""
        v = v.strip()
        if not v.startswith(("https://", "http://")):
            raise ValueError(f"base_url must start with http:// or https://, got '{v}'")
        return v.rstrip("/")

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> DocarooConfig:
        """Load configuration from environment variables.

        Reads DOCAROO_API_KEY (required), DOCAROO_BASE_URL, DOCAROO_TIMEOUT
        and DOCAROO_API_KEY_HEADER.

        Args:
            env: Mapping to read instead of os.environ

        Raises:
            ConfigurationError: If the API key is missing or a value is invalid
        """
        env = os.environ if env is None else env

        api_key = env.get(ENV_API_KEY)
        if not api_key:
            raise ConfigurationError(
                f"{ENV_API_KEY} is not set. Export it or pass api_key explicitly."
            )

        try:
            return cls(
                api_key=api_key,
                base_url=env.get(ENV_BASE_URL) or API_BASE_URL,
                timeout=env.get(ENV_TIMEOUT) or DEFAULT_TIMEOUT,
                api_key_header=env.get(ENV_API_KEY_HEADER) or None,
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid Docaroo configuration: {e}") from e
