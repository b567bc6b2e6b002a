"""Pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

import httpx
import pytest
import pytest_asyncio

from docaroo import DocarooClient

TEST_BASE_URL = "https://api.docaroo.test"
TEST_API_KEY = "test-api-key"


@pytest_asyncio.fixture
async def client() -> AsyncIterator[DocarooClient]:
    """Docaroo client over a real httpx client for respx mocking."""
    async with httpx.AsyncClient() as http_client:
        yield DocarooClient(
            TEST_API_KEY, base_url=TEST_BASE_URL, http_client=http_client
        )


@pytest.fixture
def pricing_payload() -> dict[str, Any]:
    """In-network pricing response body as returned by the API."""
    return {
        "data": {
            "1043566623": [
                {
                    "code": "99214",
                    "codeType": "CPT",
                    "negotiatedType": "negotiated",
                    "minRate": 65.87,
                    "maxRate": 266.88,
                    "avgRate": 147.03,
                    "instances": 6,
                },
                {
                    "code": "99214",
                    "codeType": "CPT",
                    "negotiatedType": "fee schedule",
                    "avgRate": 120.00,
                },
            ],
            "1972767655": [
                {
                    "code": "99214",
                    "codeType": "CPT",
                    "negotiatedType": "negotiated",
                    "minRate": 90.00,
                    "maxRate": 180.00,
                    "avgRate": 135.50,
                    "instances": 3,
                }
            ],
        },
        "meta": {
            "planId": "942404110",
            "payer": "UNH",
            "requestId": "req_test123",
            "timestamp": "2025-06-15T23:15:48.734729Z",
            "processingTimeMs": 912,
            "inNetworkRecordsCount": 14,
        },
    }


@pytest.fixture
def likelihood_payload() -> dict[str, Any]:
    """Procedure likelihood response body as returned by the API."""
    return {
        "data": {
            "1487648176": {"code": "99214", "codeType": "CPT", "likelihood": 0.9},
            "1043566623": {"code": "99214", "codeType": "CPT", "likelihood": 0.35},
            "1972767655": {"code": "99214", "codeType": "CPT", "likelihood": 0.65},
        },
        "meta": {
            "requestId": "req_test456",
            "timestamp": "2025-06-15T23:22:22.395111Z",
            "processingTimeMs": 731,
            "outOfNetworkRecordsCount": 68,
        },
    }
