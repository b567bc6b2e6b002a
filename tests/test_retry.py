"""Tests for the caller-side retry helper."""

from __future__ import annotations

import httpx
import pytest
from respx import MockRouter

from docaroo import DocarooClient, PricingRequest
from docaroo.errors import (
    AuthenticationError,
    DocarooError,
    NetworkError,
    RateLimitError,
    ServerError,
)
from docaroo.retry import call_with_retry, retry_delay

from conftest import TEST_BASE_URL


class FakeSleep:
    """Records requested delays instead of sleeping."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def failing_then_ok(errors: list[DocarooError], result: str = "ok"):
    """Build a call that raises each error in turn, then returns result."""
    remaining = list(errors)
    calls = {"count": 0}

    async def call() -> str:
        calls["count"] += 1
        if remaining:
            raise remaining.pop(0)
        return result

    return call, calls


class TestRetryDelay:
    """Tests for retry_delay."""

    def test_rate_limit_uses_retry_after(self) -> None:
        assert retry_delay(RateLimitError("slow", retry_after=5), attempt=3) == 5.0

    def test_exponential_backoff(self) -> None:
        error = ServerError("boom", status_code=500)
        assert [retry_delay(error, a) for a in range(4)] == [1.0, 2.0, 4.0, 8.0]
        assert retry_delay(error, 2, base_delay=0.5) == 2.0

    def test_max_delay_caps(self) -> None:
        assert retry_delay(RateLimitError("slow", retry_after=600), 0, max_delay=30) == 30
        assert retry_delay(NetworkError("down"), 10, max_delay=30) == 30


class TestCallWithRetry:
    """Tests for call_with_retry."""

    @pytest.mark.asyncio
    async def test_success_first_try(self) -> None:
        sleep = FakeSleep()
        call, calls = failing_then_ok([])

        assert await call_with_retry(call, sleep=sleep) == "ok"
        assert calls["count"] == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_retries_retryable_errors(self) -> None:
        sleep = FakeSleep()
        call, calls = failing_then_ok(
            [
                ServerError("boom", status_code=502),
                RateLimitError("slow", retry_after=5),
                NetworkError("reset"),
            ]
        )

        assert await call_with_retry(call, max_retries=3, sleep=sleep) == "ok"
        assert calls["count"] == 4
        assert sleep.delays == [1.0, 5.0, 4.0]

    @pytest.mark.asyncio
    async def test_non_retryable_raised_immediately(self) -> None:
        sleep = FakeSleep()
        call, calls = failing_then_ok([AuthenticationError("bad key", status_code=401)])

        with pytest.raises(AuthenticationError):
            await call_with_retry(call, sleep=sleep)

        assert calls["count"] == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self) -> None:
        sleep = FakeSleep()
        errors = [ServerError(f"boom {i}", status_code=500) for i in range(5)]
        call, calls = failing_then_ok(errors)

        with pytest.raises(ServerError, match="boom 2"):
            await call_with_retry(call, max_retries=2, sleep=sleep)

        assert calls["count"] == 3
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_with_client(self, respx_mock: MockRouter) -> None:
        """Rate-limited call succeeds on the retry."""
        sleep = FakeSleep()
        respx_mock.post(f"{TEST_BASE_URL}/pricing/in-network").mock(
            side_effect=[
                httpx.Response(429, headers={"Retry-After": "2"}),
                httpx.Response(
                    200,
                    json={
                        "data": {"1043566623": []},
                        "meta": {"requestId": "req_retry", "processingTimeMs": 10},
                    },
                ),
            ]
        )
        request = PricingRequest.build(npis=["1043566623"], condition_code="99214")

        async with DocarooClient("key", base_url=TEST_BASE_URL) as client:
            response = await call_with_retry(
                lambda: client.pricing.get_in_network_rates(request), sleep=sleep
            )

        assert response.meta.request_id == "req_retry"
        assert sleep.delays == [2.0]
