#!/usr/bin/env python3
"""Show how Docaroo errors are classified and retried.

Uses DOCAROO_API_KEY when set, otherwise a placeholder key (which the API
rejects, demonstrating AuthenticationError).
"""

from __future__ import annotations

import asyncio
import logging
import os

from docaroo import (
    AuthenticationError,
    DocarooClient,
    DocarooError,
    InvalidRequestError,
    PricingRequest,
    call_with_retry,
)


def describe(error: DocarooError) -> None:
    print(f"  {type(error).__name__}: {error}")
    if error.request_id():
        print(f"  Request ID: {error.request_id()}")
    print(f"  Is retryable: {error.is_retryable()}")


async def run() -> int:
    api_key = os.getenv("DOCAROO_API_KEY", "demo-key-for-testing")

    print("Example 1: Invalid requests are rejected locally")
    print("-" * 48)
    invalid_cases = [
        ([], "Empty NPI list"),
        ([f"{i:010d}" for i in range(15)], "Too many NPIs"),
        (["ABCDEFGHIJ"], "Non-numeric NPI"),
        (["1043566623", "1043566623"], "Duplicate NPI"),
    ]
    for npis, description in invalid_cases:
        print(f"\nTesting: {description}")
        try:
            PricingRequest.build(npis=npis, condition_code="99214")
        except InvalidRequestError as e:
            describe(e)

    request = PricingRequest.build(npis=["1043566623"], condition_code="99214")

    print("\n\nExample 2: Authentication failure")
    print("-" * 48)
    async with DocarooClient("invalid-api-key") as bad_client:
        try:
            await bad_client.pricing.get_in_network_rates(request)
            print("  Unexpected success")
        except AuthenticationError as e:
            describe(e)
            print("  Action: Check your API key")
        except DocarooError as e:
            describe(e)

    print("\n\nExample 3: Retrying transient errors")
    print("-" * 48)
    async with DocarooClient(api_key) as client:
        try:
            response = await call_with_retry(
                lambda: client.pricing.get_in_network_rates(request),
                max_retries=3,
                max_delay=30,
            )
            print(f"  Success! Found {len(response.data)} NPIs with data")
        except DocarooError as e:
            print("  Non-retryable error or max retries reached:")
            describe(e)

    return 0


def main():
    """Main entry point."""
    logging.basicConfig(level=logging.WARNING)
    return asyncio.run(run())


if __name__ == "__main__":
    exit(main())
