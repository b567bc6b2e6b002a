#!/usr/bin/env python3
"""Look up in-network contracted rates for one or more providers.

Requires DOCAROO_API_KEY in the environment.

Usage:
    python scripts/pricing_lookup.py 1043566623 1972767655 --code 99214
    python scripts/pricing_lookup.py 1043566623 --code J0180 --code-type HCPCS
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from docaroo import CodeType, DocarooClient, DocarooError, PricingRequest
from docaroo.models import DEFAULT_PLAN_ID


async def lookup(args: argparse.Namespace) -> int:
    request = PricingRequest.build(
        npis=args.npis,
        condition_code=args.code,
        plan_id=args.plan_id,
        code_type=args.code_type,
    )

    async with DocarooClient.from_env() as client:
        response = await client.pricing.get_in_network_rates(request)

    meta = response.meta
    print(f"Request ID: {meta.request_id}")
    print(f"Payer: {meta.payer or 'N/A'}  Plan: {meta.plan_id or request.plan_id}")
    print(f"Processing time: {meta.processing_time_ms}ms")
    if meta.in_network_records_count is not None:
        print(f"In-network records: {meta.in_network_records_count:,}")

    for npi in request.npis:
        rates = response.rates_for(npi)
        print(f"\nNPI {npi}: {len(rates)} rates found")
        for rate in rates:
            low = f"${rate.min_rate:.2f}" if rate.min_rate is not None else "N/A"
            high = f"${rate.max_rate:.2f}" if rate.max_rate is not None else "N/A"
            print(f"  {rate.code} ({rate.code_type}, {rate.negotiated_type or 'n/a'})")
            print(f"    Min: {low}, Max: {high}, Avg: ${rate.avg_rate:.2f}")
            if rate.instances is not None:
                print(f"    Instances: {rate.instances}")

    return 0


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Docaroo in-network rate lookup")
    parser.add_argument("npis", nargs="+", help="Provider NPIs (up to 10)")
    parser.add_argument("--code", required=True, help="Billing code, e.g. 99214")
    parser.add_argument(
        "--code-type",
        default=CodeType.CPT.value,
        choices=[c.value for c in CodeType],
        help="Billing code standard (default: CPT)",
    )
    parser.add_argument(
        "--plan-id",
        default=DEFAULT_PLAN_ID,
        help=f"Insurance plan identifier (default: {DEFAULT_PLAN_ID})",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        return asyncio.run(lookup(args))
    except DocarooError as e:
        print(f"Error: {e}")
        if e.request_id():
            print(f"Request ID for support: {e.request_id()}")
        return 1


if __name__ == "__main__":
    exit(main())
