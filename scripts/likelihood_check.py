#!/usr/bin/env python3
"""Rank providers by how likely they are to perform a procedure.

Requires DOCAROO_API_KEY in the environment.

Usage:
    python scripts/likelihood_check.py 1487648176 1043566623 --code 99214
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from docaroo import DocarooClient, DocarooError, likelihood_label


async def check(args: argparse.Namespace) -> int:
    async with DocarooClient.from_env() as client:
        response = await client.procedures.check_providers(
            args.npis, args.code, args.code_type
        )

    print(f"Request ID: {response.meta.request_id}")
    print(f"Processing time: {response.meta.processing_time_ms}ms")
    if response.meta.out_of_network_records_count is not None:
        print(
            "Out-of-network records analyzed: "
            f"{response.meta.out_of_network_records_count:,}"
        )

    print(f"\nRanked by likelihood for {args.code_type} {args.code}:")
    for rank, (npi, score) in enumerate(response.ranked(), start=1):
        print(f"{rank}. NPI {npi}: {score * 100:.1f}% - {likelihood_label(score)}")

    missing = [npi for npi in args.npis if npi not in response.data]
    if missing:
        print(f"\nNo score returned for: {', '.join(missing)}")

    return 0


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Docaroo procedure likelihood check")
    parser.add_argument("npis", nargs="+", help="Provider NPIs (up to 10)")
    parser.add_argument("--code", required=True, help="Billing code, e.g. 99214")
    parser.add_argument(
        "--code-type", default="CPT", help="Billing code standard (default: CPT)"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        return asyncio.run(check(args))
    except DocarooError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    exit(main())
