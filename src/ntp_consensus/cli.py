"""Command-line entry point: print the NTP consensus time."""

import argparse
import asyncio
import logging
import sys
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import ValidationError

from ntp_consensus.config import get_config
from ntp_consensus.errors import FallbackFailed
from ntp_consensus.ntp_client import NTPClient
from ntp_consensus.oracle import compare_system_clock, get_accurate_time


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ntp-consensus",
        description="Print the current time as agreed by several NTP servers.",
    )
    parser.add_argument(
        "-s",
        "--server",
        dest="servers",
        action="append",
        metavar="HOST",
        help="NTP server to include in the consensus (repeatable; replaces the defaults)",
    )
    parser.add_argument("--fallback", metavar="HOST", help="server to use if the consensus fails")
    parser.add_argument("--timeout", type=float, help="per-query timeout in seconds")
    parser.add_argument("--timezone", metavar="IANA_NAME", help="render the time in this zone")
    parser.add_argument(
        "--compare", action="store_true", help="also report how far the system clock is off"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log consensus details")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    # stdout carries only the result; diagnostics go to stderr
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s:%(name)s:%(message)s",
        stream=sys.stderr,
    )

    if args.timezone:
        try:
            ZoneInfo(args.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            print(f"error: unknown timezone {args.timezone}", file=sys.stderr)
            sys.exit(2)

    try:
        config = get_config(
            ntp_servers=args.servers,
            fallback_server=args.fallback,
            ntp_timeout=args.timeout,
        )
    except ValidationError as e:
        print(f"error: invalid configuration: {e}", file=sys.stderr)
        sys.exit(2)

    client = NTPClient(timeout=config.ntp_timeout)

    try:
        result = asyncio.run(get_accurate_time(config, client, tz_name=args.timezone))
    except FallbackFailed as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)

    print(result.iso8601_time)

    if args.compare:
        comparison = compare_system_clock(result.offset_ns)
        print(f"{comparison.status.value} {comparison.delta_ms:+.3f}ms")


if __name__ == "__main__":
    main()
