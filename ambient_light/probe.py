#!/usr/bin/env python3
"""
Standalone probe for an HTTP ambient light endpoint.

Fetches a URL, extracts the lux value with the same pattern rules the
service uses, and prints it. Handy for checking a statusPattern before
putting it into the accessories file.

Usage:
    ambient-light-probe http://sensor.local/lux
    ambient-light-probe http://sensor.local/lux --pattern 'lux=([0-9.]+)'
    ambient-light-probe http://sensor.local/lux --interval 5
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime, timezone

from .core.errors import ConfigError, SensorError
from .domain.extractor import DEFAULT_STATUS_PATTERN, extract_value, parse_pattern
from .drivers.http_fetch import HttpFetcher, parse_url_property


async def probe_once(fetcher: HttpFetcher, url: str, pattern, group: int) -> float:
    result = await fetcher.get(parse_url_property(url))
    if not result.ok:
        raise SensorError(f"Got http error code {result.status_code}")
    logging.debug("body: %r", result.body)
    return extract_value(pattern, result.body, group)


async def run(args: argparse.Namespace) -> int:
    log = logging.getLogger("probe")
    try:
        pattern = parse_pattern(args.pattern) if args.pattern else DEFAULT_STATUS_PATTERN
        parse_url_property(args.url)
    except ConfigError as e:
        log.error("%s", e)
        return 2

    fetcher = HttpFetcher(timeout=args.timeout)
    failures = 0
    while True:
        ts = datetime.now(timezone.utc).strftime("%H:%M:%S")
        try:
            value = await probe_once(fetcher, args.url, pattern, args.group)
            print(f"[{ts}] lux={value:g}")
        except SensorError as e:
            failures += 1
            log.warning("[%s] probe failed: %s", ts, e)

        if args.interval <= 0:
            return 1 if failures else 0
        await asyncio.sleep(args.interval)


def main() -> None:
    p = argparse.ArgumentParser(description="Fetch and extract an ambient light reading")

    p.add_argument("url", help="Endpoint returning the reading")
    p.add_argument("--pattern", default=None,
                   help="Regular expression (or /literal/flags); default matches a signed decimal")
    p.add_argument("--group", type=int, default=1, help="Capture group holding the value")
    p.add_argument("--timeout", type=float, default=10.0, help="Request timeout in seconds")
    p.add_argument("--interval", type=float, default=0.0,
                   help="Repeat every N seconds (default: probe once)")

    p.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    args = p.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-5s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        sys.exit(asyncio.run(run(args)))
    except KeyboardInterrupt:
        logging.getLogger("probe").info("Shutting down")


if __name__ == "__main__":
    main()
