#!/usr/bin/env python3
"""Send one hit to the measurement protocol validation endpoint.

The debug endpoint never records data; it replies with a JSON report
describing whether the hit would have been accepted.

Usage::

    python scripts/send_test_hit.py UA-12345-1 --screen Home -v
    python scripts/send_test_hit.py UA-12345-1 --event ui click --label ok
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from pyanalytics import AnalyticsConfig, AnalyticsManager, HitFailed, HitMalformed, HitSent


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Validate a hit against the debug collection endpoint.")
    parser.add_argument("property_id", help="Tracking property id, e.g. UA-12345-1")
    kind = parser.add_mutually_exclusive_group()
    kind.add_argument("--screen", default="Home", help="Screen name for a screenview hit (default: Home)")
    kind.add_argument("--event", nargs=2, metavar=("CATEGORY", "ACTION"), help="Send an event hit instead")
    parser.add_argument("--label", default="", help="Event label")
    parser.add_argument("--value", type=int, default=0, help="Event value")
    parser.add_argument("--get", action="store_true", help="Send as GET instead of POST")
    parser.add_argument("--insecure", action="store_true", help="Use the plain HTTP endpoint")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser.parse_args()


async def main() -> int:
    args = _parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    config = AnalyticsConfig.from_env(
        debug=True,
        post_data=not args.get,
        secure=not args.insecure,
        max_retries=0,
    )
    outcome: list[HitSent | HitFailed | HitMalformed] = []

    async with AnalyticsManager(
        config,
        on_hit_sent=outcome.append,
        on_hit_failed=outcome.append,
        on_hit_malformed=outcome.append,
    ) as manager:
        tracker = manager.create_tracker(args.property_id)
        if args.event:
            category, action = args.event
            tracker.send_event(category, action, args.label, args.value)
        else:
            tracker.send_screen_view(args.screen)
        remaining = await manager.flush()

    if not outcome:
        print("No exchange took place (opted out?)", file=sys.stderr)
        return 1

    result = outcome[-1]
    if isinstance(result, HitSent):
        try:
            print(json.dumps(json.loads(result.response), indent=2))
        except json.JSONDecodeError:
            print(result.response)
        return 0

    if isinstance(result, HitMalformed):
        print(f"Rejected with HTTP {result.status_code}: {result.response}", file=sys.stderr)
    else:
        print(f"Failed: {result.error_message}", file=sys.stderr)
    print(f"{remaining} hit(s) left unsent", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
