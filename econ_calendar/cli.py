"""Command-line entry point: print one calendar/series payload as JSON.

Run with:  python -m econ_calendar.cli --provider fred --action series --series-id UNRATE
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from .config import CalendarConfig
from .dispatcher import create_economic_calendar
from .models import Action, Provider


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="econ-calendar",
        description="Fetch economic calendar events or series observations.",
    )
    parser.add_argument("--provider", choices=[p.value for p in Provider])
    parser.add_argument("--action", choices=[a.value for a in Action], default="calendar")
    parser.add_argument("--country", help="Country or comma-separated list (e.g. 'united states').")
    parser.add_argument("--start-date", help="YYYY-MM-DD, defaults to today (UTC).")
    parser.add_argument("--end-date", help="YYYY-MM-DD, defaults to start + look-ahead.")
    parser.add_argument("--importance", type=int, choices=[1, 2, 3])
    parser.add_argument("--event", help="Case-insensitive event name filter.")
    parser.add_argument("--max-events", type=int)
    parser.add_argument(
        "--series-id", action="append", dest="series_ids", default=[],
        help="Series id for --action series (repeatable).",
    )
    parser.add_argument("--timeout", type=float, help="Request timeout in seconds.")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    settings = {"provider": args.provider} if args.provider else {}
    if args.timeout is not None:
        settings["timeoutSeconds"] = args.timeout
    config = CalendarConfig.from_mapping(settings)
    calendar = create_economic_calendar(config)
    if calendar is None:
        print(json.dumps({"error": "disabled", "message": "economic_calendar is disabled."}))
        return 1

    params = {
        "provider": args.provider,
        "action": args.action,
        "country": args.country,
        "startDate": args.start_date,
        "endDate": args.end_date,
        "importance": args.importance,
        "event": args.event,
        "maxEvents": args.max_events,
        "seriesIds": args.series_ids,
    }
    payload = asyncio.run(calendar.run({k: v for k, v in params.items() if v is not None}))
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 1 if "error" in payload else 0


if __name__ == "__main__":
    sys.exit(main())
