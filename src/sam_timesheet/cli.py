"""Print one month of SAM shifts as JSON or table.

Authenticates when needed, serves the month from store.json when the cache
allows it, and writes the result to stdout.

Run with: python -m sam_timesheet
Month:    python -m sam_timesheet --month 2024-03
Table:    python -m sam_timesheet --table
Offline:  python -m sam_timesheet --cached-only
Reset:    python -m sam_timesheet --clear-error

Credentials come from AH_USERNAME / AH_PASSWORD (environment or .env).

Exit codes:
  0 = success (JSON or table on stdout)
  1 = error (message on stderr)
"""

import argparse
import asyncio
import json
import sys
from datetime import date, datetime

from dotenv import load_dotenv
from pydantic import ValidationError

from sam_timesheet.config import SamConfig, get_config
from sam_timesheet.errors import TimesheetError
from sam_timesheet.logging import setup_logging
from sam_timesheet.models import Month
from sam_timesheet.retriever import TimesheetRetriever
from sam_timesheet.store import JsonStore

TABLE_DAY_FORMAT = "%a %d-%m-%Y"
TABLE_TIME_FORMAT = "%H:%M"


def _log(msg: str) -> None:
    """Write diagnostic messages to stderr so stdout stays clean for JSON."""
    print(msg, file=sys.stderr)


def _month_arg(value: str) -> date:
    """argparse type for YYYY-MM."""
    try:
        return datetime.strptime(value, "%Y-%m").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM, got {value!r}") from None


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments using argparse."""
    parser = argparse.ArgumentParser(
        prog="sam-timesheet",
        description="Get one month of SAM shifts as JSON or table.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--month",
        type=_month_arg,
        default=None,
        help="Target month as YYYY-MM (default: current month).",
    )
    parser.add_argument(
        "--cached-only",
        action="store_true",
        help="Only serve from store.json, never contact the portal.",
    )
    parser.add_argument(
        "--table",
        action="store_true",
        help="Output a human-readable table instead of JSON.",
    )
    parser.add_argument(
        "--clear-error",
        action="store_true",
        help="Clear the sticky 'password was incorrect' flag and exit.",
    )
    return parser.parse_args(argv)


def _format_table(month: Month) -> str:
    """Format a month as a human-readable table.

    Columns: Day | Start | End | Hours
    """
    if not month.parsed:
        return "(no shifts scheduled)"

    headers = ["Day", "Start", "End", "Hours"]

    rows = []
    for shift in month.parsed:
        hours = (shift.end - shift.start).total_seconds() / 3600
        rows.append(
            [
                shift.start.strftime(TABLE_DAY_FORMAT),
                shift.start.strftime(TABLE_TIME_FORMAT),
                shift.end.strftime(TABLE_TIME_FORMAT),
                f"{hours:.2f}",
            ]
        )

    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    header_line = " | ".join(h.ljust(widths[i]) for i, h in enumerate(headers))
    separator = "-+-".join("-" * w for w in widths)
    row_lines = [
        " | ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)) for row in rows
    ]

    return "\n".join([header_line, separator, *row_lines])


def _clear_error(config: SamConfig) -> None:
    store = JsonStore(config.store_path)
    store.read()
    store.data.clear_error()
    store.write()
    _log(f"  Error flag cleared in {config.store_path}")


async def main(args: argparse.Namespace, config: SamConfig) -> int:
    if args.clear_error:
        _clear_error(config)
        return 0

    async with TimesheetRetriever.from_config(config) as retriever:
        if args.cached_only:
            month = retriever.get_cached(args.month)
            if month is None:
                _log("  No fresh cached data for this month")
                return 1
        else:
            if not config.ah_username or not config.ah_password:
                _log("  ERROR: AH_USERNAME and AH_PASSWORD must be set")
                return 1
            month = await retriever.get(args.month)

    if args.table:
        print(_format_table(month))
    else:
        print(json.dumps(month.model_dump(mode="json"), indent=2))
    return 0


def run(argv: list[str] | None = None) -> None:
    load_dotenv()
    args = _parse_args(argv)
    try:
        config = get_config()
    except ValidationError as e:
        print(f"ERROR: invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)
    setup_logging(json_output=config.log_json, log_level=config.log_level)
    try:
        code = asyncio.run(main(args, config))
    except TimesheetError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    run()
