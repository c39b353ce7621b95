#!/usr/bin/env python3
"""
Import and inspect chess.com rating history.

Subcommands:
    import   Reconstruct a month range and merge it into the store
    refresh  Re-fetch a single month and merge it
    guest    Reconstruct a month range without storing (summary / CSV / chart)
    stats    Show what is stored for a user
    export   Write a JSON snapshot of stored history

Usage:
    python scripts/import_rating_history.py import --username hikaru --start 2023-01
    python scripts/import_rating_history.py refresh --username hikaru --month 2024-05
    python scripts/import_rating_history.py guest --username hikaru --start 2024-01 --csv out.csv
    python scripts/import_rating_history.py stats --username hikaru
    python scripts/import_rating_history.py export --username hikaru --output snapshot.json
"""

import argparse
import json
import os
import sys
from datetime import date
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

from rating_history import (
    build_snapshot,
    count_daily_ratings,
    fetch_guest_history,
    format_series,
    get_all_rating_history,
    get_rating_store_path,
    import_historical_data,
    init_rating_store,
    latest_ratings,
    refresh_month,
    series_to_dataframe,
)

load_dotenv()


def log(msg: str):
    """Print with flush to ensure output is visible."""
    print(msg, flush=True)


def parse_year_month(value: str) -> tuple[int, int]:
    """Parse YYYY-MM into (year, month)."""
    try:
        year_str, month_str = value.split("-")
        year, month = int(year_str), int(month_str)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected YYYY-MM, got {value!r}")
    if not 1 <= month <= 12:
        raise argparse.ArgumentTypeError("Month must be between 1 and 12")
    return year, month


def parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected YYYY-MM-DD, got {value!r}")


def cmd_import(args, conn) -> int:
    start_year, start_month = args.start
    end_year, end_month = args.end if args.end else (None, None)

    result = import_historical_data(
        conn, args.username, start_year, start_month, end_year, end_month,
        sort_by_end_time=args.sort_by_end_time,
    )

    log(f"\n{'='*60}")
    log("Import Results")
    log(f"{'='*60}")
    log(f"  Status: {result.status}")
    log(f"  Months processed: {result.months_processed}")
    log(f"  Games processed: {result.games_processed}")
    log(f"  Daily ratings stored: {result.ratings_recorded}")
    return 0


def cmd_refresh(args, conn) -> int:
    year, month = args.month
    records = refresh_month(
        conn, args.username, year, month, sort_by_end_time=args.sort_by_end_time
    )
    for record in records:
        log(
            f"  {record.date}  rapid={record.rapid_rating}  "
            f"blitz={record.blitz_rating}  bullet={record.bullet_rating}"
        )
    return 0


def cmd_guest(args, conn) -> int:
    start_year, start_month = args.start
    end_year, end_month = args.end if args.end else (None, None)

    series, result = fetch_guest_history(
        args.username, start_year, start_month, end_year, end_month,
        sort_by_end_time=args.sort_by_end_time,
    )

    log(f"\n  Status: {result.status}")
    log(f"  Games processed: {result.games_processed}")
    log(f"  Days with data: {result.ratings_recorded}")
    if series.labels:
        log(f"  Range: {series.labels[0]} -> {series.labels[-1]} ({len(series.labels)} days)")
        for mode, rating in latest_ratings(series).items():
            log(f"  Latest {mode}: {rating}")

    if args.csv:
        series_to_dataframe(series).to_csv(args.csv)
        log(f"  Wrote {args.csv}")
    if args.chart:
        from rating_history.visualization import save_rating_chart
        save_rating_chart(series, args.chart, title=f"{args.username} rating history")
        log(f"  Wrote {args.chart}")
    return 0


def cmd_stats(args, conn) -> int:
    history = get_all_rating_history(conn, args.username)
    log(f"\n{'='*60}")
    log(f"Stored History: {args.username}")
    log(f"{'='*60}")
    log(f"  Days stored: {count_daily_ratings(conn, args.username)}")
    if not history:
        log("  No history stored. Run the import subcommand first.")
        return 0

    series = format_series(history)
    log(f"  First day: {history[0].date}")
    log(f"  Last day: {history[-1].date}")
    log(f"  Calendar days spanned: {len(series.labels)}")
    for mode, values in series.values.items():
        days_with_data = sum(1 for value in values if value is not None)
        log(f"  {mode}: {days_with_data} days, latest {latest_ratings(series)[mode]}")
    return 0


def cmd_export(args, conn) -> int:
    snapshot = build_snapshot(conn, args.username, args.start_date, args.end_date)
    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, "w") as f:
        json.dump(snapshot, f, indent=2)
    log(f"  Wrote {snapshot['count']} records to {output}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Reconstruct chess.com rating history",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--username",
        default=os.getenv("RATING_HISTORY_USERNAME"),
        help="Chess.com username (default: $RATING_HISTORY_USERNAME)",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Path to rating store (default: data/rating_history.db)",
    )
    parser.add_argument(
        "--sort-by-end-time",
        action="store_true",
        help="Sort each month's games by end time instead of trusting API order",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    p_import = subparsers.add_parser("import", help="Import a month range into the store")
    p_import.add_argument("--start", type=parse_year_month, default=(2020, 1), help="YYYY-MM")
    p_import.add_argument("--end", type=parse_year_month, default=None, help="YYYY-MM (default: now)")
    p_import.set_defaults(func=cmd_import)

    p_refresh = subparsers.add_parser("refresh", help="Re-fetch a single month")
    p_refresh.add_argument("--month", type=parse_year_month, required=True, help="YYYY-MM")
    p_refresh.set_defaults(func=cmd_refresh)

    p_guest = subparsers.add_parser("guest", help="Reconstruct without storing")
    p_guest.add_argument("--start", type=parse_year_month, default=(2020, 1), help="YYYY-MM")
    p_guest.add_argument("--end", type=parse_year_month, default=None, help="YYYY-MM (default: now)")
    p_guest.add_argument("--csv", type=Path, default=None, help="Write dense series to CSV")
    p_guest.add_argument("--chart", type=Path, default=None, help="Write chart image (PNG)")
    p_guest.set_defaults(func=cmd_guest)

    p_stats = subparsers.add_parser("stats", help="Show stored history summary")
    p_stats.set_defaults(func=cmd_stats)

    p_export = subparsers.add_parser("export", help="Write a JSON snapshot")
    p_export.add_argument("--output", type=Path, required=True)
    p_export.add_argument("--start-date", type=parse_date, default=None, help="YYYY-MM-DD")
    p_export.add_argument("--end-date", type=parse_date, default=None, help="YYYY-MM-DD")
    p_export.set_defaults(func=cmd_export)

    args = parser.parse_args()

    if not args.username:
        parser.error("--username is required (or set RATING_HISTORY_USERNAME)")

    store_path = args.db if args.db else get_rating_store_path()
    log(f"Store: {store_path}")
    conn = init_rating_store(store_path)
    try:
        return args.func(args, conn)
    finally:
        conn.close()


if __name__ == "__main__":
    sys.exit(main())
