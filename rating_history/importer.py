"""
Rating history import orchestration.

Walks a player's monthly archives one at a time: fetch, reconstruct, merge.
Failures are contained to the month they occur in. Progress is monotonic:
every merged month stays merged, even if the run is cancelled later on.
"""

import sqlite3
import threading
from dataclasses import asdict, dataclass
from typing import Optional

import requests

from .aggregation import reconstruct_month
from .archives import resolve_archives
from .extraction import TRACKED_MODES
from .games import (
    BASE_RETRY_DELAY,
    MAX_RETRIES,
    REQUEST_DELAY,
    ImportCancelled,
    fetch_monthly_games,
    wait_interruptibly,
)
from .series import RatingSeries, format_series
from .storage import (
    MERGED_FIELDS,
    DailyRatingRecord,
    count_daily_ratings,
    merge_daily_ratings,
)

STATUS_COMPLETED = "completed"
STATUS_NO_DATA = "no_data"
STATUS_CANCELLED = "cancelled"


@dataclass
class ImportResult:
    """Summary of an import run."""
    status: str
    months_processed: int = 0
    games_processed: int = 0
    ratings_recorded: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def _walk_archives(
    username: str,
    start_year: int,
    start_month: int,
    end_year: Optional[int],
    end_month: Optional[int],
    on_month,
    session: Optional[requests.Session],
    request_delay: float,
    max_retries: int,
    base_delay: float,
    cancel_event: Optional[threading.Event],
    sort_by_end_time: bool,
) -> ImportResult:
    """
    Shared archive loop for persisted and guest imports.

    ``on_month(daily)`` receives each month's reconstructed partial records.
    """
    archives = resolve_archives(
        username, start_year, start_month, end_year, end_month, session=session
    )
    if not archives:
        print(f"  No archives found for {username} in the specified range")
        return ImportResult(status=STATUS_NO_DATA)

    print(f"Processing {len(archives)} archive months for {username}")

    result = ImportResult(status=STATUS_COMPLETED)
    fetched_any = False

    for archive in archives:
        try:
            if fetched_any:
                wait_interruptibly(request_delay, cancel_event)
            fetched_any = True

            games = fetch_monthly_games(
                username,
                archive.year,
                archive.month,
                session=session,
                max_retries=max_retries,
                base_delay=base_delay,
                cancel_event=cancel_event,
            )
            if games is None:
                print(f"  Skipping {archive.year}/{archive.month:02d}: fetch failed")
                continue

            month = reconstruct_month(username, games, sort_by_end_time=sort_by_end_time)
            on_month(month.daily)

            result.months_processed += 1
            result.games_processed += month.games_processed
            print(
                f"  Processed {archive.year}/{archive.month:02d}: "
                f"{month.games_processed} games, {len(month.daily)} days"
            )
        except ImportCancelled:
            print(f"  Import cancelled after {result.months_processed} months")
            result.status = STATUS_CANCELLED
            break
        except Exception as e:
            print(f"  Error processing archive {archive.url}: {e}")

    return result


def import_historical_data(
    conn: sqlite3.Connection,
    username: str,
    start_year: int,
    start_month: int,
    end_year: Optional[int] = None,
    end_month: Optional[int] = None,
    session: Optional[requests.Session] = None,
    request_delay: float = REQUEST_DELAY,
    max_retries: int = MAX_RETRIES,
    base_delay: float = BASE_RETRY_DELAY,
    cancel_event: Optional[threading.Event] = None,
    sort_by_end_time: bool = False,
) -> ImportResult:
    """
    Import a player's rating history for a month range into the store.

    Args:
        conn: Rating store connection (see init_rating_store).
        username: Chess.com username.
        start_year: First year of the range.
        start_month: First month of the range (1-12).
        end_year: Last year (None = current year).
        end_month: Last month (None = current month).
        session: Optional requests session.
        request_delay: Fixed pause between month requests, in seconds.
        max_retries: Attempts per month while rate limited.
        base_delay: Backoff base delay in seconds.
        cancel_event: Set to abort the run at the next wait.
        sort_by_end_time: Sort each month's games by end_time first.

    Returns:
        ImportResult. ``months_processed`` counts months whose games were
        retrieved, including empty and not-found months; months that failed
        to fetch are skipped and not counted.
    """
    print(
        f"Starting historical import for {username} from {start_year}/{start_month:02d} "
        f"to {end_year or 'now'}/{end_month or 'now'}"
    )

    def merge(daily):
        merge_daily_ratings(conn, username, daily)

    result = _walk_archives(
        username, start_year, start_month, end_year, end_month,
        on_month=merge,
        session=session,
        request_delay=request_delay,
        max_retries=max_retries,
        base_delay=base_delay,
        cancel_event=cancel_event,
        sort_by_end_time=sort_by_end_time,
    )

    if result.status != STATUS_NO_DATA:
        result.ratings_recorded = count_daily_ratings(conn, username)

    print(
        f"Import {result.status}. Months: {result.months_processed}, "
        f"Games: {result.games_processed}, Ratings: {result.ratings_recorded}"
    )
    return result


def _combine_in_memory(combined: dict, daily: dict) -> None:
    """Non-destructive merge of partial records into an in-memory map."""
    for on_date, partial in daily.items():
        existing = combined.get(on_date)
        if existing is None:
            combined[on_date] = partial
            continue
        for field_name in MERGED_FIELDS:
            value = getattr(partial, field_name)
            if value is not None:
                setattr(existing, field_name, value)


def fetch_guest_history(
    username: str,
    start_year: int,
    start_month: int,
    end_year: Optional[int] = None,
    end_month: Optional[int] = None,
    session: Optional[requests.Session] = None,
    request_delay: float = REQUEST_DELAY,
    max_retries: int = MAX_RETRIES,
    base_delay: float = BASE_RETRY_DELAY,
    cancel_event: Optional[threading.Event] = None,
    sort_by_end_time: bool = False,
) -> tuple[RatingSeries, ImportResult]:
    """
    Reconstruct a player's history without storing it.

    Returns:
        (dense series over the reconstructed days, run summary). For guest
        runs ``ratings_recorded`` is the number of days with data.
    """
    print(f"Fetching guest history for {username}")

    combined: dict = {}
    result = _walk_archives(
        username, start_year, start_month, end_year, end_month,
        on_month=lambda daily: _combine_in_memory(combined, daily),
        session=session,
        request_delay=request_delay,
        max_retries=max_retries,
        base_delay=base_delay,
        cancel_event=cancel_event,
        sort_by_end_time=sort_by_end_time,
    )

    records = [combined[d] for d in sorted(combined)]
    result.ratings_recorded = len(records)
    return format_series(records, TRACKED_MODES), result


def fetch_month_history(
    username: str,
    year: int,
    month: int,
    session: Optional[requests.Session] = None,
    max_retries: int = MAX_RETRIES,
    base_delay: float = BASE_RETRY_DELAY,
    sort_by_end_time: bool = False,
) -> list[DailyRatingRecord]:
    """
    Reconstruct one month of daily ratings from the API, without storing.

    Returns:
        Daily partial records ascending by date; empty if the month has no
        games or could not be fetched.
    """
    games = fetch_monthly_games(
        username, year, month,
        session=session,
        max_retries=max_retries,
        base_delay=base_delay,
    )
    if not games:
        return []

    month_result = reconstruct_month(username, games, sort_by_end_time=sort_by_end_time)
    return [month_result.daily[d] for d in sorted(month_result.daily)]


def refresh_month(
    conn: sqlite3.Connection,
    username: str,
    year: int,
    month: int,
    session: Optional[requests.Session] = None,
    max_retries: int = MAX_RETRIES,
    base_delay: float = BASE_RETRY_DELAY,
    sort_by_end_time: bool = False,
) -> list[DailyRatingRecord]:
    """
    Re-fetch a single month and merge it into the store.

    Returns:
        The month's reconstructed partial records.
    """
    records = fetch_month_history(
        username, year, month,
        session=session,
        max_retries=max_retries,
        base_delay=base_delay,
        sort_by_end_time=sort_by_end_time,
    )
    merge_daily_ratings(conn, username, {record.date: record for record in records})
    print(f"  Saved {len(records)} daily ratings for {year}/{month:02d}")
    return records
