"""
Archive discovery and month-range filtering.
"""

from datetime import datetime, timezone
from typing import NamedTuple, Optional

import requests

from .games import fetch_archives


class ArchiveReference(NamedTuple):
    """One monthly archive of a player's games."""
    year: int
    month: int
    url: str


def month_key(year: int, month: int) -> int:
    """Comparable integer for a year/month pair (YYYYMM)."""
    return year * 100 + month


def is_month_in_range(
    year: int,
    month: int,
    start_year: int,
    start_month: int,
    end_year: int,
    end_month: int,
) -> bool:
    """Check if year/month falls within [start, end], inclusive."""
    current = month_key(year, month)
    return month_key(start_year, start_month) <= current <= month_key(end_year, end_month)


def parse_archive_url(url: str) -> Optional[tuple[int, int]]:
    """
    Parse year and month from an archive URL.

    Format: https://api.chess.com/pub/player/{username}/games/YYYY/MM

    Returns:
        (year, month) or None if the trailing segments are not numeric.
    """
    parts = url.rstrip("/").split("/")
    if len(parts) < 2:
        return None
    try:
        return int(parts[-2]), int(parts[-1])
    except ValueError:
        return None


def current_year_month() -> tuple[int, int]:
    now = datetime.now(timezone.utc)
    return now.year, now.month


def filter_archives(
    archive_urls: list[str],
    start_year: int,
    start_month: int,
    end_year: int,
    end_month: int,
) -> list[ArchiveReference]:
    """
    Keep archives inside the inclusive month range, preserving input order.

    Malformed URLs are skipped with a warning. Duplicate URLs are kept once.
    """
    valid = []
    seen = set()

    for url in archive_urls:
        if url in seen:
            continue
        parsed = parse_archive_url(url)
        if parsed is None:
            print(f"  Warning: Could not parse year/month from archive URL: {url}")
            continue
        year, month = parsed
        if is_month_in_range(year, month, start_year, start_month, end_year, end_month):
            valid.append(ArchiveReference(year, month, url))
            seen.add(url)

    return valid


def resolve_archives(
    username: str,
    start_year: int,
    start_month: int,
    end_year: Optional[int] = None,
    end_month: Optional[int] = None,
    session: Optional[requests.Session] = None,
) -> list[ArchiveReference]:
    """
    List the player's archives that fall inside a month range.

    Args:
        username: Chess.com username.
        start_year: First year of the range.
        start_month: First month of the range (1-12).
        end_year: Last year of the range (None = current year).
        end_month: Last month of the range (None = current month).
        session: Optional requests session.

    Returns:
        Archive references in API order. Empty means nothing to import.
    """
    now_year, now_month = current_year_month()
    if end_year is None:
        end_year = now_year
    if end_month is None:
        end_month = now_month

    archive_urls = fetch_archives(username, session=session)
    archives = filter_archives(archive_urls, start_year, start_month, end_year, end_month)

    print(
        f"  {len(archives)} archives in range "
        f"{start_year}/{start_month:02d} - {end_year}/{end_month:02d}"
    )
    return archives
