"""
Daily rating storage with SQLite.

This module provides:
- The DailyRatingRecord data structure
- Store initialization and schema migration
- Idempotent, non-destructive merging of reconstructed daily ratings
- Read paths for history queries and snapshot export

One row per (username, date). Rating columns are nullable: NULL means no data
for that mode on that day and is never the same as a rating of 0.
"""

import sqlite3
import time
from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

RATING_FIELDS = ("rapid_rating", "blitz_rating", "bullet_rating", "puzzle_rating")

# Fields written by game reconstruction. puzzle_rating comes from the
# current-stats path only.
MERGED_FIELDS = ("rapid_rating", "blitz_rating", "bullet_rating")

SNAPSHOT_START_DATE = date(2020, 6, 9)


# =============================================================================
# Data Structures
# =============================================================================

@dataclass
class DailyRatingRecord:
    """Ratings for one player on one calendar day."""
    username: str
    date: date
    rapid_rating: Optional[int] = None
    blitz_rating: Optional[int] = None
    bullet_rating: Optional[int] = None
    puzzle_rating: Optional[int] = None

    def get_rating(self, mode: str) -> Optional[int]:
        return getattr(self, f"{mode}_rating")

    def set_rating(self, mode: str, rating: Optional[int]) -> None:
        setattr(self, f"{mode}_rating", rating)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["date"] = self.date.isoformat()
        return data


# =============================================================================
# Store Setup
# =============================================================================

def get_rating_store_path(data_dir: Path = Path("data")) -> Path:
    """Get path to the rating store at data/rating_history.db."""
    return data_dir / "rating_history.db"


def init_rating_store(store_path: str | Path) -> sqlite3.Connection:
    """Initialize SQLite database for daily ratings."""
    if str(store_path) != ":memory:":
        Path(store_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(store_path)
    conn.execute("""
        CREATE TABLE IF NOT EXISTS daily_ratings (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT NOT NULL,
            date TEXT NOT NULL,
            rapid_rating INTEGER,
            blitz_rating INTEGER,
            bullet_rating INTEGER,
            puzzle_rating INTEGER,
            UNIQUE (username, date)
        )
    """)
    conn.commit()

    # Older stores may predate some rating columns
    _migrate_rating_store_schema(conn)

    return conn


def _migrate_rating_store_schema(conn: sqlite3.Connection):
    """Add rating columns to daily_ratings if they don't exist."""
    cursor = conn.execute("PRAGMA table_info(daily_ratings)")
    existing_columns = {row[1] for row in cursor.fetchall()}

    for col_name in RATING_FIELDS:
        if col_name not in existing_columns:
            conn.execute(f"ALTER TABLE daily_ratings ADD COLUMN {col_name} INTEGER")

    conn.commit()


# =============================================================================
# Row Access
# =============================================================================

_SELECT_COLUMNS = "username, date, rapid_rating, blitz_rating, bullet_rating, puzzle_rating"


def _row_to_record(row: tuple) -> DailyRatingRecord:
    return DailyRatingRecord(
        username=row[0],
        date=date.fromisoformat(row[1]),
        rapid_rating=row[2],
        blitz_rating=row[3],
        bullet_rating=row[4],
        puzzle_rating=row[5],
    )


def get_daily_rating(
    conn: sqlite3.Connection,
    username: str,
    on_date: date,
) -> Optional[DailyRatingRecord]:
    """Retrieve the stored record for (username, date) if it exists."""
    cursor = conn.execute(
        f"SELECT {_SELECT_COLUMNS} FROM daily_ratings WHERE username = ? AND date = ?",
        (username.lower(), on_date.isoformat()),
    )
    row = cursor.fetchone()
    if row:
        return _row_to_record(row)
    return None


def save_daily_rating(conn: sqlite3.Connection, record: DailyRatingRecord, commit: bool = True):
    """Insert or fully replace the stored record for (username, date)."""
    conn.execute("""
        INSERT INTO daily_ratings
        (username, date, rapid_rating, blitz_rating, bullet_rating, puzzle_rating)
        VALUES (?, ?, ?, ?, ?, ?)
        ON CONFLICT (username, date) DO UPDATE SET
            rapid_rating = excluded.rapid_rating,
            blitz_rating = excluded.blitz_rating,
            bullet_rating = excluded.bullet_rating,
            puzzle_rating = excluded.puzzle_rating
    """, (
        record.username.lower(),
        record.date.isoformat(),
        record.rapid_rating,
        record.blitz_rating,
        record.bullet_rating,
        record.puzzle_rating,
    ))
    if commit:
        conn.commit()


# =============================================================================
# Merging
# =============================================================================

def merge_daily_rating(
    conn: sqlite3.Connection,
    incoming: DailyRatingRecord,
) -> DailyRatingRecord:
    """
    Merge one partial daily record into the store.

    Fields that are None in ``incoming`` leave the stored value untouched.
    The merge is a single upsert statement, so each date is atomic. Callers
    must still not run concurrent imports for the same user.

    Returns:
        The record as stored after the merge.
    """
    with conn:
        conn.execute("""
            INSERT INTO daily_ratings
            (username, date, rapid_rating, blitz_rating, bullet_rating)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT (username, date) DO UPDATE SET
                rapid_rating = COALESCE(excluded.rapid_rating, daily_ratings.rapid_rating),
                blitz_rating = COALESCE(excluded.blitz_rating, daily_ratings.blitz_rating),
                bullet_rating = COALESCE(excluded.bullet_rating, daily_ratings.bullet_rating)
        """, (
            incoming.username.lower(),
            incoming.date.isoformat(),
            incoming.rapid_rating,
            incoming.blitz_rating,
            incoming.bullet_rating,
        ))

    return get_daily_rating(conn, incoming.username, incoming.date)


def merge_daily_ratings(
    conn: sqlite3.Connection,
    username: str,
    daily: dict[date, DailyRatingRecord],
) -> int:
    """
    Merge a month's reconstructed daily records for a user.

    Each date is merged and committed on its own; there is no all-or-nothing
    transaction across dates.

    Returns:
        Number of dates merged.
    """
    merged = 0
    for on_date, partial in daily.items():
        incoming = DailyRatingRecord(
            username=username,
            date=on_date,
            rapid_rating=partial.rapid_rating,
            blitz_rating=partial.blitz_rating,
            bullet_rating=partial.bullet_rating,
        )
        merge_daily_rating(conn, incoming)
        merged += 1
    return merged


# =============================================================================
# Read Paths
# =============================================================================

def has_rating_history(conn: sqlite3.Connection, username: str) -> bool:
    cursor = conn.execute(
        "SELECT 1 FROM daily_ratings WHERE username = ? LIMIT 1",
        (username.lower(),),
    )
    return cursor.fetchone() is not None


def count_daily_ratings(conn: sqlite3.Connection, username: str) -> int:
    cursor = conn.execute(
        "SELECT COUNT(*) FROM daily_ratings WHERE username = ?",
        (username.lower(),),
    )
    return cursor.fetchone()[0]


def get_all_rating_history(conn: sqlite3.Connection, username: str) -> list[DailyRatingRecord]:
    """All stored records for a user, ascending by date."""
    cursor = conn.execute(
        f"SELECT {_SELECT_COLUMNS} FROM daily_ratings WHERE username = ? ORDER BY date ASC",
        (username.lower(),),
    )
    return [_row_to_record(row) for row in cursor.fetchall()]


def get_rating_history_between(
    conn: sqlite3.Connection,
    username: str,
    start: date,
    end: date,
) -> list[DailyRatingRecord]:
    """Stored records with start <= date <= end, ascending by date."""
    cursor = conn.execute(
        f"SELECT {_SELECT_COLUMNS} FROM daily_ratings "
        "WHERE username = ? AND date BETWEEN ? AND ? ORDER BY date ASC",
        (username.lower(), start.isoformat(), end.isoformat()),
    )
    return [_row_to_record(row) for row in cursor.fetchall()]


def get_recent_rating_history(
    conn: sqlite3.Connection,
    username: str,
    days: int = 90,
    today: Optional[date] = None,
) -> list[DailyRatingRecord]:
    """Stored records from the last ``days`` days (inclusive of today)."""
    if today is None:
        today = datetime.now(timezone.utc).date()
    return get_rating_history_between(conn, username, today - timedelta(days=days), today)


def build_snapshot(
    conn: sqlite3.Connection,
    username: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> dict:
    """
    Build a JSON-serializable snapshot of a user's stored history.

    Lets a front end display history without hitting the store or the API.
    """
    if start is None:
        start = SNAPSHOT_START_DATE
    if end is None:
        end = datetime.now(timezone.utc).date()

    history = get_rating_history_between(conn, username, start, end)

    return {
        "username": username.lower(),
        "generatedAt": int(time.time() * 1000),
        "startDate": start.isoformat(),
        "endDate": end.isoformat(),
        "count": len(history),
        "historicalData": [record.to_dict() for record in history],
    }
