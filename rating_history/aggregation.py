"""
Daily aggregation of rating events.

Reduces a month of games to one partial record per calendar day, keeping
the last rating seen for each mode. "Last" is relative to the order games
are supplied in; chess.com returns a month's games in ascending end_time
order.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from .extraction import RatingEvent, extract_rating_event
from .storage import DailyRatingRecord


@dataclass
class MonthReconstruction:
    """Result of reducing one month of games."""
    daily: dict = field(default_factory=dict)  # date -> DailyRatingRecord
    games_processed: int = 0  # games that produced a rating event
    games_skipped: int = 0  # malformed games


def aggregate_daily_ratings(
    username: str,
    events: Iterable[RatingEvent],
) -> dict[date, DailyRatingRecord]:
    """
    Fold rating events into per-day partial records.

    Dates appear in order of first occurrence. For each date and mode the
    last event wins; modes without events stay None.
    """
    daily: dict[date, DailyRatingRecord] = {}
    for event in events:
        record = daily.get(event.date)
        if record is None:
            record = DailyRatingRecord(username=username.lower(), date=event.date)
            daily[event.date] = record
        record.set_rating(event.mode, event.rating)
    return daily


def reconstruct_month(
    username: str,
    games: list[dict],
    sort_by_end_time: bool = False,
) -> MonthReconstruction:
    """
    Reconstruct daily ratings from one month of raw games.

    Args:
        username: Player whose ratings are extracted.
        games: Raw game dicts from the monthly archive endpoint.
        sort_by_end_time: Stable-sort games by end_time before aggregating
            instead of trusting API order.

    Returns:
        MonthReconstruction with daily partial records and counts.
    """
    result = MonthReconstruction()

    if sort_by_end_time:
        games = sorted(games, key=_end_time_key)

    events = []
    for game in games:
        try:
            event = extract_rating_event(game, username)
        except (ValueError, TypeError, KeyError, AttributeError, OverflowError, OSError) as e:
            print(f"  Warning: Skipping malformed game {_game_ref(game)}: {e}")
            result.games_skipped += 1
            continue
        if event is not None:
            events.append(event)

    result.games_processed = len(events)
    result.daily = aggregate_daily_ratings(username, events)
    return result


def _end_time_key(game) -> int:
    try:
        return int(game.get("end_time") or 0)
    except (AttributeError, TypeError, ValueError):
        return 0


def _game_ref(game) -> str:
    if isinstance(game, dict):
        return game.get("url") or game.get("uuid") or "<unknown>"
    return "<unknown>"
