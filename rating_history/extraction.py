"""
Per-game filtering and rating extraction.

Only rated games under standard rules contribute. The player's rating is
taken from whichever side matches the username, compared case-insensitively.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional

STANDARD_RULES = "chess"  # excludes chess960, bughouse, crazyhouse, ...

TRACKED_MODES = ("rapid", "blitz", "bullet")


@dataclass
class RatingEvent:
    """A single rating observation derived from one game."""
    date: date
    mode: str  # 'rapid', 'blitz' or 'bullet'
    rating: int


def is_eligible_game(game: dict) -> bool:
    """Check that a game is rated and played under standard rules."""
    return game.get("rules") == STANDARD_RULES and game.get("rated") is True


def map_time_class(time_class: Optional[str]) -> Optional[str]:
    """Map a chess.com time_class to a tracked mode, or None (e.g. 'daily')."""
    if time_class in TRACKED_MODES:
        return time_class
    return None


def extract_player_rating(game: dict, username: str) -> Optional[int]:
    """
    Get the rating of ``username`` in this game.

    Returns:
        The rating after the game, or None if neither side is the player.
    """
    target = username.lower()

    for side in ("white", "black"):
        player = game.get(side) or {}
        if (player.get("username") or "").lower() == target:
            return int(player["rating"])

    return None


def game_date(game: dict) -> Optional[date]:
    """UTC calendar date of the game's end_time, or None if missing."""
    end_time = int(game.get("end_time") or 0)
    if end_time <= 0:
        return None
    return datetime.fromtimestamp(end_time, tz=timezone.utc).date()


def extract_rating_event(game: dict, username: str) -> Optional[RatingEvent]:
    """
    Turn one raw game into a RatingEvent.

    Returns None for games that are filtered out. Malformed fields raise
    (ValueError, TypeError, KeyError, OverflowError, ...); callers skip such games.
    """
    if not is_eligible_game(game):
        return None

    played_on = game_date(game)
    if played_on is None:
        return None

    mode = map_time_class(game.get("time_class"))
    if mode is None:
        return None

    rating = extract_player_rating(game, username)
    if rating is None:
        return None

    return RatingEvent(date=played_on, mode=mode, rating=rating)
