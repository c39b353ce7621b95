# tests/helpers.py

from datetime import datetime, timezone
from typing import Optional

import requests

from rating_history.games import API_BASE


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code: int, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


class FakeSession:
    """
    Scripted HTTP session.

    ``routes`` maps a URL to either a response/exception or a list of them,
    consumed in order (the last one repeats). Unknown URLs give a 404.
    """

    def __init__(self, routes: dict):
        self.routes = {
            url: list(value) if isinstance(value, list) else [value]
            for url, value in routes.items()
        }
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append(url)
        queue = self.routes.get(url)
        if not queue:
            return FakeResponse(404)
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, requests.RequestException):
            raise item
        return item


def archives_url(username: str) -> str:
    return f"{API_BASE}/player/{username}/games/archives"


def month_url(username: str, year: int, month: int) -> str:
    return f"{API_BASE}/player/{username}/games/{year:04d}/{month:02d}"


def epoch(year: int, month: int, day: int, hour: int = 12) -> int:
    return int(datetime(year, month, day, hour, tzinfo=timezone.utc).timestamp())


def make_game(
    white: str = "Hero",
    black: str = "Villain",
    white_rating: int = 1200,
    black_rating: int = 1180,
    time_class: str = "blitz",
    rules: str = "chess",
    rated: bool = True,
    end_time: Optional[int] = None,
) -> dict:
    """Build a chess.com-shaped game dict."""
    if end_time is None:
        end_time = epoch(2023, 1, 10)
    return {
        "url": f"https://www.chess.com/game/live/{end_time}",
        "rules": rules,
        "rated": rated,
        "time_class": time_class,
        "end_time": end_time,
        "white": {"username": white, "rating": white_rating},
        "black": {"username": black, "rating": black_rating},
    }
