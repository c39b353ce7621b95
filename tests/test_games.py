"""
Tests for the resilient month fetcher.

Run with: pytest tests/test_games.py -v
"""

import threading

import pytest
import requests

from rating_history.games import (
    ImportCancelled,
    fetch_monthly_games,
    wait_interruptibly,
)
from tests.helpers import FakeResponse, FakeSession, make_game, month_url

URL = month_url("hero", 2023, 1)


class TestFetchMonthlyGames:

    def test_success_returns_games(self, sleeps):
        games = [make_game()]
        session = FakeSession({URL: FakeResponse(200, {"games": games})})

        assert fetch_monthly_games("hero", 2023, 1, session=session) == games
        assert sleeps == []

    def test_missing_games_key_is_empty(self, sleeps):
        session = FakeSession({URL: FakeResponse(200, {})})
        assert fetch_monthly_games("hero", 2023, 1, session=session) == []

    def test_not_found_is_empty_month_without_retry(self, sleeps):
        session = FakeSession({URL: FakeResponse(404)})

        assert fetch_monthly_games("hero", 2023, 1, session=session) == []
        assert len(session.calls) == 1
        assert sleeps == []

    def test_rate_limit_then_success(self, sleeps):
        games = [make_game()]
        session = FakeSession({URL: [FakeResponse(429), FakeResponse(200, {"games": games})]})

        assert fetch_monthly_games("hero", 2023, 1, session=session, base_delay=0.5) == games
        assert len(session.calls) == 2
        assert sleeps == [0.5]

    @pytest.mark.parametrize("max_retries", [3, 5])
    def test_backoff_exhaustion_returns_none(self, sleeps, max_retries):
        session = FakeSession({URL: FakeResponse(429)})

        result = fetch_monthly_games(
            "hero", 2023, 1, session=session, max_retries=max_retries, base_delay=1.0
        )

        assert result is None
        assert len(session.calls) == max_retries
        assert sleeps == [2.0 ** i for i in range(max_retries - 1)]
        assert sum(sleeps) <= 1.0 * (2 ** max_retries - 1)

    @pytest.mark.parametrize("failure", [
        FakeResponse(500),
        FakeResponse(403),
        FakeResponse(200, None),
        requests.exceptions.Timeout("slow"),
        requests.exceptions.ConnectionError("down"),
    ])
    def test_terminal_failures_are_not_retried(self, sleeps, failure):
        session = FakeSession({URL: failure})

        assert fetch_monthly_games("hero", 2023, 1, session=session) is None
        assert len(session.calls) == 1
        assert sleeps == []

    def test_cancel_during_backoff(self):
        cancel = threading.Event()
        cancel.set()
        session = FakeSession({URL: FakeResponse(429)})

        with pytest.raises(ImportCancelled):
            fetch_monthly_games("hero", 2023, 1, session=session, cancel_event=cancel)
        assert len(session.calls) == 1


class TestWaitInterruptibly:

    def test_plain_sleep_without_event(self, sleeps):
        wait_interruptibly(0.3)
        assert sleeps == [0.3]

    def test_unset_event_waits(self):
        wait_interruptibly(0.0, threading.Event())

    def test_set_event_raises(self):
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(ImportCancelled):
            wait_interruptibly(10.0, cancel)
