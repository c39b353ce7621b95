"""
Tests for per-game filtering and rating extraction.

Run with: pytest tests/test_extraction.py -v
"""

from datetime import date

import pytest

from rating_history.extraction import (
    RatingEvent,
    extract_player_rating,
    extract_rating_event,
    game_date,
    is_eligible_game,
    map_time_class,
)
from tests.helpers import epoch, make_game


class TestEligibility:

    def test_rated_standard_game(self):
        assert is_eligible_game(make_game()) is True

    def test_unrated_game_excluded(self):
        assert is_eligible_game(make_game(rated=False)) is False

    @pytest.mark.parametrize("rules", ["chess960", "bughouse", "crazyhouse", ""])
    def test_variants_excluded(self, rules):
        assert is_eligible_game(make_game(rules=rules)) is False


class TestTimeClassMapping:

    @pytest.mark.parametrize("time_class", ["rapid", "blitz", "bullet"])
    def test_tracked_modes(self, time_class):
        assert map_time_class(time_class) == time_class

    @pytest.mark.parametrize("time_class", ["daily", "", None])
    def test_other_modes_dropped(self, time_class):
        assert map_time_class(time_class) is None


class TestExtractPlayerRating:

    def test_white_player(self):
        assert extract_player_rating(make_game(white="Hero", white_rating=1234), "hero") == 1234

    def test_black_player_case_insensitive(self):
        game = make_game(white="Other", black="HeRo", black_rating=1444)
        assert extract_player_rating(game, "HERO") == 1444

    def test_player_not_in_game(self):
        assert extract_player_rating(make_game(white="a", black="b"), "hero") is None

    def test_null_username_falls_through_to_other_side(self):
        game = make_game(white="None", black="None", black_rating=1444)
        game["white"]["username"] = None
        assert extract_player_rating(game, "none") == 1444

    def test_null_username_alone_is_not_a_match(self):
        game = make_game(white="a", black="b")
        game["white"]["username"] = None
        assert extract_player_rating(game, "None") is None


class TestGameDate:

    def test_uses_utc_calendar_date(self):
        # 23:30 UTC stays on the same UTC day regardless of local timezone
        assert game_date(make_game(end_time=epoch(2023, 1, 10, hour=23))) == date(2023, 1, 10)

    def test_missing_end_time(self):
        game = make_game()
        del game["end_time"]
        assert game_date(game) is None


class TestExtractRatingEvent:

    def test_valid_game(self):
        event = extract_rating_event(make_game(time_class="rapid", white_rating=1500), "hero")
        assert event == RatingEvent(date=date(2023, 1, 10), mode="rapid", rating=1500)

    def test_unrated_game_yields_nothing_even_with_rating(self):
        assert extract_rating_event(make_game(rated=False), "hero") is None

    def test_variant_game_yields_nothing_even_with_rating(self):
        assert extract_rating_event(make_game(rules="chess960"), "hero") is None

    def test_daily_game_yields_nothing(self):
        assert extract_rating_event(make_game(time_class="daily"), "hero") is None

    def test_zero_rating_is_kept(self):
        event = extract_rating_event(make_game(white_rating=0), "hero")
        assert event.rating == 0

    def test_malformed_rating_raises(self):
        game = make_game()
        game["white"]["rating"] = "n/a"
        with pytest.raises(ValueError):
            extract_rating_event(game, "hero")
