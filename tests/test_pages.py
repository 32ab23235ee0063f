"""Tests for page request state and fetch functions."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from lichess_api import LichessApiError
from model import LeaderboardEntry, Perf, UserProfile
from pages import (
    PageState,
    load_leaderboard,
    load_leaderboard_avatars,
    load_profile,
    load_rating_history,
    load_upcoming_tournaments,
    played_perfs,
)
from tests.helpers import make_response


class TestPageState:
    def test_resolve_current_request(self):
        state = PageState()
        token = state.begin()
        assert state.loading is True
        assert state.resolve(token, ["a"]) is True
        assert state.data == ["a"]
        assert state.loading is False

    def test_stale_response_is_discarded(self):
        state = PageState()
        old = state.begin()
        new = state.begin()
        assert state.resolve(new, "fresh") is True
        assert state.resolve(old, "stale") is False
        assert state.data == "fresh"

    def test_stale_failure_is_discarded(self):
        state = PageState()
        old = state.begin()
        new = state.begin()
        assert state.reject(old, "boom") is False
        assert state.error is None
        assert state.loading is True
        assert state.resolve(new, 1) is True

    def test_reject_keeps_previous_data(self):
        state = PageState()
        state.resolve(state.begin(), ["kept"])
        token = state.begin()
        assert state.reject(token, "Failed") is True
        assert state.error == "Failed"
        assert state.data == ["kept"]

    def test_begin_clears_error_and_optionally_data(self):
        state = PageState()
        state.resolve(state.begin(), "x")
        state.reject(state.begin(), "err")
        state.begin(clear_data=True)
        assert state.error is None
        assert state.data is None

    def test_tokens_are_unique_across_pages(self):
        a, b = PageState(), PageState()
        assert a.begin() != b.begin()


class TestLoadProfile:
    def test_profile_and_history(self, transport, settings):
        transport.queue(
            make_response(200, {"username": "thibault", "perfs": {"blitz": {"games": 3, "rating": 1500}}}),
            make_response(200, [{"name": "Blitz", "points": [[2020, 0, 1, 1500]]}]),
        )
        data = load_profile(" thibault ", settings)
        assert data.profile.username == "thibault"
        assert data.history[0].latest == 1500
        assert transport.calls[0]["url"] == "http://mock.local/api/user/thibault"
        assert transport.calls[0]["timeout"] == 3
        assert transport.calls[1]["url"] == "http://mock.local/api/user/thibault/rating-history"

    def test_history_failure_keeps_profile(self, transport, settings):
        transport.queue(make_response(200, {"username": "thibault"}), make_response(500, {}))
        data = load_profile("thibault", settings)
        assert data.profile.username == "thibault"
        assert data.history == []

    def test_profile_failure_propagates(self, transport, settings):
        transport.queue(make_response(404, {"error": "Not found"}))
        with pytest.raises(LichessApiError):
            load_profile("ghost", settings)
        assert len(transport.calls) == 1

    def test_without_history(self, transport, settings):
        transport.queue(make_response(200, {"username": "thibault"}))
        load_profile("thibault", settings, with_history=False)
        assert len(transport.calls) == 1

    def test_rating_history_skips_non_objects(self, transport, settings):
        transport.queue(make_response(200, [{"name": "Bullet", "points": []}, "junk"]))
        history = load_rating_history("thibault", settings)
        assert [s.name for s in history] == ["Bullet"]


class TestLoadLeaderboard:
    def test_uses_configured_size(self, transport, settings):
        transport.queue(make_response(200, {"users": [{"id": "a", "username": "A"}, {"id": "b", "username": "B"}]}))
        entries = load_leaderboard("blitz", settings)
        assert [e.username for e in entries] == ["A", "B"]
        assert transport.calls[0]["url"] == "http://mock.local/api/player/top/5/blitz"

    def test_missing_users(self, transport, settings):
        transport.queue(make_response(200, {}))
        assert load_leaderboard("rapid", settings) == []

    def test_avatars_keyed_by_username(self):
        class Fetcher:
            def __init__(self):
                self.urls = []

            def get_bytes(self, url):
                self.urls.append(url)
                return b"" if "ghost" in url else b"img"

        fetcher = Fetcher()
        entries = [LeaderboardEntry(id="a", username="Alice"), LeaderboardEntry(id="ghost", username="ghost")]
        avatars = load_leaderboard_avatars(entries, fetcher)
        assert avatars == {"Alice": b"img", "ghost": b""}
        assert fetcher.urls[0] == "https://lichess1.org/user/Alice/avatar/32"


class TestLoadTournaments:
    def test_filters_created_bucket(self, transport, settings):
        now = datetime(2024, 5, 1, 12, tzinfo=timezone.utc)
        ms = lambda dt: int(dt.timestamp() * 1000)  # noqa: E731
        transport.queue(
            make_response(
                200,
                {
                    "created": [
                        {"id": "past", "startsAt": ms(now - timedelta(seconds=100))},
                        {"id": "future", "startsAt": ms(now + timedelta(seconds=100))},
                    ],
                    "started": [{"id": "running", "startsAt": ms(now + timedelta(hours=1))}],
                    "finished": [],
                },
            )
        )
        upcoming = load_upcoming_tournaments(settings, now=now)
        assert [t.id for t in upcoming] == ["future"]

    def test_empty_payload(self, transport, settings):
        transport.queue(make_response(200, {}))
        assert load_upcoming_tournaments(settings) == []


class TestPlayedPerfs:
    def test_only_categories_with_games(self):
        profile = UserProfile(
            username="x",
            perfs={"bullet": Perf(games=0), "blitz": Perf(games=5), "storm": Perf(), "rapid": Perf(games=1)},
        )
        assert [k for k, _ in played_perfs(profile)] == ["blitz", "rapid"]
