"""Tests for the Lichess API client."""

from __future__ import annotations

import pytest
import requests

import lichess_api
from lichess_api import LichessApiError, MissingIdentifierError
from tests.helpers import make_response

BASE = "http://mock.local/api"


class TestUrls:
    @pytest.mark.parametrize("username", ["DrNykterstein", "a", "user_name-1", "Zz9"])
    def test_user_profile_path_is_literal(self, transport, username):
        lichess_api.get_user_profile(username, base_url=BASE)
        assert transport.calls[0]["url"] == f"{BASE}/user/{username}"
        assert transport.calls[0]["method"] == "GET"

    def test_username_is_a_single_segment(self, transport):
        lichess_api.get_user_profile("a/b", base_url=BASE)
        assert transport.calls[0]["url"] == f"{BASE}/user/a%2Fb"

    def test_rating_history(self, transport):
        lichess_api.get_user_rating_history("thibault", base_url=BASE)
        assert transport.calls[0]["url"] == f"{BASE}/user/thibault/rating-history"

    def test_user_games_defaults(self, transport):
        transport.queue(make_response(200, text="", content_type="application/x-ndjson"))
        lichess_api.get_user_games("thibault", base_url=BASE)
        call = transport.calls[0]
        assert call["url"] == f"{BASE}/games/user/thibault"
        assert call["params"] == {"max": 10, "rated": "true"}

    def test_user_games_options_and_extra_params(self, transport):
        lichess_api.get_user_games("thibault", max_games=3, rated=False, params={"perfType": "blitz"}, base_url=BASE)
        assert transport.calls[0]["params"] == {"max": 3, "rated": "false", "perfType": "blitz"}

    def test_leaderboard(self, transport):
        lichess_api.get_leaderboard("blitz", 50, base_url=BASE)
        assert transport.calls[0]["url"] == f"{BASE}/player/top/50/blitz"

    def test_leaderboard_defaults(self, transport):
        lichess_api.get_leaderboard(base_url=BASE)
        assert transport.calls[0]["url"] == f"{BASE}/player/top/10/bullet"

    def test_tournaments(self, transport):
        lichess_api.get_current_tournaments(base_url=BASE)
        assert transport.calls[0]["url"] == f"{BASE}/tournament"

    def test_tournament_by_id(self, transport):
        lichess_api.get_tournament_by_id("abc123", base_url=BASE)
        assert transport.calls[0]["url"] == f"{BASE}/tournament/abc123"

    def test_tournament_results(self, transport):
        transport.queue(make_response(200, text="", content_type="application/x-ndjson"))
        lichess_api.get_tournament_results("abc123", nb=25, base_url=BASE)
        assert transport.calls[0]["url"] == f"{BASE}/tournament/abc123/results"
        assert transport.calls[0]["params"] == {"nb": 25}

    def test_default_base_url(self, transport):
        lichess_api.get_current_tournaments()
        assert transport.calls[0]["url"] == "https://lichess.org/api/tournament"

    def test_trailing_slash_on_base_url(self, transport):
        lichess_api.get_current_tournaments(base_url=BASE + "/")
        assert transport.calls[0]["url"] == f"{BASE}/tournament"


class TestHeaders:
    def test_accept_json_and_timeout(self, transport):
        lichess_api.get_current_tournaments(base_url=BASE, timeout=4)
        call = transport.calls[0]
        assert call["headers"] == {"Accept": "application/json"}
        assert call["timeout"] == 4

    def test_caller_headers_are_merged(self, transport):
        lichess_api._lichess_fetch("/tournament", base_url=BASE, headers={"User-Agent": "x"})
        assert transport.calls[0]["headers"] == {"Accept": "application/json", "User-Agent": "x"}

    def test_other_method(self, transport):
        lichess_api._lichess_fetch("/tournament", base_url=BASE, method="POST")
        assert transport.calls[0]["method"] == "POST"


class TestMissingIdentifier:
    @pytest.mark.parametrize(
        "call",
        [
            lambda: lichess_api.get_user_profile(""),
            lambda: lichess_api.get_user_profile("   "),
            lambda: lichess_api.get_user_rating_history(None),
            lambda: lichess_api.get_user_games(""),
            lambda: lichess_api.get_tournament_by_id(""),
            lambda: lichess_api.get_tournament_results(""),
        ],
    )
    def test_raises_before_any_request(self, transport, call):
        with pytest.raises(MissingIdentifierError):
            call()
        assert transport.calls == []

    def test_is_a_value_error(self):
        with pytest.raises(ValueError, match="Username is required"):
            lichess_api.get_user_profile("")


class TestResponses:
    def test_returns_parsed_json(self, transport):
        transport.queue(make_response(200, {"username": "thibault"}))
        assert lichess_api.get_user_profile("thibault", base_url=BASE) == {"username": "thibault"}

    def test_ndjson_body_becomes_list(self, transport):
        body = '{"rank": 1, "username": "a"}\n{"rank": 2, "username": "b"}\n'
        transport.queue(make_response(200, text=body, content_type="application/x-ndjson"))
        out = lichess_api.get_tournament_results("abc", base_url=BASE)
        assert [r["username"] for r in out] == ["a", "b"]

    @pytest.mark.parametrize("status", [400, 404, 429, 500, 503])
    def test_error_status_raises(self, transport, status):
        transport.queue(make_response(status, {"error": "nope"}))
        with pytest.raises(LichessApiError) as exc:
            lichess_api.get_user_profile("ghost", base_url=BASE)
        assert exc.value.status == status
        assert str(status) in str(exc.value)
        assert exc.value.url == f"{BASE}/user/ghost"

    def test_network_failure_is_the_same_error(self, transport):
        transport.queue(requests.ConnectionError("connection reset"))
        with pytest.raises(LichessApiError) as exc:
            lichess_api.get_current_tournaments(base_url=BASE)
        assert exc.value.status is None

    def test_timeout_is_the_same_error(self, transport):
        transport.queue(requests.Timeout("slow"))
        with pytest.raises(LichessApiError):
            lichess_api.get_leaderboard("blitz", base_url=BASE)

    def test_invalid_json_raises(self, transport):
        transport.queue(make_response(200, text="<html>", content_type="text/html"))
        with pytest.raises(LichessApiError):
            lichess_api.get_current_tournaments(base_url=BASE)

    def test_failure_is_logged(self, transport, caplog):
        transport.queue(make_response(500, {}))
        with caplog.at_level("ERROR", logger="lichess_api"):
            with pytest.raises(LichessApiError):
                lichess_api.get_current_tournaments(base_url=BASE)
        assert any("500" in rec.getMessage() for rec in caplog.records)

    def test_no_retry(self, transport):
        transport.queue(make_response(503, {}), make_response(200, {}))
        with pytest.raises(LichessApiError):
            lichess_api.get_current_tournaments(base_url=BASE)
        assert len(transport.calls) == 1
