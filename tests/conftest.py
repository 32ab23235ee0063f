"""Shared fixtures: a fake transport in place of requests.request."""

from __future__ import annotations

import pytest

from settings import AppSettings
from tests.helpers import FakeTransport


@pytest.fixture
def transport(monkeypatch) -> FakeTransport:
    fake = FakeTransport()
    monkeypatch.setattr("lichess_api.requests.request", fake)
    return fake


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(api_base_url="http://mock.local/api", request_timeout=3, leaderboard_size=5)
