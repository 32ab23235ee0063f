"""
Per-page fetch functions and request state.

Nothing here touches Qt: the fetch functions run inside worker threads and
PageState is owned by the UI thread.
"""
from __future__ import annotations
import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

import lichess_api
from assets import ImageFetcher, avatar_url
from formatters import filter_upcoming
from model import LeaderboardEntry, Perf, RatingSeries, Tournament, UserProfile
from settings import AppSettings


logger = logging.getLogger(__name__)

T = TypeVar("T")

PROFILE_ERROR = "User not found or API error. Please check the username and try again."
LEADERBOARD_ERROR = "Failed to fetch leaderboard data. Please try again."
TOURNAMENTS_ERROR = "Failed to fetch tournament data. Please try again."

VARIANTS: List[Tuple[str, str]] = [
    ("rapid", "Rapid"),
    ("bullet", "Bullet"),
    ("blitz", "Blitz"),
    ("classical", "Classical"),
]

_tokens = itertools.count(1)


@dataclass
class PageState(Generic[T]):
    """
    Transient state of one page. Every request gets a token; a result is
    applied only if its token is still the latest one issued.
    """
    loading: bool = False
    error: Optional[str] = None
    data: Optional[T] = None
    token: int = 0

    def begin(self, clear_data: bool = False) -> int:
        self.token = next(_tokens)
        self.loading = True
        self.error = None
        if clear_data:
            self.data = None
        return self.token

    def is_current(self, token: int) -> bool:
        return token == self.token

    def resolve(self, token: int, data: T) -> bool:
        if not self.is_current(token):
            logger.debug("Discarding stale response (token %s, current %s)", token, self.token)
            return False
        self.data = data
        self.loading = False
        return True

    def reject(self, token: int, message: str) -> bool:
        if not self.is_current(token):
            logger.debug("Discarding stale failure (token %s, current %s)", token, self.token)
            return False
        self.error = message
        self.loading = False
        return True


@dataclass
class ProfileData:
    profile: UserProfile
    history: List[RatingSeries] = field(default_factory=list)


# -----------------------
# Fetch functions (worker thread)
# -----------------------
def _api_kwargs(settings: AppSettings) -> Dict[str, Any]:
    return {"base_url": settings.api_base_url, "timeout": settings.request_timeout}


def load_profile(username: str, settings: AppSettings, with_history: bool = True) -> ProfileData:
    raw = lichess_api.get_user_profile(username.strip(), **_api_kwargs(settings))
    profile = UserProfile.from_json(raw)

    history: List[RatingSeries] = []
    if with_history:
        # The profile is still useful without its history
        try:
            history = load_rating_history(username, settings)
        except lichess_api.LichessApiError:
            logger.warning("Rating history unavailable for %s", username)
    return ProfileData(profile=profile, history=history)


def load_rating_history(username: str, settings: AppSettings) -> List[RatingSeries]:
    raw = lichess_api.get_user_rating_history(username.strip(), **_api_kwargs(settings))
    return [RatingSeries.from_json(s) for s in raw or [] if isinstance(s, dict)]


def load_leaderboard(variant: str, settings: AppSettings) -> List[LeaderboardEntry]:
    data = lichess_api.get_leaderboard(variant, settings.leaderboard_size, **_api_kwargs(settings))
    users = (data or {}).get("users") or []
    return [LeaderboardEntry.from_json(u) for u in users if isinstance(u, dict)]


def load_leaderboard_avatars(entries: List[LeaderboardEntry], fetcher: ImageFetcher, size: int = 32) -> Dict[str, bytes]:
    """Avatar bytes keyed by username; missing images map to b"" so the row shows the initial."""
    return {e.username: fetcher.get_bytes(avatar_url(e.username, size)) for e in entries}


def load_upcoming_tournaments(settings: AppSettings, now: Optional[datetime] = None) -> List[Tournament]:
    data = lichess_api.get_current_tournaments(**_api_kwargs(settings))
    created = (data or {}).get("created") or []
    tournaments = [Tournament.from_json(t) for t in created if isinstance(t, dict)]
    return filter_upcoming(tournaments, now)


def played_perfs(profile: UserProfile) -> List[Tuple[str, Perf]]:
    """Only categories with games played, in API order."""
    return [(k, p) for k, p in profile.perfs.items() if p.games and p.games > 0]
