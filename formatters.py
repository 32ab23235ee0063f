from __future__ import annotations
import re
from datetime import datetime, timezone, tzinfo
from typing import Iterable, List, Optional

from model import Clock, GameCounts, RatingSeries, Tournament


PLACEHOLDER = "-"

MEDALS = {1: "🥇", 2: "🥈", 3: "🥉"}

# Ordered descending, first match wins
LEADERBOARD_RATING_TIERS = [
    (2700, "purple"),
    (2500, "pink"),
    (2400, "red"),
    (2300, "orange"),
    (2200, "yellow"),
    (2100, "green"),
]
LEADERBOARD_RATING_DEFAULT = "blue"

PROFILE_RATING_TIERS = [
    (2400, "purple"),
    (2200, "pink"),
    (2000, "red"),
    (1800, "orange"),
    (1600, "yellow"),
    (1400, "green"),
    (1200, "blue"),
]
PROFILE_RATING_DEFAULT = "gray"


def or_placeholder(value, falsy: bool = False) -> str:
    # falsy=True also hides 0, for cells where zero means "nothing to show"
    if value is None or value == "" or (falsy and not value):
        return PLACEHOLDER
    return str(value)


def total_games(count: Optional[GameCounts]) -> int:
    if count is None or not count.all:
        return 0
    return count.all


# -----------------------
# Leaderboard
# -----------------------
def rank_medal(rank: int) -> Optional[str]:
    return MEDALS.get(rank)


def rank_tier(rank: int) -> str:
    if rank == 1:
        return "gold"
    if rank == 2:
        return "silver"
    if rank == 3:
        return "bronze"
    if rank <= 10:
        return "top10"
    return "default"


def _tier_for(rating: Optional[int], tiers, default: str) -> str:
    if rating is None:
        return default
    for threshold, token in tiers:
        if rating >= threshold:
            return token
    return default


def rating_tier(rating: Optional[int]) -> str:
    return _tier_for(rating, LEADERBOARD_RATING_TIERS, LEADERBOARD_RATING_DEFAULT)


def profile_rating_tier(rating: Optional[int]) -> str:
    return _tier_for(rating, PROFILE_RATING_TIERS, PROFILE_RATING_DEFAULT)


def format_progress(prog: Optional[int]) -> Optional[str]:
    if prog is None:
        return None
    return f"+{prog}" if prog >= 0 else str(prog)


# -----------------------
# Profile
# -----------------------
def format_perf_key(key: str) -> str:
    """ultraBullet -> Ultra Bullet"""
    if not key:
        return ""
    spaced = re.sub(r"([A-Z])", r" \1", key[1:])
    return key[0].upper() + spaced


def win_rate(count: Optional[GameCounts]) -> float:
    if not count or not count.all:
        return 0.0
    return (count.win or 0) / count.all * 100.0


def games_bar_percent(games: Optional[int]) -> float:
    # 100 games fills the bar
    if not games or games < 0:
        return 0.0
    return float(min(games, 100))


def format_play_time(total_seconds: Optional[int]) -> str:
    if total_seconds is None:
        return PLACEHOLDER
    return f"{total_seconds // 3600}h"


def format_date(dt: Optional[datetime], tz: Optional[tzinfo] = None) -> str:
    if dt is None:
        return PLACEHOLDER
    return dt.astimezone(tz).strftime("%Y-%m-%d")


def format_time(dt: Optional[datetime], tz: Optional[tzinfo] = None) -> str:
    if dt is None:
        return PLACEHOLDER
    return dt.astimezone(tz).strftime("%H:%M")


def rating_peak(series: RatingSeries) -> Optional[int]:
    if not series.points:
        return None
    return max(r for _, r in series.points)


# -----------------------
# Tournaments
# -----------------------
def filter_upcoming(tournaments: Iterable[Tournament], now: Optional[datetime] = None) -> List[Tournament]:
    """Keep tournaments starting strictly after `now`, in source order."""
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return [t for t in tournaments if t.starts_at is not None and t.starts_at > now]


def format_duration(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes}m"
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}m" if mins > 0 else f"{hours}h"


def format_time_control(clock: Optional[Clock]) -> str:
    if not clock:
        return "Unknown"
    return f"{clock.limit // 60}+{clock.increment}"


def capacity_percent(nb_players: Optional[int], max_players: Optional[int]) -> Optional[float]:
    if not max_players:
        return None
    return min((nb_players or 0) / max_players * 100.0, 100.0)


def format_capacity(nb_players: Optional[int], max_players: Optional[int]) -> str:
    return f"{nb_players or 0} / {max_players or '∞'}"


def format_rated(rated: Optional[bool]) -> str:
    if rated is None:
        return PLACEHOLDER
    return "Yes" if rated else "No"


def format_variant(name: Optional[str]) -> str:
    return name or "Standard"
