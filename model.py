from __future__ import annotations
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple


def _opt_int(value: Any) -> Optional[int]:
    # rd and some ratings arrive as floats; round half up
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    try:
        return math.floor(float(value) + 0.5)
    except (TypeError, ValueError, OverflowError):
        # OverflowError: inf; nan raises ValueError
        return None


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _opt_bool(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Lichess sends epoch milliseconds almost everywhere, but some payloads
    carry ISO-8601 strings ("2024-05-01T18:00:00Z").
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        if s.isdigit():
            return parse_timestamp(int(s))
        try:
            dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
        except ValueError:
            return None
        return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
    return None


@dataclass
class Perf:
    rating: Optional[int] = None
    rd: Optional[int] = None
    games: Optional[int] = None
    prog: Optional[int] = None
    prov: Optional[bool] = None

    @classmethod
    def from_json(cls, data: Any) -> "Perf":
        if not isinstance(data, dict):
            return cls()
        return cls(
            rating=_opt_int(data.get("rating")),
            rd=_opt_int(data.get("rd")),
            games=_opt_int(data.get("games")),
            prog=_opt_int(data.get("prog")),
            prov=_opt_bool(data.get("prov")),
        )


def _perfs_from_json(data: Any) -> Dict[str, Perf]:
    if not isinstance(data, dict):
        return {}
    return {str(k): Perf.from_json(v) for k, v in data.items()}


@dataclass
class GameCounts:
    all: Optional[int] = None
    win: Optional[int] = None
    draw: Optional[int] = None
    loss: Optional[int] = None

    @classmethod
    def from_json(cls, data: Any) -> Optional["GameCounts"]:
        if not isinstance(data, dict):
            return None
        return cls(
            all=_opt_int(data.get("all")),
            win=_opt_int(data.get("win")),
            draw=_opt_int(data.get("draw")),
            loss=_opt_int(data.get("loss")),
        )


@dataclass
class UserProfile:
    username: str
    title: Optional[str] = None
    patron: bool = False
    online: bool = False
    bio: Optional[str] = None
    count: Optional[GameCounts] = None
    created_at: Optional[datetime] = None
    seen_at: Optional[datetime] = None
    play_time_total: Optional[int] = None
    perfs: Dict[str, Perf] = field(default_factory=dict)
    nb_following: Optional[int] = None
    followable: Optional[bool] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "UserProfile":
        profile = data.get("profile") or {}
        play_time = data.get("playTime") or {}
        return cls(
            username=_opt_str(data.get("username")) or _opt_str(data.get("id")) or "",
            title=_opt_str(data.get("title")),
            patron=bool(data.get("patron")),
            online=bool(data.get("online")),
            bio=_opt_str(profile.get("bio")) if isinstance(profile, dict) else None,
            count=GameCounts.from_json(data.get("count")),
            created_at=parse_timestamp(data.get("createdAt")),
            seen_at=parse_timestamp(data.get("seenAt")),
            play_time_total=_opt_int(play_time.get("total")) if isinstance(play_time, dict) else None,
            perfs=_perfs_from_json(data.get("perfs")),
            nb_following=_opt_int(data.get("nbFollowing")),
            followable=_opt_bool(data.get("followable")),
        )


@dataclass
class LeaderboardEntry:
    id: str
    username: str
    title: Optional[str] = None
    online: bool = False
    perfs: Dict[str, Perf] = field(default_factory=dict)

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "LeaderboardEntry":
        username = _opt_str(data.get("username")) or _opt_str(data.get("id")) or ""
        return cls(
            id=_opt_str(data.get("id")) or username.lower(),
            username=username,
            title=_opt_str(data.get("title")),
            online=bool(data.get("online")),
            perfs=_perfs_from_json(data.get("perfs")),
        )

    def perf(self, variant: str) -> Optional[Perf]:
        return self.perfs.get(variant)


@dataclass
class Clock:
    limit: int       # seconds
    increment: int   # seconds

    @classmethod
    def from_json(cls, data: Any) -> Optional["Clock"]:
        if not isinstance(data, dict):
            return None
        limit = _opt_int(data.get("limit"))
        if limit is None:
            return None
        return cls(limit=limit, increment=_opt_int(data.get("increment")) or 0)


@dataclass
class Tournament:
    id: str
    name: Optional[str] = None
    full_name: Optional[str] = None
    created_by: Optional[str] = None
    clock: Optional[Clock] = None
    nb_players: Optional[int] = None
    max_players: Optional[int] = None
    variant_name: Optional[str] = None
    starts_at: Optional[datetime] = None
    minutes: Optional[int] = None
    rated: Optional[bool] = None

    @property
    def display_name(self) -> str:
        return self.full_name or self.name or self.id

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Tournament":
        variant = data.get("variant")
        if isinstance(variant, dict):
            variant_name = _opt_str(variant.get("name"))
        else:
            variant_name = _opt_str(variant)
        return cls(
            id=_opt_str(data.get("id")) or "",
            name=_opt_str(data.get("name")),
            full_name=_opt_str(data.get("fullName")),
            created_by=_opt_str(data.get("createdBy")),
            clock=Clock.from_json(data.get("clock")),
            nb_players=_opt_int(data.get("nbPlayers")),
            max_players=_opt_int(data.get("maxPlayers")),
            variant_name=variant_name,
            starts_at=parse_timestamp(data.get("startsAt")),
            minutes=_opt_int(data.get("minutes")),
            rated=_opt_bool(data.get("rated")),
        )


@dataclass
class RatingSeries:
    name: str
    points: List[Tuple[date, int]] = field(default_factory=list)

    @property
    def latest(self) -> Optional[int]:
        return self.points[-1][1] if self.points else None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "RatingSeries":
        points: List[Tuple[date, int]] = []
        for raw in data.get("points") or []:
            # [year, month (0-based), day, rating]
            if not isinstance(raw, (list, tuple)) or len(raw) < 4:
                continue
            try:
                points.append((date(int(raw[0]), int(raw[1]) + 1, int(raw[2])), int(raw[3])))
            except (TypeError, ValueError):
                continue
        return cls(name=_opt_str(data.get("name")) or "", points=points)
