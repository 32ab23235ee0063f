from __future__ import annotations
import json
import logging
from typing import Dict, Any, List, Optional
import requests
from urllib.parse import quote


logger = logging.getLogger(__name__)

LICHESS_API_BASE = "https://lichess.org/api"
DEFAULT_TIMEOUT = 10


class LichessApiError(RuntimeError):
    """Non-2xx response, network failure or unreadable body."""

    def __init__(self, message: str, status: Optional[int] = None, url: str = ""):
        super().__init__(message)
        self.status = status
        self.url = url


class MissingIdentifierError(ValueError):
    pass


def _require(value: Optional[str], what: str) -> str:
    value = (value or "").strip()
    if not value:
        raise MissingIdentifierError(f"{what} is required")
    return quote(value, safe="")


def _parse_body(r: requests.Response) -> Any:
    # The games/results exports answer with one JSON document per line
    content_type = r.headers.get("Content-Type", "")
    if "ndjson" in content_type:
        return [json.loads(line) for line in r.text.splitlines() if line.strip()]
    return r.json()


def _lichess_fetch(
    endpoint: str,
    *,
    base_url: str = LICHESS_API_BASE,
    method: str = "GET",
    headers: Optional[Dict[str, str]] = None,
    params: Optional[Dict[str, Any]] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Any:
    url = f"{base_url.rstrip('/')}{endpoint}"
    merged = {"Accept": "application/json"}
    if headers:
        merged.update(headers)

    try:
        r = requests.request(method, url, headers=merged, params=params, timeout=timeout)
    except requests.RequestException as e:
        logger.error("Lichess API fetch error for %s: %s", url, e)
        raise LichessApiError(f"Lichess API error: {e}", url=url) from e

    if not r.ok:
        logger.error("Lichess API %s for %s", r.status_code, url)
        raise LichessApiError(f"Lichess API error: {r.status_code}", status=r.status_code, url=url)

    try:
        return _parse_body(r)
    except ValueError as e:
        logger.error("Lichess API returned an unreadable body for %s: %s", url, e)
        raise LichessApiError(f"Lichess API error: invalid JSON ({e})", status=r.status_code, url=url) from e


def get_user_profile(username: str, *, base_url: str = LICHESS_API_BASE, timeout: float = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    name = _require(username, "Username")
    return _lichess_fetch(f"/user/{name}", base_url=base_url, timeout=timeout)


def get_user_rating_history(username: str, *, base_url: str = LICHESS_API_BASE, timeout: float = DEFAULT_TIMEOUT) -> List[Dict[str, Any]]:
    name = _require(username, "Username")
    return _lichess_fetch(f"/user/{name}/rating-history", base_url=base_url, timeout=timeout)


def get_user_games(
    username: str,
    max_games: int = 10,
    rated: bool = True,
    params: Optional[Dict[str, Any]] = None,
    *,
    base_url: str = LICHESS_API_BASE,
    timeout: float = DEFAULT_TIMEOUT,
) -> List[Dict[str, Any]]:
    name = _require(username, "Username")
    query: Dict[str, Any] = {"max": max_games, "rated": "true" if rated else "false"}
    if params:
        query.update(params)
    return _lichess_fetch(f"/games/user/{name}", base_url=base_url, params=query, timeout=timeout)


def get_leaderboard(perf_type: str = "bullet", nb: int = 10, *, base_url: str = LICHESS_API_BASE, timeout: float = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    return _lichess_fetch(f"/player/top/{int(nb)}/{quote(perf_type, safe='')}", base_url=base_url, timeout=timeout)


def get_current_tournaments(*, base_url: str = LICHESS_API_BASE, timeout: float = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    return _lichess_fetch("/tournament", base_url=base_url, timeout=timeout)


def get_tournament_by_id(tournament_id: str, *, base_url: str = LICHESS_API_BASE, timeout: float = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    tid = _require(tournament_id, "Tournament ID")
    return _lichess_fetch(f"/tournament/{tid}", base_url=base_url, timeout=timeout)


def get_tournament_results(tournament_id: str, nb: int = 10, *, base_url: str = LICHESS_API_BASE, timeout: float = DEFAULT_TIMEOUT) -> List[Dict[str, Any]]:
    tid = _require(tournament_id, "Tournament ID")
    return _lichess_fetch(f"/tournament/{tid}/results", base_url=base_url, params={"nb": int(nb)}, timeout=timeout)
