from __future__ import annotations
import logging
from typing import Dict
from urllib.parse import quote

import requests


logger = logging.getLogger(__name__)

AVATAR_BASE = "https://lichess1.org/user"
TOURNAMENT_BASE = "https://lichess.org/tournament"


def avatar_url(username: str, size: int = 120) -> str:
    return f"{AVATAR_BASE}/{quote(username or '', safe='')}/avatar/{int(size)}"


def tournament_url(tournament_id: str) -> str:
    return f"{TOURNAMENT_BASE}/{quote(tournament_id or '', safe='')}"


def avatar_initial(username: str) -> str:
    """Shown in place of the avatar when the image can't be loaded."""
    username = (username or "").strip()
    return username[0].upper() if username else "?"


class ImageFetcher:
    """
    Downloads image bytes off the UI thread. Failures return b"" so the
    view can fall back to the initial letter.
    """
    def __init__(self, timeout: float = 10):
        self.timeout = timeout
        self._cache: Dict[str, bytes] = {}

    def get_bytes(self, url: str) -> bytes:
        if not url:
            return b""
        if url in self._cache:
            return self._cache[url]
        try:
            r = requests.get(url, timeout=self.timeout, headers={"User-Agent": "Pawnscope/1.0"})
            r.raise_for_status()
        except requests.RequestException as e:
            logger.debug("Image fetch failed for %s: %s", url, e)
            return b""
        raw = r.content
        self._cache[url] = raw
        return raw
