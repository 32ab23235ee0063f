from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import logging
import os

from dotenv import load_dotenv

from lichess_api import LICHESS_API_BASE, DEFAULT_TIMEOUT


logger = logging.getLogger(__name__)

VARIANT_KEYS = ("rapid", "bullet", "blitz", "classical")


def appdata_env_path() -> Path:
    appdata = os.environ.get("APPDATA")
    if not appdata:
        # Fallback: local
        return Path(".env")
    return Path(appdata) / "Pawnscope" / ".env"


@dataclass
class AppSettings:
    api_base_url: str = LICHESS_API_BASE
    request_timeout: float = DEFAULT_TIMEOUT
    leaderboard_size: int = 50
    default_variant: str = "rapid"
    log_level: str = "INFO"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r (not an integer)", name, raw)
        return default


def load_settings() -> AppSettings:
    # 1) Load AppData env first (installed app)
    env_path = appdata_env_path()
    if env_path.exists():
        load_dotenv(env_path, override=True)
    else:
        # 2) Fall back to local .env (dev mode)
        load_dotenv(".env", override=True)

    base_url = os.getenv("LICHESS_API_BASE", "").strip() or LICHESS_API_BASE
    timeout = _env_int("REQUEST_TIMEOUT", int(DEFAULT_TIMEOUT))
    size = _env_int("LEADERBOARD_SIZE", 50)

    variant = os.getenv("DEFAULT_VARIANT", "rapid").strip().lower()
    if variant not in VARIANT_KEYS:
        logger.warning("Unknown DEFAULT_VARIANT %r, using rapid", variant)
        variant = "rapid"

    return AppSettings(
        api_base_url=base_url.rstrip("/"),
        request_timeout=max(1, timeout),
        leaderboard_size=min(max(1, size), 200),
        default_variant=variant,
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )
