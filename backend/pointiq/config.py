import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

POINTS_FILE_NAME = "current_match_point_history.json"


def _canon_prefix(val):
    """
    Normalize API prefix to always be exactly like '/api':
      - defaults to '/api' when unset/empty
      - ensures a single leading slash
      - removes any trailing slash (except for root)
    """
    val = (val or "/api").strip()
    if not val.startswith("/"):
        val = "/" + val
    if len(val) > 1 and val.endswith("/"):
        val = val[:-1]
    return val


def _parse_positive_int(env_var: str, default: int) -> int:
    raw_value = os.getenv(env_var)
    if raw_value is None or not raw_value.strip():
        return default

    try:
        value = int(raw_value)
    except ValueError:
        logger.warning(
            "%s is not a valid integer (got %r); defaulting to %d",
            env_var,
            raw_value,
            default,
        )
        return default

    if value <= 0:
        logger.warning("%s must be positive; defaulting to %d", env_var, default)
        return default

    return value


def _parse_timeout(env_var: str) -> Optional[float]:
    raw_value = os.getenv(env_var)
    if raw_value is None or not raw_value.strip():
        return None

    try:
        value = float(raw_value)
    except ValueError:
        logger.warning(
            "%s is not a valid float (got %r); remote calls will not time out",
            env_var,
            raw_value,
        )
        return None

    if value <= 0:
        logger.warning("%s must be positive; remote calls will not time out", env_var)
        return None

    return value


def is_remote_configured(url: Optional[str], key: Optional[str]) -> bool:
    """Return ``True`` when the Supabase URL and key look usable.

    Remote sync is a pure feature switch: anything else keeps the point
    store local-only.
    """

    url = (url or "").strip()
    key = (key or "").strip()
    return bool(url) and bool(key) and "supabase.co" in url and key.startswith("sb_")


@dataclass(frozen=True)
class Settings:
    api_prefix: str = "/api"
    points_file: Path = Path("data") / POINTS_FILE_NAME
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    supabase_table: str = "points"
    sync_queue_size: int = 100
    remote_timeout: Optional[float] = None
    auto_advance_games: bool = False

    @property
    def remote_enabled(self) -> bool:
        return is_remote_configured(self.supabase_url, self.supabase_key)


def load_settings() -> Settings:
    """Build :class:`Settings` from the environment.

    The environment is read on every call so tests can adjust variables at
    runtime; importing this module has no side effects.
    """

    points_file = os.getenv("POINTIQ_POINTS_FILE")
    if points_file:
        path = Path(points_file)
    else:
        path = Path(os.getenv("POINTIQ_DATA_DIR") or "data") / POINTS_FILE_NAME

    return Settings(
        api_prefix=_canon_prefix(os.getenv("API_PREFIX")),
        points_file=path,
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_KEY"),
        supabase_table=(os.getenv("POINTIQ_SUPABASE_TABLE") or "points").strip(),
        sync_queue_size=_parse_positive_int("POINTIQ_SYNC_QUEUE_SIZE", 100),
        remote_timeout=_parse_timeout("POINTIQ_REMOTE_TIMEOUT"),
        auto_advance_games=os.getenv("POINTIQ_AUTO_ADVANCE_GAMES", "false").lower()
        == "true",
    )
