"""Server connection settings.

Values come from a persisted dotenv-style file and the process
environment, the environment winning:

  MM_HISTORY_CONFIG   path of the persisted file
                      (default ~/.config/mm-history/config.env)
  MATTERMOST_URL      server base address, e.g. https://chat.example.com
  MATTERMOST_TOKEN    personal access token
  MATTERMOST_TEAM     default team name
  MATTERMOST_TIMEOUT  request timeout in seconds (optional, default 30)
"""
import logging
import os
from pathlib import Path

import httpx
from dotenv import dotenv_values

from mm_history.errors import ConfigError
from mm_history.models import ServerConfig

_log = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.config/mm-history/config.env")
_REQUIRED = ("MATTERMOST_URL", "MATTERMOST_TOKEN", "MATTERMOST_TEAM")


def config_path() -> Path:
    configured = os.getenv("MM_HISTORY_CONFIG")
    return Path(configured).expanduser() if configured else DEFAULT_CONFIG_PATH.expanduser()


def _read_sources(path: Path) -> dict[str, str]:
    values: dict[str, str] = {}
    if path.is_file():
        _log.debug("reading config file %s", path)
        values.update({k: v for k, v in dotenv_values(path).items() if v is not None})
    for key in (*_REQUIRED, "MATTERMOST_TIMEOUT"):
        env = os.getenv(key)
        if env:
            values[key] = env
    return values


def load_config(path: Path | None = None) -> ServerConfig:
    """Resolve the server config. Raises ConfigError naming every missing key."""
    values = _read_sources(path or config_path())

    missing = [key for key in _REQUIRED if not values.get(key, "").strip()]
    if missing:
        raise ConfigError(f"missing {', '.join(missing)} (set in environment or {path or config_path()})")

    raw_timeout = values.get("MATTERMOST_TIMEOUT", "").strip()
    try:
        timeout = float(raw_timeout) if raw_timeout else 30.0
    except ValueError:
        raise ConfigError(f"MATTERMOST_TIMEOUT must be a number of seconds, got {raw_timeout!r}") from None

    url = values["MATTERMOST_URL"].strip().rstrip("/")
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as exc:
        raise ConfigError(f"MATTERMOST_URL {url!r} is not a valid URL: {exc}") from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ConfigError(f"MATTERMOST_URL must be an http(s) address with a host, got {url!r}")

    return ServerConfig(
        url=url,
        token=values["MATTERMOST_TOKEN"].strip(),
        team=values["MATTERMOST_TEAM"].strip(),
        timeout=timeout,
    )
