"""Data storage helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "slabsync"
HTTP_CACHE_FILENAME: Final[str] = "http_cache.db"
BROWSER_PROFILE_DIRNAME: Final[str] = "browser-profile"


def get_data_dir() -> Path:
    """Return the directory where slabsync keeps its cache and browser profile."""

    env_dir = os.getenv("SLABSYNC_DATA_DIR")
    if env_dir:
        return Path(env_dir).expanduser().resolve()

    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")

    return (base_path / APP_DIR_NAME).expanduser().resolve()


def ensure_data_dir(path: Path | None = None) -> Path:
    """Ensure the data directory exists and return it."""

    data_dir = path or get_data_dir()
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_http_cache_path() -> Path:
    return ensure_data_dir() / HTTP_CACHE_FILENAME


def get_browser_profile_dir() -> Path:
    """Return the persistent browser profile directory, creating it if needed."""

    profile = ensure_data_dir() / BROWSER_PROFILE_DIRNAME
    profile.mkdir(parents=True, exist_ok=True)
    return profile
