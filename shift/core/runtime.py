"""Data directory and database location."""

from __future__ import annotations

import logging
import os
import tempfile
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)

APP_NAME = "shift"
DB_NAME = "events.db"
HOME_ENV = "SHIFT_HOME"
LOG_LEVEL_ENV = "SHIFT_LOG_LEVEL"


def _is_writable_dir(path: Path) -> bool:
    """Return whether path exists and accepts create/write/delete operations."""
    try:
        path.mkdir(parents=True, exist_ok=True)
        probe = path / f".shift-write-probe-{uuid.uuid4().hex}"
        probe.write_text("ok")
        probe.unlink(missing_ok=True)
        return True
    except OSError:
        return False


def data_home_candidates() -> list[Path]:
    """Candidate data directories, most preferred first."""
    candidates = []
    configured = os.environ.get(HOME_ENV)
    if configured:
        candidates.append(Path(configured).expanduser())
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        candidates.append(Path(xdg).expanduser() / APP_NAME)
    candidates.append(Path.home() / ".local" / "share" / APP_NAME)
    return candidates


def resolve_data_home() -> Path:
    """Resolve the data directory with a writable fallback for restricted envs."""
    for candidate in data_home_candidates():
        if _is_writable_dir(candidate):
            return candidate
        logger.warning("Data directory %s is not writable, trying next", candidate)

    fallback = Path(tempfile.gettempdir()) / f"{APP_NAME}-runtime"
    fallback.mkdir(parents=True, exist_ok=True)
    return fallback


def default_db_path() -> Path:
    return resolve_data_home() / DB_NAME


def log_level_from_env(default: str = "WARNING") -> str:
    return os.environ.get(LOG_LEVEL_ENV, default).upper()
