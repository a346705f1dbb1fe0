"""
Path resolver for trust-calendar.

Rules
-----
* base_dir   → project root
* data_dir   → base_dir/data  (portable first); fallback ~/TrustCalendar/data
* logs_dir   → base_dir/logs  (portable first); fallback ~/TrustCalendar/logs
* migrations → shipped inside the package (trust_calendar/migrations)
* db_path    → data_dir/calendar.db

NEVER use os.getcwd() or relative Path("...") strings in runtime code;
always call one of the functions below.
"""

import os
from pathlib import Path

APP_DIR_NAME = "TrustCalendar"

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _get_base_dir() -> Path:
    """Project root (two levels up from trust_calendar/utils/paths.py)."""
    return Path(__file__).resolve().parent.parent.parent


def _try_writable(path: Path) -> bool:
    """
    Return True if *path* can be created and used as a writable directory.

    Creates the directory if it does not exist and checks it with a
    canary file.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
        canary = path / ".write_check"
        canary.touch()
        canary.unlink()
        return True
    except (OSError, PermissionError):
        return False


def _home_dir(sub: str) -> Path:
    """Return %APPDATA%/TrustCalendar/<sub> (Windows) or ~/TrustCalendar/<sub>."""
    appdata = os.environ.get("APPDATA") or str(Path.home())
    return Path(appdata) / APP_DIR_NAME / sub


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def get_base_dir() -> Path:
    return _get_base_dir()


def get_data_dir() -> Path:
    """
    Portable data directory.

    Priority:
      1. <base_dir>/data
      2. ~/TrustCalendar/data  ← fallback if base_dir is read-only
    """
    primary = _get_base_dir() / "data"
    if _try_writable(primary):
        return primary
    fallback = _home_dir("data")
    fallback.mkdir(parents=True, exist_ok=True)
    return fallback


def get_logs_dir() -> Path:
    """
    Portable logs directory.

    Priority:
      1. <base_dir>/logs
      2. ~/TrustCalendar/logs
    """
    primary = _get_base_dir() / "logs"
    if _try_writable(primary):
        return primary
    fallback = _home_dir("logs")
    fallback.mkdir(parents=True, exist_ok=True)
    return fallback


def get_migrations_dir() -> Path:
    """SQL migrations directory (bundled with the package)."""
    return Path(__file__).resolve().parent.parent / "migrations"


def get_db_path() -> Path:
    """Full path to the SQLite database file."""
    return get_data_dir() / "calendar.db"
