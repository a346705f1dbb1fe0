"""
Project configuration and constants.
"""
from pathlib import Path

from trust_calendar.utils.paths import get_base_dir, get_data_dir, get_db_path


# Project root
PROJECT_ROOT: Path = get_base_dir()

# Data directory: portable (next to the project) with home-directory fallback
DATA_DIR: Path = get_data_dir()

DATABASE_PATH: Path = get_db_path()
SETTINGS_FILE: Path = DATA_DIR / "settings.json"

# Optional festival seed list ({"festivals": [...]})
FESTIVALS_FILE: Path = DATA_DIR / "festivals.json"

# Identity recorded as created_by for CLI actions
DEFAULT_ACTOR = "cli"
