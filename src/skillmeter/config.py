"""Configuration and path helpers for skillmeter.

Everything lives under the project-local state directory
(.claude/skillmeter/) unless overridden by environment variables:

- SKILLMETER_PROJECT_DIR: project root (defaults to cwd)
- SKILLMETER_DB_PATH: metrics database location
"""

import os
from pathlib import Path

PROJECT_DIR_VAR = "SKILLMETER_PROJECT_DIR"
DB_PATH_VAR = "SKILLMETER_DB_PATH"


def get_project_dir() -> Path:
    """Get the project directory.

    Uses SKILLMETER_PROJECT_DIR if set, otherwise falls back to cwd.
    """
    env_dir = os.environ.get(PROJECT_DIR_VAR)
    if env_dir:
        return Path(env_dir)
    return Path.cwd()


def get_state_dir() -> Path:
    """Get the skillmeter state directory (.claude/skillmeter/)."""
    return get_project_dir() / ".claude" / "skillmeter"


def get_metrics_db_path() -> Path:
    """Get the path to the metrics SQLite database.

    Uses SKILLMETER_DB_PATH if set.
    """
    env_path = os.environ.get(DB_PATH_VAR)
    if env_path:
        return Path(env_path)
    return get_state_dir() / "metrics.db"


def get_exports_dir() -> Path:
    """Get the directory for metric exports."""
    return get_state_dir() / "exports"
