"""Where EchoTrace keeps its database, service log and exports."""

from __future__ import annotations

from pathlib import Path

from platformdirs import PlatformDirs

APP_NAME = "EchoTrace"
DB_FILENAME = "stats.sqlite3"
LOG_FILENAME = "service.log"


def _dirs() -> PlatformDirs:
    return PlatformDirs(APP_NAME, appauthor=False)


def _ensure(directory: Path) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def get_db_path() -> Path:
    """SQLite file holding the stats document, under the per-user data dir."""
    return _ensure(_dirs().user_data_path) / DB_FILENAME


def get_log_path() -> Path:
    return _ensure(_dirs().user_log_path) / LOG_FILENAME


def get_export_dir() -> Path:
    """Default target of ``echotrace export``.

    Exports land in the user's downloads folder, like a browser download.
    When that folder does not exist the current directory is used instead.
    """
    downloads = _dirs().user_downloads_path
    return downloads if downloads.is_dir() else Path.cwd()
