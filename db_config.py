"""
Database Configuration
======================

Centralized storage location configuration for PhotoPicker.

Everything the application persists (the photo store database, the
settings file, the log file and rendered previews) lives under one data
directory so a profile can be wiped or moved as a unit.

Usage:
    from db_config import get_db_path

    db_path = get_db_path()  # ~/.photo_picker/photo_picker.db
"""

import os
from pathlib import Path


# Canonical database file name
_DB_FILENAME = "photo_picker.db"

# Environment override for the data directory
DATA_DIR_ENV = "PHOTO_PICKER_HOME"


def get_data_dir() -> str:
    """
    Get the application data directory.

    Returns:
        str: $PHOTO_PICKER_HOME if set, otherwise ~/.photo_picker
    """
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return override
    return str(Path.home() / ".photo_picker")


def get_db_path(base_dir: str = None) -> str:
    """
    Get the canonical database path.

    Args:
        base_dir: Optional base directory (defaults to the data directory)

    Returns:
        str: Full path to database file

    Examples:
        >>> get_db_path('/path/to/profile')
        '/path/to/profile/photo_picker.db'
    """
    if base_dir is None:
        base_dir = get_data_dir()

    return str(Path(base_dir) / _DB_FILENAME)


def get_db_filename() -> str:
    """Get the database filename without path."""
    return _DB_FILENAME


def ensure_db_directory(db_path: str = None) -> str:
    """
    Ensure the database directory exists.

    Args:
        db_path: Optional database path (defaults to get_db_path())

    Returns:
        str: Database path with directory created

    Raises:
        OSError: If directory creation fails
    """
    if db_path is None:
        db_path = get_db_path()

    db_dir = os.path.dirname(db_path)

    # If path is just filename (no directory), nothing to create
    if not db_dir or db_dir == '.':
        return db_path

    os.makedirs(db_dir, exist_ok=True)

    return db_path
