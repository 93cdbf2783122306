# settings_manager.py
# Version 10.00.00.00 dated 20261019
# JSON-backed scalar store: user preferences plus the cached user identifier

import json
import os
import warnings
import logging

from logging_config import get_logger

logger = get_logger(__name__)


SETTINGS_FILENAME = "photo_picker_settings.json"

DEFAULT_SETTINGS = {
    # --- Diagnostics ---
    "show_decoder_warnings": False,  # if True, Pillow warnings are visible
}


def apply_decoder_warning_policy(settings: "SettingsManager" = None):
    """
    Apply global decoder warning visibility according to settings.
    Called early in app startup, before any image is decoded.
    """
    sm = settings or SettingsManager()
    show_warnings = sm.get("show_decoder_warnings", False)

    if not show_warnings:
        warnings.filterwarnings("ignore", message=".*DecompressionBombWarning.*")
        warnings.filterwarnings("ignore", message=".*iCCP.*")
        logging.getLogger("PIL").setLevel(logging.ERROR)
        logger.info("Decoder warnings suppressed (Pillow, ICC)")
    else:
        logging.getLogger("PIL").setLevel(logging.INFO)
        logger.info("Decoder warnings ENABLED for debugging")


class SettingsManager:
    """
    Single-file key/value store.

    Values are plain JSON scalars; there are no transactions. Every set()
    re-reads the file and rewrites it, so a crash loses at most the last
    change and keys written by another instance are not clobbered.
    """

    def __init__(self, settings_file: str = None):
        if settings_file is None:
            from db_config import get_data_dir
            settings_file = os.path.join(get_data_dir(), SETTINGS_FILENAME)
        self._path = settings_file
        self._data = DEFAULT_SETTINGS.copy()
        self._load()

    @property
    def path(self) -> str:
        return self._path

    def _load(self):
        if os.path.exists(self._path):
            try:
                with open(self._path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                    self._data.update(data)
            except (OSError, ValueError) as e:
                logger.warning(f"[Settings] Could not read {self._path}, using defaults: {e}")

    def save(self):
        try:
            directory = os.path.dirname(self._path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2)
        except OSError as e:
            logger.error(f"[Settings] Save failed: {e}")

    def reload(self):
        """Discard the in-memory copy and read the file again."""
        self._data = DEFAULT_SETTINGS.copy()
        self._load()

    def get(self, key, default=None):
        return self._data.get(key, default)

    def set(self, key, value):
        self.reload()
        self._data[key] = value
        self.save()

    def remove(self, key) -> bool:
        self.reload()
        if key not in self._data:
            return False
        del self._data[key]
        self.save()
        return True

    def keys(self):
        return list(self._data.keys())
