# services/identity_service.py
# Version 01.00.00.00 dated 20261019
# Per-profile user identifier and key scoping for persisted state

"""
Identity & scoping.

There is no login: the identifier is derived once from host traits,
cached in the settings file and reused on every start. It only keeps
two profiles that share one machine (or one data directory) from seeing
each other's photos and tags; it is not a security boundary.
"""

import base64
import hashlib
import json
import locale
import os
import platform
import random
import string
import threading
import time
from typing import Dict, Optional

from logging_config import get_logger

logger = get_logger(__name__)

USER_ID_SETTING = "photo-picker-user-id"
KEY_PREFIX = "photo-picker"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _random_base36(length: int = 9) -> str:
    alphabet = string.digits + string.ascii_lowercase
    return "".join(random.choice(alphabet) for _ in range(length))


def collect_host_traits() -> dict:
    """Host traits that make up the fingerprint."""
    language, _encoding = locale.getlocale()
    traits = {
        "system": platform.system(),
        "release": platform.release(),
        "machine": platform.machine(),
        "node": platform.node(),
        "language": language or "",
        "timezone": time.tzname[0] if time.tzname else "",
    }
    traits["digest"] = hashlib.sha1(
        json.dumps(traits, sort_keys=True).encode("utf-8")
    ).hexdigest()[:12]
    return traits


def generate_fingerprint(trait_source=collect_host_traits) -> str:
    """
    Build a short fingerprint from host traits.

    Falls back to a time+random token if the traits cannot be read
    (sandboxed interpreters, restricted platform calls).
    """
    try:
        traits = trait_source()
        encoded = base64.b64encode(json.dumps(traits, sort_keys=True).encode("utf-8"))
        return encoded.decode("ascii")[:32]
    except Exception as e:
        logger.error(f"Fingerprint generation failed, using fallback: {e}")
        return f"fallback_{_now_ms()}_{_random_base36()}"


class IdentityService:
    """
    Resolves the current user identifier and namespaces persisted keys.

    Args:
        settings: SettingsManager (or any object with get/set/remove/keys)
        trait_source: callable returning host traits, injectable for tests
    """

    def __init__(self, settings=None, trait_source=collect_host_traits):
        if settings is None:
            from settings_manager import SettingsManager
            settings = SettingsManager()
        self._settings = settings
        self._trait_source = trait_source
        self._user_id: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def settings(self):
        return self._settings

    def current_user_id(self) -> str:
        """
        Stable identifier for this profile.

        Read from the scalar store; generated and stored only when absent.
        The file is re-read first, so an id stored by another instance on
        the same settings file wins over minting a new one.
        """
        if self._user_id:
            return self._user_id

        with self._lock:
            if self._user_id:
                return self._user_id

            reload = getattr(self._settings, "reload", None)
            if reload is not None:
                reload()
            user_id = self._settings.get(USER_ID_SETTING)
            if not user_id:
                user_id = f"user_{generate_fingerprint(self._trait_source)}_{_now_ms()}"
                self._settings.set(USER_ID_SETTING, user_id)
                logger.info(f"Generated new user id: {user_id}")

            self._user_id = user_id
            return user_id

    def scoped_key(self, key: str) -> str:
        """Namespace a logical key by the current user identifier."""
        return f"{KEY_PREFIX}_{self.current_user_id()}_{key}"

    def clear_user_data(self) -> int:
        """
        Remove every scalar-store entry scoped to the current user.

        Returns:
            Number of keys removed
        """
        prefix = f"{KEY_PREFIX}_{self.current_user_id()}_"
        removed = 0
        for key in self._settings.keys():
            if key.startswith(prefix):
                self._settings.remove(key)
                removed += 1
        logger.info(f"Cleared {removed} scoped settings for {self.current_user_id()}")
        return removed


# Shared instances, one per settings file
_identity_services: Dict[str, IdentityService] = {}
_identity_lock = threading.Lock()


def get_identity_service(settings=None) -> IdentityService:
    """
    Shared IdentityService for a settings file.

    Components that are not handed an identity use this, so a store, its
    category map and the catalog opened on one data directory resolve the
    same user id.

    Args:
        settings: SettingsManager; the default settings file when None
    """
    if settings is None:
        from settings_manager import SettingsManager
        settings = SettingsManager()
    key = os.path.abspath(settings.path)
    with _identity_lock:
        service = _identity_services.get(key)
        if service is None:
            service = IdentityService(settings)
            _identity_services[key] = service
        return service


def forget_identity_service(settings_path: str):
    """Drop the shared instance for a settings file (tests, profile switch)."""
    with _identity_lock:
        _identity_services.pop(os.path.abspath(settings_path), None)
