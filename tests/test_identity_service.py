# tests/test_identity_service.py
# Tests for user identifier derivation and key scoping

import base64
import json

import pytest

import db_config
from core import Category, CatalogStore
from repository import CategoryMapRepository, DatabaseConnection, PhotoStoreRepository, StoredRecord
from services.identity_service import (
    IdentityService,
    KEY_PREFIX,
    USER_ID_SETTING,
    forget_identity_service,
    generate_fingerprint,
    get_identity_service,
)
from settings_manager import SETTINGS_FILENAME, SettingsManager


def fixed_traits():
    return {"system": "TestOS", "machine": "x86_64", "language": "en_US"}


def broken_traits():
    raise RuntimeError("platform calls blocked")


class TestFingerprint:

    def test_fingerprint_is_truncated_base64_of_traits(self):
        fp = generate_fingerprint(fixed_traits)
        expected = base64.b64encode(
            json.dumps(fixed_traits(), sort_keys=True).encode("utf-8")
        ).decode("ascii")[:32]
        assert fp == expected
        assert len(fp) == 32

    def test_fingerprint_falls_back_when_traits_fail(self):
        fp = generate_fingerprint(broken_traits)
        assert fp.startswith("fallback_")
        _, millis, token = fp.split("_")
        assert millis.isdigit()
        assert len(token) == 9

    def test_default_traits_produce_fingerprint(self):
        assert generate_fingerprint()


class TestIdentityService:

    def test_generates_and_stores_user_id(self, settings: SettingsManager):
        identity = IdentityService(settings, trait_source=fixed_traits)
        user_id = identity.current_user_id()

        assert user_id.startswith(f"user_{generate_fingerprint(fixed_traits)}_")
        assert settings.get(USER_ID_SETTING) == user_id

    def test_user_id_stable_across_restarts(self, settings: SettingsManager):
        first = IdentityService(settings, trait_source=fixed_traits).current_user_id()

        reloaded = SettingsManager(settings.path)
        second = IdentityService(reloaded, trait_source=broken_traits).current_user_id()

        assert first == second

    def test_fallback_identity_is_not_fatal(self, settings: SettingsManager):
        user_id = IdentityService(settings, trait_source=broken_traits).current_user_id()
        assert user_id.startswith("user_fallback_")

    def test_scoped_key_is_plain_concatenation(self, make_identity):
        identity = make_identity("user_abc")
        assert identity.scoped_key("categories") == f"{KEY_PREFIX}_user_abc_categories"
        assert identity.scoped_key("columns") == "photo-picker_user_abc_columns"

    def test_clear_user_data_only_removes_own_keys(self, settings: SettingsManager):
        settings.set(USER_ID_SETTING, "user_a")
        identity = IdentityService(settings)
        settings.set(identity.scoped_key("columns"), 5)
        settings.set(identity.scoped_key("other"), "x")
        settings.set("photo-picker_user_b_columns", 4)

        removed = identity.clear_user_data()

        assert removed == 2
        assert settings.get("photo-picker_user_a_columns") is None
        assert settings.get("photo-picker_user_b_columns") == 4
        assert settings.get(USER_ID_SETTING) == "user_a"

    def test_second_instance_on_same_file_reuses_stored_id(self, settings: SettingsManager):
        other = SettingsManager(settings.path)
        first = IdentityService(settings, trait_source=fixed_traits).current_user_id()

        # `other` loaded the file before the id existed
        second = IdentityService(other, trait_source=broken_traits).current_user_id()

        assert second == first


class TestSharedIdentity:

    @pytest.fixture
    def profile_dir(self, temp_dir, monkeypatch):
        monkeypatch.setenv(db_config.DATA_DIR_ENV, str(temp_dir))
        settings_path = str(temp_dir / SETTINGS_FILENAME)
        forget_identity_service(settings_path)
        yield temp_dir
        forget_identity_service(settings_path)
        DatabaseConnection.forget(str(temp_dir / "shared.db"))

    def test_one_instance_per_settings_file(self, profile_dir):
        first = get_identity_service()
        second = get_identity_service(SettingsManager(str(profile_dir / SETTINGS_FILENAME)))

        assert first is second
        assert get_identity_service(SettingsManager(str(profile_dir / "other.json"))) is not first

    def test_default_components_share_one_user_id(self, profile_dir):
        db = DatabaseConnection(str(profile_dir / "shared.db"), auto_init=True)
        store = PhotoStoreRepository(db, yield_delay=0)
        category_map = CategoryMapRepository(db)
        catalog = CatalogStore(category_repository=category_map, settings=SettingsManager())

        store.put(StoredRecord(key="k1", path="a/1.jpg", content=b"data"))
        category_map.save({"a/1.jpg": Category.CORRECT})
        catalog.set_columns(4)

        # Next session
        forget_identity_service(str(profile_dir / SETTINGS_FILENAME))
        settings = SettingsManager()
        identity = IdentityService(settings)
        user_id = identity.current_user_id()

        assert [r.key for r in PhotoStoreRepository(db, identity).get_all_for_current_user()] == ["k1"]
        assert CategoryMapRepository(db, identity).load() == {"a/1.jpg": Category.CORRECT}
        assert settings.get(f"{KEY_PREFIX}_{user_id}_columns") == 4
        assert get_identity_service().settings.path == settings.path
