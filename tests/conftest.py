# tests/conftest.py
# Pytest fixtures and configuration for integration tests

import os
import shutil
import sqlite3
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from PIL import Image

# Qt tests run without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from core.models import Category, Photo, PhotoContent
from repository.base_repository import DatabaseConnection
from repository.schema import LEGACY_SCHEMA_SQL_V1
from services.identity_service import IdentityService, USER_ID_SETTING
from settings_manager import SettingsManager


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create temporary directory for test files."""
    tmpdir = tempfile.mkdtemp(prefix="photo_picker_test_")
    yield Path(tmpdir)
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def test_db_path(temp_dir: Path) -> Generator[Path, None, None]:
    """Temporary database path; the cached connection is dropped afterwards."""
    path = temp_dir / "test_photo_picker.db"
    yield path
    DatabaseConnection.forget(str(path))


@pytest.fixture
def db(test_db_path: Path) -> DatabaseConnection:
    """Fresh database with the current schema."""
    return DatabaseConnection(str(test_db_path), auto_init=True)


@pytest.fixture
def legacy_db_path(temp_dir: Path) -> Generator[Path, None, None]:
    """
    Database laid out like a store created before user scoping.

    Holds one photo record without user_id.
    """
    path = temp_dir / "legacy_photo_picker.db"
    conn = sqlite3.connect(str(path))
    conn.executescript(LEGACY_SCHEMA_SQL_V1)
    conn.execute(
        "INSERT INTO photo_records (id, name, path, category, size, last_modified, image_data) "
        "VALUES (?, ?, ?, ?, ?, ?, ?)",
        ("legacy-1", "old.jpg", "trip/old.jpg", "wrong", 3, 0, b"old")
    )
    conn.commit()
    conn.close()
    yield path
    DatabaseConnection.forget(str(path))


@pytest.fixture
def settings(temp_dir: Path) -> SettingsManager:
    return SettingsManager(str(temp_dir / "settings.json"))


@pytest.fixture
def make_identity(temp_dir: Path):
    """Factory for identities pinned to a given user id, each with its own settings file."""
    def _make(user_id: str = "user_test_1") -> IdentityService:
        sm = SettingsManager(str(temp_dir / f"settings_{user_id}.json"))
        sm.set(USER_ID_SETTING, user_id)
        return IdentityService(sm)
    return _make


@pytest.fixture
def identity(make_identity) -> IdentityService:
    return make_identity("user_test_1")


@pytest.fixture
def make_photo():
    """Factory for in-memory photos with materialized content."""
    def _make(path: str, category=Category.NONE, data: bytes = None) -> Photo:
        content = PhotoContent.from_bytes(data if data is not None else path.encode("utf-8"))
        return Photo(path=path, content=content, category=category, size=len(content.read()))
    return _make


@pytest.fixture
def test_images_dir(temp_dir: Path) -> Path:
    """Create directory for test images."""
    img_dir = temp_dir / "images"
    img_dir.mkdir(exist_ok=True)
    return img_dir


@pytest.fixture
def sample_image(test_images_dir: Path) -> Path:
    """800x600 RGB JPEG."""
    img_path = test_images_dir / "sample_001.jpg"
    Image.new("RGB", (800, 600), color=(100, 150, 200)).save(img_path, "JPEG", quality=85)
    return img_path


@pytest.fixture
def nested_folder_structure(test_images_dir: Path) -> dict[str, Path]:
    """
    Create nested folder structure with images and non-image files.

    Structure:
    images/
      2023/
        12_December/
          photo_004.jpg
      2024/
        01_January/
          photo_001.jpg
          photo_002.JPG
          notes.txt
        02_February/
          photo_003.png
      cover.webp

    Returns dict mapping folder names to paths.
    """
    structure = {}

    jan_2024 = test_images_dir / "2024" / "01_January"
    jan_2024.mkdir(parents=True, exist_ok=True)
    structure["2024_jan"] = jan_2024

    feb_2024 = test_images_dir / "2024" / "02_February"
    feb_2024.mkdir(parents=True, exist_ok=True)
    structure["2024_feb"] = feb_2024

    dec_2023 = test_images_dir / "2023" / "12_December"
    dec_2023.mkdir(parents=True, exist_ok=True)
    structure["2023_dec"] = dec_2023

    Image.new("RGB", (800, 600), color=(255, 0, 0)).save(jan_2024 / "photo_001.jpg", "JPEG")
    Image.new("RGB", (800, 600), color=(0, 255, 0)).save(jan_2024 / "photo_002.JPG", "JPEG")
    Image.new("RGB", (800, 600), color=(0, 0, 255)).save(feb_2024 / "photo_003.png", "PNG")
    Image.new("RGB", (800, 600), color=(255, 255, 0)).save(dec_2023 / "photo_004.jpg", "JPEG")
    Image.new("RGB", (64, 64), color=(0, 255, 255)).save(test_images_dir / "cover.webp", "WEBP")
    (jan_2024 / "notes.txt").write_text("not an image")

    structure["root"] = test_images_dir
    return structure
