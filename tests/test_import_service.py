# tests/test_import_service.py
# Tests for folder and drop imports

import os
from pathlib import Path

import pytest

from core import Category, CatalogStore, UnsupportedEnvironment
from services.directory_picker import StaticDirectoryPicker
from services.import_service import (
    DROPPED_ITEMS_NAME,
    DroppedItemsSource,
    LocalDirectorySource,
    PhotoImportService,
    is_image_file,
)


@pytest.fixture
def service() -> PhotoImportService:
    return PhotoImportService(yield_delay=0)


class TestImageExtensions:

    @pytest.mark.parametrize("name", ["a.jpg", "b.JPEG", "c.png", "d.webp", "e.Tif", "f.cr2", "g.DNG", "h.svg"])
    def test_recognized(self, name):
        assert is_image_file(name)

    @pytest.mark.parametrize("name", ["notes.txt", "movie.mp4", "noext", "archive.jpg.zip", ".jpg"])
    def test_not_recognized(self, name):
        assert not is_image_file(name)


class TestLocalDirectoryImport:

    def test_depth_first_sorted_order(self, service, nested_folder_structure):
        result = service.import_source(LocalDirectorySource(str(nested_folder_structure["root"])))

        assert [p.path for p in result.photos] == [
            "2023/12_December/photo_004.jpg",
            "2024/01_January/photo_001.jpg",
            "2024/01_January/photo_002.JPG",
            "2024/02_February/photo_003.png",
            "cover.webp",
        ]
        assert result.skipped == 1
        assert result.failed == 0
        assert result.folder_name == "images"

    def test_photos_are_lazy_and_untagged(self, service, nested_folder_structure):
        result = service.import_source(LocalDirectorySource(str(nested_folder_structure["root"])))
        photo = result.photos[0]

        assert photo.category is Category.NONE
        assert not photo.content.is_materialized
        assert photo.size == os.path.getsize(nested_folder_structure["2023_dec"] / "photo_004.jpg")
        assert photo.content.read()[:2] == b"\xff\xd8"
        assert not photo.content.is_materialized

    def test_fresh_ids_on_every_import(self, service, nested_folder_structure):
        source = LocalDirectorySource(str(nested_folder_structure["root"]))
        first = {p.id for p in service.import_source(source).photos}
        second = {p.id for p in service.import_source(source).photos}
        assert not first & second

    def test_progress_every_file(self, service, nested_folder_structure):
        progress = []
        service.import_source(LocalDirectorySource(str(nested_folder_structure["root"])), progress.append)

        assert [p.current for p in progress] == [1, 2, 3, 4, 5]
        assert all(p.current == p.total for p in progress)

    def test_yields_every_chunk(self, temp_dir: Path, monkeypatch):
        import services.import_service as module
        calls = []
        monkeypatch.setattr(module, "cooperative_yield", lambda delay: calls.append(delay))
        for i in range(101):
            (temp_dir / f"{i:03d}.png").write_bytes(b"png")

        result = PhotoImportService().import_source(LocalDirectorySource(str(temp_dir)))

        assert result.imported == 101
        assert len(calls) == 2

    def test_empty_folder(self, service, temp_dir: Path):
        result = service.import_source(LocalDirectorySource(str(temp_dir)))
        assert result.photos == []
        assert result.folder_name is None


class TestDroppedItems:

    def test_files_keep_name_and_dirs_are_relative(self, service, nested_folder_structure, sample_image):
        source = DroppedItemsSource([
            str(sample_image),
            str(nested_folder_structure["root"] / "2024"),
        ])

        result = service.import_source(source)

        assert [p.path for p in result.photos] == [
            "sample_001.jpg",
            "01_January/photo_001.jpg",
            "01_January/photo_002.JPG",
            "02_February/photo_003.png",
        ]
        assert result.folder_name == DROPPED_ITEMS_NAME

    def test_missing_item_is_ignored(self, service, temp_dir: Path):
        result = service.import_dropped([str(temp_dir / "gone.jpg")])
        assert result.photos == []


class TestPickerImport:

    def test_cancelled_picker_gives_empty_result(self, service):
        result = service.import_folder(StaticDirectoryPicker(None))

        assert result.photos == []
        assert result.folder_name is None

    def test_unsupported_environment_propagates(self, service):
        class NoPicker:
            def choose_directory(self, mode="read", title=None):
                raise UnsupportedEnvironment("no picker")

        with pytest.raises(UnsupportedEnvironment):
            service.import_folder(NoPicker())

    def test_picked_folder_loaded_into_catalog(self, service, nested_folder_structure):
        catalog = CatalogStore()
        result = service.import_folder(StaticDirectoryPicker(str(nested_folder_structure["2024_feb"])))

        restored = service.load_into(catalog, result)

        assert restored == 0
        assert [p.path for p in catalog.photos] == ["photo_003.png"]
        assert result.folder_name == "02_February"

    def test_merge_into_catalog(self, service, nested_folder_structure):
        catalog = CatalogStore()
        service.load_into(catalog, service.import_folder(StaticDirectoryPicker(str(nested_folder_structure["2024_feb"]))))
        service.load_into(catalog, service.import_folder(StaticDirectoryPicker(str(nested_folder_structure["2023_dec"]))), merge=True)

        assert [p.path for p in catalog.photos] == ["photo_003.png", "photo_004.jpg"]


class TestTagsAcrossReimport:

    def test_tags_restored_after_clear_and_reimport(self, service, nested_folder_structure):
        catalog = CatalogStore()
        source = LocalDirectorySource(str(nested_folder_structure["root"]))
        service.load_into(catalog, service.import_source(source))
        first = catalog.photos
        catalog.set_category(first[0].id, Category.CORRECT)
        catalog.set_category(first[3].id, Category.MEDIUM)

        catalog.clear()
        restored = service.load_into(catalog, service.import_source(source))

        assert restored == 2
        by_path = {p.path: p for p in catalog.photos}
        assert by_path[first[0].path].category is Category.CORRECT
        assert by_path[first[3].path].category is Category.MEDIUM
        assert by_path[first[0].path].id != first[0].id
