# tests/test_qt_integration.py
# Tests for the Qt-facing pieces: signal bridge, picker and cooperative yield

import pytest

from core import Category, CatalogStore, UserCancelled
from core.cooperative import cooperative_yield, should_yield

pytestmark = pytest.mark.requires_qt


@pytest.fixture(scope="session")
def qapp():
    from PySide6.QtWidgets import QApplication
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


class TestCatalogSignalBridge:

    def test_signals_follow_catalog(self, qapp, make_photo):
        from services.catalog_qt_bridge import CatalogSignalBridge

        catalog = CatalogStore()
        bridge = CatalogSignalBridge(catalog)
        versions, stats, changed = [], [], []
        bridge.catalogChanged.connect(versions.append)
        bridge.statsChanged.connect(stats.append)
        bridge.categoryChanged.connect(changed.append)

        photo = make_photo("a/1.jpg")
        catalog.load([photo])
        catalog.set_category(photo.id, Category.WRONG)

        assert versions == [1, 2]
        assert stats[-1] == {"total": 1, "correct": 0, "medium": 0, "wrong": 1, "uncategorized": 0}
        assert changed == [photo.id]

        bridge.detach()
        catalog.clear()
        assert versions == [1, 2]


class FakeFileDialog:
    """Stands in for QFileDialog so no modal dialog opens."""

    class Option:
        ShowDirsOnly = 0

    answer = ""

    @classmethod
    def getExistingDirectory(cls, parent, title, start_dir, options):
        return cls.answer


class TestQtDirectoryPicker:

    def test_empty_selection_is_cancel(self, qapp, monkeypatch):
        import services.directory_picker as module
        monkeypatch.setattr(module, "QFileDialog", FakeFileDialog)
        monkeypatch.setattr(FakeFileDialog, "answer", "")

        with pytest.raises(UserCancelled):
            module.QtDirectoryPicker().choose_directory()

    def test_selection_returned(self, qapp, monkeypatch, temp_dir):
        import services.directory_picker as module
        monkeypatch.setattr(module, "QFileDialog", FakeFileDialog)
        monkeypatch.setattr(FakeFileDialog, "answer", str(temp_dir))

        picker = module.QtDirectoryPicker()
        assert picker.choose_directory("readwrite") == str(temp_dir)
        assert picker.start_dir == str(temp_dir)


class TestCooperativeYield:

    def test_yield_pumps_events(self, qapp):
        cooperative_yield(0)

    def test_should_yield(self):
        assert [n for n in range(1, 151) if should_yield(n, 50)] == [50, 100, 150]
        assert not should_yield(0, 50)
        assert not should_yield(10, 0)
