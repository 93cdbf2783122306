# services/directory_picker.py
# Version 01.00.00.00 dated 20261019
# Directory picker boundary: protocol plus the Qt implementation

from typing import Optional, Protocol

from PySide6.QtWidgets import QApplication, QFileDialog

from core.errors import UnsupportedEnvironment, UserCancelled
from logging_config import get_logger

logger = get_logger(__name__)

MODE_READ = "read"
MODE_READWRITE = "readwrite"


class DirectoryPicker(Protocol):
    """
    Lets the user choose a directory.

    Implementations return an absolute path, raise UserCancelled when the
    prompt is dismissed and UnsupportedEnvironment when no prompt can be
    shown at all.
    """

    def choose_directory(self, mode: str = MODE_READ, title: Optional[str] = None) -> str:
        ...


class StaticDirectoryPicker:
    """Picker that always answers with a fixed directory (scripts, tests)."""

    def __init__(self, path: Optional[str]):
        self.path = path

    def choose_directory(self, mode: str = MODE_READ, title: Optional[str] = None) -> str:
        if not self.path:
            raise UserCancelled("No directory chosen")
        return self.path


class QtDirectoryPicker:
    """QFileDialog-backed picker. Requires a running QApplication."""

    def __init__(self, parent=None, start_dir: str = ""):
        self.parent = parent
        self.start_dir = start_dir

    def choose_directory(self, mode: str = MODE_READ, title: Optional[str] = None) -> str:
        if QApplication.instance() is None:
            raise UnsupportedEnvironment("Directory picker needs a running QApplication")

        if title is None:
            title = "Choose export folder" if mode == MODE_READWRITE else "Choose photo folder"

        path = QFileDialog.getExistingDirectory(
            self.parent, title, self.start_dir, QFileDialog.Option.ShowDirsOnly
        )
        if not path:
            logger.info("Directory picker cancelled")
            raise UserCancelled("Directory picker dismissed")

        self.start_dir = path
        return path
