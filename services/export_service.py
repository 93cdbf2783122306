# services/export_service.py
# Version 01.00.00.00 dated 20261019
# Export tagged photos into category folders, keeping relative structure

import os
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence

from core.cooperative import DEFAULT_CHUNK_SIZE, DEFAULT_YIELD_DELAY, cooperative_yield, should_yield
from core.errors import NoCategorySelected, UserCancelled
from core.models import Category, Photo, Progress
from logging_config import get_logger
from .directory_picker import MODE_READWRITE

logger = get_logger(__name__)

EXPORT_FOLDER_NAMES = {
    Category.CORRECT: "Correct",
    Category.MEDIUM: "Medium",
    Category.WRONG: "Wrong",
    Category.NONE: "Uncategorized",
}


class LocalDirectorySink:
    """Write sink over a directory on disk."""

    def __init__(self, path: str):
        self.path = os.path.abspath(path)
        self.name = os.path.basename(self.path.rstrip(os.sep)) or self.path

    def subdirectory(self, name: str) -> "LocalDirectorySink":
        """Get or create a child directory."""
        _check_component(name)
        child = os.path.join(self.path, name)
        os.makedirs(child, exist_ok=True)
        return LocalDirectorySink(child)

    def write_file(self, name: str, data: bytes):
        _check_component(name)
        with open(os.path.join(self.path, name), "wb") as f:
            f.write(data)


def _check_component(name: str):
    if not name or name in (".", "..") or "/" in name or os.sep in name:
        raise ValueError(f"Invalid path component: {name!r}")


@dataclass(frozen=True)
class ExportResult:
    exported: int
    total: int
    failed: int = 0
    folder_name: Optional[str] = None


class PhotoExportService:
    """
    Writes photos into one subfolder per selected category.

    Inside each category folder the photo's original relative directory is
    recreated and the content is written verbatim under its original name.
    """

    def __init__(self,
                 chunk_size: int = DEFAULT_CHUNK_SIZE,
                 yield_delay: float = DEFAULT_YIELD_DELAY):
        self.chunk_size = chunk_size
        self.yield_delay = yield_delay
        self.logger = get_logger(self.__class__.__name__)

    def export(self,
               photos: Sequence[Photo],
               categories: Iterable,
               sink=None,
               picker=None,
               on_progress: Optional[Callable[[Progress], None]] = None) -> ExportResult:
        """
        Export photos whose category is selected.

        Args:
            photos: candidate photos
            categories: selected categories (Category or its string value)
            sink: destination root; when None it is asked from `picker`
            picker: DirectoryPicker used when no sink is given
            on_progress: called after every attempted file, failed ones included

        Raises:
            NoCategorySelected: empty selection, before any directory is touched
            UnsupportedEnvironment: the picker cannot be shown
        """
        selected = [Category.parse(c) for c in categories]
        selected = [c for c in EXPORT_FOLDER_NAMES if c in selected]
        if not selected:
            raise NoCategorySelected("Select at least one category to export")

        if sink is None:
            if picker is None:
                raise ValueError("export needs a sink or a picker")
            try:
                sink = LocalDirectorySink(picker.choose_directory(MODE_READWRITE))
            except UserCancelled:
                self.logger.info("Export cancelled by user")
                return ExportResult(exported=0, total=0)

        category_dirs = {c: sink.subdirectory(EXPORT_FOLDER_NAMES[c]) for c in selected}
        to_export = [p for p in photos if p.category in category_dirs]
        total = len(to_export)

        exported = 0
        failed = 0
        for index, photo in enumerate(to_export, start=1):
            try:
                self._export_one(photo, category_dirs[photo.category])
                exported += 1
            except (OSError, ValueError) as e:
                self.logger.error(f"Failed to export {photo.path}: {e}")
                failed += 1

            if on_progress:
                on_progress(Progress(index, total))

            if should_yield(index, self.chunk_size):
                cooperative_yield(self.yield_delay)

        self.logger.info(f"Exported {exported}/{total} photos to {sink.name} ({failed} failed)")
        return ExportResult(exported=exported, total=total, failed=failed, folder_name=sink.name)

    def _export_one(self, photo: Photo, category_dir):
        if photo.content is None:
            raise ValueError("photo has no content")

        *folders, filename = photo.path.split("/")
        target = category_dir
        for folder in folders:
            if folder in ("", "."):
                continue
            target = target.subdirectory(folder)

        target.write_file(filename, photo.content.read())
