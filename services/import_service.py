# services/import_service.py
# Version 01.00.00.00 dated 20261019
# Photo import from a picked folder or dropped items

import os
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from core.cooperative import DEFAULT_CHUNK_SIZE, DEFAULT_YIELD_DELAY, cooperative_yield, should_yield
from core.errors import PartialImportFailure, UserCancelled
from core.models import Category, LocalFileHandle, Photo, PhotoContent, Progress
from logging_config import get_logger
from .directory_picker import MODE_READ

logger = get_logger(__name__)

IMAGE_EXTENSIONS = frozenset({
    '.jpg', '.jpeg', '.png', '.gif', '.webp', '.bmp',
    '.tiff', '.tif', '.svg', '.ico',
    # RAW formats
    '.raw', '.cr2', '.nef', '.arw', '.dng',
})

DROPPED_ITEMS_NAME = "Dropped items"


def is_image_file(filename: str) -> bool:
    return os.path.splitext(filename)[1].lower() in IMAGE_EXTENSIONS


def _walk(directory: str, prefix: str = "") -> Iterator[Tuple[str, str]]:
    """
    Depth-first walk yielding (relative_path, absolute_path) for files.

    Entries of each directory are visited in case-sensitive name order.
    """
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as e:
        logger.warning(f"Cannot list {directory}: {e}")
        return

    for entry in entries:
        relative = f"{prefix}/{entry.name}" if prefix else entry.name
        if entry.is_dir(follow_symlinks=False):
            yield from _walk(entry.path, relative)
        elif entry.is_file():
            yield relative, entry.path


class LocalDirectorySource:
    """Recursive enumeration of a directory on disk."""

    def __init__(self, root: str):
        self.root = os.path.abspath(root)
        self.name = os.path.basename(self.root.rstrip(os.sep)) or self.root

    def entries(self) -> Iterator[Tuple[str, str]]:
        return _walk(self.root)


class DroppedItemsSource:
    """
    Enumeration of dropped files and directories.

    A dropped file keeps just its name as path; a dropped directory
    contributes its children with paths relative to that directory.
    """

    name = DROPPED_ITEMS_NAME

    def __init__(self, paths: Sequence[str]):
        self.paths = [os.path.abspath(p) for p in paths]

    def entries(self) -> Iterator[Tuple[str, str]]:
        for path in self.paths:
            if os.path.isdir(path):
                yield from _walk(path)
            elif os.path.isfile(path):
                yield os.path.basename(path), path
            else:
                logger.warning(f"Dropped item not found: {path}")


@dataclass
class ImportResult:
    """Results from one import."""
    photos: List[Photo] = field(default_factory=list)
    folder_name: Optional[str] = None
    skipped: int = 0
    failed: int = 0
    failures: List[PartialImportFailure] = field(default_factory=list)

    @property
    def imported(self) -> int:
        return len(self.photos)


class PhotoImportService:
    """
    Builds Photos from a file enumeration.

    Files are only stat()ed; content stays lazy until first read. Files with
    unrecognized extensions are skipped, unreadable files are counted as
    failures and never abort the import.
    """

    def __init__(self,
                 chunk_size: int = DEFAULT_CHUNK_SIZE,
                 yield_delay: float = DEFAULT_YIELD_DELAY):
        self.chunk_size = chunk_size
        self.yield_delay = yield_delay
        self.logger = get_logger(self.__class__.__name__)

    def import_source(self,
                      source,
                      on_progress: Optional[Callable[[Progress], None]] = None) -> ImportResult:
        result = ImportResult()

        for relative_path, local_path in source.entries():
            if not is_image_file(relative_path):
                result.skipped += 1
                continue

            try:
                handle = LocalFileHandle(local_path)
            except OSError as e:
                failure = PartialImportFailure(relative_path, e)
                self.logger.warning(str(failure))
                result.failures.append(failure)
                result.failed += 1
                continue

            result.photos.append(Photo(
                path=relative_path,
                content=PhotoContent(handle=handle),
                category=Category.NONE,
                size=handle.size,
                last_modified=handle.last_modified,
            ))

            processed = len(result.photos)
            if on_progress:
                on_progress(Progress(processed, processed))
            if should_yield(processed, self.chunk_size):
                cooperative_yield(self.yield_delay)

        if result.photos:
            result.folder_name = source.name

        self.logger.info(
            f"Imported {result.imported} photos from {source.name} "
            f"({result.skipped} skipped, {result.failed} failed)"
        )
        return result

    def import_folder(self,
                      picker,
                      on_progress: Optional[Callable[[Progress], None]] = None) -> ImportResult:
        """
        Ask the picker for a folder and import it.

        A dismissed picker yields an empty result. UnsupportedEnvironment
        propagates.
        """
        try:
            root = picker.choose_directory(MODE_READ)
        except UserCancelled:
            self.logger.info("Import cancelled by user")
            return ImportResult()

        return self.import_source(LocalDirectorySource(root), on_progress)

    def import_dropped(self,
                       paths: Sequence[str],
                       on_progress: Optional[Callable[[Progress], None]] = None) -> ImportResult:
        return self.import_source(DroppedItemsSource(paths), on_progress)

    def load_into(self, catalog, result: ImportResult, merge: bool = False) -> int:
        """
        Hand imported photos to the catalog.

        Returns:
            Number of category marks restored
        """
        if merge:
            return catalog.merge(result.photos)
        return catalog.load(result.photos)
