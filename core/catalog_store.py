# core/catalog_store.py
# Version 01.00.00.00 dated 20261019
# In-memory authoritative photo catalog with path-keyed category ledger.
#
# Design principles:
#   1. The catalog is the source of truth while the process is alive.
#      The durable category map is a lagging, best-effort replica.
#   2. Tags are keyed on Photo.path, never on Photo.id: ids are minted
#      fresh on every import, paths survive reimport.
#   3. Every mutation bumps a monotonic version and notifies subscribers
#      outside the lock. A crashing subscriber never blocks the others.

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .errors import StorageFailure
from .models import Category, CatalogStats, Photo

logger = logging.getLogger(__name__)

COLUMNS_KEY = "columns"
DEFAULT_COLUMNS = 3

# Event kinds
LOADED = "loaded"
MERGED = "merged"
CATEGORY_CHANGED = "category_changed"
CLEARED = "cleared"
TAGS_CLEARED = "tags_cleared"


@dataclass(frozen=True)
class CatalogEvent:
    """Notification sent to subscribers after each catalog mutation."""
    kind: str
    version: int
    photo_ids: Tuple[str, ...] = field(default_factory=tuple)


Subscriber = Callable[[CatalogEvent], None]


class CatalogStore:
    """
    Ordered collection of the currently loaded photos plus the category map.

    Args:
        category_repository: durable copy of the category map (load/save/clear).
            When None the map lives in memory only.
        settings: scalar store for the columns preference.
        identity: namespaces scalar-store keys; required with `settings`.
    """

    def __init__(self, category_repository=None, settings=None, identity=None):
        self._category_repository = category_repository
        self._settings = settings
        self._identity = identity
        if settings is not None and identity is None:
            from services.identity_service import get_identity_service
            self._identity = get_identity_service(settings)

        self._lock = threading.RLock()
        self._photos: List[Photo] = []
        self._categories: Dict[str, Category] = self._load_categories()
        self._columns = self._load_columns()
        self._version = 0
        self._subscribers: List[Subscriber] = []
        self.selected_photo_id: Optional[str] = None

    # -- durable state ------------------------------------------------------

    def _load_categories(self) -> Dict[str, Category]:
        if self._category_repository is None:
            return {}
        try:
            return dict(self._category_repository.load())
        except StorageFailure as e:
            logger.error(f"[CatalogStore] Failed to load category map: {e}")
            return {}

    def _persist_categories(self, snapshot: Dict[str, Category]):
        if self._category_repository is None:
            return
        try:
            self._category_repository.save(snapshot)
        except StorageFailure as e:
            logger.error(f"[CatalogStore] Failed to save category map: {e}")

    def _load_columns(self) -> int:
        if self._settings is None:
            return DEFAULT_COLUMNS
        value = self._settings.get(self._identity.scoped_key(COLUMNS_KEY))
        try:
            return int(value) if value is not None else DEFAULT_COLUMNS
        except (TypeError, ValueError):
            logger.warning(f"[CatalogStore] Ignoring invalid columns value {value!r}")
            return DEFAULT_COLUMNS

    # -- read view ----------------------------------------------------------

    @property
    def version(self) -> int:
        return self._version

    @property
    def photos(self) -> List[Photo]:
        """Snapshot of the catalog in load order."""
        with self._lock:
            return list(self._photos)

    @property
    def categories(self) -> Dict[str, Category]:
        """Snapshot of the category map (path -> category)."""
        with self._lock:
            return dict(self._categories)

    @property
    def columns(self) -> int:
        return self._columns

    def __len__(self) -> int:
        return len(self._photos)

    def get(self, photo_id: str) -> Optional[Photo]:
        with self._lock:
            for photo in self._photos:
                if photo.id == photo_id:
                    return photo
        return None

    def categorized_photos(self) -> List[Photo]:
        with self._lock:
            return [p for p in self._photos if p.category.is_tagged]

    def stats(self) -> CatalogStats:
        """Counts computed from the current photos on every call."""
        with self._lock:
            counts = {c: 0 for c in Category}
            for photo in self._photos:
                counts[photo.category] += 1
            return CatalogStats(
                total=len(self._photos),
                correct=counts[Category.CORRECT],
                medium=counts[Category.MEDIUM],
                wrong=counts[Category.WRONG],
                uncategorized=counts[Category.NONE],
            )

    # -- mutations ----------------------------------------------------------

    def _restore(self, photos: Iterable[Photo]) -> Tuple[List[Photo], int]:
        restored = 0
        incoming = []
        for photo in photos:
            mapped = self._categories.get(photo.path)
            if mapped is not None:
                photo.category = mapped
                restored += 1
            incoming.append(photo)
        return incoming, restored

    def load(self, photos: Iterable[Photo]) -> int:
        """
        Replace the catalog, restoring categories by path.

        Returns:
            Number of photos whose category came from the category map
        """
        with self._lock:
            incoming, restored = self._restore(photos)
            kept = {id(p) for p in incoming}
            discarded = [p for p in self._photos if id(p) not in kept]
            self._photos = incoming
            if self.selected_photo_id is not None and self.get(self.selected_photo_id) is None:
                self.selected_photo_id = None

        for photo in discarded:
            photo.release()

        logger.info(f"[CatalogStore] Loaded {len(incoming)} photos, restored {restored} category marks")
        self._notify(LOADED, [p.id for p in incoming])
        return restored

    def merge(self, photos: Iterable[Photo]) -> int:
        """Append photos without clearing; same restoration rule as load()."""
        with self._lock:
            incoming, restored = self._restore(photos)
            self._photos.extend(incoming)

        logger.info(f"[CatalogStore] Merged {len(incoming)} photos, restored {restored} category marks")
        self._notify(MERGED, [p.id for p in incoming])
        return restored

    def set_category(self, photo_id: str, category) -> bool:
        """
        Tag one photo. Unknown ids are ignored.

        The in-memory change is visible immediately; the durable copy of the
        category map is written afterwards and its failure is only logged.

        Returns:
            True if a photo was updated
        """
        category = Category.parse(category)
        with self._lock:
            photo = self.get(photo_id)
            if photo is None:
                return False
            photo.category = category
            if category.is_tagged:
                self._categories[photo.path] = category
            else:
                self._categories.pop(photo.path, None)
            snapshot = dict(self._categories)

        self._persist_categories(snapshot)
        self._notify(CATEGORY_CHANGED, [photo_id])
        return True

    def clear(self):
        """Empty the catalog. The category map survives."""
        with self._lock:
            discarded = self._photos
            self._photos = []
            self.selected_photo_id = None

        for photo in discarded:
            photo.release()

        logger.info(f"[CatalogStore] Cleared {len(discarded)} photos (category marks kept)")
        self._notify(CLEARED, [p.id for p in discarded])

    def clear_tags(self):
        """Empty the category map and purge its durable copy. Photos are untouched."""
        with self._lock:
            self._categories = {}

        if self._category_repository is not None:
            try:
                self._category_repository.clear()
            except StorageFailure as e:
                logger.error(f"[CatalogStore] Failed to purge category map: {e}")

        logger.info("[CatalogStore] Cleared all category marks")
        self._notify(TAGS_CLEARED)

    def set_columns(self, columns: int):
        if columns < 1:
            raise ValueError(f"columns must be >= 1, got {columns}")
        self._columns = columns
        if self._settings is not None:
            self._settings.set(self._identity.scoped_key(COLUMNS_KEY), columns)

    # -- subscription -------------------------------------------------------

    def subscribe(self, fn: Subscriber) -> Callable[[], None]:
        """
        Register a callback run after every mutation.

        Returns an unsubscribe callable.
        """
        with self._lock:
            self._subscribers.append(fn)

        def unsubscribe() -> None:
            with self._lock:
                if fn in self._subscribers:
                    self._subscribers.remove(fn)

        return unsubscribe

    def _notify(self, kind: str, photo_ids: Iterable[str] = ()):
        with self._lock:
            self._version += 1
            event = CatalogEvent(kind=kind, version=self._version, photo_ids=tuple(photo_ids))
            live = list(self._subscribers)

        for fn in live:
            try:
                fn(event)
            except Exception:
                logger.exception(
                    "[CatalogStore] Subscriber %s crashed on %s",
                    getattr(fn, "__name__", repr(fn)), kind,
                )
