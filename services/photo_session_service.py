# services/photo_session_service.py
# Version 01.00.00.00 dated 20261019
# Persist the catalog across restarts and mirror tag changes to storage

from typing import Callable, Optional

from core.catalog_store import CATEGORY_CHANGED, CatalogEvent, CatalogStore
from core.errors import StorageFailure
from core.models import Photo, PhotoContent, Progress
from logging_config import get_logger

logger = get_logger(__name__)


class PhotoSessionService:
    """
    Glue between the in-memory catalog and the durable photo store.

    The catalog stays authoritative: every durable write here is
    best-effort and a failure never rolls back the catalog.

    Example:
        session = PhotoSessionService(catalog, PhotoStoreRepository())
        restored = session.restore_session()
    """

    def __init__(self, catalog: CatalogStore, store=None):
        if store is None:
            from repository import PhotoStoreRepository
            store = PhotoStoreRepository()
        self.catalog = catalog
        self.store = store
        self.logger = get_logger(self.__class__.__name__)
        self._unsubscribe = catalog.subscribe(self._on_catalog_event)

    def close(self):
        """Stop mirroring category changes."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def persist_catalog(self, on_progress: Optional[Callable[[Progress], None]] = None):
        """
        Write every catalog photo to the store.

        Content is read per record while writing, so only one photo's bytes
        are held at a time.

        Returns:
            BatchWriteResult
        """
        from repository import StoredRecord

        records = [
            StoredRecord(
                key=photo.id,
                path=photo.path,
                name=photo.name,
                category=photo.category,
                size=photo.size,
                last_modified=photo.last_modified,
                content=photo.content.read if photo.content is not None else None,
            )
            for photo in self.catalog.photos
        ]
        return self.store.put_batch(records, on_progress)

    def restore_session(self) -> int:
        """
        Load the current user's stored photos into the catalog.

        Returns:
            Number of photos restored
        """
        records = self.store.get_all_for_current_user()
        photos = []
        for record in records:
            if record.content is None:
                self.logger.warning(f"Stored record {record.path} has no content, skipping")
                continue
            photos.append(Photo(
                path=record.path,
                content=PhotoContent.from_bytes(record.content),
                category=record.category,
                size=record.size,
                last_modified=record.last_modified,
                id=record.key,
            ))

        self.catalog.load(photos)
        self.logger.info(f"Restored {len(photos)} photos from previous session")
        return len(photos)

    def purge(self) -> int:
        """
        Delete the current user's stored photos, then empty the catalog.

        Raises:
            StorageFailure: the store could not be purged; the catalog is untouched
        """
        removed = self.store.clear_for_current_user()
        self.catalog.clear()
        return removed

    def has_orphaned_tags(self) -> bool:
        """True when tags are remembered but no photos are loaded."""
        return len(self.catalog) == 0 and bool(self.catalog.categories)

    def _on_catalog_event(self, event: CatalogEvent):
        if event.kind != CATEGORY_CHANGED:
            return
        for photo_id in event.photo_ids:
            photo = self.catalog.get(photo_id)
            if photo is None:
                continue
            try:
                self.store.update_category(photo_id, photo.category)
            except StorageFailure as e:
                self.logger.error(f"Failed to store category of {photo.path}: {e}")
