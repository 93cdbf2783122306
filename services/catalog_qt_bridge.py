# services/catalog_qt_bridge.py
# Version 01.00.00.00 dated 20261019
# Qt signal adapter for catalog changes

from PySide6.QtCore import QObject, Signal

from core.catalog_store import CATEGORY_CHANGED, CatalogEvent, CatalogStore
from logging_config import get_logger

logger = get_logger(__name__)


class CatalogSignalBridge(QObject):
    """
    Re-emits catalog events as Qt signals for grid widgets.

    Signals:
        catalogChanged(int): new catalog version
        statsChanged(dict): CatalogStats.as_dict() after the change
        categoryChanged(str): id of a photo whose category changed
    """

    catalogChanged = Signal(int)
    statsChanged = Signal(dict)
    categoryChanged = Signal(str)

    def __init__(self, catalog: CatalogStore, parent=None):
        super().__init__(parent)
        self.catalog = catalog
        self._unsubscribe = catalog.subscribe(self._on_event)

    def detach(self):
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_event(self, event: CatalogEvent):
        logger.debug(f"[CatalogSignalBridge] {event.kind} v{event.version}")
        if event.kind == CATEGORY_CHANGED:
            for photo_id in event.photo_ids:
                self.categoryChanged.emit(photo_id)
        self.catalogChanged.emit(event.version)
        self.statsChanged.emit(self.catalog.stats().as_dict())
