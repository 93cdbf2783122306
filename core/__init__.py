# core/__init__.py
# Version 01.00.00.00 dated 20261019
# Domain models, error taxonomy and the in-memory catalog

from .models import (
    Category,
    Progress,
    LocalFileHandle,
    PhotoContent,
    Photo,
    CatalogStats,
    new_photo_id,
)

from .errors import (
    PhotoPickerError,
    UnsupportedEnvironment,
    UserCancelled,
    StorageFailure,
    NoCategorySelected,
    PartialImportFailure,
)

from .catalog_store import CatalogStore, CatalogEvent

__all__ = [
    # Models
    'Category',
    'Progress',
    'LocalFileHandle',
    'PhotoContent',
    'Photo',
    'CatalogStats',
    'new_photo_id',

    # Errors
    'PhotoPickerError',
    'UnsupportedEnvironment',
    'UserCancelled',
    'StorageFailure',
    'NoCategorySelected',
    'PartialImportFailure',

    # Catalog
    'CatalogStore',
    'CatalogEvent',
]
