# repository/__init__.py
# Version 02.00.00.00 dated 20261019
# Repository package for data access layer

from .base_repository import (
    BaseRepository,
    DatabaseConnection,
    TransactionContext
)

from .photo_store_repository import (
    PhotoStoreRepository,
    StoredRecord,
    BatchWriteResult,
    StorageUsage
)
from .category_map_repository import CategoryMapRepository

__all__ = [
    # Base classes
    'BaseRepository',
    'DatabaseConnection',
    'TransactionContext',

    # Concrete repositories
    'PhotoStoreRepository',
    'CategoryMapRepository',

    # Value types
    'StoredRecord',
    'BatchWriteResult',
    'StorageUsage',
]
