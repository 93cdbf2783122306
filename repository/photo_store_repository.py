# repository/photo_store_repository.py
# Version 01.00.00.00 dated 20261019
# Durable photo store: user-scoped records with image bytes

import os
import shutil
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from core.cooperative import DEFAULT_CHUNK_SIZE, DEFAULT_YIELD_DELAY, cooperative_yield, should_yield
from core.errors import StorageFailure
from core.models import Category, Progress
from .base_repository import BaseRepository, DatabaseConnection
from .schema import USER_INDEX_NAME
from logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class StoredRecord:
    """
    Durable representation of one photo.

    `content` is bytes, a zero-argument callable producing bytes (read only
    when the record is written), or None when the bytes are unavailable.
    """
    key: str
    path: str
    name: str = ""
    category: Category = Category.NONE
    size: int = 0
    last_modified: int = 0
    content: Any = None
    user_id: Optional[str] = None

    def __post_init__(self):
        self.category = Category.parse(self.category)
        if not self.name:
            self.name = self.path.rsplit("/", 1)[-1]


@dataclass(frozen=True)
class BatchWriteResult:
    saved: int
    skipped: int


@dataclass(frozen=True)
class StorageUsage:
    used: int
    quota: int

    @property
    def used_mb(self) -> float:
        return round(self.used / 1024 / 1024, 2)

    @property
    def quota_mb(self) -> float:
        return round(self.quota / 1024 / 1024, 2)


class PhotoStoreRepository(BaseRepository):
    """
    Repository for persisted photos.

    All reads and deletes branch on whether the store carries the user
    index. Stores created before user scoping are served in degraded mode:
    reads scan everything and filter in Python, purges clear the table.
    """

    def __init__(self,
                 db_connection: Optional[DatabaseConnection] = None,
                 identity=None,
                 chunk_size: int = DEFAULT_CHUNK_SIZE,
                 yield_delay: float = DEFAULT_YIELD_DELAY):
        super().__init__(db_connection)
        if identity is None:
            from services.identity_service import get_identity_service
            identity = get_identity_service()
        self._identity = identity
        self.chunk_size = chunk_size
        self.yield_delay = yield_delay

    def _table_name(self) -> str:
        return "photo_records"

    # ========================================================================
    # SCHEMA INTROSPECTION
    # ========================================================================

    def has_user_index(self) -> bool:
        return USER_INDEX_NAME in self._db_connection.index_names(self._table_name())

    def _has_user_column(self) -> bool:
        return "user_id" in self._db_connection.table_columns(self._table_name())

    # ========================================================================
    # WRITES
    # ========================================================================

    def _resolve_content(self, record: StoredRecord) -> Optional[bytes]:
        content = record.content
        if content is None:
            return None
        if callable(content):
            try:
                content = content()
            except OSError as e:
                self.logger.warning(f"Could not read content for {record.path}: {e}")
                return None
        return bytes(content) if content is not None else None

    def put(self, record: StoredRecord, _has_user_column: Optional[bool] = None) -> bool:
        """
        Upsert one record.

        Returns:
            True if written, False if skipped because the content is unavailable

        Raises:
            StorageFailure: if the database write fails
        """
        data = self._resolve_content(record)
        if data is None:
            self.logger.warning(f"Photo {record.name} has no readable content, skipping save")
            return False

        if _has_user_column is None:
            _has_user_column = self._has_user_column()

        values = {
            "id": record.key,
            "name": record.name,
            "path": record.path,
            "category": record.category.to_storage(),
            "size": record.size,
            "last_modified": record.last_modified,
            "image_data": data,
        }
        if _has_user_column:
            values["user_id"] = self._identity.current_user_id()

        columns = ", ".join(values.keys())
        placeholders = ", ".join("?" for _ in values)

        with self.connection() as conn:
            conn.execute(
                f"INSERT OR REPLACE INTO photo_records ({columns}) VALUES ({placeholders})",
                tuple(values.values())
            )
            conn.commit()

        return True

    def put_batch(self,
                  records: List[StoredRecord],
                  on_progress: Optional[Callable[[Progress], None]] = None) -> BatchWriteResult:
        """
        Sequentially upsert records, yielding to the host every chunk.

        A record that cannot be read or written is logged and counted as
        skipped; it never fails the batch.
        """
        total = len(records)
        saved = 0
        skipped = 0

        self.logger.info(f"Saving {total} photos...")
        has_user_column = self._has_user_column()

        for index, record in enumerate(records, start=1):
            try:
                if self.put(record, _has_user_column=has_user_column):
                    saved += 1
                else:
                    skipped += 1
            except StorageFailure as e:
                self.logger.error(f"Failed to save photo [{index}/{total}] {record.name}: {e}")
                skipped += 1

            if should_yield(index, self.chunk_size):
                self.logger.info(f"Progress: {index}/{total} ({round(index / total * 100)}%)")
                cooperative_yield(self.yield_delay)

            if on_progress:
                on_progress(Progress(index, total))

        self.logger.info(f"Save complete: {saved} saved, {skipped} skipped")
        return BatchWriteResult(saved=saved, skipped=skipped)

    def update_category(self, key: str, category) -> bool:
        """
        Update one record's category. No-op when the key is absent.

        Returns:
            True if a record was updated
        """
        category = Category.parse(category)
        with self.connection() as conn:
            cur = conn.cursor()
            cur.execute(
                "UPDATE photo_records SET category = ? WHERE id = ?",
                (category.to_storage(), key)
            )
            conn.commit()
            return cur.rowcount > 0

    # ========================================================================
    # READS
    # ========================================================================

    def _row_to_record(self, row: dict) -> StoredRecord:
        data = row.get("image_data")
        return StoredRecord(
            key=row["id"],
            path=row["path"],
            name=row["name"],
            category=row.get("category"),
            size=row.get("size") or 0,
            last_modified=row.get("last_modified") or 0,
            content=bytes(data) if data is not None else None,
            user_id=row.get("user_id"),
        )

    def get(self, key: str) -> Optional[StoredRecord]:
        with self.connection(read_only=True) as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM photo_records WHERE id = ?", (key,))
            row = cur.fetchone()
        return self._row_to_record(row) if row else None

    def get_all_for_current_user(self) -> List[StoredRecord]:
        """
        Read the current user's records, in insertion order.

        Without the user index the whole table is scanned and rows whose
        user_id matches or is absent are kept.
        """
        user_id = self._identity.current_user_id()

        if self.has_user_index():
            with self.connection(read_only=True) as conn:
                cur = conn.cursor()
                cur.execute(
                    "SELECT * FROM photo_records WHERE user_id = ? ORDER BY rowid",
                    (user_id,)
                )
                rows = cur.fetchall()
        else:
            self.logger.warning("Legacy store without user index: reading all records (no user isolation)")
            rows = [
                row for row in self.find_all(order_by="rowid")
                if row.get("user_id") in (None, user_id)
            ]

        records = [self._row_to_record(row) for row in rows]
        self.logger.info(f"User {user_id}: read {len(records)} records from store")
        return records

    def count_for_current_user(self) -> int:
        if self.has_user_index():
            return self.count("user_id = ?", (self._identity.current_user_id(),))
        return len(self.get_all_for_current_user())

    # ========================================================================
    # DELETES
    # ========================================================================

    def clear_for_current_user(self) -> int:
        """
        Delete the current user's records.

        On a store without the user index every record is deleted.

        Returns:
            Number of records deleted
        """
        user_id = self._identity.current_user_id()

        with self.connection() as conn:
            cur = conn.cursor()
            if self.has_user_index():
                cur.execute("DELETE FROM photo_records WHERE user_id = ?", (user_id,))
                self.logger.info(f"Cleared all records of user {user_id}")
            else:
                cur.execute("DELETE FROM photo_records")
                self.logger.warning("Legacy store without user index: cleared ALL records")
            conn.commit()
            return cur.rowcount

    # ========================================================================
    # USAGE
    # ========================================================================

    def estimate_usage(self) -> Optional[StorageUsage]:
        """
        Bytes used by the store and bytes it could grow to.

        Returns:
            StorageUsage, or None when the host cannot report disk usage
        """
        db_path = self._db_connection.db_path
        try:
            used = sum(
                os.path.getsize(p)
                for p in (db_path, db_path + "-journal", db_path + "-wal")
                if os.path.exists(p)
            )
            free = shutil.disk_usage(os.path.dirname(db_path) or ".").free
        except OSError as e:
            self.logger.debug(f"Storage estimate unavailable: {e}")
            return None
        return StorageUsage(used=used, quota=used + free)
