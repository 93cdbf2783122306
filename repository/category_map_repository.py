# repository/category_map_repository.py
# Version 01.00.00.00 dated 20261019
# Durable copy of the path -> category ledger

from typing import Dict, Optional

from core.models import Category
from .base_repository import BaseRepository, DatabaseConnection, TransactionContext
from logging_config import get_logger

logger = get_logger(__name__)

CATEGORY_MAP_KEY = "categories"


class CategoryMapRepository(BaseRepository):
    """
    Stores the category ledger under the user-scoped key "categories".

    The in-memory catalog owns the ledger; this copy is replaced wholesale
    on every save and is only read back at startup.
    """

    def __init__(self, db_connection: Optional[DatabaseConnection] = None, identity=None):
        super().__init__(db_connection)
        if identity is None:
            from services.identity_service import get_identity_service
            identity = get_identity_service()
        self._identity = identity

    def _table_name(self) -> str:
        return "category_map"

    @property
    def scope_key(self) -> str:
        return self._identity.scoped_key(CATEGORY_MAP_KEY)

    def load(self) -> Dict[str, Category]:
        rows = self.find_all("scope_key = ?", (self.scope_key,), order_by="rowid")
        mapping = {}
        for row in rows:
            category = Category.parse(row["category"])
            if category.is_tagged:
                mapping[row["path"]] = category
        return mapping

    def save(self, mapping: Dict[str, Category]):
        """Replace the stored ledger with `mapping`. Untagged entries are dropped."""
        scope_key = self.scope_key
        rows = [
            (scope_key, path, Category.parse(category).value)
            for path, category in mapping.items()
            if Category.parse(category).is_tagged
        ]
        with TransactionContext(self._db_connection) as conn:
            conn.execute("DELETE FROM category_map WHERE scope_key = ?", (scope_key,))
            conn.executemany(
                "INSERT INTO category_map (scope_key, path, category) VALUES (?, ?, ?)",
                rows
            )
        self.logger.debug(f"Saved {len(rows)} category marks under {scope_key}")

    def clear(self) -> int:
        with self.connection() as conn:
            cur = conn.cursor()
            cur.execute("DELETE FROM category_map WHERE scope_key = ?", (self.scope_key,))
            conn.commit()
            removed = cur.rowcount
        self.logger.info(f"Cleared {removed} category marks")
        return removed
