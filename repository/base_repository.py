# repository/base_repository.py
# Version 03.00.00.00 dated 20261019
# Base repository pattern for data access layer
# Schema initialization and migration on open, sqlite errors surfaced as StorageFailure

import os
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Optional, List, Dict, Any, Generator

from core.errors import StorageFailure
from logging_config import get_logger

logger = get_logger(__name__)


class DatabaseConnection:
    """
    Manages database connections with proper lifecycle management.

    This singleton class ensures:
    - One instance per database file (singleton per path)
    - Connections are properly configured (foreign keys, journal mode)
    - Proper connection cleanup
    """

    _instances: Dict[str, 'DatabaseConnection'] = {}

    def __new__(cls, db_path: Optional[str] = None, auto_init: bool = True):
        if db_path is None:
            from db_config import get_db_path
            db_path = get_db_path()
        # Normalize path to absolute for consistent singleton lookup
        norm_path = os.path.abspath(db_path)

        if norm_path not in cls._instances:
            instance = super().__new__(cls)
            instance._initialized = False
            cls._instances[norm_path] = instance

        return cls._instances[norm_path]

    def __init__(self, db_path: Optional[str] = None, auto_init: bool = True):
        if self._initialized:
            return

        if db_path is None:
            from db_config import get_db_path
            db_path = get_db_path()

        from db_config import ensure_db_directory
        self._db_path = ensure_db_directory(os.path.abspath(db_path))
        self._auto_init = auto_init
        self._initialized = True

        if self._auto_init:
            self._ensure_schema()

        logger.info(f"DatabaseConnection initialized with path: {self._db_path}")

    @property
    def db_path(self) -> str:
        return self._db_path

    @classmethod
    def forget(cls, db_path: str):
        """Drop the cached instance for a path (used when a store file is deleted)."""
        cls._instances.pop(os.path.abspath(db_path), None)

    @contextmanager
    def get_connection(self, read_only: bool = False) -> Generator[sqlite3.Connection, None, None]:
        """
        Get a database connection as a context manager.

        Args:
            read_only: If True, opens connection in read-only mode

        Yields:
            sqlite3.Connection: Database connection

        Raises:
            StorageFailure: on any sqlite error, with the original as cause

        Example:
            with db_conn.get_connection() as conn:
                cur = conn.cursor()
                cur.execute("SELECT * FROM photo_records")
        """
        conn = None
        try:
            # SQLite URIs require forward slashes, even on Windows
            if read_only:
                uri_path = self._db_path.replace('\\', '/')
                uri = f"file:{uri_path}?mode=ro"
                conn = sqlite3.connect(uri, uri=True, timeout=10.0, check_same_thread=False)
            else:
                conn = sqlite3.connect(self._db_path, timeout=10.0, check_same_thread=False)

            conn.execute("PRAGMA foreign_keys = ON")
            conn.row_factory = self._dict_factory

            yield conn

        except sqlite3.Error as e:
            logger.error(f"Database error on {self._db_path}: {e}", exc_info=True)
            if conn:
                try:
                    conn.rollback()
                except sqlite3.Error:
                    pass
            raise StorageFailure(f"Database operation failed on {self._db_path}", e) from e
        finally:
            if conn:
                try:
                    conn.close()
                except sqlite3.Error as e:
                    logger.warning(f"Error closing connection: {e}")

    @staticmethod
    def _dict_factory(cursor: sqlite3.Cursor, row: tuple) -> Dict[str, Any]:
        """Convert row tuples to dictionaries using column names."""
        return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}

    def execute_script(self, script: str):
        """
        Execute a SQL script (for migrations, schema setup).

        Args:
            script: SQL script to execute
        """
        with self.get_connection() as conn:
            conn.executescript(script)
            conn.commit()
        logger.info("SQL script executed successfully")

    def _ensure_schema(self):
        """
        Ensure database schema exists and is up to date.

        Handles three scenarios:
        1. Fresh database (no tables) - creates full schema from scratch
        2. Legacy database (v1.0, no user scoping) - applies migrations in place
        3. Current database - no action needed

        Idempotent - safe to call multiple times.
        """
        from .schema import get_schema_sql, get_schema_version
        from .migrations import MigrationManager

        target_version = get_schema_version()
        manager = MigrationManager(self)
        current_version = manager.get_current_version()

        logger.info(f"Schema check: current={current_version}, target={target_version}")

        if current_version == "0.0.0":
            logger.info(f"Creating fresh database schema (version {target_version})")
            self.execute_script(get_schema_sql())
            logger.info(f"✓ Fresh schema created (version {target_version})")

        elif manager.needs_migration():
            logger.info(f"Migrating database from {current_version} to {target_version}")
            results = manager.apply_all_migrations()

            failed = [r for r in results if r['status'] == 'failed']
            if failed:
                # The store stays usable in degraded (pre-scoping) mode
                logger.warning(
                    f"Migration to {target_version} failed at {failed[0]['version']}; "
                    f"continuing in degraded mode: {failed[0].get('error')}"
                )
            else:
                logger.info(f"✓ Migrations completed: {len(results)} applied successfully")

        else:
            logger.info(f"✓ Database already at target version {target_version}")

    def table_columns(self, table: str) -> set:
        """Column names of a table (empty set if the table does not exist)."""
        with self.get_connection(read_only=True) as conn:
            cur = conn.cursor()
            cur.execute(f"PRAGMA table_info({table})")
            return {row['name'] for row in cur.fetchall()}

    def index_names(self, table: str) -> set:
        """Index names defined on a table."""
        with self.get_connection(read_only=True) as conn:
            cur = conn.cursor()
            cur.execute(f"PRAGMA index_list({table})")
            return {row['name'] for row in cur.fetchall()}

    def validate_schema(self) -> bool:
        """
        Validate that database schema matches expected structure.

        Returns:
            bool: True if schema is valid, False otherwise
        """
        from .schema import get_expected_tables, get_expected_indexes

        try:
            with self.get_connection(read_only=True) as conn:
                cur = conn.cursor()

                cur.execute("""
                    SELECT name FROM sqlite_master
                    WHERE type='table' AND name NOT LIKE 'sqlite_%'
                """)
                actual_tables = {row['name'] for row in cur.fetchall()}
                missing_tables = set(get_expected_tables()) - actual_tables
                if missing_tables:
                    logger.error(f"Missing tables: {missing_tables}")
                    return False

                cur.execute("""
                    SELECT name FROM sqlite_master
                    WHERE type='index' AND name NOT LIKE 'sqlite_%'
                """)
                actual_indexes = {row['name'] for row in cur.fetchall()}
                missing_indexes = set(get_expected_indexes()) - actual_indexes
                if missing_indexes:
                    logger.warning(f"Missing indexes (non-critical): {missing_indexes}")

                logger.info("Schema validation passed")
                return True

        except StorageFailure as e:
            logger.error(f"Schema validation failed: {e}")
            return False

    def get_schema_version(self) -> str:
        """
        Get the current schema version from the database.

        Returns:
            str: Schema version string, or "unknown" if not found
        """
        from .migrations import MigrationManager
        version = MigrationManager(self).get_current_version()
        return "unknown" if version == "0.0.0" else version


class BaseRepository(ABC):
    """
    Abstract base class for all repositories.

    Repositories handle all database operations for a specific domain entity.
    Business logic belongs in the service layer.

    Usage:
        class PhotoStoreRepository(BaseRepository):
            def get(self, key: str) -> Optional[Dict]:
                with self.connection(read_only=True) as conn:
                    cur = conn.cursor()
                    cur.execute("SELECT * FROM photo_records WHERE id = ?", (key,))
                    return cur.fetchone()
    """

    def __init__(self, db_connection: Optional[DatabaseConnection] = None):
        """
        Initialize repository with database connection.

        Args:
            db_connection: Optional DatabaseConnection instance.
                          If None, uses default singleton.
        """
        self._db_connection = db_connection or DatabaseConnection()
        self.logger = get_logger(self.__class__.__name__)

    @property
    def db_connection(self) -> DatabaseConnection:
        return self._db_connection

    @contextmanager
    def connection(self, read_only: bool = False) -> Generator[sqlite3.Connection, None, None]:
        """
        Get a database connection for repository operations.

        Args:
            read_only: Whether to open in read-only mode

        Yields:
            Database connection
        """
        with self._db_connection.get_connection(read_only=read_only) as conn:
            yield conn

    @abstractmethod
    def _table_name(self) -> str:
        """Return the primary table name this repository manages."""
        pass

    def count(self, where_clause: str = "", params: tuple = ()) -> int:
        """
        Count rows in the repository's table.

        Args:
            where_clause: Optional WHERE clause (without 'WHERE' keyword)
            params: Parameters for the where clause

        Returns:
            Number of matching rows
        """
        sql = f"SELECT COUNT(*) as count FROM {self._table_name()}"
        if where_clause:
            sql += f" WHERE {where_clause}"

        with self.connection(read_only=True) as conn:
            cur = conn.cursor()
            cur.execute(sql, params)
            result = cur.fetchone()
            return result['count'] if result else 0

    def find_all(self,
                 where_clause: str = "",
                 params: tuple = (),
                 order_by: str = "") -> List[Dict[str, Any]]:
        """
        Find all rows matching criteria.

        Args:
            where_clause: Optional WHERE clause
            params: Parameters for where clause
            order_by: Optional ORDER BY clause
                     WARNING: Not parameterized - only pass trusted strings

        Returns:
            List of dictionaries representing rows
        """
        sql = f"SELECT * FROM {self._table_name()}"

        if where_clause:
            sql += f" WHERE {where_clause}"
        if order_by:
            sql += f" ORDER BY {order_by}"

        with self.connection(read_only=True) as conn:
            cur = conn.cursor()
            cur.execute(sql, params)
            return cur.fetchall()


class TransactionContext:
    """
    Context manager for database transactions.

    Usage:
        with TransactionContext(db_connection) as conn:
            conn.execute("DELETE FROM category_map WHERE scope_key = ?", (key,))
            conn.executemany("INSERT INTO category_map ...", rows)
            # Commits automatically if no exception
    """

    def __init__(self, db_connection: DatabaseConnection):
        self.db_connection = db_connection
        self.conn = None

    def __enter__(self) -> sqlite3.Connection:
        try:
            self.conn = sqlite3.connect(self.db_connection.db_path,
                                        timeout=10.0,
                                        check_same_thread=False)
        except sqlite3.Error as e:
            raise StorageFailure("Could not open transaction", e) from e
        self.conn.execute("PRAGMA foreign_keys = ON")
        self.conn.row_factory = DatabaseConnection._dict_factory
        return self.conn

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                try:
                    self.conn.commit()
                    logger.debug("Transaction committed successfully")
                except sqlite3.Error as e:
                    logger.error(f"Commit failed: {e}", exc_info=True)
                    self.conn.rollback()
                    raise StorageFailure("Transaction commit failed", e) from e
            else:
                logger.warning(f"Transaction rolled back due to: {exc_val}")
                self.conn.rollback()
        finally:
            self.conn.close()

        if isinstance(exc_val, sqlite3.Error):
            raise StorageFailure("Transaction failed", exc_val) from exc_val
        return False  # Re-raise exception if occurred
