# repository/migrations.py
# Version 3.0.0 dated 20261019
# Database migration system for schema upgrades
#
# Upgrades stores in place: columns and indexes are added only when missing,
# nothing is dropped or rebuilt.

"""
Database migration system for PhotoPicker.

This module provides:
- Migration definitions for each schema version
- Migration detection (current version vs target version)
- Safe migration application
- Migration history tracking

Usage:
    from repository.migrations import MigrationManager

    manager = MigrationManager(db_connection)

    if manager.needs_migration():
        results = manager.apply_all_migrations()
        for result in results:
            print(f"Applied: {result['version']} - {result['status']}")
"""

import os
import sqlite3
from typing import List, Dict, Any, Tuple
from datetime import datetime

from core.errors import StorageFailure
from logging_config import get_logger

logger = get_logger(__name__)


# =============================================================================
# MIGRATION DEFINITIONS
# =============================================================================

class Migration:
    """
    Base class for database migrations.

    Each migration represents an atomic schema change with:
    - Version number (semantic versioning)
    - Description of changes
    - SQL to apply the migration
    """

    def __init__(self, version: str, description: str, sql: str):
        self.version = version
        self.description = description
        self.sql = sql

    def __repr__(self):
        return f"Migration(version={self.version}, description={self.description})"


# Migration from legacy (no schema_version table, no user scoping) to v2.0.0
MIGRATION_2_0_0 = Migration(
    version="2.0.0",
    description="Add user_id scoping to photo_records and the durable category map",
    sql="""
-- user_id column is added in code (see _add_user_id_column_if_missing)

CREATE TABLE IF NOT EXISTS schema_version (
    version TEXT PRIMARY KEY,
    applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    description TEXT
);

CREATE INDEX IF NOT EXISTS idx_photo_records_user ON photo_records(user_id);

CREATE TABLE IF NOT EXISTS category_map (
    scope_key TEXT NOT NULL,
    path TEXT NOT NULL,
    category TEXT NOT NULL,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (scope_key, path)
);

INSERT OR REPLACE INTO schema_version (version, description, applied_at)
VALUES ('2.0.0', 'User-scoped photo records and durable category map', CURRENT_TIMESTAMP);
"""
)


# Ordered list of all migrations
ALL_MIGRATIONS = [
    MIGRATION_2_0_0,
]


# =============================================================================
# MIGRATION MANAGER
# =============================================================================

class MigrationManager:
    """
    Manages database schema migrations.

    Responsibilities:
    - Detect current schema version
    - Identify pending migrations
    - Apply migrations
    - Track migration history
    """

    def __init__(self, db_connection):
        """
        Initialize migration manager.

        Args:
            db_connection: DatabaseConnection instance
        """
        self.db_connection = db_connection
        self.logger = get_logger(self.__class__.__name__)

    def get_current_version(self) -> str:
        """
        Get the current schema version from the database.

        Returns:
            str: Current version (e.g., "2.0.0"), "1.0.0" for a legacy store,
                 or "0.0.0" if no schema exists
        """
        db_path = self.db_connection.db_path

        # Cannot open a non-existent file in read-only mode
        if not os.path.exists(db_path):
            return "0.0.0"

        try:
            with self.db_connection.get_connection(read_only=True) as conn:
                cur = conn.cursor()

                cur.execute("""
                    SELECT name FROM sqlite_master
                    WHERE type='table' AND name='schema_version'
                """)

                if not cur.fetchone():
                    # No versioning: photo_records distinguishes v1 from empty
                    cur.execute("""
                        SELECT name FROM sqlite_master
                        WHERE type='table' AND name='photo_records'
                    """)
                    return "1.0.0" if cur.fetchone() else "0.0.0"

                cur.execute("SELECT version FROM schema_version")
                versions = [row['version'] for row in cur.fetchall()]
                if not versions:
                    return "0.0.0"
                return max(versions, key=self._parse_version)

        except StorageFailure as e:
            self.logger.error(f"Error getting current version: {e}")
            return "0.0.0"

    def get_target_version(self) -> str:
        """Get the target schema version (latest available)."""
        from .schema import get_schema_version
        return get_schema_version()

    def needs_migration(self) -> bool:
        """Check if any migrations need to be applied."""
        current = self.get_current_version()
        target = self.get_target_version()

        return self._compare_versions(current, target) < 0

    def get_pending_migrations(self) -> List[Migration]:
        """
        Get list of pending migrations that need to be applied.

        Returns:
            List[Migration]: Migrations to apply, in order
        """
        current = self.get_current_version()
        return [
            migration for migration in ALL_MIGRATIONS
            if self._compare_versions(current, migration.version) < 0
        ]

    def apply_migration(self, migration: Migration) -> Dict[str, Any]:
        """
        Apply a single migration.

        Args:
            migration: Migration to apply

        Returns:
            dict: Result with status, version, duration, etc.
        """
        start_time = datetime.now()

        try:
            self.logger.info(f"Applying migration {migration.version}: {migration.description}")

            with self.db_connection.get_connection() as conn:
                # ALTER TABLE can't be made conditional inside executescript
                if migration.version == "2.0.0":
                    self._add_user_id_column_if_missing(conn)

                conn.executescript(migration.sql)
                conn.commit()

            duration = (datetime.now() - start_time).total_seconds()
            self.logger.info(f"✓ Migration {migration.version} applied successfully ({duration:.2f}s)")

            return {
                "status": "success",
                "version": migration.version,
                "description": migration.description,
                "duration_seconds": duration,
                "timestamp": datetime.now().isoformat()
            }

        except (StorageFailure, sqlite3.Error) as e:
            duration = (datetime.now() - start_time).total_seconds()
            self.logger.error(f"✗ Migration {migration.version} failed: {e}")

            return {
                "status": "failed",
                "version": migration.version,
                "description": migration.description,
                "error": str(e),
                "duration_seconds": duration,
                "timestamp": datetime.now().isoformat()
            }

    def apply_all_migrations(self) -> List[Dict[str, Any]]:
        """
        Apply all pending migrations in order.

        Returns:
            List[dict]: Results for each migration
        """
        pending = self.get_pending_migrations()

        if not pending:
            self.logger.info("No pending migrations")
            return []

        self.logger.info(f"Applying {len(pending)} pending migrations")
        results = []

        for migration in pending:
            result = self.apply_migration(migration)
            results.append(result)

            if result["status"] == "failed":
                self.logger.error(f"Migration failed, stopping at {migration.version}")
                break

        return results

    def get_migration_history(self) -> List[Dict[str, Any]]:
        """
        Get history of applied migrations.

        Returns:
            List[dict]: Migration history records
        """
        try:
            with self.db_connection.get_connection(read_only=True) as conn:
                cur = conn.cursor()

                cur.execute("""
                    SELECT name FROM sqlite_master
                    WHERE type='table' AND name='schema_version'
                """)

                if not cur.fetchone():
                    return []

                cur.execute("""
                    SELECT version, description, applied_at
                    FROM schema_version
                    ORDER BY applied_at ASC
                """)

                return [
                    {
                        "version": row['version'],
                        "description": row['description'],
                        "applied_at": row['applied_at']
                    }
                    for row in cur.fetchall()
                ]

        except StorageFailure as e:
            self.logger.error(f"Error getting migration history: {e}")
            return []

    @staticmethod
    def _parse_version(v: str) -> Tuple[int, int, int]:
        parts = v.split(".")
        return (
            int(parts[0]) if len(parts) > 0 else 0,
            int(parts[1]) if len(parts) > 1 else 0,
            int(parts[2]) if len(parts) > 2 else 0
        )

    def _compare_versions(self, v1: str, v2: str) -> int:
        """
        Compare two semantic version strings.

        Returns:
            int: -1 if v1 < v2, 0 if v1 == v2, 1 if v1 > v2
        """
        v1_parts = self._parse_version(v1)
        v2_parts = self._parse_version(v2)

        if v1_parts < v2_parts:
            return -1
        elif v1_parts > v2_parts:
            return 1
        else:
            return 0

    def _add_user_id_column_if_missing(self, conn: sqlite3.Connection):
        """
        Add user_id to photo_records if it doesn't exist.

        Existing rows keep user_id NULL. Scoped reads skip them; only a
        store still in degraded mode shows them to every user.

        Args:
            conn: Database connection
        """
        cur = conn.cursor()
        cur.execute("PRAGMA table_info(photo_records)")
        columns = {row['name'] for row in cur.fetchall()}

        if 'user_id' not in columns:
            self.logger.info("Adding column photo_records.user_id")
            cur.execute("ALTER TABLE photo_records ADD COLUMN user_id TEXT")

        conn.commit()


def get_migration_status(db_connection) -> Dict[str, Any]:
    """
    Get comprehensive migration status for a database.

    Args:
        db_connection: DatabaseConnection instance

    Returns:
        dict: Migration status information
    """
    manager = MigrationManager(db_connection)

    pending = manager.get_pending_migrations()
    history = manager.get_migration_history()

    return {
        "current_version": manager.get_current_version(),
        "target_version": manager.get_target_version(),
        "needs_migration": manager.needs_migration(),
        "pending_count": len(pending),
        "pending_migrations": [
            {"version": m.version, "description": m.description}
            for m in pending
        ],
        "applied_count": len(history),
        "migration_history": history
    }
