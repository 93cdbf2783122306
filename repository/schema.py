# repository/schema.py
# Version 02.00.00.00 dated 20261019
# Centralized database schema definition for the photo store
#
# Single source of truth for schema creation and versioning.

"""
Centralized database schema definition for repository layer.

Schema Version: 2.0.0
- photo_records: one row per persisted photo (metadata + image bytes),
  scoped by user_id
- category_map: durable copy of the path -> category ledger, scoped by
  the identity-derived key
- schema_version tracking table

Schema Version 1.0.0 (legacy, still readable):
- photo_records without the user_id column and its index
- no schema_version table, no category_map
"""

SCHEMA_VERSION = "2.0.0"

# Index whose presence switches repositories out of degraded mode
USER_INDEX_NAME = "idx_photo_records_user"

# Complete schema SQL - executed as a script for new databases
SCHEMA_SQL = """
-- ============================================================================
-- SCHEMA VERSION TRACKING
-- ============================================================================
CREATE TABLE IF NOT EXISTS schema_version (
    version TEXT PRIMARY KEY,
    applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    description TEXT
);

INSERT OR IGNORE INTO schema_version (version, description)
VALUES ('2.0.0', 'User-scoped photo records and durable category map');

-- ============================================================================
-- PHOTO RECORDS
-- ============================================================================

-- One persisted photo: metadata plus the full image bytes
CREATE TABLE IF NOT EXISTS photo_records (
    id TEXT PRIMARY KEY,
    user_id TEXT,
    name TEXT NOT NULL,
    path TEXT NOT NULL,
    category TEXT,
    size INTEGER DEFAULT 0,
    last_modified INTEGER DEFAULT 0,
    image_data BLOB,
    stored_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_photo_records_path ON photo_records(path);
CREATE INDEX IF NOT EXISTS idx_photo_records_category ON photo_records(category);
CREATE INDEX IF NOT EXISTS idx_photo_records_user ON photo_records(user_id);

-- ============================================================================
-- CATEGORY MAP
-- ============================================================================

-- Path-keyed verdict ledger; scope_key namespaces it per user
CREATE TABLE IF NOT EXISTS category_map (
    scope_key TEXT NOT NULL,
    path TEXT NOT NULL,
    category TEXT NOT NULL,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (scope_key, path)
);
"""

# Version 1.0.0 layout, kept so tests and tools can build a pre-scoping store
LEGACY_SCHEMA_SQL_V1 = """
CREATE TABLE IF NOT EXISTS photo_records (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    path TEXT NOT NULL,
    category TEXT,
    size INTEGER DEFAULT 0,
    last_modified INTEGER DEFAULT 0,
    image_data BLOB,
    stored_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_photo_records_path ON photo_records(path);
CREATE INDEX IF NOT EXISTS idx_photo_records_category ON photo_records(category);
"""


def get_schema_sql() -> str:
    """Get the complete schema SQL for creating a new database."""
    return SCHEMA_SQL


def get_schema_version() -> str:
    """Get the current schema version."""
    return SCHEMA_VERSION


def get_expected_tables() -> list[str]:
    """Get list of expected table names in the schema."""
    return [
        "schema_version",
        "photo_records",
        "category_map",
    ]


def get_expected_indexes() -> list[str]:
    """Get list of expected index names in the schema."""
    return [
        "idx_photo_records_path",
        "idx_photo_records_category",
        USER_INDEX_NAME,
    ]
