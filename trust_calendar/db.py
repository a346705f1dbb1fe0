"""
Database connection manager and migration utilities for SQLite storage.

- Connection management with PRAGMA configuration
- Transaction context manager
- Migration runner (numbered SQL scripts, schema_version tracking)
- Schema verification and integrity checks

Design Principles:
- Foreign keys enforced (PRAGMA foreign_keys=ON)
- WAL journal mode for concurrent read/write
- Backup before migrating an existing database
- Idempotent migration application
"""

import logging
import shutil
import sqlite3
import sys
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from .utils.paths import get_db_path, get_migrations_dir


logger = logging.getLogger(__name__)

# Connection PRAGMAs
PRAGMA_CONFIG = {
    "foreign_keys": "ON",           # Enforce FK constraints
    "journal_mode": "WAL",          # Write-Ahead Logging for concurrency
    "synchronous": "NORMAL",        # Balance safety/performance
    "temp_store": "MEMORY",         # Use RAM for temp tables
    "busy_timeout": 5000,           # Wait 5s for lock (milliseconds)
}

EXPECTED_TABLES = {"schema_version", "calendar_entries", "festivals", "events", "trips"}


# ============================================================
# Connection Management
# ============================================================

def open_connection(db_path: Optional[Path] = None) -> sqlite3.Connection:
    """
    Open SQLite connection with PRAGMA configuration.

    Args:
        db_path: Path to database file (default: data/calendar.db)

    Returns:
        Configured sqlite3.Connection (rows accessible by column name)

    Raises:
        sqlite3.OperationalError: Database locked or inaccessible
        sqlite3.DatabaseError: Corrupted database file
    """
    if db_path is None:
        db_path = get_db_path()

    db_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        conn = sqlite3.connect(str(db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row

        cursor = conn.cursor()
        for pragma, value in PRAGMA_CONFIG.items():
            cursor.execute(f"PRAGMA {pragma}={value}")

        fk_enabled = cursor.execute("PRAGMA foreign_keys").fetchone()[0]
        if fk_enabled != 1:
            raise RuntimeError("Failed to enable foreign keys (PRAGMA foreign_keys=ON)")

        return conn

    except sqlite3.OperationalError as e:
        if "locked" in str(e).lower():
            raise sqlite3.OperationalError(
                f"Database {db_path} is locked. "
                f"Close other instances of the application and retry."
            ) from e
        raise

    except sqlite3.DatabaseError as e:
        raise sqlite3.DatabaseError(
            f"Database {db_path} is corrupted. "
            f"Restore from a backup (data/backups/) or run 'python -m trust_calendar.db verify'."
        ) from e


@contextmanager
def transaction(conn: sqlite3.Connection, isolation_level: str = "DEFERRED"):
    """
    Transaction context manager with automatic commit/rollback.

    Args:
        conn: SQLite connection
        isolation_level: DEFERRED (default), IMMEDIATE, or EXCLUSIVE

    Yields:
        sqlite3.Cursor: Cursor for executing queries

    Usage:
        >>> with transaction(conn) as cur:
        ...     cur.execute("INSERT INTO festivals (name, date) VALUES (?, ?)", ("Diwali", "2025-10-20"))
        ...     # COMMIT on success, ROLLBACK on exception
    """
    cursor = conn.cursor()

    try:
        cursor.execute(f"BEGIN {isolation_level}")
        yield cursor
        conn.commit()

    except Exception as e:
        conn.rollback()
        raise RuntimeError(f"Transaction failed and rolled back: {e}") from e


# ============================================================
# Migration Management
# ============================================================

def get_current_schema_version(conn: sqlite3.Connection) -> int:
    """
    Get current schema version from database.

    Returns:
        Current schema version (0 if schema_version table doesn't exist)
    """
    try:
        result = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
        return result[0] if result[0] is not None else 0
    except sqlite3.OperationalError:
        return 0


def get_pending_migrations(conn: sqlite3.Connection, migrations_dir: Optional[Path] = None) -> List[Tuple[int, Path]]:
    """
    Get list of pending migration scripts.

    Returns:
        List of (version, filepath) tuples sorted by version

    Naming convention: NNN_description.sql (e.g. 001_initial_schema.sql)
    """
    migrations_dir = migrations_dir or get_migrations_dir()
    current_version = get_current_schema_version(conn)

    if not migrations_dir.exists():
        return []

    pending = []
    for migration_file in sorted(migrations_dir.glob("*.sql")):
        version_str = migration_file.stem.split("_")[0]
        try:
            version = int(version_str)
        except ValueError:
            logger.warning("Skipping invalid migration filename: %s", migration_file.name)
            continue

        if version > current_version:
            pending.append((version, migration_file))

    return sorted(pending, key=lambda x: x[0])


def backup_database(db_path: Path, backup_reason: str = "migration", backup_dir: Optional[Path] = None) -> Path:
    """
    Create a timestamped copy of the database file (plus WAL file if present).

    Backup naming: <stem>_YYYYMMDD_HHMMSS_{reason}.db
    """
    if not db_path.exists():
        raise FileNotFoundError(f"Database {db_path} does not exist")

    backup_dir = backup_dir or db_path.parent / "backups"
    backup_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = backup_dir / f"{db_path.stem}_{timestamp}_{backup_reason}.db"
    shutil.copy2(db_path, backup_path)

    wal_path = Path(str(db_path) + "-wal")
    if wal_path.exists():
        shutil.copy2(wal_path, Path(str(backup_path) + "-wal"))

    logger.info("Backup created: %s", backup_path)
    return backup_path


def _database_file(conn: sqlite3.Connection) -> Optional[Path]:
    row = conn.execute("PRAGMA database_list").fetchone()
    if row is None or not row["file"]:
        return None
    return Path(row["file"])


def apply_migrations(conn: sqlite3.Connection, dry_run: bool = False, migrations_dir: Optional[Path] = None) -> int:
    """
    Apply all pending migrations.

    Each script owns its BEGIN/COMMIT and records itself in schema_version,
    so a failing script leaves the schema at the previous version.

    Args:
        conn: Open connection
        dry_run: Only log pending migrations
        migrations_dir: Override scripts location (tests)

    Returns:
        Number of migrations applied
    """
    current_version = get_current_schema_version(conn)
    pending = get_pending_migrations(conn, migrations_dir)

    if not pending:
        logger.debug("Database schema is up-to-date (version %d)", current_version)
        return 0

    if dry_run:
        for version, path in pending:
            logger.info("Pending migration [%d] %s", version, path.name)
        return 0

    db_file = _database_file(conn)
    if current_version > 0 and db_file is not None and db_file.exists():
        backup_database(db_file, f"v{current_version}_pre_migration")

    applied = 0
    for version, migration_path in pending:
        with open(migration_path, "r", encoding="utf-8") as f:
            migration_sql = f.read()

        try:
            conn.executescript(migration_sql)
        except sqlite3.Error as e:
            if conn.in_transaction:
                conn.rollback()
            raise RuntimeError(f"Migration {version} ({migration_path.name}) failed: {e}") from e

        if get_current_schema_version(conn) < version:
            raise RuntimeError(f"Migration {migration_path.name} did not record version {version} in schema_version")

        logger.info("Migration %d applied: %s", version, migration_path.name)
        applied += 1

    return applied


def initialize_database(db_path: Optional[Path] = None) -> sqlite3.Connection:
    """Open (creating if needed) and migrate the database. Returns the open connection."""
    conn = open_connection(db_path)
    apply_migrations(conn)
    return conn


# ============================================================
# Health Checks
# ============================================================

def verify_schema(conn: sqlite3.Connection) -> bool:
    """
    Verify database schema matches expected structure.

    Returns:
        True if all expected tables exist and a migration has been applied
    """
    rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    actual_tables = {row[0] for row in rows}

    missing = EXPECTED_TABLES - actual_tables
    if missing:
        logger.error("Missing tables: %s", ", ".join(sorted(missing)))
        return False

    if get_current_schema_version(conn) == 0:
        logger.error("Schema version is 0 (no migrations applied)")
        return False

    return True


def integrity_check(conn: sqlite3.Connection) -> bool:
    """Run PRAGMA integrity_check and foreign_key_check."""
    result = conn.execute("PRAGMA integrity_check").fetchall()
    if len(result) != 1 or result[0][0] != "ok":
        for row in result[:10]:
            logger.error("Integrity check: %s", row[0])
        return False

    violations = conn.execute("PRAGMA foreign_key_check").fetchall()
    if violations:
        logger.error("Foreign key violations found: %d", len(violations))
        return False

    return True


if __name__ == "__main__":
    usage = "Usage: python -m trust_calendar.db [init|migrate|verify] [--dry-run]"

    if len(sys.argv) < 2:
        print(usage)
        sys.exit(1)

    command = sys.argv[1]

    if command == "init":
        connection = initialize_database()
        print(f"✓ Database ready (schema version {get_current_schema_version(connection)})")
        connection.close()

    elif command == "migrate":
        connection = open_connection()
        count = apply_migrations(connection, dry_run="--dry-run" in sys.argv)
        print(f"✓ Migrations applied: {count}")
        connection.close()

    elif command == "verify":
        connection = open_connection()
        healthy = verify_schema(connection) and integrity_check(connection)
        connection.close()
        print("✓ Database is healthy" if healthy else "✗ Database has issues")
        sys.exit(0 if healthy else 1)

    else:
        print(f"Unknown command: {command}")
        print(usage)
        sys.exit(1)
