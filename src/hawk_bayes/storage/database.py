# =============================================================================
# Database Connection and Schema Management
# =============================================================================
# Manages the SQLite database connection and schema versioning.
#
# Schema overview:
#   - contexts: One row per learning context, holding its aggregate counters
#   - tokens: Per-context token counts (pos/neg)
#
# Uses aiosqlite for async operations, with WAL mode for better
# concurrent performance on file databases.
# =============================================================================

import logging
from pathlib import Path

import aiosqlite

from hawk_bayes.core import DEFAULT_CONTEXT, HawkBayesError


logger = logging.getLogger(__name__)

# Current schema version - increment when making schema changes
SCHEMA_VERSION = 1

# Special path for a throwaway in-memory database
MEMORY = ":memory:"


class Database:
    """
    Manages the SQLite database connection and schema.

    This class handles:
        - Opening a single shared connection
        - Schema creation and version checks
        - Enabling SQLite optimizations (WAL mode, foreign keys)

    Usage:
        >>> db = Database(Path("tokens.db"))
        >>> await db.connect()
        >>> async with db.conn.execute("SELECT ...") as cursor:
        ...     rows = await cursor.fetchall()
        >>> await db.close()

    The database is also an async context manager:
        >>> async with Database(":memory:") as db:
        ...     ...

    Attributes:
        db_path: Path to the SQLite database file, or ":memory:".
    """

    def __init__(self, db_path: Path | str) -> None:
        """
        Initialize the database manager.

        Args:
            db_path: Path to database file, or ":memory:".
        """
        self.db_path = db_path if db_path == MEMORY else Path(db_path)
        self._connection: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """
        Open the database connection and ensure schema is up to date.

        Creates the database file if it doesn't exist.

        Raises:
            StorageError: If the database can't be opened or initialized.
        """
        try:
            if isinstance(self.db_path, Path):
                # Ensure parent directory exists
                self.db_path.parent.mkdir(parents=True, exist_ok=True)

            self._connection = await aiosqlite.connect(self.db_path)

            # Enable foreign keys (off by default in SQLite)
            await self._connection.execute("PRAGMA foreign_keys = ON")

            if isinstance(self.db_path, Path):
                # WAL is meaningless for in-memory databases
                await self._connection.execute("PRAGMA journal_mode = WAL")

            await self._init_schema()
        except StorageError:
            await self.close()
            raise
        except (aiosqlite.Error, OSError) as e:
            await self.close()
            raise StorageError(f"Could not open database {self.db_path}: {e}") from e

        logger.debug(f"Opened token database {self.db_path}")

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def __aenter__(self) -> "Database":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @property
    def conn(self) -> aiosqlite.Connection:
        """
        Get the active database connection.

        Raises:
            RuntimeError: If not connected.
        """
        if self._connection is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._connection

    async def _init_schema(self) -> None:
        """
        Initialize the database schema.

        Creates the tables on a fresh database and refuses databases written
        by a newer version.
        """
        # Check current schema version
        try:
            async with self.conn.execute(
                "SELECT version FROM schema_version"
            ) as cursor:
                row = await cursor.fetchone()
                current_version = row[0] if row else 0
        except aiosqlite.OperationalError:
            # Table doesn't exist, this is a fresh database
            current_version = 0

        if current_version > SCHEMA_VERSION:
            raise StorageError(
                f"Database schema version {current_version} is newer than "
                f"supported version {SCHEMA_VERSION}"
            )

        if current_version < SCHEMA_VERSION:
            await self._create_schema()

    async def _create_schema(self) -> None:
        """Create the database schema from scratch."""
        schema = """
        -- Schema version tracking
        CREATE TABLE IF NOT EXISTS schema_version (
            version INTEGER PRIMARY KEY
        );

        -- Learning contexts and their aggregate counters
        CREATE TABLE IF NOT EXISTS contexts (
            name TEXT PRIMARY KEY,
            positive_count INTEGER NOT NULL DEFAULT 0 CHECK(positive_count >= 0),
            negative_count INTEGER NOT NULL DEFAULT 0 CHECK(negative_count >= 0),
            documents_learned INTEGER NOT NULL DEFAULT 0,
            documents_unlearned INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        );

        -- Token counts, scoped by context
        CREATE TABLE IF NOT EXISTS tokens (
            context TEXT NOT NULL REFERENCES contexts(name) ON DELETE CASCADE,
            token TEXT NOT NULL,
            pos INTEGER NOT NULL DEFAULT 0 CHECK(pos >= 0),
            neg INTEGER NOT NULL DEFAULT 0 CHECK(neg >= 0),
            PRIMARY KEY (context, token)
        ) WITHOUT ROWID;
        """

        # Execute schema creation
        await self.conn.executescript(schema)

        # The default context always exists
        await self.conn.execute(
            "INSERT OR IGNORE INTO contexts (name) VALUES (?)",
            (DEFAULT_CONTEXT,)
        )

        # Set schema version
        await self.conn.execute(
            "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
            (SCHEMA_VERSION,)
        )
        await self.conn.commit()


# =============================================================================
# Exceptions
# =============================================================================

class StorageError(HawkBayesError):
    """Raised when the token store fails a read or write."""
    pass
